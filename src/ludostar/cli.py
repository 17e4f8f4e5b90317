"""Command-line entry point that serves the player API with uvicorn."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace

import uvicorn

from ludostar.api import create_app
from ludostar.config import Settings


def _parse_args(defaults: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the Ludo Star player API")
    parser.add_argument("--host", default=defaults.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=defaults.port, help="Port to listen on")
    parser.add_argument(
        "--db-path",
        default=defaults.db_path,
        help="SQLite database path or file: URI",
    )
    parser.add_argument(
        "--pool-size",
        type=int,
        default=defaults.pool_size,
        help="Maximum number of concurrent database connections",
    )
    parser.add_argument(
        "--log-level",
        default=defaults.log_level,
        choices=["critical", "error", "warning", "info", "debug"],
        help="Logging verbosity",
    )
    return parser.parse_args()


def main() -> None:
    defaults = Settings.from_env()
    args = _parse_args(defaults)
    settings = replace(
        defaults,
        host=args.host,
        port=args.port,
        db_path=args.db_path,
        pool_size=max(1, args.pool_size),
        log_level=args.log_level,
    )
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(settings)
    logging.getLogger(__name__).info(
        "Serving %s on http://%s:%d (db=%s)", app.title, settings.host, settings.port, settings.db_path
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
