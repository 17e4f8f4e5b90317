"""Runtime settings for the player API, read from ``LUDOSTAR_*`` variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping


logger = logging.getLogger(__name__)

_DB_PATH_ENV = "LUDOSTAR_DB_PATH"
_POOL_SIZE_ENV = "LUDOSTAR_POOL_SIZE"
_HOST_ENV = "LUDOSTAR_HOST"
_PORT_ENV = "LUDOSTAR_PORT"
_CORS_ORIGINS_ENV = "LUDOSTAR_CORS_ORIGINS"
_LOG_LEVEL_ENV = "LUDOSTAR_LOG_LEVEL"

DEFAULT_DB_PATH = "ludostar.sqlite"
DEFAULT_POOL_SIZE = 10
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3015


def _env_int(env: Mapping[str, str], name: str, default: int, *, min_value: int | None = None) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("%s=%d is below %d; using %d", name, value, min_value, min_value)
        value = min_value
    return value


def _env_list(env: Mapping[str, str], name: str, default: List[str]) -> List[str]:
    raw = env.get(name)
    if not raw:
        return list(default)
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or list(default)


@dataclass
class Settings:
    db_path: str = DEFAULT_DB_PATH
    pool_size: int = DEFAULT_POOL_SIZE
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "info"

    @property
    def db_is_uri(self) -> bool:
        return self.db_path.startswith("file:")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            db_path=env.get(_DB_PATH_ENV) or DEFAULT_DB_PATH,
            pool_size=_env_int(env, _POOL_SIZE_ENV, DEFAULT_POOL_SIZE, min_value=1),
            host=env.get(_HOST_ENV) or DEFAULT_HOST,
            port=_env_int(env, _PORT_ENV, DEFAULT_PORT, min_value=1),
            cors_origins=_env_list(env, _CORS_ORIGINS_ENV, ["*"]),
            log_level=(env.get(_LOG_LEVEL_ENV) or "info").lower(),
        )
