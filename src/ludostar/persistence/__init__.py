"""SQLite persistence for player records behind a bounded connection pool."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import QueuePool


logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = ("name", "uid", "old_names", "updated_at")

DEFAULT_POOL_TIMEOUT = 30.0


class DuplicateKeyError(Exception):
    """Raised when a write violates the primary key or a UNIQUE constraint."""


def database_url(db_path: Path | str) -> str:
    """SQLAlchemy URL for a sqlite file path or ``file:`` URI."""
    db_path = str(db_path)
    if db_path.startswith("file:"):
        separator = "&" if "?" in db_path else "?"
        return f"sqlite:///{db_path}{separator}uri=true"
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path}"


def _is_duplicate_key(exc: IntegrityError) -> bool:
    message = str(exc.orig).upper()
    return "UNIQUE" in message or "PRIMARY KEY" in message


class PlayerStore:
    """Query and execute operations against the ``players`` table.

    All statements run through the engine's ``QueuePool``: at most
    ``pool_size`` connections are checked out at once and further callers
    wait up to ``pool_timeout`` seconds for one to be returned.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._closed = False
        self._ensure_schema()

    @classmethod
    def open(
        cls,
        db_path: Path | str,
        *,
        pool_size: int = 10,
        pool_timeout: float = DEFAULT_POOL_TIMEOUT,
    ) -> "PlayerStore":
        engine = create_engine(
            database_url(db_path),
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=0,
            pool_timeout=pool_timeout,
            connect_args={"check_same_thread": False},
        )
        return cls(engine)

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def _begin(self) -> Iterator[Connection]:
        if self._closed:
            raise RuntimeError("player store is closed")
        with self.engine.begin() as conn:
            yield conn

    def _ensure_schema(self) -> None:
        with self._begin() as conn:
            conn.execute(
                text(
                    """
                    CREATE TABLE IF NOT EXISTS players (
                        player_id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        uid TEXT NOT NULL UNIQUE,
                        old_names TEXT NOT NULL DEFAULT '[]',
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                    """
                )
            )

    def ping(self) -> None:
        with self._begin() as conn:
            conn.execute(text("SELECT 1")).first()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.engine.dispose()
        logger.info("Disposed connection pool for %s", self.engine.url)

    def get(self, player_id: str) -> Optional[Dict[str, Any]]:
        with self._begin() as conn:
            row = conn.execute(
                text("SELECT * FROM players WHERE player_id = :player_id"),
                {"player_id": player_id},
            ).mappings().first()
        return dict(row) if row is not None else None

    def exists(self, player_id: str) -> bool:
        with self._begin() as conn:
            row = conn.execute(
                text("SELECT player_id FROM players WHERE player_id = :player_id"),
                {"player_id": player_id},
            ).first()
        return row is not None

    def find_uid_owner(self, uid: str) -> Optional[str]:
        with self._begin() as conn:
            row = conn.execute(
                text("SELECT player_id FROM players WHERE uid = :uid"),
                {"uid": uid},
            ).mappings().first()
        return row["player_id"] if row is not None else None

    def insert(
        self,
        *,
        player_id: str,
        name: str,
        uid: str,
        old_names: str,
        created_at: str,
    ) -> None:
        try:
            with self._begin() as conn:
                conn.execute(
                    text(
                        """
                        INSERT INTO players (player_id, name, uid, old_names, created_at, updated_at)
                        VALUES (:player_id, :name, :uid, :old_names, :created_at, :created_at)
                        """
                    ),
                    {
                        "player_id": player_id,
                        "name": name,
                        "uid": uid,
                        "old_names": old_names,
                        "created_at": created_at,
                    },
                )
        except IntegrityError as exc:
            if _is_duplicate_key(exc):
                raise DuplicateKeyError(str(exc.orig)) from exc
            raise

    def update(self, player_id: str, assignments: Mapping[str, Any]) -> int:
        unknown = set(assignments) - set(_UPDATABLE_COLUMNS)
        if unknown:
            raise KeyError(f"Cannot update columns: {', '.join(sorted(unknown))}")
        if not assignments:
            return 0
        columns = [column for column in _UPDATABLE_COLUMNS if column in assignments]
        set_clause = ", ".join(f"{column} = :{column}" for column in columns)
        params = {column: assignments[column] for column in columns}
        params["player_id"] = player_id
        with self._begin() as conn:
            result = conn.execute(
                text(f"UPDATE players SET {set_clause} WHERE player_id = :player_id"),
                params,
            )
        return result.rowcount

    def delete(self, player_id: str) -> int:
        with self._begin() as conn:
            result = conn.execute(
                text("DELETE FROM players WHERE player_id = :player_id"),
                {"player_id": player_id},
            )
        return result.rowcount

    def count(self) -> int:
        with self._begin() as conn:
            total = conn.execute(text("SELECT COUNT(*) FROM players")).scalar_one()
        return int(total)

    def list_players(self, *, limit: int, offset: int) -> List[Dict[str, Any]]:
        with self._begin() as conn:
            rows = conn.execute(
                text("SELECT * FROM players ORDER BY rowid LIMIT :limit OFFSET :offset"),
                {"limit": limit, "offset": offset},
            ).mappings().all()
        return [dict(row) for row in rows]
