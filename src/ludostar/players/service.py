"""Player CRUD operations on top of :class:`~ludostar.persistence.PlayerStore`."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List

from ludostar.models import PlayerRecord, PlayerUpdate, dump_old_names, parse_old_names
from ludostar.persistence import DuplicateKeyError, PlayerStore


logger = logging.getLogger("uvicorn.error")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class PlayerServiceError(Exception):
    """Base error carrying the HTTP status and extra response fields."""

    status_code = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message, **self.details}


class PlayerValidationError(PlayerServiceError):
    status_code = 400


class PlayerConflict(PlayerServiceError):
    status_code = 409


class PlayerNotFound(PlayerServiceError):
    status_code = 404

    def __init__(self, player_id: str):
        super().__init__("Player not found", player_id=player_id)


class InternalError(PlayerServiceError):
    status_code = 500

    def __init__(self, error: str):
        super().__init__("Internal server error", error=error)


@dataclass
class PlayerPage:
    players: List[PlayerRecord]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def clamp_limit(limit: int) -> int:
    if limit < 1:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


class PlayerService:
    def __init__(self, store: PlayerStore):
        self.store = store

    def get_player(self, player_id: str) -> PlayerRecord:
        row = self.store.get(player_id)
        if row is None:
            raise PlayerNotFound(player_id)
        return PlayerRecord.from_row(row)

    def create_player(
        self,
        player_id: str | None,
        name: str | None,
        uid: str | None,
        old_names: Any = None,
    ) -> PlayerRecord:
        if not player_id or not name or not uid:
            raise PlayerValidationError(
                "Missing required fields: player_id, name, and uid are required"
            )

        if self.store.exists(player_id):
            raise PlayerConflict("Player ID already exists", player_id=player_id)

        owner = self.store.find_uid_owner(uid)
        if owner is not None:
            raise PlayerConflict("UID already exists", existing_player_id=owner)

        names = parse_old_names(old_names)
        created_at = _utcnow()
        try:
            self.store.insert(
                player_id=player_id,
                name=name,
                uid=uid,
                old_names=dump_old_names(names),
                created_at=created_at,
            )
        except DuplicateKeyError as exc:
            logger.warning("Duplicate entry while adding player %s: %s", player_id, exc)
            raise PlayerConflict("Duplicate entry detected", error=str(exc)) from exc

        logger.info("Added player %s", player_id)
        return PlayerRecord(
            player_id=player_id,
            name=name,
            uid=uid,
            old_names=names,
            created_at=created_at,
            updated_at=created_at,
        )

    def update_player(self, player_id: str, update: PlayerUpdate) -> PlayerRecord:
        # uid is not checked against other players on update; only the
        # UNIQUE constraint on the column applies.
        if not self.store.exists(player_id):
            raise PlayerNotFound(player_id)

        assignments = update.assignments()
        if not assignments:
            raise PlayerValidationError("No fields to update")
        changed = ", ".join(sorted(assignments))
        assignments["updated_at"] = _utcnow()

        self.store.update(player_id, assignments)
        logger.info("Updated player %s (%s)", player_id, changed)
        return self.get_player(player_id)

    def delete_player(self, player_id: str) -> str:
        if self.store.delete(player_id) == 0:
            raise PlayerNotFound(player_id)
        logger.info("Deleted player %s", player_id)
        return player_id

    def list_players(self, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> PlayerPage:
        """Return one page of players.

        ``limit`` is capped at ``MAX_LIMIT`` and the offset is computed from
        the capped value. ``page`` is not validated: zero or negative pages
        produce a negative offset, which SQLite treats as zero.
        """
        actual_limit = clamp_limit(limit)
        offset = (page - 1) * actual_limit
        total = self.store.count()
        rows = self.store.list_players(limit=actual_limit, offset=offset)
        return PlayerPage(
            players=[PlayerRecord.from_row(row) for row in rows],
            page=page,
            limit=actual_limit,
            total=total,
        )
