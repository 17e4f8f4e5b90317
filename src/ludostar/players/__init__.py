"""Player record service: validation and query shaping for player CRUD."""

from .service import (
    MAX_LIMIT,
    InternalError,
    PlayerConflict,
    PlayerNotFound,
    PlayerPage,
    PlayerService,
    PlayerServiceError,
    PlayerValidationError,
)

__all__ = [
    "MAX_LIMIT",
    "InternalError",
    "PlayerConflict",
    "PlayerNotFound",
    "PlayerPage",
    "PlayerService",
    "PlayerServiceError",
    "PlayerValidationError",
]
