"""Pydantic models for API I/O."""

from .player import (
    PaginationResponse,
    PlayerCreateRequest,
    PlayerDeletedResponse,
    PlayerEnvelope,
    PlayerListEnvelope,
    PlayerUpdateRequest,
)

__all__ = [
    "PaginationResponse",
    "PlayerCreateRequest",
    "PlayerDeletedResponse",
    "PlayerEnvelope",
    "PlayerListEnvelope",
    "PlayerUpdateRequest",
]
