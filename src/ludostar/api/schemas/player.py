from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from ludostar.models import PlayerRecord, PlayerUpdate


class PlayerCreateRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    player_id: str | None = None
    name: str | None = None
    uid: str | None = None
    old_names: Any = None


class PlayerUpdateRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str | None = None
    uid: str | None = None
    old_names: Any = None

    def to_update(self) -> PlayerUpdate:
        """Carry over only the fields present in the request body."""
        return PlayerUpdate.from_fields(
            {key: getattr(self, key) for key in self.model_fields_set}
        )


class PlayerEnvelope(BaseModel):
    success: bool = True
    message: str | None = None
    data: PlayerRecord


class PaginationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")


class PlayerListEnvelope(BaseModel):
    success: bool = True
    data: List[PlayerRecord]
    pagination: PaginationResponse


class PlayerDeletedResponse(BaseModel):
    success: bool = True
    message: str
    player_id: str
