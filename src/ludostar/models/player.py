"""Canonical player models shared across the store, service and API layers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, Field


def parse_old_names(raw: Any) -> list:
    """Coerce a stored or inbound ``old_names`` value into a list.

    Malformed data is treated as "no history": anything that is not a list,
    or a JSON string that does not decode to one, becomes ``[]``.
    """
    if not raw:
        return []
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return []
        return parsed if isinstance(parsed, list) else []
    return raw if isinstance(raw, list) else []


def dump_old_names(names: list) -> str:
    return json.dumps(names)


class PlayerRecord(BaseModel):
    """A row of the ``players`` table with ``old_names`` denormalized."""

    player_id: str
    name: str
    uid: str
    old_names: List[Any] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PlayerRecord":
        data = dict(row)
        data["old_names"] = parse_old_names(data.get("old_names"))
        return cls.model_validate(data)


class _Unset:
    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class PlayerUpdate:
    """Partial update where each field is either ``UNSET`` or a value.

    An explicit ``None`` is a value and is written through; only ``UNSET``
    fields are left alone.
    """

    name: str | None | _Unset = UNSET
    uid: str | None | _Unset = UNSET
    old_names: Any = UNSET

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "PlayerUpdate":
        return cls(**{key: fields[key] for key in ("name", "uid", "old_names") if key in fields})

    def is_empty(self) -> bool:
        return not self.assignments()

    def assignments(self) -> Dict[str, Any]:
        """Column values for the supplied fields, ready for the store."""
        values: Dict[str, Any] = {}
        if self.name is not UNSET:
            values["name"] = self.name
        if self.uid is not UNSET:
            values["uid"] = self.uid
        if self.old_names is not UNSET:
            values["old_names"] = dump_old_names(parse_old_names(self.old_names))
        return values
