"""Field identifiers: temporary (client-made) or persisted (server-assigned)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union
import uuid

from documents.field_ids import TEMP_ID_PREFIX


@dataclass(frozen=True, slots=True)
class TemporaryId:
    token: str

    def __str__(self) -> str:
        return f"{TEMP_ID_PREFIX}{self.token}"


@dataclass(frozen=True, slots=True)
class PersistedId:
    value: str

    def __str__(self) -> str:
        return self.value


FieldId = Union[TemporaryId, PersistedId]


def new_temporary_id() -> TemporaryId:
    return TemporaryId(uuid.uuid4().hex)


def new_temporary_page_id() -> str:
    return f"{TEMP_ID_PREFIX}page_{uuid.uuid4().hex}"


def as_field_id(value: FieldId | str) -> FieldId:
    """Parse a wire id (``temp_...`` or a persisted id) into a FieldId."""
    if isinstance(value, (TemporaryId, PersistedId)):
        return value
    if value.startswith(TEMP_ID_PREFIX):
        return TemporaryId(value[len(TEMP_ID_PREFIX):])
    return PersistedId(value)
