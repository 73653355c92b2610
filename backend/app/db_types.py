"""Column types that behave the same on SQLite and PostgreSQL."""

from __future__ import annotations

import enum
import uuid
from typing import Any, Optional, Type

from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects import postgresql
from sqlalchemy.types import CHAR, TypeDecorator


def new_guid() -> str:
    """Primary key default; the same ``str`` form that :class:`GUID` reads back."""

    return str(uuid.uuid4())


def _canonical_uuid(value: Any) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class GUID(TypeDecorator):
    """UUID primary/foreign keys, handed to Python as lowercase strings.

    PostgreSQL stores a native ``UUID``; other dialects use ``CHAR(36)``.
    Identifiers read back as ``str`` so they compare equal to path
    parameters and to ``alerts.entity_id``.
    """

    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):  # type: ignore[override]
        if dialect.name == "postgresql":
            return dialect.type_descriptor(postgresql.UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return None
        parsed = _canonical_uuid(value)
        if dialect.name == "postgresql":
            if parsed is None:
                raise ValueError(f"Invalid UUID value: {value!r}")
            return parsed
        # Malformed ids are bound verbatim on SQLite and simply match no row.
        return str(parsed) if parsed is not None else str(value)

    def process_result_value(self, value: Any, dialect):  # type: ignore[override]
        return None if value is None else str(value)


def string_enum(enum_cls: Type[enum.Enum], name: str) -> SAEnum:
    """Non-native enum storing member values, so both dialects share one schema."""

    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        validate_strings=True,
        length=32,
    )
