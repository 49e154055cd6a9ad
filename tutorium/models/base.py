"""Column helpers shared by every model."""

from datetime import datetime, timezone
from typing import Type

import sqlalchemy as sa


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_column(enum_cls: Type) -> sa.Enum:
    """VARCHAR-backed enum column type (no CREATE TYPE on PostgreSQL)."""
    return sa.Enum(
        enum_cls,
        native_enum=False,
        length=32,
        validate_strings=True,
        create_constraint=False,
    )


def as_utc(value: datetime) -> datetime:
    """Naive datetimes from clients are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
