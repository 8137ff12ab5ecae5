"""SQLAlchemy declarative base and common column mixins for CodeCrafter.

This module defines the DeclarativeBase class and a TimestampMixin that
provides id, created_at, and updated_at columns shared across all
collections, plus column type helpers that work on both PostgreSQL and
the SQLite databases used in tests.

Example:
    >>> class MyModel(TimestampMixin, Base):
    ...     __tablename__ = "my_table"
    ...     name: Mapped[str | None] = mapped_column(Text, nullable=True)
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Enum, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Build an Enum column type that persists member values, not names.

    Args:
        enum_cls: The Python enum to persist.
        name: Database type name (used by PostgreSQL native enums).

    Returns:
        SQLAlchemy Enum type storing ``member.value`` strings.
    """
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class Base(DeclarativeBase):
    """SQLAlchemy 2.0 declarative base for all CodeCrafter models."""

    pass


class TimestampMixin:
    """Mixin providing id (UUID), created_at, and updated_at columns.

    This mixin should be listed before Base in the class hierarchy
    to ensure the columns are included in the model's table definition.

    Attributes:
        id: UUID primary key generated client-side.
        created_at: Timestamp set on row creation.
        updated_at: Timestamp set on row creation and refreshed on each
                    UPDATE statement.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )
