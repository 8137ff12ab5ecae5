"""Explicit caller identity for workflow operations.

Every workflow operation receives the acting user as an argument. The
presentation layer has already authenticated this identity; the workflow
trusts it and never reads it from ambient state.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from codecrafter.database.models.user import UserRole
from codecrafter.database.records import UserRecord


@dataclass(frozen=True)
class Actor:
    """The authenticated user on whose behalf an operation runs."""

    id: UUID
    name: str
    role: UserRole

    @classmethod
    def from_user(cls, user: UserRecord) -> Actor:
        return cls(id=user.id, name=user.name, role=user.role)

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.admin

