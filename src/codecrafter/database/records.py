"""Validated, immutable views of stored documents.

The record store never hands ORM rows to the workflow. Each row is
validated into one of the pydantic records below; a row missing a required
field or breaking a record invariant fails validation and is treated as
corrupt by the store (skipped by queries, absent on point reads).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from codecrafter.database.models.application import ApplicationStatus
from codecrafter.database.models.project import ProjectStatus
from codecrafter.database.models.user import DEVELOPER_ONLY_FIELDS, AccountStatus, UserRole

_ASSIGNED_STATUSES = frozenset({ProjectStatus.in_progress, ProjectStatus.completed})


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserRecord(_Record):
    """A user document.

    Developer-only attributes are None for clients and admins.
    """

    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    role: UserRole
    account_status: AccountStatus
    is_flagged: bool = False
    bio: str | None = None
    avatar_url: str | None = None
    referral_code: str | None = None
    referred_by_code: str | None = None
    current_plan: str | None = None
    skills: list[str] | None = None
    experience_level: str | None = None
    hourly_rate: float | None = None
    portfolio_urls: list[str] | None = None
    resume_file_url: str | None = None
    resume_file_name: str | None = None
    past_projects: str | None = None

    @model_validator(mode="after")
    def check_developer_attributes(self) -> UserRecord:
        """Reject non-developers that carry developer-only attributes."""
        if self.role is not UserRole.developer:
            present = sorted(
                name for name in DEVELOPER_ONLY_FIELDS if getattr(self, name) is not None
            )
            if present:
                raise ValueError(
                    f"{self.role.value} user carries developer-only attributes: {present}"
                )
        return self

    @property
    def is_developer(self) -> bool:
        return self.role is UserRole.developer

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.admin


class ProjectRecord(_Record):
    """A project document.

    An assignee is present exactly when the project is In Progress or
    Completed.
    """

    client_id: UUID
    name: str = Field(min_length=1)
    status: ProjectStatus
    description: str | None = None
    required_skills: list[str] = Field(default_factory=list)
    availability: str | None = None
    time_zone: str | None = None
    assigned_developer_id: UUID | None = None
    assigned_developer_name: str | None = None

    @field_validator("required_skills", mode="before")
    @classmethod
    def default_skills(cls, v: Any) -> Any:
        """Treat a missing skills list as empty."""
        return [] if v is None else v

    @model_validator(mode="after")
    def check_assignment(self) -> ProjectRecord:
        """Enforce the assignee/status invariant."""
        assigned = self.assigned_developer_id is not None
        if assigned != (self.status in _ASSIGNED_STATUSES):
            raise ValueError(
                f"project in status {self.status.value!r} "
                f"{'has' if assigned else 'lacks'} an assigned developer"
            )
        return self


class ApplicationRecord(_Record):
    """A project application document."""

    project_id: UUID
    developer_id: UUID
    status: ApplicationStatus
    client_id: UUID | None = None
    message: str | None = None
    project_name: str | None = None
    developer_name: str | None = None
    developer_email: str | None = None
    client_notified_of_new_application: bool = False
    developer_notified_of_status: bool = False
    decided_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is ApplicationStatus.pending


class ActivityRecord(_Record):
    """An activity log entry."""

    actor_id: str
    action: str
    target_type: str
    actor_name: str | None = None
    target_id: str | None = None
    target_name: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
