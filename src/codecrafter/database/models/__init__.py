"""SQLAlchemy ORM models for CodeCrafter.

This module defines the four collections of the marketplace: users,
projects, project applications, and the activity log.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from codecrafter.database.models.activity import ActivityLogEntry
from codecrafter.database.models.application import (
    LIVE_APPLICATION_STATUSES,
    ApplicationStatus,
    ProjectApplication,
)
from codecrafter.database.models.base import Base, TimestampMixin
from codecrafter.database.models.project import Project, ProjectStatus
from codecrafter.database.models.user import (
    DEVELOPER_ONLY_FIELDS,
    AccountStatus,
    User,
    UserRole,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserRole",
    "AccountStatus",
    "DEVELOPER_ONLY_FIELDS",
    "Project",
    "ProjectStatus",
    "ProjectApplication",
    "ApplicationStatus",
    "LIVE_APPLICATION_STATUSES",
    "ActivityLogEntry",
]
