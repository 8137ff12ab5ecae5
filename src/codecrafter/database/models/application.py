"""ProjectApplication model for CodeCrafter.

Defines the project_applications collection and the ApplicationStatus enum.
An application is a developer's expression of interest in an Open project.
Display fields are snapshots taken at submission time and may drift from
the live user and project records.

A partial unique index guarantees at most one live (pending or accepted)
application per (project_id, developer_id) pair, closing the race between
the duplicate check and the insert.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from codecrafter.database.models.base import Base, TimestampMixin, enum_column


class ApplicationStatus(enum.Enum):
    """State machine for application lifecycle.

    States:
        pending: Awaiting a decision.
        accepted: Chosen for the project (terminal).
        rejected: Declined or superseded by a sibling's acceptance (terminal).
    """

    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


LIVE_APPLICATION_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {ApplicationStatus.pending, ApplicationStatus.accepted}
)

_LIVE_PREDICATE = text("status IN ('pending', 'accepted')")


class ProjectApplication(TimestampMixin, Base):
    """A developer's application to a project.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Target project (immutable).
        developer_id: Applying developer (immutable).
        client_id: Owning client of the project, captured at submission.
        status: Current state in the application lifecycle.
        message: Optional cover note from the developer.
        project_name: Project name snapshot.
        developer_name: Developer name snapshot.
        developer_email: Developer email snapshot.
        client_notified_of_new_application: Client email confirmed sent.
        developer_notified_of_status: Decision email confirmed sent.
        decided_at: When the application was accepted or rejected.
    """

    __tablename__ = "project_applications"
    __table_args__ = (
        Index("ix_project_applications_project_status", "project_id", "status"),
        Index("ix_project_applications_developer_id", "developer_id"),
        Index(
            "uq_project_applications_live",
            "project_id",
            "developer_id",
            unique=True,
            postgresql_where=_LIVE_PREDICATE,
            sqlite_where=_LIVE_PREDICATE,
        ),
    )

    project_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    developer_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    client_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    status: Mapped[ApplicationStatus | None] = mapped_column(
        enum_column(ApplicationStatus, "application_status"),
        default=ApplicationStatus.pending,
        nullable=True,
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    project_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    developer_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    developer_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_notified_of_new_application: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    developer_notified_of_status: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
