"""Project model for CodeCrafter.

Defines the projects collection and the ProjectStatus enum. A project is
created Open by a client; the workflow engine assigns exactly one
developer when moving it to In Progress.
"""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from codecrafter.database.models.base import Base, JSONDocument, TimestampMixin, enum_column


class ProjectStatus(enum.Enum):
    """Lifecycle status for a project.

    States:
        open: Accepting applications.
        in_progress: A developer has been assigned.
        completed: Work delivered (terminal).
        cancelled: Withdrawn by the client before assignment (terminal).
    """

    open = "Open"
    in_progress = "In Progress"
    completed = "Completed"
    cancelled = "Cancelled"


class Project(TimestampMixin, Base):
    """A client-submitted unit of work.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        client_id: Owning client's user ID (immutable).
        name: Project title.
        description: Project description.
        required_skills: Skills the client is looking for.
        availability: Expected developer availability.
        time_zone: Preferred collaboration time zone.
        status: Current lifecycle status.
        assigned_developer_id: Set once on Open -> In Progress.
        assigned_developer_name: Developer name snapshot at assignment.
    """

    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_client_id", "client_id"),
        Index("ix_projects_status", "status"),
    )

    client_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    required_skills: Mapped[list[str] | None] = mapped_column(JSONDocument, nullable=True)
    availability: Mapped[str | None] = mapped_column(Text, nullable=True)
    time_zone: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ProjectStatus | None] = mapped_column(
        enum_column(ProjectStatus, "project_status"),
        default=ProjectStatus.open,
        nullable=True,
    )
    assigned_developer_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    assigned_developer_name: Mapped[str | None] = mapped_column(Text, nullable=True)
