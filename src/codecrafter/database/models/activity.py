"""Activity log model for CodeCrafter.

Defines the append-only activity_logs collection recording every
state-changing action taken by an admin or by the workflow engine.
Rows are never updated or deleted.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from codecrafter.database.models.base import Base, JSONDocument, TimestampMixin


class ActivityLogEntry(TimestampMixin, Base):
    """One audited action.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        actor_id: Identifier of the acting user or "system".
        actor_name: Display name of the actor at the time of the action.
        action: Action name (see codecrafter.workflow.ledger.ActivityAction).
        target_type: Kind of document acted upon (user, project, application).
        target_id: Identifier of the target document.
        target_name: Display name of the target at the time of the action.
        details: Free-form structured context.
        created_at: When the action was recorded (from TimestampMixin).
    """

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_created_at", "created_at"),
        Index("ix_activity_logs_target", "target_type", "target_id"),
    )

    actor_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    actor_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    action: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument,
        nullable=False,
        default=dict,
    )
