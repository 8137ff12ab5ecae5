"""Append-only activity ledger.

Every state-changing action taken by an admin or by the workflow engine is
recorded here for external inspection. Appending is best-effort: a failed
append is logged and swallowed so it can never abort the business
operation being audited. The workflow never reads the ledger back.
"""

from __future__ import annotations

import enum
from typing import Any

import structlog

from codecrafter.database.store import Collection, RecordStore

logger = structlog.get_logger(__name__)


class ActivityAction(str, enum.Enum):
    """Action names written to the activity log."""

    USER_REGISTERED = "user_registered"
    ACCOUNT_APPROVED = "account_approved"
    ACCOUNT_REJECTED = "account_rejected"
    ACCOUNT_SUSPENDED = "account_suspended"
    ACCOUNT_REINSTATED = "account_reinstated"
    USER_FLAGGED = "user_flagged"
    USER_UNFLAGGED = "user_unflagged"
    PROFILE_UPDATED = "profile_updated"
    PROJECT_POSTED = "project_posted"
    PROJECT_CANCELLED = "project_cancelled"
    PROJECT_COMPLETED = "project_completed"
    APPLICATION_SUBMITTED = "application_submitted"
    APPLICATION_ACCEPTED = "application_accepted"
    APPLICATION_REJECTED = "application_rejected"
    APPLICATIONS_SUPERSEDED = "applications_superseded"


class TargetType(str, enum.Enum):
    """Kinds of documents an activity entry can point at."""

    USER = "user"
    PROJECT = "project"
    APPLICATION = "application"


class ActivityLedger:
    """Write-only audit trail backed by the activity_logs collection."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store
        self.logger = logger.bind(component="ActivityLedger")

    async def append(
        self,
        actor_id: Any,
        actor_name: str | None,
        action: ActivityAction | str,
        target_type: TargetType | str,
        target_id: Any,
        target_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Record one action. Never raises.

        Args:
            actor_id: Acting user's ID, or "system" for engine-initiated actions.
            actor_name: Acting user's display name.
            action: What was done.
            target_type: Kind of document acted upon.
            target_id: Identifier of that document.
            target_name: Display name of the target, if any.
            details: Extra JSON-serialisable context.
        """
        action_name = action.value if isinstance(action, ActivityAction) else action
        target_kind = target_type.value if isinstance(target_type, TargetType) else target_type

        try:
            await self.store.put(
                Collection.activity,
                {
                    "actor_id": str(actor_id),
                    "actor_name": actor_name,
                    "action": action_name,
                    "target_type": target_kind,
                    "target_id": str(target_id) if target_id is not None else None,
                    "target_name": target_name,
                    "details": details or {},
                },
            )
        except Exception as exc:
            self.logger.error(
                "activity_append_failed",
                action=action_name,
                target_type=target_kind,
                target_id=str(target_id),
                error=str(exc),
            )
            return

        self.logger.debug("activity_appended", action=action_name, target_id=str(target_id))
