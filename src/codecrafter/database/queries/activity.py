"""Activity log query functions for CodeCrafter.

Read access to the audit trail for external inspection. The workflow
engine itself never reads the ledger.
"""

from __future__ import annotations

from codecrafter.database.records import ActivityRecord
from codecrafter.database.store import Collection, RecordStore


async def list_activity(
    store: RecordStore,
    target_type: str | None = None,
    target_id: str | None = None,
    limit: int = 50,
) -> list[ActivityRecord]:
    """List recent activity entries, newest first.

    Args:
        store: Record store to read from.
        target_type: Optional target type to filter by (user, project, application).
        target_id: Optional target identifier to filter by.
        limit: Maximum number of entries to return.

    Returns:
        List of ActivityRecord instances.
    """
    filters: dict[str, object] = {}
    if target_type is not None:
        filters["target_type"] = target_type
    if target_id is not None:
        filters["target_id"] = target_id
    return await store.query(
        Collection.activity,
        filters=filters,
        order_by="created_at",
        descending=True,
        limit=limit,
    )
