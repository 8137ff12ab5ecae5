"""Project query functions for CodeCrafter.

Typed accessors over the projects collection of the record store.
"""

from __future__ import annotations

from uuid import UUID

from codecrafter.database.models.project import ProjectStatus
from codecrafter.database.records import ProjectRecord
from codecrafter.database.store import Collection, RecordStore


async def get_project(store: RecordStore, project_id: UUID) -> ProjectRecord | None:
    """Retrieve a project by ID.

    Args:
        store: Record store to read from.
        project_id: UUID of the project to retrieve.

    Returns:
        The ProjectRecord if found and well-formed, None otherwise.
    """
    return await store.get(Collection.projects, project_id)


async def list_projects(
    store: RecordStore,
    status_filter: ProjectStatus | None = None,
) -> list[ProjectRecord]:
    """List projects newest first, optionally filtered by status."""
    filters = {"status": status_filter} if status_filter is not None else None
    return await store.query(
        Collection.projects,
        filters=filters,
        order_by="created_at",
        descending=True,
    )


async def list_projects_by_client(store: RecordStore, client_id: UUID) -> list[ProjectRecord]:
    """List a client's projects newest first."""
    return await store.query(
        Collection.projects,
        filters={"client_id": client_id},
        order_by="created_at",
        descending=True,
    )
