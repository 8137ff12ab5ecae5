"""Project application query functions for CodeCrafter.

Typed accessors over the project_applications collection, including the
lookups the workflow engine relies on for duplicate detection and for
superseding competing applications.
"""

from __future__ import annotations

from uuid import UUID

from codecrafter.database.models.application import (
    LIVE_APPLICATION_STATUSES,
    ApplicationStatus,
)
from codecrafter.database.records import ApplicationRecord
from codecrafter.database.store import Collection, RecordStore


async def get_application(
    store: RecordStore,
    application_id: UUID,
) -> ApplicationRecord | None:
    """Retrieve an application by ID.

    Args:
        store: Record store to read from.
        application_id: UUID of the application to retrieve.

    Returns:
        The ApplicationRecord if found and well-formed, None otherwise.
    """
    return await store.get(Collection.applications, application_id)


async def list_applications_for_project(
    store: RecordStore,
    project_id: UUID,
    status_filter: ApplicationStatus | None = None,
) -> list[ApplicationRecord]:
    """List a project's applications in submission order.

    Args:
        store: Record store to read from.
        project_id: UUID of the project.
        status_filter: Optional status to filter by.

    Returns:
        List of matching ApplicationRecord instances, oldest first.
    """
    filters: dict[str, object] = {"project_id": project_id}
    if status_filter is not None:
        filters["status"] = status_filter
    return await store.query(
        Collection.applications,
        filters=filters,
        order_by="created_at",
    )


async def list_applications_by_developer(
    store: RecordStore,
    developer_id: UUID,
) -> list[ApplicationRecord]:
    """List a developer's applications, newest first."""
    return await store.query(
        Collection.applications,
        filters={"developer_id": developer_id},
        order_by="created_at",
        descending=True,
    )


async def find_live_application(
    store: RecordStore,
    project_id: UUID,
    developer_id: UUID,
) -> ApplicationRecord | None:
    """Find the developer's pending or accepted application on a project.

    A previously rejected application is not live and is ignored.
    """
    applications = await store.query(
        Collection.applications,
        filters={
            "project_id": project_id,
            "developer_id": developer_id,
            "status": LIVE_APPLICATION_STATUSES,
        },
        limit=1,
    )
    return applications[0] if applications else None


async def list_pending_siblings(
    store: RecordStore,
    project_id: UUID,
    exclude_id: UUID | None = None,
) -> list[ApplicationRecord]:
    """List pending applications on a project other than ``exclude_id``."""
    pending = await list_applications_for_project(
        store,
        project_id,
        status_filter=ApplicationStatus.pending,
    )
    return [app for app in pending if app.id != exclude_id]
