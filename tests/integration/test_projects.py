"""Integration tests for project posting, cancellation, and completion."""

from __future__ import annotations

import pytest

from codecrafter.database.models.application import ApplicationStatus
from codecrafter.database.models.project import ProjectStatus
from codecrafter.database.queries.activity import list_activity
from codecrafter.database.queries.project import get_project, list_projects
from codecrafter.errors import InvalidTransitionError, NotAuthorizedError
from codecrafter.notifications.dispatcher import NotificationDispatcher
from codecrafter.workflow.applications import ApplicationWorkflow
from codecrafter.workflow.context import Actor
from codecrafter.workflow.projects import ProjectLifecycle


@pytest.mark.asyncio
async def test_client_posts_open_project(
    projects: ProjectLifecycle,
    dispatcher: NotificationDispatcher,
    notifier,
    store,
    make,
) -> None:
    client = await make.client()

    project = await projects.post(
        Actor.from_user(client),
        "Mobile app",
        description="iOS and Android",
        required_skills=["flutter"],
        time_zone="UTC+1",
    )
    await dispatcher.drain()

    assert project.status is ProjectStatus.open
    assert project.client_id == client.id
    assert project.assigned_developer_id is None
    assert project.required_skills == ["flutter"]
    assert [p.id for p in await list_projects(store, ProjectStatus.open)] == [project.id]

    emails = notifier.to(client.email)
    assert len(emails) == 1
    assert "Mobile app" in emails[0][1]

    entries = await list_activity(store, target_type="project", target_id=str(project.id))
    assert [e.action for e in entries] == ["project_posted"]


@pytest.mark.asyncio
async def test_developer_cannot_post(projects: ProjectLifecycle, make) -> None:
    dev = await make.developer("Dev Dana")

    with pytest.raises(NotAuthorizedError):
        await projects.post(Actor.from_user(dev), "Side project")


@pytest.mark.asyncio
async def test_suspended_client_cannot_post(projects: ProjectLifecycle, accounts, make) -> None:
    client = await make.client()
    await accounts.suspend(client.id, await make.admin())

    with pytest.raises(NotAuthorizedError):
        await projects.post(Actor.from_user(client), "Another project")


@pytest.mark.asyncio
async def test_admin_posts_on_behalf_of_client(projects: ProjectLifecycle, make) -> None:
    admin = await make.admin()
    client = await make.client()

    project = await projects.post(admin, "Migration", client_id=client.id)

    assert project.client_id == client.id


@pytest.mark.asyncio
async def test_cancel_rejects_pending_applications(
    projects: ProjectLifecycle,
    workflow: ApplicationWorkflow,
    dispatcher: NotificationDispatcher,
    notifier,
    store,
    make,
) -> None:
    client = await make.client()
    project = await make.project(client)
    dana = await make.developer("Dev Dana")
    eli = await make.developer("Dev Eli")
    app_dana = await workflow.submit(project.id, dana.id)
    app_eli = await workflow.submit(project.id, eli.id)
    await dispatcher.drain()
    notifier.sent.clear()

    cancelled = await projects.cancel(project.id, Actor.from_user(client))
    await dispatcher.drain()

    assert cancelled.status is ProjectStatus.cancelled
    assert (await get_project(store, project.id)).status is ProjectStatus.cancelled

    apps = await workflow.applications_for_project(project.id)
    assert {a.id: a.status for a in apps} == {
        app_dana.id: ApplicationStatus.rejected,
        app_eli.id: ApplicationStatus.rejected,
    }
    assert len(notifier.to(dana.email)) == 1
    assert len(notifier.to(eli.email)) == 1
    assert "cancel" in notifier.to(dana.email)[0][2].lower()


@pytest.mark.asyncio
async def test_only_owner_or_admin_can_cancel(projects: ProjectLifecycle, make) -> None:
    client = await make.client()
    other = await make.client("Oscar Other")
    project = await make.project(client)

    with pytest.raises(NotAuthorizedError):
        await projects.cancel(project.id, Actor.from_user(other))

    cancelled = await projects.cancel(project.id, await make.admin())
    assert cancelled.status is ProjectStatus.cancelled


@pytest.mark.asyncio
async def test_cancel_twice_fails(projects: ProjectLifecycle, make) -> None:
    client = await make.client()
    project = await make.project(client)
    await projects.cancel(project.id, Actor.from_user(client))

    with pytest.raises(InvalidTransitionError):
        await projects.cancel(project.id, Actor.from_user(client))


@pytest.mark.asyncio
async def test_complete_requires_in_progress(
    projects: ProjectLifecycle,
    workflow: ApplicationWorkflow,
    store,
    make,
) -> None:
    client = await make.client()
    project = await make.project(client)
    owner = Actor.from_user(client)

    with pytest.raises(InvalidTransitionError):
        await projects.complete(project.id, owner)

    dev = await make.developer("Dev Dana")
    application = await workflow.submit(project.id, dev.id)
    await workflow.accept(application.id, owner)

    completed = await projects.complete(project.id, owner)
    assert completed.status is ProjectStatus.completed

    stored = await get_project(store, project.id)
    assert stored.status is ProjectStatus.completed
    assert stored.assigned_developer_id == dev.id

    with pytest.raises(InvalidTransitionError):
        await projects.cancel(project.id, owner)


@pytest.mark.asyncio
async def test_projects_for_client(projects: ProjectLifecycle, make) -> None:
    client = await make.client()
    other = await make.client("Oscar Other")
    mine = await make.project(client, "Mine")
    await make.project(other, "Theirs")

    assert [p.id for p in await projects.projects_for_client(client.id)] == [mine.id]
