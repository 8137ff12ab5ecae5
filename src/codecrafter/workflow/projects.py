"""Project lifecycle: posting, cancellation, and completion.

Open -> In Progress is owned by ApplicationWorkflow.accept, since it is
the only transition that must commit together with an application
decision. The remaining transitions live here.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

import structlog

from codecrafter.database.models.project import ProjectStatus
from codecrafter.database.models.user import AccountStatus, UserRole
from codecrafter.database.queries.project import get_project, list_projects_by_client
from codecrafter.database.queries.user import get_user
from codecrafter.database.records import ProjectRecord
from codecrafter.database.store import BatchOperation, Collection, RecordStore
from codecrafter.errors import (
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    PreconditionFailedError,
    StoreError,
)
from codecrafter.notifications.dispatcher import NotificationDispatcher
from codecrafter.notifications.templates import EmailRenderer
from codecrafter.workflow.applications import ApplicationWorkflow
from codecrafter.workflow.context import Actor
from codecrafter.workflow.ledger import ActivityAction, ActivityLedger, TargetType
from codecrafter.workflow.state_machine import require_transition

logger = structlog.get_logger(__name__)


class ProjectLifecycle:
    """Creates projects and drives their non-assignment transitions.

    Attributes:
        store: Record store holding projects.
        ledger: Activity ledger.
        dispatcher: Best-effort email dispatcher.
        renderer: Email template renderer.
        applications: Workflow used to close pending applications on cancel.
    """

    def __init__(
        self,
        store: RecordStore,
        ledger: ActivityLedger,
        dispatcher: NotificationDispatcher,
        renderer: EmailRenderer,
        applications: ApplicationWorkflow,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.dispatcher = dispatcher
        self.renderer = renderer
        self.applications = applications
        self.logger = logger.bind(component="ProjectLifecycle")

    async def _require_project(self, project_id: uuid.UUID) -> ProjectRecord:
        project = await get_project(self.store, project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    @staticmethod
    def _require_owner_or_admin(project: ProjectRecord, actor: Actor) -> None:
        if actor.id != project.client_id and not actor.is_admin:
            raise NotAuthorizedError(f"User {actor.id} does not own project {project.id}")

    async def post(
        self,
        actor: Actor,
        name: str,
        description: str | None = None,
        required_skills: Sequence[str] = (),
        availability: str | None = None,
        time_zone: str | None = None,
        client_id: uuid.UUID | None = None,
    ) -> ProjectRecord:
        """Create an Open project owned by a client.

        Clients post for themselves. Admins may post on behalf of a client
        by passing ``client_id``.

        Raises:
            NotAuthorizedError: If the actor is not an active client or an
                admin, or the owning client is not active.
            NotFoundError: If the owning client does not exist.
        """
        if actor.role is UserRole.client:
            if client_id is not None and client_id != actor.id:
                raise NotAuthorizedError("Clients may only post their own projects")
            owner_id = actor.id
        elif actor.is_admin:
            owner_id = client_id or actor.id
        else:
            raise NotAuthorizedError(f"Role {actor.role.value} may not post projects")

        owner = await get_user(self.store, owner_id)
        if owner is None:
            raise NotFoundError("user", owner_id)
        if owner.account_status is not AccountStatus.active:
            raise NotAuthorizedError(
                f"Account {owner_id} is {owner.account_status.value}, not active"
            )

        project = await self.store.put(
            Collection.projects,
            {
                "client_id": owner_id,
                "name": name,
                "description": description,
                "required_skills": list(required_skills),
                "availability": availability,
                "time_zone": time_zone,
                "status": ProjectStatus.open,
            },
        )

        self.logger.info(
            "project_posted",
            project_id=str(project.id),
            client_id=str(owner_id),
            actor_id=str(actor.id),
        )
        await self.ledger.append(
            actor.id,
            actor.name,
            ActivityAction.PROJECT_POSTED,
            TargetType.PROJECT,
            project.id,
            project.name,
            {"client_id": str(owner_id)},
        )

        email = self.renderer.project_posted(owner.name, project.name, str(project.id))
        self.dispatcher.dispatch(owner.email, email.subject, email.body_html)
        return project

    async def _transition(
        self,
        project: ProjectRecord,
        target: ProjectStatus,
        actor: Actor,
        action: ActivityAction,
    ) -> ProjectRecord:
        require_transition(project.status, target, project.id)
        try:
            await self.store.atomic_batch(
                [
                    BatchOperation(
                        Collection.projects,
                        project.id,
                        {"status": target},
                        expected={"status": project.status},
                    )
                ]
            )
        except PreconditionFailedError as exc:
            raise InvalidTransitionError(
                "project", project.status.value, target.value, project.id
            ) from exc

        self.logger.info(
            "project_status_changed",
            project_id=str(project.id),
            from_status=project.status.value,
            to_status=target.value,
            actor_id=str(actor.id),
        )
        await self.ledger.append(
            actor.id,
            actor.name,
            action,
            TargetType.PROJECT,
            project.id,
            project.name,
            {"from_status": project.status.value, "to_status": target.value},
        )
        return project.model_copy(update={"status": target})

    async def cancel(self, project_id: uuid.UUID, actor: Actor) -> ProjectRecord:
        """Cancel an Open project and reject its pending applications.

        Raises:
            NotFoundError: If the project does not exist.
            NotAuthorizedError: If the actor neither owns it nor is an admin.
            InvalidTransitionError: If the project is not Open.
        """
        project = await self._require_project(project_id)
        self._require_owner_or_admin(project, actor)
        cancelled = await self._transition(
            project, ProjectStatus.cancelled, actor, ActivityAction.PROJECT_CANCELLED
        )

        try:
            await self.applications.supersede_pending(project_id, actor, reason="cancelled")
        except StoreError as exc:
            self.logger.error(
                "cancelled_project_cleanup_failed",
                project_id=str(project_id),
                error=str(exc),
            )
        return cancelled

    async def complete(self, project_id: uuid.UUID, actor: Actor) -> ProjectRecord:
        """Mark an In Progress project Completed.

        Raises:
            NotFoundError: If the project does not exist.
            NotAuthorizedError: If the actor neither owns it nor is an admin.
            InvalidTransitionError: If the project is not In Progress.
        """
        project = await self._require_project(project_id)
        self._require_owner_or_admin(project, actor)
        return await self._transition(
            project, ProjectStatus.completed, actor, ActivityAction.PROJECT_COMPLETED
        )

    async def projects_for_client(self, client_id: uuid.UUID) -> list[ProjectRecord]:
        return await list_projects_by_client(self.store, client_id)
