"""Application workflow engine.

ApplicationWorkflow enforces the legal transitions of projects and
applications and coordinates their joint mutation:

- submit: a developer applies to an Open project.
- accept: the project moves Open -> In Progress with the applicant
  assigned, and the application moves pending -> accepted, in one atomic
  batch. Every competing pending application is then rejected in a second
  atomic batch.
- reject: a single pending application is declined.

Preconditions are checked before any write and re-checked by the
conditional writes themselves, so of two concurrent accepts on the same
project exactly one commits. Emails and ledger entries happen after the
authoritative write and never affect its outcome.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import structlog

from codecrafter.database.models.application import ApplicationStatus
from codecrafter.database.models.base import utcnow
from codecrafter.database.models.project import ProjectStatus
from codecrafter.database.queries.application import (
    find_live_application,
    get_application,
    list_applications_by_developer,
    list_applications_for_project,
    list_pending_siblings,
)
from codecrafter.database.queries.project import get_project
from codecrafter.database.queries.user import get_user
from codecrafter.database.records import ApplicationRecord, ProjectRecord, UserRecord
from codecrafter.database.store import BatchOperation, Collection, RecordStore
from codecrafter.errors import (
    AlreadyAppliedError,
    DocumentConflictError,
    NotFoundError,
    NotPendingError,
    PreconditionFailedError,
    ProjectNotAvailableError,
    ProjectNotOpenError,
    StoreError,
)
from codecrafter.notifications.dispatcher import NotificationDispatcher
from codecrafter.notifications.templates import EmailRenderer, RenderedEmail
from codecrafter.workflow.accounts import AccountLifecycle
from codecrafter.workflow.context import Actor
from codecrafter.workflow.ledger import ActivityAction, ActivityLedger, TargetType
from codecrafter.workflow.state_machine import require_transition

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DeveloperSnapshot:
    """Developer display fields frozen onto an application at submission."""

    name: str
    email: str

    @classmethod
    def from_user(cls, user: UserRecord) -> DeveloperSnapshot:
        return cls(name=user.name, email=user.email)


class ApplicationWorkflow:
    """Submission and decision workflow for project applications.

    Attributes:
        store: Record store for users, projects, and applications.
        accounts: Account lifecycle, consulted for applicant eligibility.
        ledger: Activity ledger for auditing decisions.
        dispatcher: Best-effort email dispatcher.
        renderer: Email template renderer.
    """

    def __init__(
        self,
        store: RecordStore,
        accounts: AccountLifecycle,
        ledger: ActivityLedger,
        dispatcher: NotificationDispatcher,
        renderer: EmailRenderer,
    ) -> None:
        self.store = store
        self.accounts = accounts
        self.ledger = ledger
        self.dispatcher = dispatcher
        self.renderer = renderer
        self.logger = logger.bind(component="ApplicationWorkflow")

    async def _require_application(self, application_id: uuid.UUID) -> ApplicationRecord:
        application = await get_application(self.store, application_id)
        if application is None:
            raise NotFoundError("application", application_id)
        return application

    async def _require_project(self, project_id: uuid.UUID) -> ProjectRecord:
        project = await get_project(self.store, project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    def _flag_setter(self, application_id: uuid.UUID, flag: str):
        async def mark_sent() -> None:
            await self.store.update(Collection.applications, application_id, {flag: True})

        return mark_sent

    def _notify_developer(self, application: ApplicationRecord, email: RenderedEmail) -> None:
        if not application.developer_email:
            self.logger.warning(
                "notification_skipped",
                application_id=str(application.id),
                reason="no developer email on application",
            )
            return
        self.dispatcher.dispatch(
            application.developer_email,
            email.subject,
            email.body_html,
            on_sent=self._flag_setter(application.id, "developer_notified_of_status"),
        )

    async def submit(
        self,
        project_id: uuid.UUID,
        developer_id: uuid.UUID,
        message: str | None = None,
        snapshot: DeveloperSnapshot | None = None,
    ) -> ApplicationRecord:
        """Submit a developer's application to an Open project.

        Eligibility is re-checked on every call since an account can be
        suspended between signup and applying. Success is defined by the
        document write alone; the client's email is sent in the background.

        Args:
            project_id: Project to apply to.
            developer_id: Applying developer.
            message: Optional cover note shown to the client.
            snapshot: Display fields to freeze onto the application;
                      taken from the live user record when omitted.

        Returns:
            The new pending ApplicationRecord.

        Raises:
            NotFoundError: If the developer or project does not exist.
            DeveloperNotEligibleError: If the developer is not active.
            ProjectNotOpenError: If the project is not Open.
            AlreadyAppliedError: If a pending or accepted application exists.
        """
        developer = await self.accounts.require_eligible_developer(developer_id)
        project = await self._require_project(project_id)

        if project.status is not ProjectStatus.open:
            raise ProjectNotOpenError(project_id, project.status.value)

        if await find_live_application(self.store, project_id, developer_id) is not None:
            raise AlreadyAppliedError(project_id, developer_id)

        client = await get_user(self.store, project.client_id)
        snap = snapshot or DeveloperSnapshot.from_user(developer)

        try:
            application = await self.store.put(
                Collection.applications,
                {
                    "project_id": project_id,
                    "developer_id": developer_id,
                    "client_id": project.client_id,
                    "status": ApplicationStatus.pending,
                    "message": message,
                    "project_name": project.name,
                    "developer_name": snap.name,
                    "developer_email": snap.email,
                    "client_notified_of_new_application": False,
                    "developer_notified_of_status": False,
                },
            )
        except DocumentConflictError as exc:
            # A concurrent submission won the unique live-application index
            raise AlreadyAppliedError(project_id, developer_id) from exc

        self.logger.info(
            "application_submitted",
            application_id=str(application.id),
            project_id=str(project_id),
            developer_id=str(developer_id),
        )

        await self.ledger.append(
            developer.id,
            developer.name,
            ActivityAction.APPLICATION_SUBMITTED,
            TargetType.APPLICATION,
            application.id,
            project.name,
            {"project_id": str(project_id)},
        )

        if client is None:
            self.logger.warning(
                "notification_skipped",
                application_id=str(application.id),
                reason="project client not found",
            )
        else:
            email = self.renderer.new_application(
                client_name=client.name,
                developer_name=snap.name,
                project_name=project.name,
                project_id=str(project_id),
                message=message,
            )
            self.dispatcher.dispatch(
                client.email,
                email.subject,
                email.body_html,
                on_sent=self._flag_setter(
                    application.id, "client_notified_of_new_application"
                ),
            )

        return application

    async def accept(self, application_id: uuid.UUID, actor: Actor) -> None:
        """Accept an application, assign its developer, and supersede the rest.

        The project and application updates commit together or not at all.
        Competing pending applications are rejected afterwards in a separate
        batch; a failure there is logged and left for supersede_pending to
        reconcile, since the assignment itself has already committed.

        Args:
            application_id: Application to accept.
            actor: The client or admin making the decision.

        Raises:
            NotFoundError: If the application or its project does not exist.
            NotPendingError: If the application was already decided.
            ProjectNotAvailableError: If the project is no longer Open.
        """
        application = await self._require_application(application_id)
        if not application.is_pending:
            raise NotPendingError(application_id, application.status.value)

        project = await self._require_project(application.project_id)
        if project.status is not ProjectStatus.open:
            raise ProjectNotAvailableError(project.id, project.status.value)
        require_transition(project.status, ProjectStatus.in_progress, project.id)

        try:
            await self.store.atomic_batch(
                [
                    BatchOperation(
                        Collection.projects,
                        project.id,
                        {
                            "status": ProjectStatus.in_progress,
                            "assigned_developer_id": application.developer_id,
                            "assigned_developer_name": application.developer_name,
                        },
                        expected={"status": ProjectStatus.open},
                    ),
                    BatchOperation(
                        Collection.applications,
                        application.id,
                        {"status": ApplicationStatus.accepted, "decided_at": utcnow()},
                        expected={"status": ApplicationStatus.pending},
                    ),
                ]
            )
        except PreconditionFailedError as exc:
            if exc.operation.collection is Collection.projects:
                raise ProjectNotAvailableError(project.id) from exc
            raise NotPendingError(application_id) from exc

        self.logger.info(
            "application_accepted",
            application_id=str(application_id),
            project_id=str(project.id),
            developer_id=str(application.developer_id),
            actor_id=str(actor.id),
        )

        await self.ledger.append(
            actor.id,
            actor.name,
            ActivityAction.APPLICATION_ACCEPTED,
            TargetType.APPLICATION,
            application.id,
            project.name,
            {
                "project_id": str(project.id),
                "developer_id": str(application.developer_id),
            },
        )

        self._notify_developer(
            application,
            self.renderer.application_accepted(
                application.developer_name or "there",
                application.project_name or project.name,
            ),
        )

        try:
            await self.supersede_pending(project.id, actor, keep=application.id)
        except StoreError as exc:
            self.logger.error(
                "sibling_rejection_failed",
                project_id=str(project.id),
                accepted_application_id=str(application.id),
                error=str(exc),
            )

    async def reject(self, application_id: uuid.UUID, actor: Actor) -> None:
        """Decline a single pending application. The project is unaffected.

        Raises:
            NotFoundError: If the application does not exist.
            NotPendingError: If the application was already decided.
        """
        application = await self._require_application(application_id)
        if not application.is_pending:
            raise NotPendingError(application_id, application.status.value)

        try:
            await self.store.atomic_batch(
                [
                    BatchOperation(
                        Collection.applications,
                        application.id,
                        {"status": ApplicationStatus.rejected, "decided_at": utcnow()},
                        expected={"status": ApplicationStatus.pending},
                    )
                ]
            )
        except PreconditionFailedError as exc:
            raise NotPendingError(application_id) from exc

        self.logger.info(
            "application_rejected",
            application_id=str(application_id),
            project_id=str(application.project_id),
            actor_id=str(actor.id),
        )

        await self.ledger.append(
            actor.id,
            actor.name,
            ActivityAction.APPLICATION_REJECTED,
            TargetType.APPLICATION,
            application.id,
            application.project_name,
            {"project_id": str(application.project_id)},
        )

        self._notify_developer(
            application,
            self.renderer.application_rejected(
                application.developer_name or "there",
                application.project_name or "your project",
            ),
        )

    async def supersede_pending(
        self,
        project_id: uuid.UUID,
        actor: Actor,
        keep: uuid.UUID | None = None,
        reason: str = "superseded",
    ) -> list[ApplicationRecord]:
        """Reject every pending application on a project except ``keep``.

        All rejections commit in one batch. Applications decided
        concurrently since they were read are left untouched. Safe to call
        repeatedly; a second call finds nothing pending.

        Args:
            project_id: Project whose pending applications are closed.
            actor: User on whose behalf the rejections are made.
            keep: Application to leave alone (the accepted one).
            reason: Wording selector for the email ("superseded" or "cancelled").

        Returns:
            The applications this call rejected.
        """
        siblings = await list_pending_siblings(self.store, project_id, exclude_id=keep)
        if not siblings:
            return []

        decided_at = utcnow()
        applied = await self.store.atomic_batch(
            [
                BatchOperation(
                    Collection.applications,
                    sibling.id,
                    {"status": ApplicationStatus.rejected, "decided_at": decided_at},
                    expected={"status": ApplicationStatus.pending},
                    required=False,
                )
                for sibling in siblings
            ]
        )

        rejected = [
            sibling.model_copy(
                update={"status": ApplicationStatus.rejected, "decided_at": decided_at}
            )
            for sibling, was_applied in zip(siblings, applied)
            if was_applied
        ]
        if not rejected:
            return []

        self.logger.info(
            "applications_superseded",
            project_id=str(project_id),
            kept_application_id=str(keep) if keep else None,
            rejected=len(rejected),
            skipped=len(siblings) - len(rejected),
        )

        await self.ledger.append(
            actor.id,
            actor.name,
            ActivityAction.APPLICATIONS_SUPERSEDED,
            TargetType.PROJECT,
            project_id,
            rejected[0].project_name,
            {
                "reason": reason,
                "kept_application_id": str(keep) if keep else None,
                "rejected_application_ids": [str(app.id) for app in rejected],
            },
        )

        for app in rejected:
            self._notify_developer(
                app,
                self.renderer.application_rejected(
                    app.developer_name or "there",
                    app.project_name or "your project",
                    reason=reason,
                ),
            )
        return rejected

    async def applications_for_project(self, project_id: uuid.UUID) -> list[ApplicationRecord]:
        """List a project's applications in submission order."""
        return await list_applications_for_project(self.store, project_id)

    async def applications_for_developer(
        self,
        developer_id: uuid.UUID,
    ) -> list[ApplicationRecord]:
        """List a developer's applications, newest first."""
        return await list_applications_by_developer(self.store, developer_id)
