"""Exception hierarchy for CodeCrafter.

Workflow errors are precondition failures raised before any write is
attempted; callers branch on the concrete class to render a precise
message. Store errors describe infrastructure or atomicity failures.
NotificationFailedError never leaves the notification layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from codecrafter.database.store import BatchOperation


class CodecrafterError(Exception):
    """Base exception for all CodeCrafter errors."""

    pass


class WorkflowError(CodecrafterError):
    """Base class for business rule violations surfaced to callers."""

    pass


class NotFoundError(WorkflowError):
    """Raised when a referenced user, project, or application does not exist.

    Attributes:
        kind: Logical document type that was looked up.
        doc_id: Identifier that was not found.
    """

    def __init__(self, kind: str, doc_id: Any) -> None:
        self.kind = kind
        self.doc_id = doc_id
        super().__init__(f"{kind} {doc_id} not found")


class ProjectNotOpenError(WorkflowError):
    """Raised when submitting to a project whose status is not Open."""

    def __init__(self, project_id: Any, status: str) -> None:
        self.project_id = project_id
        self.status = status
        super().__init__(f"Project {project_id} is not open for applications (status: {status})")


class ProjectNotAvailableError(WorkflowError):
    """Raised when accepting an application for a project that is no longer Open."""

    def __init__(self, project_id: Any, status: str | None = None) -> None:
        self.project_id = project_id
        self.status = status
        msg = f"Project {project_id} is no longer available for assignment"
        if status:
            msg += f" (status: {status})"
        super().__init__(msg)


class DeveloperNotEligibleError(WorkflowError):
    """Raised when a user who is not an active developer tries to apply."""

    def __init__(self, user_id: Any, reason: str) -> None:
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"User {user_id} is not eligible to apply: {reason}")


class AlreadyAppliedError(WorkflowError):
    """Raised when a developer already has a live application on a project."""

    def __init__(self, project_id: Any, developer_id: Any) -> None:
        self.project_id = project_id
        self.developer_id = developer_id
        super().__init__(
            f"Developer {developer_id} already has a live application for project {project_id}"
        )


class NotPendingError(WorkflowError):
    """Raised when accepting or rejecting an application that was already decided.

    Callers should treat this as "already handled", not as a transient
    failure to retry.
    """

    def __init__(self, application_id: Any, status: str | None = None) -> None:
        self.application_id = application_id
        self.status = status
        msg = f"Application {application_id} is not pending"
        if status:
            msg += f" (status: {status})"
        super().__init__(msg)


class InvalidTransitionError(WorkflowError):
    """Raised when an invalid lifecycle transition is attempted.

    Attributes:
        entity: Kind of entity being transitioned (account, project).
        current: The current status value.
        target: The attempted target status value.
        entity_id: The ID of the entity that failed to transition.
    """

    def __init__(
        self,
        entity: str,
        current: str,
        target: str,
        entity_id: Any | None = None,
    ) -> None:
        self.entity = entity
        self.current = current
        self.target = target
        self.entity_id = entity_id
        msg = f"Invalid {entity} transition from {current} to {target}"
        if entity_id is not None:
            msg += f" for {entity_id}"
        super().__init__(msg)


class DuplicateEmailError(WorkflowError):
    """Raised when registering an email that is already in use (case-insensitive)."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Email {email} is already registered")


class InvalidProfileUpdateError(WorkflowError):
    """Raised when a profile edit touches fields it may not change."""

    pass


class NotAuthorizedError(WorkflowError):
    """Raised when the acting user's role does not permit the operation."""

    pass


class InvalidServiceRequestError(WorkflowError):
    """Raised when a quick service request fails form validation."""

    pass


class StoreError(CodecrafterError):
    """Base class for record store failures."""

    pass


class StoreUnavailableError(StoreError):
    """Raised when the record store cannot be reached. Retryable."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Record store unavailable during {operation}: {detail}")


class PreconditionFailedError(StoreError):
    """Raised when a required batch operation matched no document.

    The whole batch has been rolled back when this is raised.

    Attributes:
        operation: The batch operation whose precondition did not hold.
    """

    def __init__(self, operation: BatchOperation) -> None:
        self.operation = operation
        super().__init__(
            f"Precondition failed for {operation.collection.value}/{operation.doc_id}: "
            f"expected {dict(operation.expected)}"
        )


class DocumentConflictError(StoreError):
    """Raised when an insert violates a uniqueness constraint."""

    def __init__(self, collection: str, detail: str) -> None:
        self.collection = collection
        self.detail = detail
        super().__init__(f"Conflicting document in {collection}: {detail}")


class NotificationFailedError(CodecrafterError):
    """Raised by notifiers on a confirmed delivery failure.

    Only the notification dispatcher catches this; it is logged and never
    returned as an operation failure.
    """

    def __init__(self, to_address: str, reason: str) -> None:
        self.to_address = to_address
        self.reason = reason
        super().__init__(f"Notification to {to_address} failed: {reason}")
