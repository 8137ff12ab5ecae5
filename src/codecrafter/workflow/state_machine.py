"""Lifecycle state machines for accounts, projects, and applications.

The transition tables here are authoritative. Services validate every
status change against them before issuing the conditional write that
performs it.
"""

from __future__ import annotations

import enum
from typing import TypeVar

import structlog

from codecrafter.database.models.application import ApplicationStatus
from codecrafter.database.models.project import ProjectStatus
from codecrafter.database.models.user import AccountStatus
from codecrafter.errors import InvalidTransitionError

logger = structlog.get_logger(__name__)

StatusT = TypeVar("StatusT", bound=enum.Enum)


ACCOUNT_TRANSITIONS: dict[AccountStatus, set[AccountStatus]] = {
    AccountStatus.pending_approval: {AccountStatus.active, AccountStatus.rejected},
    AccountStatus.active: {AccountStatus.suspended},
    AccountStatus.suspended: {AccountStatus.active},
    AccountStatus.rejected: set(),  # Terminal state
}

PROJECT_TRANSITIONS: dict[ProjectStatus, set[ProjectStatus]] = {
    ProjectStatus.open: {ProjectStatus.in_progress, ProjectStatus.cancelled},
    ProjectStatus.in_progress: {ProjectStatus.completed},
    ProjectStatus.completed: set(),  # Terminal state
    ProjectStatus.cancelled: set(),  # Terminal state
}

APPLICATION_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.pending: {ApplicationStatus.accepted, ApplicationStatus.rejected},
    ApplicationStatus.accepted: set(),  # Terminal state
    ApplicationStatus.rejected: set(),  # Terminal state
}

_TABLES: dict[type[enum.Enum], tuple[str, dict]] = {
    AccountStatus: ("account", ACCOUNT_TRANSITIONS),
    ProjectStatus: ("project", PROJECT_TRANSITIONS),
    ApplicationStatus: ("application", APPLICATION_TRANSITIONS),
}


def validate_transition(current: StatusT, target: StatusT) -> bool:
    """Validate if a state transition is allowed.

    Args:
        current: Current status.
        target: Target status of the same enum.

    Returns:
        True if the transition is listed in the matching transition table.
    """
    _, table = _TABLES[type(current)]
    return target in table.get(current, set())


def require_transition(current: StatusT, target: StatusT, entity_id: object = None) -> None:
    """Raise InvalidTransitionError unless current -> target is allowed."""
    if not validate_transition(current, target):
        entity, _ = _TABLES[type(current)]
        logger.info(
            "transition_rejected",
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else None,
            from_status=current.value,
            to_status=target.value,
        )
        raise InvalidTransitionError(entity, current.value, target.value, entity_id)


def is_terminal(status: enum.Enum) -> bool:
    """Whether no transitions lead out of ``status``."""
    _, table = _TABLES[type(status)]
    return not table.get(status)
