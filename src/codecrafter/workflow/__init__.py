"""Marketplace workflow for CodeCrafter.

This module implements the account approval lifecycle, the project
application and assignment workflow, project posting and closure, the
activity ledger, developer matching, quick service requests, and the
status transition tables they all validate against.
"""

from __future__ import annotations

from codecrafter.workflow.accounts import AccountLifecycle, is_eligible_to_apply, referral_code_for
from codecrafter.workflow.applications import ApplicationWorkflow, DeveloperSnapshot
from codecrafter.workflow.context import Actor
from codecrafter.workflow.ledger import ActivityAction, ActivityLedger, TargetType
from codecrafter.workflow.matching import DeveloperMatch, MatchOracle, suggest_developers
from codecrafter.workflow.projects import ProjectLifecycle
from codecrafter.workflow.service_requests import (
    BudgetRange,
    ServiceRequest,
    ServiceRequestDesk,
    UrgencyLevel,
)
from codecrafter.workflow.state_machine import (
    ACCOUNT_TRANSITIONS,
    APPLICATION_TRANSITIONS,
    PROJECT_TRANSITIONS,
    is_terminal,
    require_transition,
    validate_transition,
)

__all__ = [
    "AccountLifecycle",
    "ApplicationWorkflow",
    "ProjectLifecycle",
    "DeveloperSnapshot",
    "Actor",
    "ActivityAction",
    "ActivityLedger",
    "TargetType",
    "DeveloperMatch",
    "MatchOracle",
    "suggest_developers",
    "ServiceRequest",
    "ServiceRequestDesk",
    "BudgetRange",
    "UrgencyLevel",
    "ACCOUNT_TRANSITIONS",
    "APPLICATION_TRANSITIONS",
    "PROJECT_TRANSITIONS",
    "is_terminal",
    "require_transition",
    "validate_transition",
]
