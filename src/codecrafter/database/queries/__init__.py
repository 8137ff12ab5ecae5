"""Database query functions for CodeCrafter.

This module provides typed async accessors over the record store:
- User lookups, including case-insensitive email search
- Project listings by status and by client
- Application lookups used by the workflow engine
- Activity log reads for audit inspection
"""

from codecrafter.database.queries.activity import list_activity
from codecrafter.database.queries.application import (
    find_live_application,
    get_application,
    list_applications_by_developer,
    list_applications_for_project,
    list_pending_siblings,
)
from codecrafter.database.queries.project import (
    get_project,
    list_projects,
    list_projects_by_client,
)
from codecrafter.database.queries.user import (
    find_user_by_email,
    get_user,
    list_active_developers,
    list_pending_developers,
    list_referred_clients,
    list_users,
    normalize_email,
)

__all__ = [
    # User queries
    "normalize_email",
    "get_user",
    "find_user_by_email",
    "list_users",
    "list_pending_developers",
    "list_active_developers",
    "list_referred_clients",
    # Project queries
    "get_project",
    "list_projects",
    "list_projects_by_client",
    # Application queries
    "get_application",
    "list_applications_for_project",
    "list_applications_by_developer",
    "find_live_application",
    "list_pending_siblings",
    # Activity queries
    "list_activity",
]
