"""User query functions for CodeCrafter.

Typed accessors over the users collection of the record store.
"""

from __future__ import annotations

from uuid import UUID

from codecrafter.database.models.user import AccountStatus, UserRole
from codecrafter.database.records import UserRecord
from codecrafter.database.store import Collection, RecordStore


def normalize_email(email: str) -> str:
    """Return the case-insensitive lookup key for an email address."""
    return email.strip().lower()


async def get_user(store: RecordStore, user_id: UUID) -> UserRecord | None:
    """Retrieve a user by ID.

    Args:
        store: Record store to read from.
        user_id: UUID of the user to retrieve.

    Returns:
        The UserRecord if found and well-formed, None otherwise.
    """
    return await store.get(Collection.users, user_id)


async def find_user_by_email(store: RecordStore, email: str) -> UserRecord | None:
    """Look up a user by email, ignoring case."""
    users = await store.query(
        Collection.users,
        filters={"email_key": normalize_email(email)},
        limit=1,
    )
    return users[0] if users else None


async def list_users(
    store: RecordStore,
    role: UserRole | None = None,
    status_filter: AccountStatus | None = None,
) -> list[UserRecord]:
    """List users ordered by name, optionally filtered by role and status.

    Args:
        store: Record store to read from.
        role: Optional role to filter by.
        status_filter: Optional account status to filter by.

    Returns:
        List of matching UserRecord instances.
    """
    filters: dict[str, object] = {}
    if role is not None:
        filters["role"] = role
    if status_filter is not None:
        filters["account_status"] = status_filter
    return await store.query(Collection.users, filters=filters, order_by="name")


async def list_pending_developers(store: RecordStore) -> list[UserRecord]:
    """List developers awaiting admin approval, oldest signup first."""
    return await store.query(
        Collection.users,
        filters={
            "role": UserRole.developer,
            "account_status": AccountStatus.pending_approval,
        },
        order_by="created_at",
    )


async def list_active_developers(store: RecordStore) -> list[UserRecord]:
    """List developers currently eligible to apply for projects."""
    return await list_users(
        store,
        role=UserRole.developer,
        status_filter=AccountStatus.active,
    )


async def list_referred_clients(store: RecordStore, referral_code: str) -> list[UserRecord]:
    """List clients who signed up with the given referral code, newest first."""
    return await store.query(
        Collection.users,
        filters={"referred_by_code": referral_code, "role": UserRole.client},
        order_by="created_at",
        descending=True,
    )
