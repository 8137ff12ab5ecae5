"""Account lifecycle for CodeCrafter users.

AccountLifecycle owns signup, admin review of developer accounts,
suspension, moderation flags, and profile edits. It also answers the one
question the application workflow asks of it: may this user apply?

Status changes are validated against ACCOUNT_TRANSITIONS and written with
a compare-and-swap on the status that was read, so two admins acting on
the same account cannot both succeed. The status write is authoritative;
the email that follows it is advisory and may fail without undoing it.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from codecrafter.config import AppConfig
from codecrafter.database.models.user import DEVELOPER_ONLY_FIELDS, AccountStatus, UserRole
from codecrafter.database.queries.user import find_user_by_email, get_user, normalize_email
from codecrafter.database.records import UserRecord
from codecrafter.database.store import BatchOperation, Collection, RecordStore
from codecrafter.errors import (
    DeveloperNotEligibleError,
    DocumentConflictError,
    DuplicateEmailError,
    InvalidProfileUpdateError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    PreconditionFailedError,
)
from codecrafter.notifications.dispatcher import NotificationDispatcher
from codecrafter.notifications.templates import EmailRenderer
from codecrafter.workflow.context import Actor
from codecrafter.workflow.ledger import ActivityAction, ActivityLedger, TargetType
from codecrafter.workflow.state_machine import require_transition

logger = structlog.get_logger(__name__)

EDITABLE_PROFILE_FIELDS: frozenset[str] = frozenset(
    {"name", "bio", "avatar_url"} | DEVELOPER_ONLY_FIELDS
)

def referral_code_for(user_id: uuid.UUID) -> str:
    """Build the referral code handed out to a new user."""
    return f"CODECRAFT_{user_id.hex[:6].upper()}"


def is_eligible_to_apply(user: UserRecord) -> bool:
    """Whether a user may submit project applications right now."""
    return user.role is UserRole.developer and user.account_status is AccountStatus.active


class AccountLifecycle:
    """Manages user accounts and their approval state machine.

    Attributes:
        store: Record store holding the users collection.
        ledger: Activity ledger for auditing admin actions.
        dispatcher: Best-effort email dispatcher.
        renderer: Email template renderer.
        app: Application settings (plan names, branding).
    """

    def __init__(
        self,
        store: RecordStore,
        ledger: ActivityLedger,
        dispatcher: NotificationDispatcher,
        renderer: EmailRenderer,
        app: AppConfig | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.dispatcher = dispatcher
        self.renderer = renderer
        self.app = app or renderer.app
        self.logger = logger.bind(component="AccountLifecycle")

    async def _require_user(self, user_id: uuid.UUID) -> UserRecord:
        user = await get_user(self.store, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    async def register(
        self,
        name: str,
        email: str,
        role: UserRole,
        *,
        referred_by_code: str | None = None,
        bio: str | None = None,
        avatar_url: str | None = None,
        **developer_profile: Any,
    ) -> UserRecord:
        """Create a user account at signup.

        Developers start in pending_approval with empty skill and portfolio
        lists; clients and admins start active and carry no developer
        attributes at all.

        Args:
            name: Display name.
            email: Email address; must be unique ignoring case.
            role: Marketplace role.
            referred_by_code: Referral code used at signup.
            bio: Optional profile text.
            avatar_url: Optional avatar URL.
            **developer_profile: Developer-only attributes (skills,
                experience_level, hourly_rate, portfolio_urls,
                resume_file_url, resume_file_name, past_projects).

        Returns:
            The stored UserRecord.

        Raises:
            DuplicateEmailError: If the email is already registered.
            InvalidProfileUpdateError: If developer attributes are given for
                a non-developer, or an unknown attribute is passed.
        """
        unknown = set(developer_profile) - DEVELOPER_ONLY_FIELDS
        if unknown:
            raise InvalidProfileUpdateError(f"Unknown profile fields: {sorted(unknown)}")

        if await find_user_by_email(self.store, email) is not None:
            raise DuplicateEmailError(email)

        user_id = uuid.uuid4()
        fields: dict[str, Any] = {
            "name": name,
            "email": email.strip(),
            "email_key": normalize_email(email),
            "role": role,
            "is_flagged": False,
            "bio": bio or f"New {role.value} on {self.app.name}.",
            "avatar_url": avatar_url
            or f"https://placehold.co/100x100.png?text={(name[:1] or 'U').upper()}",
            "referral_code": referral_code_for(user_id),
            "referred_by_code": referred_by_code,
            "current_plan": self.app.free_plan_name,
        }

        if role is UserRole.developer:
            fields["account_status"] = AccountStatus.pending_approval
            fields["skills"] = list(developer_profile.pop("skills", None) or [])
            fields["portfolio_urls"] = list(developer_profile.pop("portfolio_urls", None) or [])
            fields["experience_level"] = developer_profile.pop("experience_level", None) or ""
            fields.update(developer_profile)
        else:
            if any(value is not None for value in developer_profile.values()):
                raise InvalidProfileUpdateError(
                    f"{role.value} accounts cannot carry developer attributes"
                )
            fields["account_status"] = AccountStatus.active

        try:
            candidate = UserRecord.model_validate({"id": user_id, **fields})
        except ValidationError as exc:
            raise InvalidProfileUpdateError(str(exc)) from exc
        # Store the coerced values, e.g. hourly_rate "45" becomes 45.0
        fields = {key: getattr(candidate, key, value) for key, value in fields.items()}

        try:
            user = await self.store.put(Collection.users, fields, doc_id=user_id)
        except DocumentConflictError as exc:
            # Lost a race with a concurrent signup for the same address
            raise DuplicateEmailError(email) from exc

        self.logger.info(
            "user_registered",
            user_id=str(user.id),
            role=role.value,
            account_status=user.account_status.value,
        )

        await self.ledger.append(
            user.id,
            user.name,
            ActivityAction.USER_REGISTERED,
            TargetType.USER,
            user.id,
            user.name,
            {"role": role.value, "referred_by_code": referred_by_code},
        )

        welcome = self.renderer.welcome(user.name, role.value)
        self.dispatcher.dispatch(user.email, welcome.subject, welcome.body_html)
        return user

    async def _change_status(
        self,
        user_id: uuid.UUID,
        target: AccountStatus,
        actor: Actor,
        action: ActivityAction,
    ) -> UserRecord:
        user = await self._require_user(user_id)
        current = user.account_status
        require_transition(current, target, user_id)

        try:
            await self.store.atomic_batch(
                [
                    BatchOperation(
                        Collection.users,
                        user_id,
                        {"account_status": target},
                        expected={"account_status": current},
                    )
                ]
            )
        except PreconditionFailedError as exc:
            # Someone else changed the status after we read it
            raise InvalidTransitionError("account", current.value, target.value, user_id) from exc

        self.logger.info(
            "account_status_changed",
            user_id=str(user_id),
            from_status=current.value,
            to_status=target.value,
            actor_id=str(actor.id),
        )

        await self.ledger.append(
            actor.id,
            actor.name,
            action,
            TargetType.USER,
            user_id,
            user.name,
            {"from_status": current.value, "to_status": target.value},
        )
        return user.model_copy(update={"account_status": target})

    async def approve(self, user_id: uuid.UUID, actor: Actor) -> UserRecord:
        """Approve a pending developer account and notify the developer.

        Raises:
            NotFoundError: If the user does not exist.
            InvalidTransitionError: If the account is not pending approval.
        """
        user = await self._change_status(
            user_id, AccountStatus.active, actor, ActivityAction.ACCOUNT_APPROVED
        )
        email = self.renderer.developer_approved(user.name)
        self.dispatcher.dispatch(user.email, email.subject, email.body_html)
        return user

    async def reject(self, user_id: uuid.UUID, actor: Actor) -> UserRecord:
        """Reject a pending developer account and notify the developer.

        Raises:
            NotFoundError: If the user does not exist.
            InvalidTransitionError: If the account is not pending approval.
        """
        user = await self._change_status(
            user_id, AccountStatus.rejected, actor, ActivityAction.ACCOUNT_REJECTED
        )
        email = self.renderer.developer_rejected(user.name)
        self.dispatcher.dispatch(user.email, email.subject, email.body_html)
        return user

    async def suspend(self, user_id: uuid.UUID, actor: Actor) -> UserRecord:
        """Suspend an active account."""
        return await self._change_status(
            user_id, AccountStatus.suspended, actor, ActivityAction.ACCOUNT_SUSPENDED
        )

    async def reinstate(self, user_id: uuid.UUID, actor: Actor) -> UserRecord:
        """Return a suspended account to active."""
        return await self._change_status(
            user_id, AccountStatus.active, actor, ActivityAction.ACCOUNT_REINSTATED
        )

    async def _set_flag(self, user_id: uuid.UUID, flagged: bool, actor: Actor) -> UserRecord:
        user = await self._require_user(user_id)
        await self.store.update(Collection.users, user_id, {"is_flagged": flagged})

        self.logger.info(
            "user_flag_changed",
            user_id=str(user_id),
            is_flagged=flagged,
            actor_id=str(actor.id),
        )
        await self.ledger.append(
            actor.id,
            actor.name,
            ActivityAction.USER_FLAGGED if flagged else ActivityAction.USER_UNFLAGGED,
            TargetType.USER,
            user_id,
            user.name,
        )
        return user.model_copy(update={"is_flagged": flagged})

    async def flag(self, user_id: uuid.UUID, actor: Actor) -> UserRecord:
        """Mark a user for moderation review. Allowed in any status."""
        return await self._set_flag(user_id, True, actor)

    async def unflag(self, user_id: uuid.UUID, actor: Actor) -> UserRecord:
        """Clear the moderation marker."""
        return await self._set_flag(user_id, False, actor)

    async def update_profile(
        self,
        user_id: uuid.UUID,
        changes: Mapping[str, Any],
        actor: Actor,
    ) -> UserRecord:
        """Apply profile edits made by the user or an admin.

        Role, email, account status, and the flag are not editable here.

        Raises:
            NotFoundError: If the user does not exist.
            NotAuthorizedError: If the actor is neither the user nor an admin.
            InvalidProfileUpdateError: If a field is not editable, or a
                developer-only field is set on a non-developer.
        """
        if actor.id != user_id and not actor.is_admin:
            raise NotAuthorizedError(f"User {actor.id} may not edit profile {user_id}")

        not_editable = set(changes) - EDITABLE_PROFILE_FIELDS
        if not_editable:
            raise InvalidProfileUpdateError(f"Fields not editable: {sorted(not_editable)}")

        user = await self._require_user(user_id)
        if not user.is_developer:
            developer_fields = set(changes) & DEVELOPER_ONLY_FIELDS
            if developer_fields:
                raise InvalidProfileUpdateError(
                    f"{user.role.value} accounts cannot carry {sorted(developer_fields)}"
                )

        if not changes:
            return user

        try:
            updated = UserRecord.model_validate({**user.model_dump(), **changes})
        except ValidationError as exc:
            raise InvalidProfileUpdateError(str(exc)) from exc
        await self.store.update(Collection.users, user_id, dict(changes))

        await self.ledger.append(
            actor.id,
            actor.name,
            ActivityAction.PROFILE_UPDATED,
            TargetType.USER,
            user_id,
            updated.name,
            {"fields": sorted(changes)},
        )
        return updated

    async def require_eligible_developer(self, user_id: uuid.UUID) -> UserRecord:
        """Load a user and confirm they may apply to projects.

        Raises:
            NotFoundError: If the user does not exist.
            DeveloperNotEligibleError: If the user is not an active developer.
        """
        user = await self._require_user(user_id)
        if user.role is not UserRole.developer:
            raise DeveloperNotEligibleError(user_id, f"role is {user.role.value}")
        if not is_eligible_to_apply(user):
            raise DeveloperNotEligibleError(
                user_id, f"account status is {user.account_status.value}"
            )
        return user
