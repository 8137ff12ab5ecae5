"""User model for CodeCrafter.

Defines the users collection together with the UserRole and AccountStatus
enums. Users are created once at signup and never hard-deleted.

Most content columns are nullable: rows may be written by other services
sharing the collection, so completeness is checked when a row is read
(see codecrafter.database.records) rather than assumed here.
"""

from __future__ import annotations

import enum

from sqlalchemy import Boolean, Float, Text
from sqlalchemy.orm import Mapped, mapped_column

from codecrafter.database.models.base import Base, JSONDocument, TimestampMixin, enum_column


class UserRole(enum.Enum):
    """Marketplace role of a user."""

    client = "client"
    developer = "developer"
    admin = "admin"


class AccountStatus(enum.Enum):
    """Account lifecycle status.

    States:
        pending_approval: Developer signed up, awaiting admin review.
        active: Account may use the marketplace.
        rejected: Developer application declined (terminal).
        suspended: Account temporarily disabled by an admin.
    """

    pending_approval = "pending_approval"
    active = "active"
    rejected = "rejected"
    suspended = "suspended"


# Attributes only developers may carry; absent (NULL) for everyone else.
DEVELOPER_ONLY_FIELDS: frozenset[str] = frozenset(
    {
        "skills",
        "experience_level",
        "hourly_rate",
        "portfolio_urls",
        "resume_file_url",
        "resume_file_name",
        "past_projects",
    }
)


class User(TimestampMixin, Base):
    """A marketplace user (client, developer, or admin).

    Attributes:
        id: UUID primary key (from TimestampMixin).
        name: Display name.
        email: Email address as entered.
        email_key: Lowercased email; unique, for case-insensitive lookups.
        role: Marketplace role.
        account_status: Lifecycle status.
        is_flagged: Moderation marker, independent of account_status.
        bio: Free-form profile text.
        avatar_url: Profile picture URL.
        referral_code: Code other users can sign up with.
        referred_by_code: Referral code used at signup, if any.
        current_plan: Subscription plan label.
        skills: Developer skills.
        experience_level: Developer experience level.
        hourly_rate: Developer hourly rate.
        portfolio_urls: Developer portfolio links.
        resume_file_url: Developer resume location.
        resume_file_name: Developer resume original file name.
        past_projects: Developer past-project summary.
    """

    __tablename__ = "users"

    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    email_key: Mapped[str | None] = mapped_column(Text, nullable=True, unique=True)
    role: Mapped[UserRole | None] = mapped_column(
        enum_column(UserRole, "user_role"),
        nullable=True,
    )
    account_status: Mapped[AccountStatus | None] = mapped_column(
        enum_column(AccountStatus, "account_status"),
        nullable=True,
    )
    is_flagged: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    referral_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    referred_by_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    current_plan: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Developer-only attributes
    skills: Mapped[list[str] | None] = mapped_column(JSONDocument, nullable=True)
    experience_level: Mapped[str | None] = mapped_column(Text, nullable=True)
    hourly_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    portfolio_urls: Mapped[list[str] | None] = mapped_column(JSONDocument, nullable=True)
    resume_file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    resume_file_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    past_projects: Mapped[str | None] = mapped_column(Text, nullable=True)
