"""Initial schema for CodeCrafter.

Creates the four marketplace collections: users, projects,
project_applications, and activity_logs, together with the status enums
and the partial unique index that allows one live application per
developer and project.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_DOCUMENT = sa.JSON().with_variant(JSONB(), "postgresql")

USER_ROLE = ("client", "developer", "admin")
ACCOUNT_STATUS = ("pending_approval", "active", "rejected", "suspended")
PROJECT_STATUS = ("Open", "In Progress", "Completed", "Cancelled")
APPLICATION_STATUS = ("pending", "accepted", "rejected")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("email_key", sa.Text(), nullable=True, unique=True),
        sa.Column(
            "role",
            sa.Enum(*USER_ROLE, name="user_role"),
            nullable=True,
        ),
        sa.Column(
            "account_status",
            sa.Enum(*ACCOUNT_STATUS, name="account_status"),
            nullable=True,
        ),
        sa.Column("is_flagged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("referral_code", sa.Text(), nullable=True),
        sa.Column("referred_by_code", sa.Text(), nullable=True),
        sa.Column("current_plan", sa.Text(), nullable=True),
        sa.Column("skills", JSON_DOCUMENT, nullable=True),
        sa.Column("experience_level", sa.Text(), nullable=True),
        sa.Column("hourly_rate", sa.Float(), nullable=True),
        sa.Column("portfolio_urls", JSON_DOCUMENT, nullable=True),
        sa.Column("resume_file_url", sa.Text(), nullable=True),
        sa.Column("resume_file_name", sa.Text(), nullable=True),
        sa.Column("past_projects", sa.Text(), nullable=True),
        *_timestamps(),
    )

    # Projects table
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("client_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("required_skills", JSON_DOCUMENT, nullable=True),
        sa.Column("availability", sa.Text(), nullable=True),
        sa.Column("time_zone", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*PROJECT_STATUS, name="project_status"),
            nullable=True,
            server_default="Open",
        ),
        sa.Column("assigned_developer_id", sa.Uuid(), nullable=True),
        sa.Column("assigned_developer_name", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_projects_client_id", "projects", ["client_id"])
    op.create_index("ix_projects_status", "projects", ["status"])

    # Project applications table
    op.create_table(
        "project_applications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("project_id", sa.Uuid(), nullable=True),
        sa.Column("developer_id", sa.Uuid(), nullable=True),
        sa.Column("client_id", sa.Uuid(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*APPLICATION_STATUS, name="application_status"),
            nullable=True,
            server_default="pending",
        ),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("project_name", sa.Text(), nullable=True),
        sa.Column("developer_name", sa.Text(), nullable=True),
        sa.Column("developer_email", sa.Text(), nullable=True),
        sa.Column(
            "client_notified_of_new_application",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "developer_notified_of_status",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_project_applications_project_status",
        "project_applications",
        ["project_id", "status"],
    )
    op.create_index(
        "ix_project_applications_developer_id",
        "project_applications",
        ["developer_id"],
    )
    live = sa.text("status IN ('pending', 'accepted')")
    op.create_index(
        "uq_project_applications_live",
        "project_applications",
        ["project_id", "developer_id"],
        unique=True,
        postgresql_where=live,
        sqlite_where=live,
    )

    # Activity log table
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor_id", sa.Text(), nullable=True),
        sa.Column("actor_name", sa.Text(), nullable=True),
        sa.Column("action", sa.Text(), nullable=True),
        sa.Column("target_type", sa.Text(), nullable=True),
        sa.Column("target_id", sa.Text(), nullable=True),
        sa.Column("target_name", sa.Text(), nullable=True),
        sa.Column("details", JSON_DOCUMENT, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])
    op.create_index("ix_activity_logs_target", "activity_logs", ["target_type", "target_id"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("project_applications")
    op.drop_table("projects")
    op.drop_table("users")

    bind = op.get_bind()
    for name in ("application_status", "project_status", "account_status", "user_role"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
