"""Project views, automation rules, user settings and task attachments.

Revision ID: 0002_views_rules_settings
Revises: 0001_initial_schema
Create Date: 2026-10-19 15:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0002_views_rules_settings"
down_revision: Union[str, None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = [
    "task_attachments",
    "user_settings",
    "automation_rules",
    "project_views",
]


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def _fk(name: str, target: str, ondelete: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(f"{target}.id", ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    op.create_table(
        "project_views",
        _id(),
        _fk("project_id", "projects", "CASCADE"),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False, server_default="list"),
        sa.Column("config", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        _fk("created_by", "users", "SET NULL", nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_project_views_project", "project_views", ["project_id"])
    # One default view per project
    op.create_index(
        "uq_project_views_default",
        "project_views",
        ["project_id"],
        unique=True,
        postgresql_where=sa.text("is_default"),
    )

    op.create_table(
        "automation_rules",
        _id(),
        _fk("project_id", "projects", "CASCADE"),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("trigger", sa.Text(), nullable=False),
        sa.Column("trigger_conditions", postgresql.JSONB(), nullable=True),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("action_config", postgresql.JSONB(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _fk("created_by", "users", "SET NULL", nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_automation_rules_project", "automation_rules", ["project_id"])

    op.create_table(
        "user_settings",
        _id(),
        _fk("user_id", "users", "CASCADE"),
        sa.Column("email_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("push_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("weekly_digest", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("timezone", sa.Text(), nullable=False, server_default="UTC"),
        sa.Column("date_format", sa.Text(), nullable=False, server_default="MM/DD/YYYY"),
        sa.Column("time_format", sa.Text(), nullable=False, server_default="12h"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", name="uq_user_settings_user"),
    )

    op.create_table(
        "task_attachments",
        _id(),
        _fk("task_id", "tasks", "CASCADE"),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column("file_url", sa.Text(), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("mime_type", sa.Text(), nullable=True),
        _fk("uploaded_by", "users", "SET NULL", nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_task_attachments_task", "task_attachments", ["task_id"])


def downgrade() -> None:
    for table in TABLES:
        op.drop_table(table)
