"""Initial Cohete Workflow schema.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Drop order for downgrade (children first)
TABLES = [
    "team_members",
    "teams",
    "products",
    "notifications",
    "time_entries",
    "task_comments",
    "task_dependencies",
    "tasks",
    "chat_messages",
    "content_history",
    "schedule_entries",
    "schedules",
    "documents",
    "analysis_results",
    "project_members",
    "projects",
    "password_reset_tokens",
    "users",
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


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # -----------------------------------------------------------------------
    # 1. Users
    # -----------------------------------------------------------------------

    op.create_table(
        "users",
        _id(),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("username", sa.Text(), nullable=False, unique=True),
        sa.Column("email", sa.Text(), nullable=True, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("role", sa.Text(), nullable=False, server_default="content_creator"),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("profile_image", sa.Text(), nullable=True),
        sa.Column("cover_image", sa.Text(), nullable=True),
        sa.Column("job_title", sa.Text(), nullable=True),
        sa.Column("department", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("preferred_language", sa.Text(), nullable=False, server_default="es"),
        sa.Column("theme", sa.Text(), nullable=False, server_default="light"),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "password_reset_tokens",
        _id(),
        _fk("user_id", "users", "CASCADE"),
        sa.Column("token", sa.Text(), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_password_reset_tokens_user", "password_reset_tokens", ["user_id"])

    # -----------------------------------------------------------------------
    # 2. Projects, membership, brand analysis
    # -----------------------------------------------------------------------

    op.create_table(
        "projects",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("client", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="active"),
        _fk("created_by", "users", "SET NULL", nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "project_members",
        _id(),
        _fk("project_id", "projects", "CASCADE"),
        _fk("user_id", "users", "CASCADE"),
        sa.Column("role", sa.Text(), nullable=False, server_default="member"),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_member"),
    )
    op.create_index("idx_project_members_user", "project_members", ["user_id"])

    op.create_table(
        "analysis_results",
        _id(),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        *[
            sa.Column(name, sa.Text(), nullable=True)
            for name in (
                "mission",
                "vision",
                "core_values",
                "objectives",
                "target_audience",
                "brand_tone",
                "keywords",
                "buyer_persona",
                "marketing_strategies",
                "brand_communication_style",
                "unique_value_proposition",
                "summary",
            )
        ],
        sa.Column("content_themes", postgresql.JSONB(), nullable=True),
        sa.Column("competitor_analysis", postgresql.JSONB(), nullable=True),
        sa.Column("archetypes", postgresql.JSONB(), nullable=True),
        sa.Column("social_networks", postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "documents",
        _id(),
        _fk("project_id", "projects", "CASCADE"),
        _fk("uploaded_by", "users", "SET NULL", nullable=True),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column("original_name", sa.Text(), nullable=False),
        sa.Column("mime_type", sa.Text(), nullable=False),
        sa.Column("extracted_text", sa.Text(), nullable=True),
        sa.Column("analysis_status", sa.Text(), nullable=False, server_default="pending"),
        sa.Column("analysis_results", postgresql.JSONB(), nullable=True),
        sa.Column("analysis_error", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "analysis_status IN ('pending','processing','completed','failed')",
            name="ck_documents_analysis_status",
        ),
    )
    op.create_index("idx_documents_project", "documents", ["project_id"])

    # -----------------------------------------------------------------------
    # 3. Schedules & chat
    # -----------------------------------------------------------------------

    op.create_table(
        "schedules",
        _id(),
        _fk("project_id", "projects", "CASCADE"),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("specifications", sa.Text(), nullable=True),
        sa.Column("additional_instructions", sa.Text(), nullable=True),
        _fk("created_by", "users", "SET NULL", nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_schedules_project_created", "schedules", ["project_id", "created_at"])

    op.create_table(
        "schedule_entries",
        _id(),
        _fk("schedule_id", "schedules", "CASCADE"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("copy_in", sa.Text(), nullable=True),
        sa.Column("copy_out", sa.Text(), nullable=True),
        sa.Column("design_instructions", sa.Text(), nullable=True),
        sa.Column("platform", sa.Text(), nullable=False),
        sa.Column("post_date", sa.Date(), nullable=True),
        sa.Column("post_time", sa.Text(), nullable=True),
        sa.Column("hashtags", sa.Text(), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("reference_image_prompt", sa.Text(), nullable=True),
        sa.Column("reference_image_url", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_schedule_entries_schedule", "schedule_entries", ["schedule_id", "post_date"])

    op.create_table(
        "content_history",
        _id(),
        _fk("project_id", "projects", "CASCADE"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("content_type", sa.Text(), nullable=False, server_default="post"),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("platform", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_content_history_project", "content_history", ["project_id"])

    op.create_table(
        "chat_messages",
        _id(),
        _fk("project_id", "projects", "CASCADE"),
        _fk("user_id", "users", "SET NULL", nullable=True),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_chat_messages_project_created", "chat_messages", ["project_id", "created_at"])

    # -----------------------------------------------------------------------
    # 4. Tasks
    # -----------------------------------------------------------------------

    op.create_table(
        "tasks",
        _id(),
        _fk("project_id", "projects", "CASCADE"),
        _fk("parent_task_id", "tasks", "CASCADE", nullable=True),
        _fk("assigned_to_id", "users", "SET NULL", nullable=True),
        _fk("created_by_id", "users", "SET NULL", nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="pending"),
        sa.Column("priority", sa.Text(), nullable=False, server_default="medium"),
        sa.Column("group", sa.Text(), nullable=False, server_default="todo"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ai_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("tags", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("estimated_hours", sa.Float(), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("progress BETWEEN 0 AND 100", name="ck_tasks_progress"),
    )
    op.create_index("idx_tasks_project_group", "tasks", ["project_id", "group", "position"])
    op.create_index("idx_tasks_assigned_to", "tasks", ["assigned_to_id"])
    op.create_index("idx_tasks_parent", "tasks", ["parent_task_id"])

    op.create_table(
        "task_dependencies",
        sa.Column(
            "task_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "depends_on_task_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.CheckConstraint("task_id != depends_on_task_id", name="no_self_dependency"),
    )

    op.create_table(
        "task_comments",
        _id(),
        _fk("task_id", "tasks", "CASCADE"),
        _fk("user_id", "users", "CASCADE"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_internal", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_task_comments_task", "task_comments", ["task_id"])

    op.create_table(
        "time_entries",
        _id(),
        _fk("task_id", "tasks", "CASCADE"),
        _fk("user_id", "users", "CASCADE"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("is_running", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("idx_time_entries_task", "time_entries", ["task_id"])

    # -----------------------------------------------------------------------
    # 5. Notifications, products, teams
    # -----------------------------------------------------------------------

    op.create_table(
        "notifications",
        _id(),
        _fk("user_id", "users", "CASCADE"),
        sa.Column("type", sa.Text(), nullable=False, server_default="info"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("related_entity_type", sa.Text(), nullable=True),
        sa.Column("related_entity_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("idx_notifications_user_created", "notifications", ["user_id", "created_at"])
    op.execute(
        "CREATE INDEX idx_notifications_unread ON notifications (user_id) WHERE is_read = false"
    )

    op.create_table(
        "products",
        _id(),
        _fk("project_id", "projects", "CASCADE"),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("sku", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        _fk("created_by", "users", "SET NULL", nullable=True),
        *_timestamps(),
        sa.CheckConstraint("price IS NULL OR price >= 0", name="ck_products_price"),
    )
    op.create_index("idx_products_project", "products", ["project_id"])

    op.create_table(
        "teams",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _fk("created_by", "users", "SET NULL", nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "team_members",
        _id(),
        _fk("team_id", "teams", "CASCADE"),
        _fk("user_id", "users", "CASCADE"),
        sa.Column("role", sa.Text(), nullable=False, server_default="member"),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("team_id", "user_id", name="uq_team_member"),
    )


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for table in TABLES:
        op.drop_table(table)
