"""Create users, task templates, user tasks and their audit tables."""

from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "202610010001"
down_revision: Union[str, None] = None
branch_labels = None
depends_on = None


TASK_TYPE = postgresql.ENUM(
    "GENERAL",
    "AI_GENERATED",
    "USER_DEFINED",
    name="tasktype",
    create_type=False,
)

TEMPLATE_STATE = postgresql.ENUM(
    "DRAFT",
    "VERIFIED",
    "DEPRECATED",
    name="templatestate",
    create_type=False,
)

TASK_STATUS = postgresql.ENUM(
    "PENDING",
    "COMPLETED",
    "SKIPPED",
    name="taskstatus",
    create_type=False,
)


def _json_variant() -> sa.JSON:
    return sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def _content_columns() -> list[sa.Column]:
    return [
        sa.Column("title", sa.String(length=256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("recurrence_interval", sa.String(length=64), nullable=True),
        sa.Column("criticality", sa.String(length=16), nullable=True),
        sa.Column("estimated_time_minutes", sa.Integer(), nullable=True),
        sa.Column("estimated_cost", sa.Float(), nullable=True),
        sa.Column("can_be_outsourced", sa.Boolean(), nullable=True),
        sa.Column("can_defer", sa.Boolean(), nullable=True),
        sa.Column("defer_limit_days", sa.Integer(), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("icon", sa.String(length=64), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("steps", _json_variant(), nullable=True),
        sa.Column("equipment_needed", _json_variant(), nullable=True),
        sa.Column("resources", _json_variant(), nullable=True),
    ]


def upgrade() -> None:
    """Create maintenance persistence schema."""

    bind = op.get_bind()
    TASK_TYPE.create(bind, checkfirst=True)
    TEMPLATE_STATE.create(bind, checkfirst=True)
    TASK_STATUS.create(bind, checkfirst=True)

    op.create_table(
        "user",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("hashed_password", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_superuser", sa.Boolean(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "task_templates",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_content_columns(),
        sa.Column(
            "task_type",
            postgresql.ENUM(name="tasktype", create_type=False),
            nullable=False,
            server_default=sa.text("'GENERAL'::tasktype"),
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "state",
            postgresql.ENUM(name="templatestate", create_type=False),
            nullable=False,
            server_default=sa.text("'DRAFT'::templatestate"),
        ),
        sa.Column("seed_key", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("seed_key"),
    )
    op.create_index(
        "ix_task_templates_state_version",
        "task_templates",
        ["state", "version"],
        unique=False,
    )
    op.create_index("ix_task_templates_title", "task_templates", ["title"], unique=False)

    op.create_table(
        "user_tasks",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("task_template_id", sa.Uuid(), nullable=True),
        sa.Column(
            "source_template_version", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("overridden_fields", _json_variant(), nullable=False),
        *_content_columns(),
        sa.Column(
            "task_type",
            postgresql.ENUM(name="tasktype", create_type=False),
            nullable=False,
            server_default=sa.text("'GENERAL'::tasktype"),
        ),
        sa.Column(
            "status",
            postgresql.ENUM(name="taskstatus", create_type=False),
            nullable=False,
            server_default=sa.text("'PENDING'::taskstatus"),
        ),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paused_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "is_tracking", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.Column("home_id", sa.String(length=64), nullable=True),
        sa.Column("room_id", sa.String(length=64), nullable=True),
        sa.Column("trackable_id", sa.String(length=64), nullable=True),
        sa.Column("item_name", sa.String(length=256), nullable=False, server_default=""),
        sa.Column("location", sa.String(length=256), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["task_template_id"], ["task_templates.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_user_tasks_user_status_due",
        "user_tasks",
        ["user_id", "status", "due_date"],
        unique=False,
    )
    op.create_index(
        "ix_user_tasks_user_template",
        "user_tasks",
        ["user_id", "task_template_id"],
        unique=False,
    )
    op.create_index(
        "ix_user_tasks_trackable", "user_tasks", ["trackable_id"], unique=False
    )

    op.create_table(
        "task_snapshot_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_task_id", sa.Uuid(), nullable=False),
        sa.Column("from_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("to_version", sa.Integer(), nullable=False),
        sa.Column("fields_changed", _json_variant(), nullable=False),
        sa.Column("snapshot_before", _json_variant(), nullable=False),
        sa.Column("snapshot_after", _json_variant(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["user_task_id"], ["user_tasks.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_task_snapshot_history_task_created",
        "task_snapshot_history",
        ["user_task_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "task_lifecycle_events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("entity", sa.String(length=32), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("metadata", _json_variant(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_task_lifecycle_events_entity",
        "task_lifecycle_events",
        ["entity", "entity_id"],
        unique=False,
    )


def downgrade() -> None:
    """Drop maintenance persistence schema."""

    op.drop_index("ix_task_lifecycle_events_entity", table_name="task_lifecycle_events")
    op.drop_table("task_lifecycle_events")

    op.drop_index(
        "ix_task_snapshot_history_task_created", table_name="task_snapshot_history"
    )
    op.drop_table("task_snapshot_history")

    op.drop_index("ix_user_tasks_trackable", table_name="user_tasks")
    op.drop_index("ix_user_tasks_user_template", table_name="user_tasks")
    op.drop_index("ix_user_tasks_user_status_due", table_name="user_tasks")
    op.drop_table("user_tasks")

    op.drop_index("ix_task_templates_title", table_name="task_templates")
    op.drop_index("ix_task_templates_state_version", table_name="task_templates")
    op.drop_table("task_templates")

    op.drop_index("ix_user_email", table_name="user")
    op.drop_table("user")

    bind = op.get_bind()
    TASK_STATUS.drop(bind, checkfirst=True)
    TEMPLATE_STATE.drop(bind, checkfirst=True)
    TASK_TYPE.drop(bind, checkfirst=True)
