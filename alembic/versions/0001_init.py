"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

TASK_STATUS = ("Todo", "In Progress", "Done")
TASK_PRIORITY = ("Low", "Medium", "High", "Urgent")
NOTIFICATION_TYPE = ("task_assigned", "task_updated", "task_completed")

def upgrade() -> None:
    # enums
    postgresql.ENUM(*TASK_STATUS, name="task_status").create(op.get_bind(), checkfirst=True)
    postgresql.ENUM(*TASK_PRIORITY, name="task_priority").create(op.get_bind(), checkfirst=True)
    postgresql.ENUM(*NOTIFICATION_TYPE, name="notification_type").create(op.get_bind(), checkfirst=True)

    task_status = postgresql.ENUM(*TASK_STATUS, name="task_status", create_type=False)
    task_priority = postgresql.ENUM(*TASK_PRIORITY, name="task_priority", create_type=False)
    notification_type = postgresql.ENUM(*NOTIFICATION_TYPE, name="notification_type", create_type=False)

    uuid_t = postgresql.UUID(as_uuid=True)
    ts = sa.DateTime(timezone=True)

    op.create_table(
        "users",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("created_at", ts, server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "leads",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("job_code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("project_name", sa.String(length=300), nullable=False),
        sa.Column("created_at", ts, server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "tasks",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("lead_id", uuid_t, sa.ForeignKey("leads.id"), nullable=True),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("due_date", ts, nullable=False),
        sa.Column("assigned_to", uuid_t, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("assigned_by", uuid_t, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("assigned_date", ts, server_default=sa.text("now()"), nullable=False),
        sa.Column("status", task_status, nullable=False, server_default="Todo"),
        sa.Column("priority", task_priority, nullable=False, server_default="Medium"),
        sa.Column("attachments", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("voice_note", sa.JSON(), nullable=True),
        sa.Column("video_note", sa.JSON(), nullable=True),
        sa.Column("created_at", ts, server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", ts, server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_tasks_lead_id", "tasks", ["lead_id"])
    op.create_index("ix_tasks_title", "tasks", ["title"])
    op.create_index("ix_tasks_assigned_to", "tasks", ["assigned_to"])
    op.create_index("ix_tasks_assigned_by", "tasks", ["assigned_by"])
    op.create_index("ix_tasks_status", "tasks", ["status"])
    op.create_index("ix_tasks_priority", "tasks", ["priority"])

    op.create_table(
        "task_watchers",
        sa.Column("task_id", uuid_t, sa.ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", uuid_t, sa.ForeignKey("users.id"), primary_key=True),
    )

    op.create_table(
        "task_updates",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("task_id", uuid_t, sa.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("status", task_status, nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("attachments", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("voice_notes", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("video_notes", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("updated_by", uuid_t, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", ts, server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_task_updates_task_id", "task_updates", ["task_id"])

    # task_id has no FK: notification cleanup runs after the task delete
    op.create_table(
        "notifications",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("recipient_id", uuid_t, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("task_id", uuid_t, nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", ts, server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_notifications_task_id", "notifications", ["task_id"])
    op.create_index(
        "ix_notifications_recipient_read_created",
        "notifications",
        ["recipient_id", "is_read", "created_at"],
    )

    op.create_table(
        "auth_magic_links",
        sa.Column("token_hash", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("user_id", uuid_t, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("expires_at", ts, nullable=False),
        sa.Column("used_at", ts, nullable=True),
        sa.Column("created_at", ts, server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_auth_magic_links_user_id", "auth_magic_links", ["user_id"])

def downgrade() -> None:
    op.drop_index("ix_auth_magic_links_user_id", table_name="auth_magic_links")
    op.drop_table("auth_magic_links")

    op.drop_index("ix_notifications_recipient_read_created", table_name="notifications")
    op.drop_index("ix_notifications_task_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_task_updates_task_id", table_name="task_updates")
    op.drop_table("task_updates")

    op.drop_table("task_watchers")

    for name in (
        "ix_tasks_priority",
        "ix_tasks_status",
        "ix_tasks_assigned_by",
        "ix_tasks_assigned_to",
        "ix_tasks_title",
        "ix_tasks_lead_id",
    ):
        op.drop_index(name, table_name="tasks")
    op.drop_table("tasks")

    op.drop_table("leads")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    postgresql.ENUM(name="notification_type").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="task_priority").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="task_status").drop(op.get_bind(), checkfirst=True)
