import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, utcnow
from app.models.enums import TaskPriority, TaskStatus, enum_values
from app.models.lead import Lead
from app.models.task_update import TaskUpdate
from app.models.user import User

task_watchers = sa.Table(
    "task_watchers",
    Base.metadata,
    sa.Column("task_id", sa.Uuid, sa.ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id"), primary_key=True),
)

class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)

    lead_id: Mapped[uuid.UUID | None] = mapped_column(
        sa.Uuid, sa.ForeignKey("leads.id"), index=True, nullable=True
    )

    title: Mapped[str] = mapped_column(sa.String(300), index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    due_date: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)

    assigned_to: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id"), index=True, nullable=False
    )
    assigned_by: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id"), index=True, nullable=False
    )
    assigned_date: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), default=utcnow, nullable=False)

    # cached mirror of the latest timeline entry
    status: Mapped[TaskStatus] = mapped_column(
        sa.Enum(TaskStatus, name="task_status", values_callable=enum_values),
        index=True,
        nullable=False,
        default=TaskStatus.todo,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        sa.Enum(TaskPriority, name="task_priority", values_callable=enum_values),
        index=True,
        nullable=False,
        default=TaskPriority.medium,
    )

    attachments: Mapped[list[dict]] = mapped_column(sa.JSON, nullable=False, default=list)
    voice_note: Mapped[dict | None] = mapped_column(sa.JSON, nullable=True)
    video_note: Mapped[dict | None] = mapped_column(sa.JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    assignee: Mapped[User | None] = relationship(foreign_keys=[assigned_to])
    assigner: Mapped[User | None] = relationship(foreign_keys=[assigned_by])
    lead: Mapped[Lead | None] = relationship()
    watchers: Mapped[list[User]] = relationship(secondary=task_watchers)
    updates: Mapped[list[TaskUpdate]] = relationship(
        back_populates="task",
        cascade="all, delete-orphan",
        order_by=TaskUpdate.position,
    )
