import uuid
from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.orm import Mapped, mapped_column, object_session, relationship

from app.models.base import Base, utcnow
from app.models.enums import TaskStatus, enum_values
from app.models.user import User

if TYPE_CHECKING:
    from app.models.task import Task

class TaskUpdate(Base):
    """One timeline entry. Rows are inserted, never updated."""

    __tablename__ = "task_updates"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    task_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("tasks.id", ondelete="CASCADE"), index=True, nullable=False
    )
    position: Mapped[int] = mapped_column(sa.Integer, nullable=False)

    status: Mapped[TaskStatus] = mapped_column(
        sa.Enum(TaskStatus, name="task_status", values_callable=enum_values),
        nullable=False,
    )
    remarks: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    attachments: Mapped[list[dict]] = mapped_column(sa.JSON, nullable=False, default=list)
    voice_notes: Mapped[list[dict]] = mapped_column(sa.JSON, nullable=False, default=list)
    video_notes: Mapped[list[dict]] = mapped_column(sa.JSON, nullable=False, default=list)

    updated_by: Mapped[uuid.UUID] = mapped_column(sa.Uuid, sa.ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), default=utcnow, nullable=False)

    task: Mapped["Task"] = relationship(back_populates="updates")
    author: Mapped[User | None] = relationship()

@event.listens_for(TaskUpdate, "before_update")
def _refuse_timeline_edit(mapper, connection, target: TaskUpdate) -> None:
    session = object_session(target)
    if session is not None and session.is_modified(target, include_collections=False):
        raise RuntimeError(f"task update {target.id} is append-only")
