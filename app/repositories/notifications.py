import uuid
from collections.abc import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from app.errors import NotFoundError
from app.models.notification import Notification
from app.models.task import Task

class NotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def insert_many(self, rows: Sequence[Notification]) -> None:
        # one flush -> one batched INSERT
        self.db.add_all(rows)
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def list_for_recipient(
        self, recipient_id: uuid.UUID, page: int = 1, page_size: int = 20
    ) -> tuple[list[tuple[Notification, Task | None]], int]:
        total = self.db.scalar(
            select(func.count()).select_from(Notification).where(Notification.recipient_id == recipient_id)
        ) or 0

        page = max(page, 1)
        page_size = max(page_size, 1)
        # outer join: notifications may outlive their task
        stmt = (
            select(Notification, Task)
            .outerjoin(Task, Task.id == Notification.task_id)
            .where(Notification.recipient_id == recipient_id)
            .order_by(Notification.created_at.desc(), Notification.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        rows = [(n, t) for n, t in self.db.execute(stmt).all()]
        return rows, int(total)

    def unread_count(self, recipient_id: uuid.UUID) -> int:
        n = self.db.scalar(
            select(func.count())
            .select_from(Notification)
            .where(Notification.recipient_id == recipient_id, Notification.is_read.is_(False))
        )
        return int(n or 0)

    def mark_read(
        self, recipient_id: uuid.UUID, notification_id: uuid.UUID
    ) -> tuple[Notification, Task | None]:
        # someone else's notification reads as missing
        row = self.db.execute(
            select(Notification, Task)
            .outerjoin(Task, Task.id == Notification.task_id)
            .where(
                Notification.id == notification_id,
                Notification.recipient_id == recipient_id,
            )
        ).first()
        if row is None:
            raise NotFoundError("notification not found")

        n, task = row
        if not n.is_read:
            n.is_read = True
            self.db.commit()
        return n, task

    def mark_all_read(self, recipient_id: uuid.UUID) -> int:
        result = self.db.execute(
            update(Notification)
            .where(Notification.recipient_id == recipient_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        self.db.commit()
        return int(result.rowcount or 0)

    def delete_for_tasks(self, task_ids: Sequence[uuid.UUID]) -> int:
        result = self.db.execute(delete(Notification).where(Notification.task_id.in_(task_ids)))
        self.db.commit()
        return int(result.rowcount or 0)
