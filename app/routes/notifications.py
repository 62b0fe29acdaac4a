import uuid

from fastapi import APIRouter, Depends, Query

from app.auth.deps import get_current_user
from app.models.notification import Notification
from app.models.task import Task
from app.models.user import User
from app.repositories.notifications import NotificationRepository
from app.schemas.notifications import (
    MarkAllReadOut,
    NotificationListOut,
    NotificationOut,
    NotificationTaskOut,
    UnreadCountOut,
)
from app.services.deps import get_notification_repo

router = APIRouter(prefix="/notifications", tags=["notifications"])

def notification_out(n: Notification, task: Task | None = None) -> NotificationOut:
    return NotificationOut(
        id=n.id,
        recipient_id=n.recipient_id,
        type=n.type,
        task_id=n.task_id,
        task=(
            NotificationTaskOut(id=task.id, title=task.title, status=task.status, priority=task.priority)
            if task is not None
            else None
        ),
        message=n.message,
        is_read=n.is_read,
        created_at=n.created_at,
    )

@router.get("", response_model=NotificationListOut)
def list_notifications(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: User = Depends(get_current_user),
    repo: NotificationRepository = Depends(get_notification_repo),
) -> NotificationListOut:
    rows, total = repo.list_for_recipient(user.id, page=page, page_size=limit)
    return NotificationListOut(
        results=len(rows),
        total_count=total,
        notifications=[notification_out(n, t) for n, t in rows],
    )

@router.get("/unread-count", response_model=UnreadCountOut)
def unread_count(
    user: User = Depends(get_current_user),
    repo: NotificationRepository = Depends(get_notification_repo),
) -> UnreadCountOut:
    return UnreadCountOut(count=repo.unread_count(user.id))

@router.patch("/read-all", response_model=MarkAllReadOut)
def mark_all_read(
    user: User = Depends(get_current_user),
    repo: NotificationRepository = Depends(get_notification_repo),
) -> MarkAllReadOut:
    return MarkAllReadOut(updated=repo.mark_all_read(user.id))

@router.patch("/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    repo: NotificationRepository = Depends(get_notification_repo),
) -> NotificationOut:
    n, task = repo.mark_read(user.id, notification_id)
    return notification_out(n, task)
