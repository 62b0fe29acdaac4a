import uuid
from datetime import datetime

from pydantic import BaseModel

from app.models.enums import NotificationType, TaskPriority, TaskStatus

class NotificationTaskOut(BaseModel):
    id: uuid.UUID
    title: str
    status: TaskStatus
    priority: TaskPriority

class NotificationOut(BaseModel):
    id: uuid.UUID
    recipient_id: uuid.UUID
    type: NotificationType
    task_id: uuid.UUID | None
    # null once the referenced task is gone
    task: NotificationTaskOut | None = None
    message: str
    is_read: bool
    created_at: datetime

class NotificationListOut(BaseModel):
    results: int
    total_count: int
    notifications: list[NotificationOut]

class UnreadCountOut(BaseModel):
    count: int

class MarkAllReadOut(BaseModel):
    updated: int
