import uuid
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from app.models.enums import TaskPriority, TaskStatus
from app.schemas.refs import Attachment, LeadRefOut, UserRefOut

def _strip_title(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("task title is required")
    return v

Title = Annotated[str, Field(max_length=300), AfterValidator(_strip_title)]

class TaskCreateIn(BaseModel):
    title: Title
    description: str | None = None
    due_date: datetime
    assigned_to: uuid.UUID
    watchers: list[uuid.UUID] = Field(default_factory=list)
    lead: uuid.UUID | None = None
    status: TaskStatus = TaskStatus.todo
    priority: TaskPriority = TaskPriority.medium

# PATCH: only fields in model_fields_set are applied
class TaskUpdateIn(BaseModel):
    title: Title | None = None
    description: str | None = None
    due_date: datetime | None = None
    assigned_to: uuid.UUID | None = None
    watchers: list[uuid.UUID] | None = None
    lead: uuid.UUID | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None

class TaskStatusUpdateIn(BaseModel):
    status: TaskStatus
    remarks: str | None = None

class BulkDeleteIn(BaseModel):
    ids: list[uuid.UUID]

class TaskUpdateOut(BaseModel):
    id: uuid.UUID
    status: TaskStatus
    remarks: str | None
    attachments: list[Attachment]
    voice_notes: list[Attachment]
    video_notes: list[Attachment]
    updated_by: UserRefOut | None
    created_at: datetime

class TaskSummaryOut(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None
    due_date: datetime
    assigned_to: UserRefOut | None
    assigned_by: UserRefOut | None
    watchers: list[UserRefOut]
    lead: LeadRefOut | None
    assigned_date: datetime
    status: TaskStatus
    priority: TaskPriority
    attachments: list[Attachment]
    voice_note: Attachment | None
    video_note: Attachment | None
    created_at: datetime
    updated_at: datetime

class TaskOut(TaskSummaryOut):
    updates: list[TaskUpdateOut]

class TaskListOut(BaseModel):
    results: int
    total_count: int
    tasks: list[TaskSummaryOut]
