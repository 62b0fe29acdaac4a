"""Task lifecycle: creation, field edits, status timeline, deletion.

Every task event that concerns other people fans out one Notification per
recipient. Fan-out runs after the task mutation is committed, is attempted
once, and never rolls the task back; its outcome is returned as a
FanOutResult so callers can surface a degraded success.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import structlog
from sqlalchemy.exc import SQLAlchemyError

from app.errors import NotFoundError, UpstreamServiceError, ValidationError
from app.models.base import utcnow
from app.models.enums import NotificationType, TaskStatus
from app.models.lead import Lead
from app.models.notification import Notification
from app.models.task import Task
from app.models.task_update import TaskUpdate
from app.models.user import User
from app.repositories.notifications import NotificationRepository
from app.repositories.tasks import TaskListQuery, TaskRepository
from app.repositories.users import UserDirectory
from app.schemas.refs import Attachment
from app.schemas.tasks import TaskCreateIn, TaskStatusUpdateIn, TaskUpdateIn
from app.services.mailer import Mailer

log = structlog.get_logger()

FANOUT_DELIVERED = "delivered"
FANOUT_SKIPPED = "skipped"
FANOUT_FAILED = "failed"

@dataclass
class FanOutResult:
    status: str
    recipients: list[uuid.UUID] = field(default_factory=list)
    error: str | None = None

@dataclass
class LifecycleResult:
    task: Task
    fan_out: FanOutResult

def fan_out_recipients(
    primary: uuid.UUID | None, watchers: Iterable[uuid.UUID], actor_id: uuid.UUID
) -> list[uuid.UUID]:
    """{primary} ∪ watchers, minus the actor, first occurrence wins."""
    out: list[uuid.UUID] = []
    for uid in (primary, *watchers):
        if uid is None or uid == actor_id or uid in out:
            continue
        out.append(uid)
    return out

def assignment_message(actor_name: str, title: str) -> str:
    return f'{actor_name} assigned you a new task: "{title}"'

def status_update_message(actor_name: str, title: str, status: TaskStatus) -> tuple[NotificationType, str]:
    if status == TaskStatus.done:
        return NotificationType.task_completed, f'{actor_name} completed the task: "{title}"'
    return NotificationType.task_updated, f'{actor_name} updated the task "{title}" to "{status.value}"'

def _dump(files: Iterable[Attachment]) -> list[dict]:
    return [f.model_dump() for f in files]

class TaskLifecycleService:
    def __init__(
        self,
        tasks: TaskRepository,
        notifications: NotificationRepository,
        users: UserDirectory,
        mailer: Mailer | None = None,
    ) -> None:
        self.tasks = tasks
        self.notifications = notifications
        self.users = users
        self.mailer = mailer

    # reads

    def get_task(self, task_id: uuid.UUID) -> Task:
        return self._require_task(task_id, with_timeline=True)

    def ensure_task_exists(self, task_id: uuid.UUID) -> None:
        if not self.tasks.exists(task_id):
            raise NotFoundError("task not found")

    def list_tasks(self, query: TaskListQuery) -> tuple[list[Task], int]:
        return self.tasks.search(query)

    # writes

    def create_task(
        self,
        actor: User,
        data: TaskCreateIn,
        attachments: Sequence[Attachment] = (),
        voice_note: Attachment | None = None,
        video_note: Attachment | None = None,
    ) -> LifecycleResult:
        assignee = self.users.require(data.assigned_to)
        watchers = self.users.require_many(data.watchers)
        lead = self._require_lead(data.lead) if data.lead is not None else None

        task = Task(
            title=data.title,
            description=data.description,
            due_date=data.due_date,
            assigned_to=assignee.id,
            assigned_by=actor.id,
            assigned_date=utcnow(),
            status=data.status,
            priority=data.priority,
            lead_id=lead.id if lead else None,
            attachments=_dump(attachments),
            voice_note=voice_note.model_dump() if voice_note else None,
            video_note=video_note.model_dump() if video_note else None,
        )
        task.assignee = assignee
        task.assigner = actor
        task.lead = lead
        task.watchers = watchers
        self.tasks.add(task)

        log.info(
            "task_created",
            task_id=str(task.id),
            actor_id=str(actor.id),
            assigned_to=str(assignee.id),
            watchers=len(watchers),
            attachments=len(task.attachments),
        )

        if assignee.id != actor.id:
            self._send_assignment_email(assignee, task)

        recipients = fan_out_recipients(assignee.id, [w.id for w in watchers], actor.id)
        fan_out = self._fan_out(
            task.id,
            recipients,
            NotificationType.task_assigned,
            assignment_message(actor.display_name, task.title),
        )
        return LifecycleResult(task=task, fan_out=fan_out)

    def update_task_fields(self, actor: User, task_id: uuid.UUID, data: TaskUpdateIn) -> Task:
        """PATCH-style edit. Never appends to the timeline and never notifies."""
        task = self._require_task(task_id, with_timeline=True)
        fields = data.model_fields_set

        for name in ("title", "due_date", "assigned_to", "priority", "status"):
            if name in fields and getattr(data, name) is None:
                raise ValidationError(f"{name} cannot be null")

        status_change = "status" in fields and data.status != task.status
        if status_change and task.updates:
            raise ValidationError("status of a task with a timeline changes only through a status update")

        # resolve references before touching the row
        assignee = self.users.require(data.assigned_to) if "assigned_to" in fields else None
        watchers = self.users.require_many(data.watchers or []) if "watchers" in fields else None
        lead = None
        if "lead" in fields and data.lead is not None:
            lead = self._require_lead(data.lead)

        if "title" in fields:
            task.title = data.title
        if "description" in fields:
            task.description = data.description
        if "due_date" in fields:
            task.due_date = data.due_date
        if "priority" in fields:
            task.priority = data.priority
        if assignee is not None:
            task.assigned_to = assignee.id
            task.assignee = assignee
        if watchers is not None:
            task.watchers = watchers
        if "lead" in fields:
            task.lead_id = lead.id if lead else None
            task.lead = lead
        if status_change:
            log.warning(
                "task_status_overridden",
                task_id=str(task.id),
                previous=task.status.value,
                status=data.status.value,
                actor_id=str(actor.id),
            )
            task.status = data.status

        self.tasks.save(task)
        log.info("task_fields_updated", task_id=str(task.id), actor_id=str(actor.id), fields=sorted(fields))
        return task

    def post_status_update(
        self,
        actor: User,
        task_id: uuid.UUID,
        data: TaskStatusUpdateIn,
        attachments: Sequence[Attachment] = (),
        voice_notes: Sequence[Attachment] = (),
        video_notes: Sequence[Attachment] = (),
    ) -> LifecycleResult:
        task = self._require_task(task_id, with_timeline=True)

        entry = TaskUpdate(
            position=len(task.updates),
            status=data.status,
            remarks=data.remarks,
            attachments=_dump(attachments),
            voice_notes=_dump(voice_notes),
            video_notes=_dump(video_notes),
            updated_by=actor.id,
            created_at=utcnow(),
        )
        entry.author = actor
        self.tasks.append_update(task, entry)

        log.info(
            "task_status_updated",
            task_id=str(task.id),
            status=data.status.value,
            position=entry.position,
            actor_id=str(actor.id),
        )

        kind, message = status_update_message(actor.display_name, task.title, data.status)
        recipients = fan_out_recipients(task.assigned_by, [w.id for w in task.watchers], actor.id)
        fan_out = self._fan_out(task.id, recipients, kind, message)
        return LifecycleResult(task=task, fan_out=fan_out)

    def delete_task(self, task_id: uuid.UUID) -> None:
        task = self._require_task(task_id)
        self.tasks.delete(task)
        log.info("task_deleted", task_id=str(task_id))
        self._cleanup_notifications([task_id])

    def delete_tasks(self, task_ids: Sequence[uuid.UUID]) -> int:
        ids = list(dict.fromkeys(task_ids))
        if not ids:
            raise ValidationError("provide at least one task id")

        deleted = self.tasks.delete_many(ids)
        log.info("tasks_deleted", requested=len(ids), deleted=len(deleted))
        self._cleanup_notifications(ids)
        return len(deleted)

    # internals

    def _require_task(self, task_id: uuid.UUID, *, with_timeline: bool = False) -> Task:
        task = self.tasks.get(task_id, with_timeline=with_timeline)
        if task is None:
            raise NotFoundError("task not found")
        return task

    def _require_lead(self, lead_id: uuid.UUID) -> Lead:
        lead = self.tasks.get_lead(lead_id)
        if lead is None:
            raise NotFoundError(f"lead {lead_id} not found")
        return lead

    def _fan_out(
        self,
        task_id: uuid.UUID,
        recipients: list[uuid.UUID],
        kind: NotificationType,
        message: str,
    ) -> FanOutResult:
        if not recipients:
            return FanOutResult(status=FANOUT_SKIPPED)

        rows = [
            Notification(recipient_id=r, type=kind, task_id=task_id, message=message, is_read=False)
            for r in recipients
        ]
        try:
            self.notifications.insert_many(rows)
        except SQLAlchemyError as e:
            self.notifications.rollback()
            log.warning(
                "notification_fanout_failed",
                task_id=str(task_id),
                type=kind.value,
                recipients=len(recipients),
                error=e.__class__.__name__,
            )
            return FanOutResult(
                status=FANOUT_FAILED,
                recipients=recipients,
                error=f"{e.__class__.__name__}: {e}"[:500],
            )

        log.info("notifications_created", task_id=str(task_id), type=kind.value, recipients=len(recipients))
        return FanOutResult(status=FANOUT_DELIVERED, recipients=recipients)

    def _cleanup_notifications(self, task_ids: list[uuid.UUID]) -> None:
        # second phase of delete; orphans are tolerated by the read path
        try:
            removed = self.notifications.delete_for_tasks(task_ids)
        except SQLAlchemyError as e:
            self.notifications.rollback()
            log.warning("notification_cleanup_failed", task_ids=[str(i) for i in task_ids], error=e.__class__.__name__)
            return
        log.info("notifications_removed", tasks=len(task_ids), removed=removed)

    def _send_assignment_email(self, assignee: User, task: Task) -> None:
        if self.mailer is None or not assignee.email:
            return
        try:
            self.mailer.send_task_assignment(
                to=assignee.email,
                assignee_name=assignee.display_name,
                task_title=task.title,
                task_id=str(task.id),
            )
        except UpstreamServiceError as e:
            log.warning("task_email_failed", task_id=str(task.id), to=assignee.email, error=e.detail)
