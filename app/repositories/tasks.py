import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session, selectinload

from app.errors import ValidationError
from app.models.enums import TaskPriority, TaskStatus
from app.models.lead import Lead
from app.models.task import Task
from app.models.task_update import TaskUpdate

def _declared_order(col, enum_cls):
    # enum declaration order (Low < Urgent, Todo < Done) on every backend
    return case({m: i for i, m in enumerate(enum_cls)}, value=col)

SORTABLE_FIELDS = {
    "created_at": Task.created_at,
    "due_date": Task.due_date,
    "assigned_date": Task.assigned_date,
    "title": Task.title,
    "priority": _declared_order(Task.priority, TaskPriority),
    "status": _declared_order(Task.status, TaskStatus),
}

MAX_PAGE_SIZE = 100

@dataclass
class TaskListQuery:
    search: str | None = None
    statuses: list[TaskStatus] = field(default_factory=list)
    priorities: list[TaskPriority] = field(default_factory=list)
    assigned_to: uuid.UUID | None = None
    assigned_by: uuid.UUID | None = None
    page: int = 1
    limit: int = 10
    sort: str | None = None

def parse_sort(sort: str | None):
    # "-due_date,title" -> [due_date DESC, title ASC]
    if not sort:
        return [Task.created_at.desc()]

    order_by = []
    for raw in sort.split(","):
        name = raw.strip()
        if not name:
            continue
        desc = name.startswith("-")
        name = name.lstrip("-")
        col = SORTABLE_FIELDS.get(name)
        if col is None:
            raise ValidationError(f"cannot sort by {name!r}")
        order_by.append(col.desc() if desc else col.asc())
    return order_by or [Task.created_at.desc()]

def _ref_options():
    return [
        selectinload(Task.assignee),
        selectinload(Task.assigner),
        selectinload(Task.lead),
        selectinload(Task.watchers),
    ]

class TaskRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, task_id: uuid.UUID, *, with_timeline: bool = False) -> Task | None:
        options = _ref_options()
        if with_timeline:
            options.append(selectinload(Task.updates).selectinload(TaskUpdate.author))
        return self.db.scalar(select(Task).where(Task.id == task_id).options(*options))

    def exists(self, task_id: uuid.UUID) -> bool:
        return self.db.scalar(select(Task.id).where(Task.id == task_id)) is not None

    def get_lead(self, lead_id: uuid.UUID) -> Lead | None:
        return self.db.get(Lead, lead_id)

    def add(self, task: Task) -> Task:
        self.db.add(task)
        self.db.commit()
        return task

    def save(self, task: Task) -> Task:
        self.db.add(task)
        self.db.commit()
        return task

    def append_update(self, task: Task, entry: TaskUpdate) -> Task:
        # entry + mirrored status land in the same commit
        task.updates.append(entry)
        task.status = entry.status
        self.db.add(task)
        self.db.commit()
        return task

    def delete(self, task: Task) -> None:
        self.db.delete(task)
        self.db.commit()

    def delete_many(self, task_ids: Sequence[uuid.UUID]) -> list[uuid.UUID]:
        rows = self.db.scalars(select(Task).where(Task.id.in_(task_ids))).all()
        deleted = [t.id for t in rows]
        for t in rows:
            self.db.delete(t)
        self.db.commit()
        return deleted

    def search(self, q: TaskListQuery) -> tuple[list[Task], int]:
        conds = []
        if q.search:
            conds.append(Task.title.icontains(q.search, autoescape=True))
        if q.statuses:
            conds.append(Task.status.in_(q.statuses))
        if q.priorities:
            conds.append(Task.priority.in_(q.priorities))
        if q.assigned_to is not None:
            conds.append(Task.assigned_to == q.assigned_to)
        if q.assigned_by is not None:
            conds.append(Task.assigned_by == q.assigned_by)

        total = self.db.scalar(select(func.count()).select_from(Task).where(*conds)) or 0

        page = max(q.page, 1)
        limit = min(max(q.limit, 1), MAX_PAGE_SIZE)
        stmt = (
            select(Task)
            .where(*conds)
            .options(*_ref_options())
            .order_by(*parse_sort(q.sort), Task.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(self.db.scalars(stmt).all()), int(total)
