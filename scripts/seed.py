import uuid
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import SessionLocal
from app.models.base import utcnow
from app.models.enums import TaskPriority
from app.models.lead import Lead
from app.models.task import Task
from app.models.user import User
from app.repositories.notifications import NotificationRepository
from app.repositories.tasks import TaskRepository
from app.repositories.users import UserDirectory
from app.schemas.tasks import TaskCreateIn
from app.services.task_lifecycle import TaskLifecycleService

@dataclass
class SeedResult:
    manager_email: str
    engineer_email: str
    coordinator_email: str
    lead_id: uuid.UUID
    task_id: uuid.UUID

def get_or_create_user(db: Session, email: str, name: str | None = None) -> User:
    email = email.lower().strip()
    u = db.scalar(select(User).where(User.email == email))
    if u is None:
        u = User(email=email, name=name)
        db.add(u)
        db.flush()
    return u

def get_or_create_lead(db: Session, job_code: str, project_name: str) -> Lead:
    lead = db.scalar(select(Lead).where(Lead.job_code == job_code))
    if lead is None:
        lead = Lead(job_code=job_code, project_name=project_name)
        db.add(lead)
        db.flush()
    return lead

def get_or_create_task(
    db: Session,
    title: str,
    actor: User,
    assignee: User,
    watchers: list[User],
    lead: Lead,
) -> Task:
    t = db.scalar(select(Task).where(Task.title == title, Task.lead_id == lead.id))
    if t is not None:
        # keep it stable if you re-run seed
        return t

    # through the service so the seeded assignee gets a notification
    svc = TaskLifecycleService(
        tasks=TaskRepository(db),
        notifications=NotificationRepository(db),
        users=UserDirectory(db),
    )
    result = svc.create_task(
        actor,
        TaskCreateIn(
            title=title,
            description="walk the site and confirm measurements",
            due_date=utcnow() + timedelta(days=7),
            assigned_to=assignee.id,
            watchers=[w.id for w in watchers],
            lead=lead.id,
            priority=TaskPriority.high,
        ),
    )
    return result.task

def seed() -> SeedResult:
    db = SessionLocal()
    try:
        manager = get_or_create_user(db, "manager@example.com", "Morgan Manager")
        engineer = get_or_create_user(db, "engineer@example.com", "Erin Engineer")
        coordinator = get_or_create_user(db, "coordinator@example.com", "Casey Coordinator")

        lead = get_or_create_lead(db, "JOB-0001", "seeded harbour refit")
        db.commit()

        task = get_or_create_task(
            db,
            "seeded site survey",
            actor=manager,
            assignee=engineer,
            watchers=[coordinator],
            lead=lead,
        )

        return SeedResult(
            manager_email=manager.email,
            engineer_email=engineer.email,
            coordinator_email=coordinator.email,
            lead_id=lead.id,
            task_id=task.id,
        )
    finally:
        db.close()

if __name__ == "__main__":
    r = seed()
    print("seed complete")
    print(f"lead_id={r.lead_id}")
    print(f"task_id={r.task_id}")
    print("users:")
    print(f"  manager:     {r.manager_email}")
    print(f"  engineer:    {r.engineer_email}")
    print(f"  coordinator: {r.coordinator_email}")
