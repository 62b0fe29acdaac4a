import uuid
from datetime import datetime, timedelta, timezone

from app.models.enums import NotificationType, TaskStatus
from app.models.user import User
from app.repositories.notifications import NotificationRepository
from app.repositories.tasks import TaskRepository
from app.repositories.users import UserDirectory
from app.schemas.tasks import TaskCreateIn, TaskStatusUpdateIn
from app.services.task_lifecycle import (
    TaskLifecycleService,
    assignment_message,
    fan_out_recipients,
    status_update_message,
)

def test_recipients_exclude_actor_and_keep_first_occurrence():
    actor, a, b = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()

    assert fan_out_recipients(a, [b, a, actor, b], actor) == [a, b]
    assert fan_out_recipients(actor, [actor], actor) == []
    assert fan_out_recipients(None, [b], actor) == [b]

def test_messages():
    assert assignment_message("Alice", "Draft quote") == 'Alice assigned you a new task: "Draft quote"'

    kind, msg = status_update_message("Bob", "Draft quote", TaskStatus.done)
    assert kind == NotificationType.task_completed
    assert msg == 'Bob completed the task: "Draft quote"'

    kind, msg = status_update_message("Bob", "Draft quote", TaskStatus.in_progress)
    assert kind == NotificationType.task_updated
    assert msg == 'Bob updated the task "Draft quote" to "In Progress"'

def _user(db, name: str) -> User:
    u = User(email=f"{name.lower()}-{uuid.uuid4().hex[:6]}@example.com", name=name)
    db.add(u)
    db.commit()
    return u

def _service(db) -> TaskLifecycleService:
    return TaskLifecycleService(
        tasks=TaskRepository(db),
        notifications=NotificationRepository(db),
        users=UserDirectory(db),
    )

def test_service_timeline_positions_and_message_snapshot(db_session):
    alice, bob = _user(db_session, "Alice"), _user(db_session, "Bob")
    svc = _service(db_session)

    created = svc.create_task(
        alice,
        TaskCreateIn(
            title="Draft quote",
            due_date=datetime.now(timezone.utc) + timedelta(days=1),
            assigned_to=bob.id,
        ),
    )
    assert created.fan_out.status == "delivered"
    assert created.fan_out.recipients == [bob.id]

    task_id = created.task.id
    svc.post_status_update(bob, task_id, TaskStatusUpdateIn(status=TaskStatus.in_progress))
    done = svc.post_status_update(bob, task_id, TaskStatusUpdateIn(status=TaskStatus.done, remarks="sent"))

    assert [u.position for u in done.task.updates] == [0, 1]
    assert done.task.status == TaskStatus.done

    # messages are not recomputed when the actor is renamed
    bob.name = "Robert"
    db_session.commit()
    rows, total = NotificationRepository(db_session).list_for_recipient(alice.id)
    assert total == 2
    assert [n.message for n, _ in rows] == [
        'Bob completed the task: "Draft quote"',
        'Bob updated the task "Draft quote" to "In Progress"',
    ]

def test_service_fan_out_skipped_when_nobody_else_is_involved(db_session):
    alice = _user(db_session, "Alice")
    svc = _service(db_session)

    created = svc.create_task(
        alice,
        TaskCreateIn(title="Solo", due_date=datetime.now(timezone.utc), assigned_to=alice.id),
    )
    assert created.fan_out.status == "skipped"

    updated = svc.post_status_update(alice, created.task.id, TaskStatusUpdateIn(status=TaskStatus.done))
    assert updated.fan_out.status == "skipped"
    assert NotificationRepository(db_session).unread_count(alice.id) == 0
