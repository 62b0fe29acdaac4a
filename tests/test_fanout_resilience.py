import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import event, func, select
from sqlalchemy.exc import OperationalError

from app.models.notification import Notification
from app.repositories.notifications import NotificationRepository

def _store_down(*args, **kwargs):
    raise OperationalError("INSERT INTO notifications", {}, Exception("database is locked"))

def _task_body(assignee) -> dict:
    return {
        "title": "Order steel",
        "due_date": (datetime.now(timezone.utc) + timedelta(days=2)).isoformat(),
        "assigned_to": str(assignee.id),
    }

def test_failed_fanout_keeps_created_task(client, db_session, monkeypatch, alice, bob):
    monkeypatch.setattr(NotificationRepository, "insert_many", _store_down)

    r = client.post("/tasks", json=_task_body(bob), headers=alice.headers)
    assert r.status_code == 201, r.text
    assert r.headers["X-Notification-Fanout"] == "failed"
    task_id = r.json()["id"]

    r = client.get(f"/tasks/{task_id}", headers=alice.headers)
    assert r.status_code == 200
    assert r.json()["title"] == "Order steel"

    assert db_session.scalar(select(func.count()).select_from(Notification)) == 0

def test_failed_fanout_keeps_status_update(client, monkeypatch, alice, bob):
    task_id = client.post("/tasks", json=_task_body(bob), headers=alice.headers).json()["id"]

    monkeypatch.setattr(NotificationRepository, "insert_many", _store_down)
    r = client.post(f"/tasks/{task_id}/updates", json={"status": "Done"}, headers=bob.headers)
    assert r.status_code == 200, r.text
    assert r.headers["X-Notification-Fanout"] == "failed"

    r = client.get(f"/tasks/{task_id}", headers=bob.headers)
    assert r.json()["status"] == "Done"
    assert len(r.json()["updates"]) == 1

def test_email_failure_does_not_fail_creation(client, mailer, alice, bob):
    mailer.fail = True

    r = client.post("/tasks", json=_task_body(bob), headers=alice.headers)
    assert r.status_code == 201, r.text
    assert r.headers["X-Notification-Fanout"] == "delivered"
    assert mailer.sent == []

    r = client.get("/notifications/unread-count", headers=bob.headers)
    assert r.json()["count"] == 1

def test_failed_cleanup_leaves_readable_orphans(client, monkeypatch, alice, bob):
    task_id = client.post("/tasks", json=_task_body(bob), headers=alice.headers).json()["id"]

    monkeypatch.setattr(NotificationRepository, "delete_for_tasks", _store_down)
    r = client.delete(f"/tasks/{task_id}", headers=alice.headers)
    assert r.status_code == 200, r.text

    r = client.get("/notifications", headers=bob.headers)
    assert r.status_code == 200
    n = r.json()["notifications"][0]
    assert n["task_id"] == task_id
    assert n["task"] is None

def test_task_writes_keep_sql_off_the_event_loop(client, db_session, monkeypatch, alice, bob):
    on_loop: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        on_loop.append(statement)

    engine = db_session.get_bind()
    event.listen(engine, "before_cursor_execute", _record)
    try:
        r = client.post("/tasks", json=_task_body(bob), headers=alice.headers)
        assert r.status_code == 201, r.text
        task_id = r.json()["id"]

        r = client.post(f"/tasks/{task_id}/updates", json={"status": "In Progress"}, headers=bob.headers)
        assert r.status_code == 200, r.text

        # rollback after a failed fan-out expires the task; rendering reloads it
        monkeypatch.setattr(NotificationRepository, "insert_many", _store_down)
        r = client.post("/tasks", json=_task_body(bob), headers=alice.headers)
        assert r.status_code == 201, r.text
        assert r.headers["X-Notification-Fanout"] == "failed"
        assert r.json()["assigned_to"]["id"] == str(bob.id)

        r = client.post(f"/tasks/{task_id}/updates", json={"status": "Done"}, headers=bob.headers)
        assert r.status_code == 200, r.text
        assert [u["status"] for u in r.json()["updates"]] == ["In Progress", "Done"]
    finally:
        event.remove(engine, "before_cursor_execute", _record)

    assert on_loop == []
