import json
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from app.models.task import Task

def _form(assignee, **extra) -> dict:
    return {
        "title": "Survey photos",
        "due_date": (datetime.now(timezone.utc) + timedelta(days=5)).isoformat(),
        "assigned_to": str(assignee.id),
        **extra,
    }

def test_multipart_create_stores_files(client, blob_store, alice, bob, carol):
    r = client.post(
        "/tasks",
        data=_form(bob, watchers=json.dumps([str(carol.id)]), priority="High", description=""),
        files=[
            ("attachments", ("plan.pdf", b"%PDF-1.4 plan", "application/pdf")),
            ("attachments", ("site.jpg", b"\xff\xd8\xff", "image/jpeg")),
            ("voice_note", ("brief.webm", b"voice", "audio/webm")),
        ],
        headers=alice.headers,
    )
    assert r.status_code == 201, r.text

    task = r.json()
    assert task["priority"] == "High"
    assert task["description"] is None
    assert [w["id"] for w in task["watchers"]] == [str(carol.id)]

    assert [a["original_name"] for a in task["attachments"]] == ["plan.pdf", "site.jpg"]
    assert task["attachments"][0]["mime_type"] == "application/pdf"
    assert task["attachments"][0]["size"] == len(b"%PDF-1.4 plan")
    assert task["attachments"][0]["url"].startswith("http://testserver/files/")
    assert task["voice_note"]["original_name"] == "brief.webm"
    assert task["video_note"] is None

    assert len(blob_store.blobs) == 3

def test_multipart_accepts_repeated_watcher_fields(client, alice, bob, carol):
    r = client.post(
        "/tasks",
        data=_form(bob, watchers=[str(carol.id), str(alice.id)]),
        files=[("attachments", ("plan.pdf", b"%PDF", "application/pdf"))],
        headers=alice.headers,
    )
    assert r.status_code == 201, r.text
    assert len(r.json()["watchers"]) == 2

def test_unsupported_mime_type_is_rejected_before_write(client, db_session, blob_store, alice, bob):
    r = client.post(
        "/tasks",
        data=_form(bob),
        files=[("attachments", ("notes.txt", b"hello", "text/plain"))],
        headers=alice.headers,
    )
    assert r.status_code == 422, r.text
    assert "unsupported file type" in r.json()["detail"]

    assert blob_store.blobs == {}
    assert db_session.scalar(select(func.count()).select_from(Task)) == 0

def test_too_many_files(client, alice, bob):
    r = client.post(
        "/tasks",
        data=_form(bob),
        files=[("voice_note", (f"v{i}.webm", b"v", "audio/webm")) for i in range(2)],
        headers=alice.headers,
    )
    assert r.status_code == 422
    assert "voice_note" in r.json()["detail"]

    r = client.post(
        "/tasks",
        data=_form(bob),
        files=[("attachments", (f"a{i}.pdf", b"%PDF", "application/pdf")) for i in range(11)],
        headers=alice.headers,
    )
    assert r.status_code == 422

def test_bad_watchers_json(client, alice, bob):
    r = client.post(
        "/tasks",
        data=_form(bob, watchers="[not json"),
        files=[("attachments", ("plan.pdf", b"%PDF", "application/pdf"))],
        headers=alice.headers,
    )
    assert r.status_code == 422
    assert "watchers" in r.json()["detail"]

def test_multipart_status_update_with_media(client, alice, bob):
    task_id = client.post(
        "/tasks",
        json={
            "title": "Survey photos",
            "due_date": (datetime.now(timezone.utc) + timedelta(days=5)).isoformat(),
            "assigned_to": str(bob.id),
        },
        headers=alice.headers,
    ).json()["id"]

    r = client.post(
        f"/tasks/{task_id}/updates",
        data={"status": "In Progress", "remarks": "on site"},
        files=[
            ("attachments", ("north.png", b"\x89PNG", "image/png")),
            ("video_note", ("walkthrough.mp4", b"mp4", "video/mp4")),
        ],
        headers=bob.headers,
    )
    assert r.status_code == 200, r.text

    entry = r.json()["updates"][0]
    assert entry["status"] == "In Progress"
    assert entry["remarks"] == "on site"
    assert [a["original_name"] for a in entry["attachments"]] == ["north.png"]
    assert entry["voice_notes"] == []
    assert entry["video_notes"][0]["mime_type"] == "video/mp4"
    assert r.json()["status"] == "In Progress"

def test_multipart_status_update_requires_status(client, alice, bob):
    task_id = client.post(
        "/tasks",
        json={
            "title": "Survey photos",
            "due_date": (datetime.now(timezone.utc) + timedelta(days=5)).isoformat(),
            "assigned_to": str(bob.id),
        },
        headers=alice.headers,
    ).json()["id"]

    r = client.post(
        f"/tasks/{task_id}/updates",
        data={"remarks": "no status"},
        files=[("attachments", ("north.png", b"\x89PNG", "image/png"))],
        headers=bob.headers,
    )
    assert r.status_code == 422

def test_multipart_status_update_on_unknown_task_uploads_nothing(client, blob_store, bob):
    r = client.post(
        f"/tasks/{uuid.uuid4()}/updates",
        data={"status": "Done", "remarks": "wrong task"},
        files=[("attachments", ("report.pdf", b"%PDF-1.4 report", "application/pdf"))],
        headers=bob.headers,
    )
    assert r.status_code == 404
    assert r.json()["detail"] == "task not found"
    assert blob_store.blobs == {}
