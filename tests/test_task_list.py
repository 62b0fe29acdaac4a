from datetime import datetime, timedelta, timezone

import pytest

def _create(client, actor, assignee, title: str, priority: str = "Medium", days: int = 7) -> dict:
    r = client.post(
        "/tasks",
        json={
            "title": title,
            "due_date": (datetime.now(timezone.utc) + timedelta(days=days)).isoformat(),
            "assigned_to": str(assignee.id),
            "priority": priority,
        },
        headers=actor.headers,
    )
    assert r.status_code == 201, r.text
    return r.json()

@pytest.fixture()
def board(client, alice, bob, carol) -> dict[str, dict]:
    tasks = {
        "quote": _create(client, alice, bob, "Draft quote", "High", days=3),
        "visit": _create(client, alice, carol, "Site visit", "Low", days=1),
        "invoice": _create(client, carol, bob, "Send invoice 100%", "Urgent", days=10),
    }
    r = client.post(f"/tasks/{tasks['visit']['id']}/updates", json={"status": "Done"}, headers=carol.headers)
    assert r.status_code == 200, r.text
    return tasks

def _titles(r) -> list[str]:
    assert r.status_code == 200, r.text
    return [t["title"] for t in r.json()["tasks"]]

def test_default_list_is_newest_first(client, alice, board):
    r = client.get("/tasks", headers=alice.headers)
    assert _titles(r) == ["Send invoice 100%", "Site visit", "Draft quote"]
    assert r.json()["total_count"] == 3
    assert "updates" not in r.json()["tasks"][0]

def test_filters(client, alice, bob, carol, board):
    r = client.get("/tasks", params={"status": "Done"}, headers=alice.headers)
    assert _titles(r) == ["Site visit"]

    r = client.get("/tasks", params=[("priority", "High"), ("priority", "Urgent")], headers=alice.headers)
    assert sorted(_titles(r)) == ["Draft quote", "Send invoice 100%"]

    r = client.get("/tasks", params={"assigned_to": str(bob.id)}, headers=alice.headers)
    assert sorted(_titles(r)) == ["Draft quote", "Send invoice 100%"]

    r = client.get("/tasks", params={"assigned_by": str(carol.id)}, headers=alice.headers)
    assert _titles(r) == ["Send invoice 100%"]

def test_search_is_case_insensitive_and_literal(client, alice, board):
    r = client.get("/tasks", params={"search": "QUOTE"}, headers=alice.headers)
    assert _titles(r) == ["Draft quote"]

def test_priority_and_status_sort_by_declared_order(client, alice, board):
    r = client.get("/tasks", params={"sort": "priority"}, headers=alice.headers)
    assert _titles(r) == ["Site visit", "Draft quote", "Send invoice 100%"]

    r = client.get("/tasks", params={"sort": "-priority"}, headers=alice.headers)
    assert _titles(r) == ["Send invoice 100%", "Draft quote", "Site visit"]

    # Todo before Done, not alphabetical
    r = client.get("/tasks", params={"sort": "status,due_date"}, headers=alice.headers)
    assert _titles(r) == ["Draft quote", "Send invoice 100%", "Site visit"]

    # % is matched literally, not as a wildcard
    r = client.get("/tasks", params={"search": "100%"}, headers=alice.headers)
    assert _titles(r) == ["Send invoice 100%"]

    r = client.get("/tasks", params={"search": "%"}, headers=alice.headers)
    assert _titles(r) == ["Send invoice 100%"]

def test_sort_and_paginate(client, alice, board):
    r = client.get("/tasks", params={"sort": "due_date"}, headers=alice.headers)
    assert _titles(r) == ["Site visit", "Draft quote", "Send invoice 100%"]

    r = client.get("/tasks", params={"sort": "-title", "limit": 2, "page": 1}, headers=alice.headers)
    assert _titles(r) == ["Site visit", "Send invoice 100%"]
    assert r.json()["results"] == 2
    assert r.json()["total_count"] == 3

    r = client.get("/tasks", params={"sort": "-title", "limit": 2, "page": 2}, headers=alice.headers)
    assert _titles(r) == ["Draft quote"]

def test_list_rejects_bad_parameters(client, alice, board):
    r = client.get("/tasks", params={"sort": "password"}, headers=alice.headers)
    assert r.status_code == 422
    assert "password" in r.json()["detail"]

    r = client.get("/tasks", params={"limit": 1000}, headers=alice.headers)
    assert r.status_code == 422

    r = client.get("/tasks", params={"status": "Blocked"}, headers=alice.headers)
    assert r.status_code == 422
