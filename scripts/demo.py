from __future__ import annotations

import os
import time
from datetime import datetime, timedelta, timezone

import requests
from rich import print

BASE = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")

def _headers(jwt: str | None) -> dict[str, str]:
    headers = {}
    if jwt:
        headers["authorization"] = f"bearer {jwt}"
    return headers

def post(path: str, *, jwt: str | None = None, json: dict | None = None) -> requests.Response:
    return requests.post(f"{BASE}{path}", headers=_headers(jwt), json=json, timeout=10)

def patch(path: str, *, jwt: str | None = None, json: dict | None = None) -> requests.Response:
    return requests.patch(f"{BASE}{path}", headers=_headers(jwt), json=json, timeout=10)

def get(path: str, *, jwt: str | None = None, params: dict | None = None) -> requests.Response:
    return requests.get(f"{BASE}{path}", headers=_headers(jwt), params=params, timeout=10)

def login(email: str, name: str) -> tuple[str, str]:
    r = post("/auth/request-link", json={"email": email, "name": name})
    r.raise_for_status()
    token = r.json()["token"]

    r2 = post("/auth/redeem", json={"token": token})
    r2.raise_for_status()
    jwt = r2.json()["access_token"]

    me = get("/auth/me", jwt=jwt)
    me.raise_for_status()
    return jwt, me.json()["id"]

def wait_ready(timeout_s: float = 30.0) -> None:
    deadline = time.time() + timeout_s
    last_err: Exception | None = None

    while time.time() < deadline:
        try:
            r = get("/ready")
            if r.status_code == 200:
                return
        except requests.RequestException as e:
            last_err = e
        time.sleep(0.5)

    if last_err:
        raise RuntimeError(f"api not ready after {timeout_s}s (last error: {last_err})")
    raise RuntimeError(f"api not ready after {timeout_s}s")

def show_inbox(label: str, jwt: str) -> None:
    r = get("/notifications", jwt=jwt, params={"limit": 5})
    r.raise_for_status()
    count = get("/notifications/unread-count", jwt=jwt).json()["count"]
    print(f"[cyan]{label}[/cyan] unread={count}")
    for n in r.json()["notifications"]:
        print(f"  - [{n['type']}] {n['message']}")

def main() -> None:
    print("[bold]demo: auth -> assign task -> progress -> complete -> notifications -> delete[/bold]")

    wait_ready()
    print("[green]ready ok[/green]")

    manager_jwt, _ = login("manager@example.com", "Morgan Manager")
    engineer_jwt, engineer_id = login("engineer@example.com", "Erin Engineer")
    coordinator_jwt, coordinator_id = login("coordinator@example.com", "Casey Coordinator")
    print("users authed")

    due = (datetime.now(timezone.utc) + timedelta(days=3)).isoformat()
    r = post(
        "/tasks",
        jwt=manager_jwt,
        json={
            "title": f"demo survey {int(time.time())}",
            "due_date": due,
            "assigned_to": engineer_id,
            "watchers": [coordinator_id],
            "priority": "High",
        },
    )
    r.raise_for_status()
    task_id = r.json()["id"]
    print("created task:", task_id, "fanout:", r.headers.get("X-Notification-Fanout"))

    show_inbox("engineer", engineer_jwt)

    r = post(f"/tasks/{task_id}/updates", jwt=engineer_jwt, json={"status": "In Progress", "remarks": "on site"})
    r.raise_for_status()
    r = post(f"/tasks/{task_id}/updates", jwt=engineer_jwt, json={"status": "Done", "remarks": "report uploaded"})
    r.raise_for_status()
    print("timeline:", [u["status"] for u in r.json()["updates"]], "->", r.json()["status"])

    show_inbox("manager", manager_jwt)
    show_inbox("coordinator", coordinator_jwt)

    r = patch("/notifications/read-all", jwt=coordinator_jwt)
    r.raise_for_status()
    print("coordinator marked read:", r.json()["updated"])

    r = requests.delete(f"{BASE}/tasks/{task_id}", headers=_headers(manager_jwt), timeout=10)
    r.raise_for_status()
    print("deleted task:", task_id)
    show_inbox("engineer", engineer_jwt)

    print("[bold green]demo complete[/bold green]")

if __name__ == "__main__":
    main()
