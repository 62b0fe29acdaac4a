import os

# must be set before app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EMAIL_BACKEND", "console")

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.db import Base, get_db
from app.errors import UpstreamServiceError
from app.main import create_app
from app.models.lead import Lead
from app.models.user import User
from app.services.deps import get_blob_store, get_mailer

class FakeBlobStore:
    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}

    def upload(self, data: bytes, filename: str, mime_type: str) -> str:
        key = f"{len(self.blobs)}-{filename}"
        self.blobs[key] = data
        return f"http://testserver/files/{key}"

class FakeMailer:
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail = False

    def send_task_assignment(self, to: str, assignee_name: str, task_title: str, task_id: str) -> None:
        if self.fail:
            raise UpstreamServiceError(f"email to {to} failed: SMTPServerDisconnected")
        self.sent.append({"to": to, "assignee_name": assignee_name, "task_title": task_title, "task_id": task_id})

@pytest.fixture()
def db_session() -> Session:
    database_url = os.environ["DATABASE_URL"]

    if database_url.startswith("sqlite"):
        # one shared connection so every session sees the same in-memory db
        engine = create_engine(database_url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        engine = create_engine(database_url, pool_pre_ping=True)
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    session: Session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()

@pytest.fixture()
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()

@pytest.fixture()
def mailer() -> FakeMailer:
    return FakeMailer()

@pytest.fixture()
def client(db_session: Session, blob_store: FakeBlobStore, mailer: FakeMailer) -> TestClient:
    app = create_app()

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_mailer] = lambda: mailer
    return TestClient(app)

def _login(client, email: str, name: str | None = None) -> str:
    body = {"email": email}
    if name:
        body["name"] = name
    r = client.post("/auth/request-link", json=body)
    assert r.status_code == 200, r.text
    token = r.json()["token"]

    r = client.post("/auth/redeem", json={"token": token})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]

def _auth(jwt: str) -> dict[str, str]:
    return {"authorization": f"bearer {jwt}"}

class Person:
    def __init__(self, client, db_session: Session, name: str):
        self.email = f"{name.lower()}+{uuid.uuid4().hex[:8]}@example.com"
        self.jwt = _login(client, self.email, name)
        self.headers = _auth(self.jwt)
        user = db_session.query(User).filter_by(email=self.email).one()
        self.id = user.id
        self.name = name

@pytest.fixture()
def alice(client, db_session) -> Person:
    return Person(client, db_session, "Alice")

@pytest.fixture()
def bob(client, db_session) -> Person:
    return Person(client, db_session, "Bob")

@pytest.fixture()
def carol(client, db_session) -> Person:
    return Person(client, db_session, "Carol")

@pytest.fixture()
def lead(db_session) -> Lead:
    row = Lead(job_code=f"JOB-{uuid.uuid4().hex[:6]}", project_name="Harbour refit")
    db_session.add(row)
    db_session.commit()
    return row

