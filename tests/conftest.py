"""
Pytest configuration and shared fixtures for tests
"""

from datetime import date

import pytest
from sqlmodel import Session, SQLModel, create_engine
from sqlalchemy.pool import StaticPool

import katha.config
from katha.db_models import EditorSession  # noqa: F401
from katha.editor import SessionEditor
from katha.errors import APIError
from katha.models import SessionOffering

TODAY = date(2025, 1, 15)


@pytest.fixture(autouse=True)
def editor_env(monkeypatch):
    """Provide a valid configuration and reset the config singleton"""
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123456:test-token")
    monkeypatch.setenv("API_TOKEN", "coach-token")
    monkeypatch.setenv("API_BASE_URL", "https://api.thekatha.test/api")
    monkeypatch.delenv("COACH_TELEGRAM_ID", raising=False)
    monkeypatch.setattr(katha.config, "_config", None)
    yield
    monkeypatch.setattr(katha.config, "_config", None)


@pytest.fixture(name="db_engine")
def db_engine_fixture():
    """Create in-memory SQLite database engine for testing"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Keep single connection for in-memory DB
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(name="db_session")
def db_session_fixture(db_engine):
    """Create database session for testing"""
    with Session(db_engine) as session:
        yield session
        session.rollback()  # Rollback any uncommitted changes after test


class FakeSessionsBackend:
    """In-memory stand-in for the marketplace sessions API"""

    def __init__(self, records=None):
        self.records = [dict(r) for r in records or []]
        self.calls = []
        self.failures = {}
        self._next_id = 100

    def fail(self, operation: str, error: APIError) -> None:
        self.failures[operation] = error

    def _check(self, operation: str) -> None:
        error = self.failures.get(operation)
        if error is not None:
            raise error

    def fetch_sessions(self):
        self.calls.append(("fetch",))
        self._check("fetch")
        return [SessionOffering.from_api(r) for r in self.records]

    def create_session(self, payload):
        self.calls.append(("create", payload))
        self._check("create")
        record = dict(payload, id=str(self._next_id))
        self._next_id += 1
        self.records.append(record)
        return {"message": "Session created successfully.", "session": record}

    def update_session(self, offering_id, payload):
        self.calls.append(("update", offering_id, payload))
        self._check("update")
        for index, record in enumerate(self.records):
            if record["id"] == offering_id:
                self.records[index] = dict(payload, id=offering_id)
        return {"message": "Session updated successfully."}

    def delete_session(self, offering_id):
        self.calls.append(("delete", offering_id))
        self._check("delete")
        self.records = [r for r in self.records if r["id"] != offering_id]


@pytest.fixture
def sample_records():
    return [
        {
            "id": "a1",
            "title": "Discovery Call",
            "description": "A first conversation",
            "duration": 30,
            "price": 50.0,
            "type": "individual",
            "defaultDate": None,
            "defaultTime": None,
            "meetingLink": None,
        },
        {
            "id": "b2",
            "title": "Group Workshop",
            "description": None,
            "duration": 90,
            "price": 200.0,
            "type": "workshop",
            "defaultDate": "2025-02-01",
            "defaultTime": "18:30",
            "meetingLink": "https://zoom.us/j/123",
        },
    ]


@pytest.fixture
def backend(sample_records):
    return FakeSessionsBackend(sample_records)


@pytest.fixture
def editor(backend):
    """Editor with the sample records already fetched"""
    session_editor = SessionEditor(backend, today=lambda: TODAY)
    session_editor.fetch_all()
    session_editor.drain_notices()
    backend.calls.clear()
    return session_editor
