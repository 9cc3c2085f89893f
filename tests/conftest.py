"""Pytest fixtures."""

import json
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from alertline.core.relay import BROADCAST, get_publisher
from alertline.db.base import Base
from alertline.db.session import get_db
from alertline.main import app
from alertline.models import Alert, AlertHistory  # noqa: F401 - register for create_all

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class RecordingPublisher:
    """Collects published events instead of relaying them."""

    def __init__(self):
        self.events = []

    def publish(self, event, payload, channel=BROADCAST):
        self.events.append((event, payload, channel))

    def names(self):
        return [e[0] for e in self.events]


@pytest.fixture(scope="session")
def setup_db():
    """Create tables once for test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(setup_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def client(setup_db, publisher):
    """Test client with overridden DB and a recording publisher."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_publisher] = lambda: publisher
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_alert(client):
    """POST a new alert and return its JSON body."""

    def _make(alert_type="medical", user_id="user-1", latitude=14.5995, longitude=120.9842, **extra):
        body = {
            "type": alert_type,
            "user_id": user_id,
            "location": {"latitude": latitude, "longitude": longitude, "accuracy": 8.0, "address": "Rizal Park"},
            **extra,
        }
        r = client.post("/api/alerts", json=body)
        assert r.status_code == 201, r.text
        return r.json()["alert"]

    return _make


class FakeAlertServer:
    """In-memory stand-in for the alerts API behind ``httpx.MockTransport``."""

    def __init__(self):
        self.alerts = {}
        self.requests = []
        self.offline = False
        self.location_status = 200
        self.status_status = 200
        self._next_id = 0

    def transport(self):
        return httpx.MockTransport(self.handler)

    def handler(self, request):
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        if self.offline:
            raise httpx.ConnectError("network is unreachable", request=request)

        parts = request.url.path.removeprefix("/api/alerts").strip("/").split("/")
        alert_id = parts[0] if parts[0] else None

        if request.method == "POST" and alert_id is None:
            self._next_id += 1
            alert = {"id": f"srv-{self._next_id}", "status": "pending", "responder_name": None, **body}
            self.alerts[alert["id"]] = alert
            return httpx.Response(201, json={"message": "Alert created successfully", "alert": alert})

        alert = self.alerts.get(alert_id)
        if alert is None:
            return httpx.Response(404, json={"detail": "Alert not found"})
        if request.method == "GET":
            return httpx.Response(200, json={"alert": alert})
        if parts[-1] == "location":
            if self.location_status != 200:
                return httpx.Response(self.location_status, json={"detail": "rejected"})
            alert["location"] = body
            return httpx.Response(200, json={"message": "Location updated", "alert": alert})
        if parts[-1] == "status":
            if self.status_status != 200:
                return httpx.Response(self.status_status, json={"detail": "server error"})
            alert["status"] = body["status"]
            return httpx.Response(200, json={"message": "Alert updated successfully", "alert": alert})
        return httpx.Response(405)

    def location_pushes(self):
        return [body for method, path, body in self.requests if path.endswith("/location")]


@pytest.fixture
def alert_server():
    return FakeAlertServer()
