import os
import tempfile

_tmpdir = tempfile.mkdtemp(prefix="budget-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BREVO_API_KEY"] = "test-brevo-key"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import mailer  # noqa: E402
import notifier  # noqa: E402
from database import Base, engine  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def inline_notifier(monkeypatch):
    """Run budget checks synchronously instead of on the scheduler."""
    monkeypatch.setattr(notifier, "enqueue_budget_check", notifier.run_budget_check)


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    sent = []

    def fake_send(recipients, subject, html):
        sent.append({"recipients": list(recipients), "subject": subject, "html": html})

    monkeypatch.setattr(mailer, "send_email", fake_send)
    return sent


@pytest.fixture
def client():
    return TestClient(app)


def register(client, email, name="Test User", password="secret123"):
    resp = client.post(
        "/user/register", json={"email": email, "name": name, "password": password}
    )
    assert resp.status_code == 200, resp.text
    token = resp.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


def create_project(client, headers, name="Trip", budget=100):
    resp = client.post("/project", json={"name": name, "budget": budget}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def add_expense(client, headers, project_id, amount, **extra):
    resp = client.post(
        f"/expense/project/{project_id}", json={"amount": amount, **extra}, headers=headers
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


@pytest.fixture
def alice(client):
    return register(client, "alice@example.com", name="Alice")


@pytest.fixture
def bob(client):
    return register(client, "bob@example.com", name="Bob")
