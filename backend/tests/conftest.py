"""
Pytest fixtures for the purchase portal backend tests.

Provides an app on in-memory SQLite with a recording mailer and a fixed
clock, a test client, and helpers that mint identity tokens.
"""

from datetime import datetime, timedelta

import pytest
from jose import jwt
from sqlalchemy.exc import OperationalError

from purchase_portal import create_app
from purchase_portal.extensions import db
from purchase_portal.models import StaffAccount
from purchase_portal.services.email_service import Mailer

JWT_SECRET = "test-identity-secret"


class RecordingMailer(Mailer):
    """Keeps every send in memory instead of delivering it."""

    def __init__(self):
        self.sent = []

    def send(self, to, template, data):
        self.sent.append({"to": to, "template": template, "data": data})

    def templates(self):
        return [m["template"] for m in self.sent]

    def to(self, template):
        return [m["to"] for m in self.sent if m["template"] == template]


class FailingMailer(Mailer):
    """Transport that is always down."""

    def __init__(self):
        self.attempts = 0

    def send(self, to, template, data):
        self.attempts += 1
        raise RuntimeError("smtp unreachable")


class FlakyCommit:
    """Stands in for db.session.commit; the first `failures` calls raise OperationalError."""

    def __init__(self, commit, failures: int):
        self.commit = commit
        self.failures = failures
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise OperationalError("COMMIT", {}, Exception("database is locked"))
        return self.commit()


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 2, 9, 30, 0))


def build_app(mailer, clock, **overrides):
    config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'MAILER': mailer,
        'CLOCK': clock,
        'ADMIN_EMAIL': 'admin@example.com',
        'REBATE_EMAIL': 'rebates@example.com',
        'BASE_URL': 'https://portal.example.com',
        'IDENTITY_JWT_SECRET': JWT_SECRET,
        'IDENTITY_JWT_ALGORITHMS': ['HS256'],
        'IDENTITY_JWT_AUDIENCE': None,
        'IDENTITY_JWT_ISSUER': None,
        'REMINDER_TIMEZONE': 'UTC',
        'REMINDER_SCHEDULER_ENABLED': False,
    }
    config.update(overrides)
    return create_app(config)


@pytest.fixture
def app(mailer, clock):
    """Create application for testing with a fresh database."""
    app = build_app(mailer, clock)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def lifecycle(app):
    return app.extensions["lifecycle"]


@pytest.fixture
def store(app):
    return app.extensions["request_store"]


def make_token(uid: str, email: str = "", name: str = "", secret: str = JWT_SECRET, **claims) -> str:
    payload = {"sub": uid, "email": email, "name": name, **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def add_account(uid: str, role: str, email: str = "", name: str = "") -> StaffAccount:
    account = StaffAccount(uid=uid, email=email or f"{uid}@example.com", name=name or uid.title(), role=role)
    db.session.add(account)
    db.session.commit()
    return account


@pytest.fixture
def admin_headers(app):
    add_account("admin-1", "admin", email="boss@example.com", name="Boss Admin")
    return auth_headers(make_token("admin-1", "boss@example.com", "Boss Admin"))


@pytest.fixture
def staff_headers(app):
    add_account("staff-1", "staff", email="staffer@example.com", name="Staffer")
    return auth_headers(make_token("staff-1", "staffer@example.com", "Staffer"))


@pytest.fixture
def rep_headers(app):
    add_account("rep-1", "representative", email="rep@example.com", name="Rep")
    return auth_headers(make_token("rep-1", "rep@example.com", "Rep"))


def sample_payload(**overrides) -> dict:
    payload = {
        "storeName": "North Branch",
        "employeeName": "Jane Doe",
        "orderDate": "2026-02-27",
        "invoiceDate": "2026-02-28",
        "productModel": "FALCON - FH25",
        "discount": "10%",
        "serialNumber": "SN-0042",
        "email": "sight@example.com",
        "publicEmail": "jane@example.com",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def break_commits(app, monkeypatch):
    """Returns an installer: break_commits(n) makes the next n commits fail."""
    monkeypatch.setattr("purchase_portal.services.concurrency.time.sleep", lambda _seconds: None)

    def install(failures: int) -> FlakyCommit:
        flaky = FlakyCommit(db.session.commit, failures)
        monkeypatch.setattr(db.session, "commit", flaky)
        return flaky

    return install
