import json
import uuid
import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from jobboard.config import settings
from jobboard.database import get_db, init_db
from jobboard.dependencies import get_http_client
from jobboard.main import app
from jobboard.models import Job, User
from jobboard.utils.timestamps import format_timestamp, utc_now

REMINDER_URL = "https://hooks.example.test/job-reminder"
SERVICE_DUE_URL = "https://hooks.example.test/service-due"
PROJECT_URL = "https://hooks.example.test/project"
CUSTOMER_URL = "https://hooks.example.test/customer"
ANALYTICS_URL = "https://analytics.example.test/api/invoice/invoices/analytics/"


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _base_url(url: httpx.URL) -> str:
    return f"{url.scheme}://{url.host}{url.path}"


class FakeUpstream:
    """Answers every outbound request made through the injected httpx client."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._routes = {}

    def route(self, url, status_code=200, json_body=None, text="ok", handler=None):
        def reply(request):
            if json_body is not None:
                return httpx.Response(status_code, json=json_body)
            return httpx.Response(status_code, text=text)

        self._routes[url] = handler or reply

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self._routes.get(_base_url(request.url))
        if handler is None:
            return httpx.Response(200, text="ok")
        return handler(request)

    def sent_to(self, url) -> list[httpx.Request]:
        return [r for r in self.requests if _base_url(r.url) == url]

    def json_sent_to(self, url) -> list[dict]:
        return [json.loads(r.content) for r in self.sent_to(url)]


@pytest.fixture(autouse=True)
def webhook_settings(monkeypatch):
    monkeypatch.setattr(settings, "reminder_webhook_url", REMINDER_URL)
    monkeypatch.setattr(settings, "service_due_webhook_url", SERVICE_DUE_URL)
    monkeypatch.setattr(settings, "project_webhook_url", PROJECT_URL)
    monkeypatch.setattr(settings, "customer_webhook_url", CUSTOMER_URL)
    monkeypatch.setattr(settings, "invoice_analytics_url", ANALYTICS_URL)
    monkeypatch.setattr(settings, "reminder_window_minutes", 60)
    monkeypatch.setattr(settings, "reminder_claim_ttl_seconds", 600)
    monkeypatch.setattr(settings, "service_key", None)


@pytest.fixture
def test_db(tmp_path):
    db_path = tmp_path / "jobboard.sqlite"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    init_db(db_path)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestSession
    app.dependency_overrides.pop(get_db, None)
    engine.dispose()


@pytest.fixture
def db(test_db):
    session = test_db()
    yield session
    session.close()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def http_client(upstream):
    with httpx.Client(transport=httpx.MockTransport(upstream)) as c:
        yield c


@pytest.fixture
def client(test_db, http_client):
    def override_http_client():
        yield http_client

    app.dependency_overrides[get_http_client] = override_http_client
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(name, role="worker", active=True, email=None):
        user = User(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            role=role,
            active=active,
            created_at=format_timestamp(utc_now()),
        )
        db.add(user)
        db.commit()
        return user.id

    return _make


@pytest.fixture
def make_job(db):
    """Insert a job directly. ``scheduled_in`` is a timedelta from now."""

    def _make(title="Gutter cleaning", scheduled_in=None, scheduled_date=None, **fields):
        now = format_timestamp(utc_now())
        if scheduled_in is not None:
            scheduled_date = format_timestamp(utc_now() + scheduled_in)
        job = Job(
            id=str(uuid.uuid4()),
            title=title,
            scheduled_date=scheduled_date,
            customer_name=fields.pop("customer_name", "Dana Reyes"),
            customer_email=fields.pop("customer_email", "dana@example.com"),
            customer_phone=fields.pop("customer_phone", "555-0100"),
            customer_address=fields.pop("customer_address", "12 Elm St"),
            created_at=now,
            updated_at=now,
            **fields,
        )
        db.add(job)
        db.commit()
        return job.id

    return _make
