"""
Pytest configuration: every test gets its own app over an in-memory SQLite store.
"""

from types import SimpleNamespace

from fastapi.testclient import TestClient
from starlette.requests import Request

import pytest

from inquiry_service.app import create_app
from inquiry_service.shared.admin.auth import encode_token
from inquiry_service.shared.settings import Settings

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correcthorse42"


class RecordingTransport:
    """Email transport that keeps messages in memory instead of sending them."""

    configured = True

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to, subject, html_body, text_body):
        if self.fail:
            raise ConnectionError("SMTP relay unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html_body, "text": text_body})


class FakeClock:
    """Manually advanced time source for limiter and tracker tests."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": "sqlite:///:memory:",
        "ADMIN_USERNAME": ADMIN_USERNAME,
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
        "ADMIN_RESPONSE_DELAY_MS": 0,
        "DB_KEEP_ALIVE_MS": 0,
        "ENVIRONMENT": "test",
        "TRUST_PROXY_HEADERS": False,
        "SQL_INJECTION_FILTER": True,
        "MAX_REQUEST_BYTES": 1024 * 1024,
    }
    values.update(overrides)
    return Settings(**values)


def make_request(body: bytes = b"", headers: dict = None, client=("203.0.113.7", 50000),
                 settings: Settings = None, path_params: dict = None, query_string: bytes = b"",
                 method: str = "POST") -> Request:
    """A bare Starlette request for exercising admission stages directly."""
    app = SimpleNamespace(state=SimpleNamespace(settings=settings or make_settings()))
    headers = dict(headers or {})
    if body and "content-type" not in {k.lower() for k in headers}:
        headers["content-type"] = "application/json"
    scope = {
        "type": "http",
        "method": method,
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "query_string": query_string,
        "client": client,
        "app": app,
        "path_params": path_params or {},
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def contact_payload(**overrides) -> dict:
    payload = {
        "fullName": "Priya Sharma",
        "email": "Priya.Sharma@Example.com",
        "phone": "+91 98765 43210",
        "eventType": "Wedding",
        "eventDate": "2027-02-14",
        "guestCount": "250",
        "message": "We are planning a reception for about 250 guests.",
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not None}


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def app(settings, transport):
    return create_app(settings, transport=transport)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict:
    return {"Authorization": f"Basic {encode_token(ADMIN_USERNAME, ADMIN_PASSWORD)}"}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
