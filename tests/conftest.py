"""
Pytest configuration and shared fixtures for all tests.
"""
import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from crm_portal.app import app
from crm_portal.core.config import Config
from crm_portal.core.rate_limit import invite_limiter
from crm_portal.services.supabase_service import get_session_authority


SESSION_FIELDS = {
    "contact_id": "c1",
    "contact_email": "a@b.com",
    "contact_name": "A",
    "tenant_id": "t1",
    "authenticated_at": "2024-01-01T00:00:00Z",
}


class FakeAuthority:
    """Stands in for the ``verify_portal_session`` database function."""

    def __init__(self, rows: Optional[Dict[str, List[Dict[str, Any]]]] = None, error: Optional[Exception] = None):
        self.rows = rows or {}
        self.error = error
        self.calls: List[str] = []

    def verify_session_token(self, token: str) -> List[Dict[str, Any]]:
        self.calls.append(token)
        if self.error:
            raise self.error
        return self.rows.get(token, [])


def valid_row(**overrides) -> Dict[str, Any]:
    row = {
        "is_valid": True,
        "contact_id": "c1",
        "contact_name": "A",
        "contact_email": "a@b.com",
        "tenant_id": "t1",
    }
    row.update(overrides)
    return row


class DictTransport:
    """In-memory session transport used in place of request/response cookies."""

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self.values = dict(values or {})
        self.set_calls: List[Dict[str, Any]] = []
        self.delete_calls = 0

    def get(self, name: str) -> Optional[str]:
        return self.values.get(name)

    def set(self, name: str, value: str, **options: Any) -> None:
        self.values[name] = value
        self.set_calls.append(options)

    def delete(self, name: str, **options: Any) -> None:
        self.delete_calls += 1
        self.values.pop(name, None)


@pytest.fixture(autouse=True)
def development_environment(monkeypatch):
    """Plain-http TestClient only sends cookies that are not marked Secure."""
    monkeypatch.setattr(Config, "ENVIRONMENT", "development")
    monkeypatch.setattr(Config, "RESEND_API_KEY", "")
    invite_limiter.reset()
    yield
    invite_limiter.reset()


@pytest.fixture
def session_cookie() -> str:
    return json.dumps(SESSION_FIELDS, separators=(",", ":"))


@pytest.fixture
def authority():
    return FakeAuthority(rows={
        "good-token": [valid_row()],
        "used-token": [valid_row(is_valid=False)],
    })


@pytest.fixture
def client(authority):
    app.dependency_overrides[get_session_authority] = lambda: authority
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def staff_user():
    return SimpleNamespace(id="staff-1", email="staff@example.com")
