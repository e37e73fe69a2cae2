import pytest
import requests

from crm_portal.core.config import Config
from crm_portal.services import email_service


class FakeResponse:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text


@pytest.fixture
def posts(monkeypatch):
    calls = []
    state = {"response": FakeResponse(200)}

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        if isinstance(state["response"], Exception):
            raise state["response"]
        return state["response"]

    monkeypatch.setattr(email_service.requests, "post", fake_post)
    return calls, state


def _send():
    return email_service.send_portal_invitation(
        to="ada@example.com",
        contact_name="Ada",
        company_name="Acme",
        magic_link="https://crm.example.com/portal/auth/tok",
        expires_in_hours=1,
    )


def test_without_api_key_logs_and_succeeds(posts):
    calls, _ = posts
    assert _send() is True
    assert calls == []


def test_with_api_key_posts_to_resend(posts, monkeypatch):
    monkeypatch.setattr(Config, "RESEND_API_KEY", "re_test")
    calls, _ = posts
    assert _send() is True

    url, kwargs = calls[0]
    assert url == email_service.RESEND_API_URL
    assert kwargs["headers"]["Authorization"] == "Bearer re_test"
    assert kwargs["json"]["to"] == ["ada@example.com"]
    assert "https://crm.example.com/portal/auth/tok" in kwargs["json"]["text"]
    assert kwargs["timeout"] == 10


def test_non_2xx_returns_false(posts, monkeypatch):
    monkeypatch.setattr(Config, "RESEND_API_KEY", "re_test")
    _, state = posts
    state["response"] = FakeResponse(422, "invalid from")
    assert _send() is False


def test_request_error_returns_false(posts, monkeypatch):
    monkeypatch.setattr(Config, "RESEND_API_KEY", "re_test")
    _, state = posts
    state["response"] = requests.ConnectionError("offline")
    assert _send() is False


def test_missing_recipient_returns_false(posts):
    assert email_service.send_portal_invitation(
        to="", contact_name=None, company_name="Acme", magic_link="x"
    ) is False


def test_invitation_content_escapes_html():
    subject, html, text = email_service.build_portal_invitation(
        contact_name="<Ada>",
        company_name="A & B",
        magic_link="https://x/portal/auth/t",
        expires_in_hours=2,
    )
    assert subject == "Your A & B client portal access"
    assert "&lt;Ada&gt;" in html
    assert "A &amp; B" in html
    assert "expires in 2 hours" in text
