"""Tests for the portal access guard."""
import asyncio

import pytest

from crm_portal.core.errors import PortalAuthRequired
from crm_portal.portal.guard import portal_guarded, require_portal_session, run_guarded
from crm_portal.portal.session import PortalSession, PortalSessionStore

from .conftest import SESSION_FIELDS, DictTransport


def _store(raw=None):
    return PortalSessionStore(DictTransport({"portal_session": raw} if raw else {}))


def test_operation_not_run_without_session():
    calls = []

    def operation(session):
        calls.append(session)

    with pytest.raises(PortalAuthRequired):
        asyncio.run(run_guarded(_store(), operation))
    assert calls == []


def test_operation_not_run_with_partial_session():
    calls = []
    with pytest.raises(PortalAuthRequired):
        asyncio.run(run_guarded(_store('{"contact_id":"c1"}'), calls.append))
    assert calls == []


def test_operation_receives_full_session(session_cookie):
    def operation(session, suffix, *, prefix):
        return f"{prefix}{session.contact_id}{suffix}"

    result = asyncio.run(run_guarded(_store(session_cookie), operation, "!", prefix=">"))
    assert result == ">c1!"


def test_async_operation_is_awaited(session_cookie):
    async def operation(session):
        return session

    result = asyncio.run(run_guarded(_store(session_cookie), operation))
    assert result == PortalSession(**SESSION_FIELDS)


def test_decorator_guards_wrapped_call(session_cookie):
    @portal_guarded(lambda store, item_id: store)
    def fetch(session, store, item_id):
        return (session.tenant_id, item_id)

    assert asyncio.run(fetch(_store(session_cookie), "doc-1")) == ("t1", "doc-1")
    with pytest.raises(PortalAuthRequired):
        asyncio.run(fetch(_store(), "doc-1"))


def test_require_portal_session_dependency(session_cookie):
    assert require_portal_session(_store(session_cookie)) == PortalSession(**SESSION_FIELDS)
    with pytest.raises(PortalAuthRequired):
        require_portal_session(_store())
