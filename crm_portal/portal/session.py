"""Portal session storage.

A portal session is a JSON object kept in the ``portal_session`` cookie. It is
written once by the magic link login and afterwards only read or deleted.
Reads never raise: anything that does not decode to a session with a contact
id, contact email and tenant id is treated as no session at all.
"""
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from fastapi import Request, Response

from ..core.config import Config
from ..core.errors import PortalAuthRequired


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("contact_id", "contact_email", "tenant_id")


@dataclass(frozen=True)
class PortalSession:
    contact_id: str
    contact_email: str
    contact_name: str
    tenant_id: str
    authenticated_at: str

    @classmethod
    def start(cls, contact_id: str, contact_email: str, contact_name: str, tenant_id: str) -> "PortalSession":
        return cls(
            contact_id=contact_id,
            contact_email=contact_email,
            contact_name=contact_name or "",
            tenant_id=tenant_id,
            authenticated_at=datetime.now(timezone.utc).isoformat(),
        )

    def to_cookie_value(self) -> str:
        return json.dumps(asdict(self), separators=(",", ":"))


def parse_session_value(raw: Optional[str]) -> Optional[PortalSession]:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.debug(f"Discarding malformed portal session cookie: {e}")
        return None

    if not isinstance(data, dict):
        return None

    for field in REQUIRED_FIELDS:
        value = data.get(field)
        if not isinstance(value, str) or not value:
            return None

    contact_name = data.get("contact_name")
    authenticated_at = data.get("authenticated_at")
    return PortalSession(
        contact_id=data["contact_id"],
        contact_email=data["contact_email"],
        contact_name=contact_name if isinstance(contact_name, str) else "",
        tenant_id=data["tenant_id"],
        authenticated_at=authenticated_at if isinstance(authenticated_at, str) else "",
    )


class SessionTransport(Protocol):
    """Where the session credential travels for a single request."""

    def get(self, name: str) -> Optional[str]: ...

    def set(self, name: str, value: str, **options: Any) -> None: ...

    def delete(self, name: str, **options: Any) -> None: ...


class CookieTransport:
    """Reads cookies from the incoming request and writes them on the response."""

    def __init__(self, request: Request, response: Optional[Response] = None):
        self.request = request
        self.response = response

    def get(self, name: str) -> Optional[str]:
        return self.request.cookies.get(name)

    def set(self, name: str, value: str, **options: Any) -> None:
        self._require_response().set_cookie(name, value, **options)

    def delete(self, name: str, **options: Any) -> None:
        self._require_response().delete_cookie(name, **options)

    def _require_response(self) -> Response:
        if self.response is None:
            raise RuntimeError("CookieTransport needs a response to write cookies")
        return self.response


class PortalSessionStore:
    def __init__(self, transport: SessionTransport, name: str = Config.PORTAL_COOKIE_NAME):
        self.transport = transport
        self.name = name

    def read(self) -> Optional[PortalSession]:
        return parse_session_value(self.transport.get(self.name))

    def write(self, session: PortalSession) -> None:
        self.transport.set(
            self.name,
            session.to_cookie_value(),
            max_age=Config.PORTAL_COOKIE_MAX_AGE,
            path=Config.PORTAL_COOKIE_PATH,
            httponly=True,
            secure=Config.secure_cookies(),
            samesite="lax",
        )

    def clear(self) -> None:
        self.transport.delete(self.name, path=Config.PORTAL_COOKIE_PATH)

    def is_authenticated(self) -> bool:
        return self.read() is not None

    def require_session(self) -> PortalSession:
        session = self.read()
        if session is None:
            raise PortalAuthRequired()
        return session
