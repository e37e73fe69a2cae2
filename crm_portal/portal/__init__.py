"""Client portal sessions: cookie codec, token verification and access guard."""

from .guard import get_session_store, portal_guarded, require_portal_session, run_guarded
from .session import CookieTransport, PortalSession, PortalSessionStore, SessionTransport, parse_session_value
from .verifier import SessionAuthority, VerificationResult, verify_portal_token

__all__ = [
    "CookieTransport",
    "PortalSession",
    "PortalSessionStore",
    "SessionAuthority",
    "SessionTransport",
    "VerificationResult",
    "get_session_store",
    "parse_session_value",
    "portal_guarded",
    "require_portal_session",
    "run_guarded",
    "verify_portal_token",
]
