import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Protocol

from ..core.errors import InvalidTokenError, MissingTokenError
from ..core.validation import token_too_long


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    contact_id: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    tenant_id: Optional[str] = None
    token: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "VerificationResult":
        return cls(
            valid=bool(row.get("is_valid")),
            contact_id=row.get("contact_id"),
            contact_name=row.get("contact_name"),
            contact_email=row.get("contact_email"),
            tenant_id=row.get("tenant_id"),
        )

    def to_response(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "contact_id": self.contact_id,
            "contact_name": self.contact_name,
            "contact_email": self.contact_email,
        }


class SessionAuthority(Protocol):
    """Authoritative source for portal token validity.

    Returns zero or more rows shaped like
    ``{"is_valid", "contact_id", "contact_name", "contact_email", "tenant_id"}``.
    """

    def verify_session_token(self, token: str) -> List[Dict[str, Any]]: ...


def verify_portal_token(token: Optional[str], authority: SessionAuthority) -> VerificationResult:
    """Ask the authority whether ``token`` is a live portal session token.

    Raises ``MissingTokenError`` before contacting the authority when the token
    is missing or empty. An oversized token, an authority failure, an unknown
    token and a token marked invalid all raise the same ``InvalidTokenError``;
    only the log line tells them apart.
    """
    if not token:
        raise MissingTokenError()
    if token_too_long(token):
        logger.info(f"Portal token rejected: {len(token)} characters")
        raise InvalidTokenError()

    try:
        rows = authority.verify_session_token(token)
    except Exception as e:
        logger.warning(f"Portal token verification call failed: {e}")
        raise InvalidTokenError()

    if not rows:
        logger.info("Portal token not found")
        raise InvalidTokenError()

    result = VerificationResult.from_row(rows[0])
    if not result.valid or not result.contact_id:
        logger.info(f"Portal token for contact {result.contact_id} is expired or used")
        raise InvalidTokenError()

    return replace(result, token=token)
