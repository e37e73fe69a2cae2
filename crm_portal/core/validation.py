import re
from typing import Any, Optional, Tuple

from .errors import BadRequest


IDENTIFIER_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')
MAX_TOKEN_LENGTH = 512


def validate_identifier(value: Optional[str], field: str) -> str:
    if not value or not IDENTIFIER_PATTERN.match(value):
        raise BadRequest(f"Invalid {field} format")
    return value


def token_too_long(token: str) -> bool:
    return len(token) > MAX_TOKEN_LENGTH


def validate_toggle_payload(payload: Any) -> Tuple[str, bool]:
    if not isinstance(payload, dict):
        raise BadRequest("Missing required fields: contactId, enabled")
    contact_id = payload.get("contactId")
    enabled = payload.get("enabled")
    if not contact_id or not isinstance(enabled, bool):
        raise BadRequest("Missing required fields: contactId, enabled")
    return validate_identifier(contact_id, "contactId"), enabled


def validate_invite_payload(payload: Any) -> str:
    contact_id = payload.get("contactId") if isinstance(payload, dict) else None
    if not contact_id:
        raise BadRequest("Missing required field: contactId")
    return validate_identifier(contact_id, "contactId")
