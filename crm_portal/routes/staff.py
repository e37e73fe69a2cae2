"""Staff-side portal administration: enabling portal access and sending invitations.

Staff are authenticated with a Supabase access token in the ``Authorization``
header, separately from portal contacts.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from ..core.config import Config
from ..core.errors import BadRequest, RateLimitExceeded, ServiceError
from ..core.rate_limit import invite_limiter
from ..core.validation import validate_invite_payload, validate_toggle_payload
from ..services import email_service, supabase_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/portal")


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


def get_staff_user(authorization: Optional[str] = Header(None)):
    return supabase_service.get_staff_user(_bearer_token(authorization))


async def _json_body(request: Request):
    try:
        return await request.json()
    except ValueError:
        raise BadRequest("Invalid JSON body")


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post("/toggle")
async def toggle_portal_access(request: Request, user=Depends(get_staff_user)):
    """Enable or disable portal access for a contact."""
    contact_id, enabled = validate_toggle_payload(await _json_body(request))

    contact = supabase_service.set_portal_access(contact_id, enabled)
    logger.info(f"Staff {user.id} set portal_enabled={enabled} for contact {contact_id}")

    return {
        "success": True,
        "portal_enabled": contact.get("portal_enabled"),
        "portal_token": contact.get("portal_token"),
    }


@router.post("/invite")
async def invite_contact(request: Request, user=Depends(get_staff_user)):
    """Send a portal invitation email containing a single-use magic link.

    - Rate limited per staff user
    - Contact must have an email, portal access enabled and a portal token
    - Creates the magic link session, emails it and stamps ``portal_invited_at``
    """
    limit = invite_limiter.check(str(user.id))
    if not limit.allowed:
        raise RateLimitExceeded(limit.retry_after)

    contact_id = validate_invite_payload(await _json_body(request))

    contact = supabase_service.get_contact(contact_id)
    if not contact.get("email"):
        raise BadRequest("Contact has no email address")
    if not contact.get("portal_enabled"):
        raise BadRequest("Portal access not enabled for this contact")
    if not contact.get("portal_token"):
        raise BadRequest("Contact has no portal token")

    company_name = supabase_service.get_organization_name(contact.get("tenant_id")) or "Your Company"

    session_token = supabase_service.create_magic_link_session(
        contact_id,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    magic_link = f"{Config.APP_URL.rstrip('/')}/portal/auth/{session_token}"

    sent = email_service.send_portal_invitation(
        to=contact["email"],
        contact_name=contact.get("name"),
        company_name=company_name,
        magic_link=magic_link,
        expires_in_hours=Config.MAGIC_LINK_TTL_HOURS,
    )
    if not sent:
        raise ServiceError("Failed to send invitation email")

    supabase_service.mark_contact_invited(contact_id)
    logger.info(f"Staff {user.id} sent portal invitation to contact {contact_id}")

    return {
        "success": True,
        "message": "Portal invitation sent successfully",
        "email": contact["email"],
    }
