"""Client-facing portal routes: token verification, magic link login, logout,
the current session, the dashboard, and document downloads."""
import asyncio
import logging
from dataclasses import asdict
from html import escape
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from ..core.errors import NotFound, PortalError, PortalForbidden, ServiceError
from ..core.validation import validate_identifier
from ..portal.guard import get_session_store, require_portal_session, run_guarded
from ..portal.session import CookieTransport, PortalSession, PortalSessionStore
from ..portal.verifier import SessionAuthority, verify_portal_token
from ..services import supabase_service
from ..services.supabase_service import get_session_authority


logger = logging.getLogger(__name__)

router = APIRouter()

DASHBOARD_PATH = "/portal/dashboard"


def _status_page(title: str, message: str, hint: str, status_code: int) -> HTMLResponse:
    html = f"""<!doctype html>
<html lang="en">
  <head><meta charset="utf-8" /><title>{escape(title)}</title></head>
  <body style="font-family:Arial, sans-serif; background:#f8fafc; color:#0f172a; text-align:center; padding:64px 16px;">
    <h1>{escape(title)}</h1>
    <p>{escape(message)}</p>
    <p style="color:#64748b; font-size:14px;">{escape(hint)}</p>
  </body>
</html>
"""
    return HTMLResponse(content=html, status_code=status_code)


@router.get("/api/portal/verify")
def verify_token(token: Optional[str] = None, authority: SessionAuthority = Depends(get_session_authority)):
    """Check whether a portal session token is valid. Used for debugging and by the frontend."""
    try:
        return verify_portal_token(token, authority).to_response()
    except PortalError:
        raise
    except Exception as e:
        logger.error(f"Portal verify error: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


@router.get("/portal/auth/{token}")
def portal_login(token: str, request: Request, authority: SessionAuthority = Depends(get_session_authority)):
    """Magic link login.

    - Verifies the token with the authority
    - Marks the token used and stamps the contact's last portal login
    - Writes the portal session cookie and redirects to the dashboard
    """
    try:
        try:
            result = verify_portal_token(token, authority)
        except PortalError:
            return _status_page(
                "Invalid or Expired Link",
                "This portal access link is invalid or has expired. Portal links expire after 1 hour and can only be used once.",
                "Please contact your service provider for a new invitation.",
                status_code=404,
            )

        if not result.contact_email or not result.tenant_id:
            logger.warning(f"Portal token for contact {result.contact_id} lacks email or tenant; refusing login")
            return _status_page(
                "Invalid or Expired Link",
                "This portal access link cannot be used.",
                "Please contact your service provider for a new invitation.",
                status_code=404,
            )

        try:
            supabase_service.mark_session_used(result.token)
        except Exception as e:
            logger.error(f"Failed to mark session as used: {e}")

        try:
            supabase_service.record_portal_login(result.contact_id)
        except Exception as e:
            logger.error(f"Failed to update last_portal_login: {e}")

        response = RedirectResponse(url=DASHBOARD_PATH, status_code=303)
        store = PortalSessionStore(CookieTransport(request, response))
        store.write(PortalSession.start(
            contact_id=result.contact_id,
            contact_email=result.contact_email,
            contact_name=result.contact_name or "",
            tenant_id=result.tenant_id,
        ))
        logger.info(f"Portal login for contact {result.contact_id} (tenant {result.tenant_id})")
        return response
    except Exception as e:
        logger.error(f"Portal auth error: {e}", exc_info=True)
        return _status_page(
            "Something Went Wrong",
            "We encountered an error while processing your portal access.",
            "Please try again or contact support if the problem persists.",
            status_code=500,
        )


@router.post("/portal/logout")
def portal_logout(store: PortalSessionStore = Depends(get_session_store)):
    store.clear()
    return {"success": True}


@router.get("/api/portal/session")
def current_session(session: PortalSession = Depends(require_portal_session)):
    return asdict(session)


DASHBOARD_SECTIONS = (
    ("invoices", False),
    ("documents", True),
    ("projects", False),
)


@router.get(DASHBOARD_PATH)
@router.get("/api/portal/dashboard")
def portal_dashboard(session: PortalSession = Depends(require_portal_session)):
    """Everything the signed-in contact may see: invoices, shared documents,
    projects, and the organization branding."""
    org = supabase_service.get_organization(session.tenant_id) or {}
    settings = org.get("settings") if isinstance(org.get("settings"), dict) else {}

    body: Dict[str, Any] = {
        "contact": {
            "id": session.contact_id,
            "name": session.contact_name,
            "email": session.contact_email,
        },
        "organization": {
            "name": org.get("name") or "Client Portal",
            "logo_url": settings.get("logo_url"),
        },
    }
    for table, shared_only in DASHBOARD_SECTIONS:
        body[table] = supabase_service.list_portal_records(
            table, session.contact_id, session.tenant_id, shared_only=shared_only
        )
    return body


def _attachment_name(name: Optional[str], fallback: str) -> str:
    cleaned = (name or fallback).replace('"', "").replace("\r", "").replace("\n", "")
    return cleaned or fallback


async def _document_download(session: PortalSession, document_id: str) -> Response:
    validate_identifier(document_id, "document id")
    document: Dict[str, Any] = await asyncio.to_thread(supabase_service.get_document, document_id)

    if document.get("contact_id") != session.contact_id:
        raise PortalForbidden("Unauthorized - This document does not belong to you")
    if document.get("visibility") != "shared":
        raise PortalForbidden("This document is not shared with you")

    storage_path = document.get("storage_path")
    if not storage_path:
        raise NotFound("Document file not found")

    file_bytes = await asyncio.to_thread(supabase_service.download_document, storage_path)
    filename = _attachment_name(document.get("name"), document_id)
    return Response(
        content=file_bytes,
        media_type=document.get("mime_type") or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/api/portal/documents/{document_id}/download")
async def download_portal_document(document_id: str, store: PortalSessionStore = Depends(get_session_store)):
    """Download a shared document belonging to the signed-in portal contact."""
    try:
        return await run_guarded(store, _document_download, document_id)
    except PortalError:
        raise
    except Exception as e:
        logger.error(f"Portal document download error: {e}", exc_info=True)
        raise ServiceError("Failed to download document")
