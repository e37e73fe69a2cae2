import json
import logging
from html import escape
from typing import Optional, Tuple

import requests

from ..core.config import Config


logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


def build_portal_invitation(
    *,
    contact_name: Optional[str],
    company_name: str,
    magic_link: str,
    expires_in_hours: int,
) -> Tuple[str, str, str]:
    greeting = f"Hi {contact_name}," if contact_name else "Hi,"
    subject = f"Your {company_name} client portal access"
    hours = "1 hour" if expires_in_hours == 1 else f"{expires_in_hours} hours"

    text = (
        f"{greeting}\n\n"
        f"{company_name} has invited you to their client portal, where you can view your "
        f"projects, documents and invoices.\n\n"
        f"Open the portal: {magic_link}\n\n"
        f"This link expires in {hours} and can only be used once.\n"
    )

    html = f"""
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{escape(subject)}</title>
  </head>
  <body style="margin:0; padding:32px 12px; background:#f8fafc; font-family:Arial, sans-serif; color:#0f172a;">
    <p style="margin:0 0 16px;">{escape(greeting)}</p>
    <p style="margin:0 0 16px;">{escape(company_name)} has invited you to their client portal, where you can view your projects, documents and invoices.</p>
    <p style="margin:0 0 24px;">
      <a href="{escape(magic_link, quote=True)}" style="background:#0f172a; color:#ffffff; padding:12px 20px; border-radius:8px; text-decoration:none;">Open client portal</a>
    </p>
    <p style="margin:0; color:#64748b; font-size:13px;">This link expires in {hours} and can only be used once.</p>
  </body>
</html>
"""
    return subject, html, text


def send_portal_invitation(
    *,
    to: str,
    contact_name: Optional[str],
    company_name: str,
    magic_link: str,
    expires_in_hours: int = 1,
) -> bool:
    if not to:
        return False
    subject, html, text = build_portal_invitation(
        contact_name=contact_name,
        company_name=company_name,
        magic_link=magic_link,
        expires_in_hours=expires_in_hours,
    )

    payload = {
        "from": Config.PORTAL_FROM_EMAIL,
        "to": [to],
        "subject": subject,
        "html": html,
        "text": text,
    }

    if not Config.RESEND_API_KEY:
        logger.info("Resend disabled; email payload: %s", json.dumps({**payload, "html": "<omitted>"}, ensure_ascii=True))
        return True

    try:
        resp = requests.post(
            RESEND_API_URL,
            headers={"Authorization": f"Bearer {Config.RESEND_API_KEY}", "Content-Type": "application/json"},
            json=payload,
            timeout=10,
        )
        if resp.status_code >= 300:
            logger.warning("Resend send failed: %s %s", resp.status_code, resp.text)
            return False
        return True
    except requests.RequestException as exc:
        logger.warning("Resend request failed: %s", exc)
        return False
