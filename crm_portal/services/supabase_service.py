import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

from ..core.config import Config
from ..core.errors import NotFound, ServiceError, StaffAuthRequired


logger = logging.getLogger(__name__)


def get_client() -> Client:
    return create_client(Config.SUPABASE_URL, Config.SUPABASE_SERVICE_KEY)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseSessionAuthority:
    """Portal token verification backed by the ``verify_portal_session`` database function."""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    def verify_session_token(self, token: str) -> List[Dict[str, Any]]:
        result = self.client.rpc('verify_portal_session', {'session_token': token}).execute()
        return result.data or []


def get_session_authority() -> SupabaseSessionAuthority:
    return SupabaseSessionAuthority()


def mark_session_used(token: str) -> None:
    supabase = get_client()
    supabase.table('portal_sessions').update({'used_at': _now_iso()}).eq('token', token).execute()


def record_portal_login(contact_id: str) -> None:
    supabase = get_client()
    supabase.table('contacts').update({'last_portal_login': _now_iso()}).eq('id', contact_id).execute()


def get_staff_user(access_token: Optional[str]):
    """Resolve a staff member from a Supabase access token, or raise a 401."""
    if not access_token:
        raise StaffAuthRequired()
    try:
        supabase = get_client()
        response = supabase.auth.get_user(access_token)
    except Exception as e:
        logger.info(f"Staff token rejected: {e}")
        raise StaffAuthRequired()

    user = getattr(response, 'user', None)
    if not user:
        raise StaffAuthRequired()
    return user


def get_contact(contact_id: str) -> Dict[str, Any]:
    try:
        supabase: Client = get_client()
        result = (
            supabase
            .table('contacts')
            .select('id, name, email, portal_enabled, portal_token, tenant_id')
            .eq('id', contact_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to fetch contact {contact_id}: {e}")
        raise NotFound("Contact not found")

    if not result.data:
        raise NotFound("Contact not found")
    return result.data[0]


def get_organization(tenant_id: str) -> Optional[Dict[str, Any]]:
    try:
        supabase: Client = get_client()
        result = supabase.table('organizations').select('name, settings').eq('id', tenant_id).limit(1).execute()
    except Exception as e:
        logger.warning(f"Failed to fetch organization {tenant_id}: {e}")
        return None

    if not result.data:
        return None
    return result.data[0]


def get_organization_name(tenant_id: str) -> Optional[str]:
    org = get_organization(tenant_id)
    return org.get('name') if org else None


def list_portal_records(table: str, contact_id: str, tenant_id: str, *, shared_only: bool = False) -> List[Dict[str, Any]]:
    """Rows of ``table`` that belong to one portal contact, newest first.

    Scoped by both contact and tenant so a contact id reused across tenants
    never leaks another organization's records.
    """
    try:
        supabase: Client = get_client()
        query = (
            supabase
            .table(table)
            .select('*')
            .eq('contact_id', contact_id)
            .eq('tenant_id', tenant_id)
        )
        if shared_only:
            query = query.eq('visibility', 'shared')
        result = query.order('created_at', desc=True).execute()
    except Exception as e:
        logger.error(f"Failed to load {table} for portal contact {contact_id}: {e}")
        raise ServiceError("Failed to load portal dashboard")

    return result.data or []


def set_portal_access(contact_id: str, enabled: bool) -> Dict[str, Any]:
    """Enable or disable portal access, issuing a portal token on first enable."""
    try:
        supabase: Client = get_client()
        update_data: Dict[str, Any] = {'portal_enabled': enabled}

        if enabled:
            existing = supabase.table('contacts').select('portal_token').eq('id', contact_id).limit(1).execute()
            has_token = bool(existing.data and existing.data[0].get('portal_token'))
            if not has_token:
                token_result = supabase.rpc('generate_portal_token', {}).execute()
                if token_result.data:
                    update_data['portal_token'] = token_result.data

        result = supabase.table('contacts').update(update_data).eq('id', contact_id).execute()
    except Exception as e:
        logger.error(f"Failed to update portal access for {contact_id}: {e}")
        raise ServiceError("Failed to update portal access")

    if not result.data:
        raise ServiceError("Failed to update portal access")
    return result.data[0]


def create_magic_link_session(contact_id: str, ip_address: Optional[str], user_agent: Optional[str]) -> str:
    """Issue a single-use login token for ``contact_id`` and record it in ``portal_sessions``."""
    supabase: Client = get_client()

    try:
        token_result = supabase.rpc('generate_session_token', {}).execute()
    except Exception as e:
        logger.error(f"Failed to generate session token: {e}")
        raise ServiceError("Failed to generate session token")

    session_token = token_result.data
    if not session_token:
        raise ServiceError("Failed to generate session token")

    expires_at = datetime.now(timezone.utc) + timedelta(hours=Config.MAGIC_LINK_TTL_HOURS)
    try:
        supabase.table('portal_sessions').insert({
            'contact_id': contact_id,
            'token': session_token,
            'expires_at': expires_at.isoformat(),
            'ip_address': ip_address,
            'user_agent': user_agent,
        }).execute()
    except Exception as e:
        logger.error(f"Failed to create portal session: {e}")
        raise ServiceError("Failed to create portal session")

    return session_token


def mark_contact_invited(contact_id: str) -> None:
    try:
        supabase: Client = get_client()
        supabase.table('contacts').update({'portal_invited_at': _now_iso()}).eq('id', contact_id).execute()
    except Exception as e:
        logger.warning(f"Failed to stamp portal_invited_at for {contact_id}: {e}")


def get_document(document_id: str) -> Dict[str, Any]:
    try:
        supabase: Client = get_client()
        result = supabase.table('documents').select('*').eq('id', document_id).limit(1).execute()
    except Exception as e:
        logger.error(f"Failed to fetch document {document_id}: {e}")
        raise NotFound("Document not found")

    if not result.data:
        raise NotFound("Document not found")
    return result.data[0]


def download_document(storage_path: str) -> bytes:
    try:
        supabase: Client = get_client()
        file_bytes = supabase.storage.from_(Config.DOCUMENTS_BUCKET).download(storage_path)
    except Exception as e:
        logger.error(f"Storage download error for {storage_path}: {e}")
        raise ServiceError("Failed to download document")

    if not file_bytes:
        raise ServiceError("Failed to download document")
    return file_bytes


def ping() -> None:
    supabase = get_client()
    supabase.table('contacts').select('id').limit(1).execute()
