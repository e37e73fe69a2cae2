"""CRM client portal service: portal session cookies, token verification and
access-guarded portal endpoints on top of Supabase."""

__version__ = "1.0.0"
