"""Integrations with Supabase and outbound email."""
