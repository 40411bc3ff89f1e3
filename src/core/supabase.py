"""Supabase client singleton for database operations."""

from functools import lru_cache

from supabase import Client, create_client

from src.core.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    """Get cached Supabase client singleton for database operations.

    Uses the secret key for backend operations, which bypasses RLS at the
    PostgREST level. Only the caregiver store should talk to the
    ``caregivers`` table through this client.

    Returns:
        Client: Supabase client instance.
    """
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )
