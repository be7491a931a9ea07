# app/core/supabase_client.py
from functools import lru_cache
from supabase import create_client, Client

from app.core.config import get_settings

settings = get_settings()


@lru_cache
def supabase_public() -> Client:
    """
    Shared Supabase client with the anon/public key.

    Use cases:
      - reading the public product catalog
      - signing users in; the client then carries their session and
        auth state change events (see app/core/session.py)

    Note: This client still respects RLS.
    """
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)

