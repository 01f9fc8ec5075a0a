"""
Supabase client initialization.

This module contains *only* the database connection setup. The client is
created on first use so importing repositories never requires credentials
(tests and the in-memory backend run without them).

Environment variables required for the supabase backend:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client  # type: ignore[import-not-found]

from settings import load_settings


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Return the process-wide Supabase client."""

    url, key = load_settings().require_supabase_credentials()
    return create_client(url, key)


__all__ = ["get_supabase_client"]
