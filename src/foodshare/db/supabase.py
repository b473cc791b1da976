"""Supabase client shared by the donation store."""

from __future__ import annotations

import logging
from functools import lru_cache

from supabase import Client, create_client

from ..config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Return the process-wide Supabase client, or None when credentials are missing.

    The key must be a service-role key: the store calls the ``accept_donation``
    and ``complete_donation`` functions from ``sql/schema.sql``, which write
    across profiles, donations and acceptances. Creating the client does not
    open a connection, so an unreachable project only surfaces on first query.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logger.info("Supabase credentials not configured (missing FOODSHARE_SUPABASE_URL or FOODSHARE_SUPABASE_KEY)")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client for {settings.supabase_url}: {e}")
        return None
