"""Store selection for the running process."""

from __future__ import annotations

import logging
from functools import lru_cache

from ..db.supabase import get_supabase_client
from .base import DonationStore
from .memory import InMemoryStore

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_store() -> DonationStore:
    """Return the Supabase store when configured, otherwise a process-wide in-memory store."""

    client = get_supabase_client()
    if client is None:
        logger.info("Supabase not configured - using in-memory donation store")
        return InMemoryStore()

    from .database import SupabaseStore

    return SupabaseStore(client)


__all__ = ["DonationStore", "InMemoryStore", "get_store"]
