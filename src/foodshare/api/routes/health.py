"""Health endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

from ...config import settings
from ...persistence import DonationStore, get_store

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database(store: DonationStore = Depends(get_store)) -> dict:
    """Report the active store backend and whether it answers a simple query."""
    if store.backend == "memory":
        return {
            "backend": store.backend,
            "configured": False,
            "connected": True,
            "message": "Supabase not configured. Set FOODSHARE_SUPABASE_URL and FOODSHARE_SUPABASE_KEY environment variables.",
        }

    try:
        store.list_available_donations(datetime.now(timezone.utc))
        return {
            "backend": store.backend,
            "configured": True,
            "connected": True,
            "message": "Database connected.",
        }
    except Exception as exc:
        return {
            "backend": store.backend,
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }


@router.get("/health/inference", status_code=status.HTTP_200_OK)
def check_inference() -> dict:
    """Whether the inference service is configured; AI features fall back to defaults otherwise."""
    from ...services.ai.client import check_health

    return {"service": "inference", "model": settings.gemini_model, "configured": check_health()}
