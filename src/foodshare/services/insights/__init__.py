"""Insight service helpers."""

from .service import (
    FALLBACK_INSIGHTS,
    AreaStats,
    area_of,
    compute_area_stats,
    generate_insight_messages,
    generate_insights,
    list_insights,
)

__all__ = [
    "FALLBACK_INSIGHTS",
    "AreaStats",
    "area_of",
    "compute_area_stats",
    "generate_insight_messages",
    "generate_insights",
    "list_insights",
]
