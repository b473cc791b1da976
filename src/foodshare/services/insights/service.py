"""Area-level donation statistics and narrative insight generation."""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Sequence

from ...config import settings
from ...errors import InferenceUnavailable
from ...models.domain import Donation, Insight
from ...persistence.base import DonationStore
from ..ai.client import InferenceClient, InferenceService
from ..ai.parsing import extract_json_array

logger = logging.getLogger(__name__)

UNKNOWN_AREA = "Unknown"
POPULAR_AREA_COUNT = 5
MAX_INSIGHTS = 5

FALLBACK_INSIGHTS = (
    "High demand for vegetarian food in Gulshan area",
    "Evening donations (6-8 PM) have 2x higher acceptance rates",
    "NGOs in DHA respond faster than other areas",
)

INSIGHT_PROMPT = """Based on the following food donation data, generate 3-5 actionable insights for donors and acceptors:

Recent Donations: {donations}
Acceptance Rates by Area: {rates}
Popular Areas: {areas}

Provide insights like:
- High demand patterns (time, location, food type)
- Acceptance rate trends
- Recommendations for donors
- Tips for better distribution

IMPORTANT: Respond ONLY with a valid JSON array of strings. Do not wrap it in markdown code blocks.
Example return: ["insight 1", "insight 2", ...]"""


@dataclass(slots=True)
class AreaStats:
    totals: dict[str, int]
    accepted: dict[str, int]
    acceptance_rates: dict[str, float]
    popular_areas: list[str]


def area_of(pickup_address: str | None) -> str:
    """First comma-delimited segment of the address, or ``Unknown``."""

    if not pickup_address:
        return UNKNOWN_AREA
    head = pickup_address.split(",", 1)[0].strip()
    return head or UNKNOWN_AREA


def compute_area_stats(donations: Sequence[Donation]) -> AreaStats:
    totals: Counter[str] = Counter()
    accepted: Counter[str] = Counter()
    for donation in donations:
        area = area_of(donation.pickup_address)
        totals[area] += 1
        if donation.status in ("accepted", "completed"):
            accepted[area] += 1

    rates = {
        area: (accepted[area] / total if total else 0.0)
        for area, total in totals.items()
    }
    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return AreaStats(
        totals=dict(totals),
        accepted={area: accepted[area] for area in totals},
        acceptance_rates=rates,
        popular_areas=[area for area, _ in ranked[:POPULAR_AREA_COUNT]],
    )


def _donation_record(donation: Donation) -> dict:
    return {
        "food_name": donation.food_name,
        "food_type": donation.food_type,
        "quantity": donation.quantity,
        "pickup_address": donation.pickup_address,
        "status": donation.status,
        "created_at": donation.created_at.isoformat(),
        "available_until": donation.available_until.isoformat(),
        "ai_category": donation.category,
        "ai_quality_score": donation.quality_score,
    }


def generate_insight_messages(
    donations: Sequence[Donation],
    stats: AreaStats,
    *,
    client: InferenceService | None = None,
) -> list[str]:
    """Ask for 3-5 insight strings; fall back to fixed copy when the reply is unusable."""

    sample = [_donation_record(d) for d in donations[: settings.insight_prompt_sample_size]]
    prompt = INSIGHT_PROMPT.format(
        donations=json.dumps(sample),
        rates=json.dumps(stats.acceptance_rates),
        areas=json.dumps(stats.popular_areas),
    )
    try:
        service = client or InferenceClient()
        text = service.generate(prompt)
    except InferenceUnavailable as exc:
        logger.warning(f"Insight generation unavailable, using fallback insights: {exc}")
        return list(FALLBACK_INSIGHTS)

    parsed = extract_json_array(text)
    messages = [item.strip() for item in (parsed or []) if isinstance(item, str) and item.strip()]
    if not messages:
        logger.warning(f"Could not parse insight response, using fallback insights: {text[:100]!r}")
        return list(FALLBACK_INSIGHTS)
    return messages[:MAX_INSIGHTS]


def generate_insights(
    *,
    store: DonationStore,
    window_days: int | None = None,
    sample_limit: int | None = None,
    client: InferenceService | None = None,
    now: datetime | None = None,
) -> list[Insight]:
    """Summarise recent donations into stored insights, keeping only the newest few."""

    now = now or datetime.now(timezone.utc)
    window = window_days if window_days is not None else settings.insight_window_days
    limit = sample_limit if sample_limit is not None else settings.insight_sample_limit

    donations = store.list_recent_donations(now - timedelta(days=window), limit)
    stats = compute_area_stats(donations)
    messages = generate_insight_messages(donations, stats, client=client)

    created = store.insert_insights(
        [
            Insight(id="", title=f"Insight {index}", message=message, created_at=now)
            for index, message in enumerate(messages, start=1)
        ]
    )
    removed = store.trim_insights(settings.insight_retention)
    logger.info(
        f"Generated {len(created)} insight(s) from {len(donations)} donation(s); evicted {removed} old insight(s)"
    )
    return created


def list_insights(*, store: DonationStore, limit: int | None = None) -> list[Insight]:
    return store.list_insights(limit if limit is not None else settings.insight_retention)
