"""Acceptance-history analysis and food preference refresh."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from ...config import settings
from ...errors import InferenceUnavailable, NotFound
from ...models.domain import FOOD_TYPES, Acceptance, Donation, Profile
from ...persistence.base import DonationStore
from .client import InferenceClient, InferenceService
from .parsing import extract_json_object

logger = logging.getLogger(__name__)

SKIPPED_SUMMARY = "No history found for analysis"

BEHAVIOR_PROMPT = """Analyze this user's donation acceptance history and infer their preferences and behavior patterns.

User History: {history}

Provide:
1. A brief summary of their behavior (e.g., "Prefers vegetarian food, mostly active on weekends").
2. Inferred food preferences (list of categories like "vegetarian", "non-vegetarian", "vegan", "cooked meals", "raw ingredients").
3. Suggested actions or notifications (e.g., "Notify for large veg donations").

IMPORTANT: Respond ONLY with a valid JSON object.
Format:
{{
  "summary": "User prefers vegetarian food...",
  "inferred_preferences": ["vegetarian", "vegan"],
  "suggested_actions": ["Notify for veg food", "Suggest weekend pickups"]
}}"""


@dataclass(slots=True)
class BehaviorAnalysis:
    summary: str
    inferred_preferences: list[str] = field(default_factory=list)
    suggested_actions: list[str] = field(default_factory=list)
    skipped: bool = False


@dataclass(slots=True)
class PreferenceRefresh:
    analysis: BehaviorAnalysis
    updated_preferences: list[str]
    profile: Profile

    @property
    def skipped(self) -> bool:
        return self.analysis.skipped


def history_record(acceptance: Acceptance, donation: Donation) -> dict:
    return {
        "food": donation.food_name,
        "type": donation.food_type,
        "time": acceptance.accepted_at.isoformat(),
        "rating": acceptance.rating,
        "feedback": acceptance.feedback,
    }


def filter_food_types(values: Iterable[Any]) -> list[str]:
    """Lower-case and keep only values from the closed food-type vocabulary, first occurrence wins."""

    accepted: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        normalised = value.strip().lower()
        if normalised in FOOD_TYPES and normalised not in accepted:
            accepted.append(normalised)
    return accepted


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def infer_preferences(
    history: Sequence[dict],
    *,
    client: InferenceService | None = None,
    limit: int | None = None,
) -> BehaviorAnalysis:
    """Ask the inference service to summarise an acceptance history (most recent first)."""

    if not history:
        return BehaviorAnalysis(summary=SKIPPED_SUMMARY, skipped=True)

    trimmed = list(history)[: limit or settings.behavior_history_limit]
    prompt = BEHAVIOR_PROMPT.format(history=json.dumps(trimmed, default=str))
    try:
        service = client or InferenceClient()
        text = service.generate(prompt, json_response=True)
    except InferenceUnavailable as exc:
        logger.warning(f"Behavior analysis unavailable: {exc}")
        return BehaviorAnalysis(summary="Unable to analyze history")

    payload = extract_json_object(text)
    if payload is None:
        logger.warning(f"Could not parse behavior analysis response: {text[:100]!r}")
        return BehaviorAnalysis(summary="Unable to analyze history")

    summary = payload.get("summary")
    return BehaviorAnalysis(
        summary=summary if isinstance(summary, str) else "",
        inferred_preferences=_string_list(payload.get("inferred_preferences")),
        suggested_actions=_string_list(payload.get("suggested_actions")),
    )


def refresh_preferences(
    acceptor_id: str,
    *,
    store: DonationStore,
    client: InferenceService | None = None,
) -> PreferenceRefresh:
    """Re-derive an acceptor's preferred food types from their acceptance history.

    The profile is only overwritten when at least one inferred value survives
    the vocabulary filter.
    """

    profile = store.get_profile(acceptor_id)
    if profile is None:
        raise NotFound(f"Profile '{acceptor_id}' not found.")

    rows = store.list_acceptance_history(acceptor_id, settings.behavior_history_limit)
    history = [history_record(acceptance, donation) for acceptance, donation in rows]
    analysis = infer_preferences(history, client=client)
    if analysis.skipped:
        return PreferenceRefresh(analysis=analysis, updated_preferences=[], profile=profile)

    preferences = filter_food_types(analysis.inferred_preferences)
    if preferences:
        profile = store.update_preferred_food_types(acceptor_id, preferences)
        logger.info(f"Updated preferred food types for {acceptor_id}: {preferences}")
    else:
        logger.info(f"No recognised food types inferred for {acceptor_id}; profile left unchanged")
    return PreferenceRefresh(analysis=analysis, updated_preferences=preferences, profile=profile)
