from datetime import datetime, timedelta, timezone

import pytest

from foodshare.errors import InferenceUnavailable, NotFound
from foodshare.models.domain import Coordinate, Donation, Profile
from foodshare.persistence.memory import InMemoryStore
from foodshare.services.ai import behavior
from foodshare.services.ai.behavior import filter_food_types, infer_preferences, refresh_preferences

NOW = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)


class DummyInference:
    def __init__(self, reply: str):
        self.reply = reply
        self.prompts = []

    def generate(self, prompt, *, image=None, mime_type="image/jpeg", json_response=False):
        self.prompts.append(prompt)
        return self.reply


class FailingInference:
    def generate(self, prompt, **kwargs):
        raise InferenceUnavailable("timed out")


def _donation(did: str, food_name: str, food_type: str) -> Donation:
    return Donation(
        id=did,
        donor_id="donor-1",
        food_name=food_name,
        food_type=food_type,
        quantity="10 plates",
        pickup_location=Coordinate(24.865, 67.015),
        pickup_address="DHA, Karachi",
        available_until=NOW + timedelta(hours=3),
        created_at=NOW - timedelta(hours=2),
    )


@pytest.fixture
def store() -> InMemoryStore:
    store = InMemoryStore()
    store.add_profile(Profile(id="donor-1", role="donor"))
    store.add_profile(
        Profile(id="ngo-1", role="acceptor", is_verified=True, preferred_food_types=["non-vegetarian"])
    )
    store.add_profile(Profile(id="ngo-new", role="acceptor", is_verified=True, preferred_food_types=["vegan"]))
    for did, name, food_type in (("d1", "Daal Chawal", "vegetarian"), ("d2", "Sabzi", "vegetarian")):
        store.insert_donation(_donation(did, name, food_type))
        store.accept_donation(did, "ngo-1", 1.2, 100, NOW)
    return store


def test_filter_food_types():
    assert filter_food_types(["Vegetarian", "Spicy", "vegetarian", " VEGAN ", 7, None]) == ["vegetarian", "vegan"]
    assert filter_food_types([]) == []


def test_empty_history_is_skipped_without_inference():
    dummy = DummyInference('{"summary": "unused"}')

    analysis = infer_preferences([], client=dummy)

    assert analysis.skipped
    assert analysis.summary == "No history found for analysis"
    assert dummy.prompts == []


def test_history_is_capped_before_prompting():
    dummy = DummyInference('{"summary": "ok", "inferred_preferences": [], "suggested_actions": []}')
    history = [{"food": f"item-{i}", "type": "vegetarian"} for i in range(30)]

    infer_preferences(history, client=dummy, limit=3)

    assert "item-2" in dummy.prompts[0]
    assert "item-3" not in dummy.prompts[0]


def test_refresh_persists_only_known_food_types(store: InMemoryStore):
    dummy = DummyInference(
        '{"summary": "Prefers vegetarian food", "inferred_preferences": ["Vegetarian", "Spicy"], '
        '"suggested_actions": ["Notify for veg food"]}'
    )

    result = refresh_preferences("ngo-1", store=store, client=dummy)

    assert not result.skipped
    assert result.analysis.summary == "Prefers vegetarian food"
    assert result.analysis.inferred_preferences == ["Vegetarian", "Spicy"]
    assert result.updated_preferences == ["vegetarian"]
    assert store.get_profile("ngo-1").preferred_food_types == ["vegetarian"]
    assert "Daal Chawal" in dummy.prompts[0]


def test_refresh_leaves_profile_when_nothing_recognised(store: InMemoryStore):
    dummy = DummyInference('{"summary": "Likes spice", "inferred_preferences": ["Spicy", "Sweet"]}')

    result = refresh_preferences("ngo-1", store=store, client=dummy)

    assert result.updated_preferences == []
    assert store.get_profile("ngo-1").preferred_food_types == ["non-vegetarian"]


def test_refresh_without_history_is_skipped(store: InMemoryStore):
    dummy = DummyInference('{"inferred_preferences": ["vegetarian"]}')

    result = refresh_preferences("ngo-new", store=store, client=dummy)

    assert result.skipped
    assert dummy.prompts == []
    assert store.get_profile("ngo-new").preferred_food_types == ["vegan"]


def test_refresh_survives_inference_failure(store: InMemoryStore, monkeypatch):
    monkeypatch.setattr(behavior, "InferenceClient", FailingInference)

    result = refresh_preferences("ngo-1", store=store)

    assert result.analysis.summary == "Unable to analyze history"
    assert result.updated_preferences == []
    assert store.get_profile("ngo-1").preferred_food_types == ["non-vegetarian"]


def test_refresh_unknown_profile(store: InMemoryStore):
    with pytest.raises(NotFound):
        refresh_preferences("ghost", store=store, client=DummyInference("{}"))
