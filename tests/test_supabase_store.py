from datetime import datetime, timezone

import pytest
from postgrest.exceptions import APIError

from foodshare.errors import AlreadyAccepted, InvalidTransition, NotFound
from foodshare.persistence.database import SupabaseStore, _donation_from_row, _parse_ts

NOW = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Records the chained PostgREST calls and returns canned data on execute()."""

    def __init__(self, data, log):
        self._data = data
        self.log = log

    def __getattr__(self, name):
        def call(*args, **kwargs):
            self.log.append((name, args))
            return self

        return call

    def execute(self):
        if isinstance(self._data, Exception):
            raise self._data
        return FakeResponse(self._data)


class FakeSupabase:
    def __init__(self, tables=None, rpc_results=None):
        self.tables = tables or {}
        self.rpc_results = rpc_results or {}
        self.log = []

    def table(self, name):
        self.log.append(("table", (name,)))
        return FakeQuery(self.tables.get(name, []), self.log)

    def rpc(self, name, params):
        self.log.append(("rpc", (name, params)))
        return FakeQuery(self.rpc_results.get(name, []), self.log)


def _donation_row(**overrides) -> dict:
    row = {
        "id": "don-1",
        "donor_id": "donor-1",
        "food_name": "Biryani",
        "food_type": "non-vegetarian",
        "quantity": "10 plates",
        "pickup_address": "Gulshan, Karachi",
        "latitude": "24.865",
        "longitude": 67.015,
        "available_until": "2025-11-01T16:00:00Z",
        "created_at": "2025-11-01T11:00:00+00:00",
        "status": "available",
        "ai_quality_score": 0.8,
        "ai_category": "Rice Dish",
        "ai_expiry_prediction": None,
    }
    row.update(overrides)
    return row


def _api_error(code: str) -> APIError:
    return APIError({"message": f"error {code}", "code": code, "hint": None, "details": None})


def test_row_mapping():
    donation = _donation_from_row(_donation_row())

    assert donation.pickup_location.latitude == 24.865
    assert donation.available_until == datetime(2025, 11, 1, 16, 0, tzinfo=timezone.utc)
    assert donation.quality_score == 0.8
    assert donation.category == "Rice Dish"
    assert _parse_ts("2025-11-01T16:00:00") == datetime(2025, 11, 1, 16, 0, tzinfo=timezone.utc)
    assert _parse_ts(None) is None


def test_accept_calls_transactional_function():
    acceptance_row = {
        "id": "acc-1",
        "donation_id": "don-1",
        "acceptor_id": "ngo-1",
        "distance_km": 0.75,
        "accepted_at": NOW.isoformat(),
    }
    fake = FakeSupabase(rpc_results={"accept_donation": [acceptance_row]})

    acceptance = SupabaseStore(fake).accept_donation("don-1", "ngo-1", 0.75, 100, NOW)

    assert acceptance.id == "acc-1"
    assert acceptance.accepted_at == NOW
    name, params = fake.log[0][1]
    assert name == "accept_donation"
    assert params["p_reward_points"] == 100
    assert params["p_donation_id"] == "don-1"


@pytest.mark.parametrize(
    "code, expected",
    [("23505", AlreadyAccepted), ("P0002", NotFound), ("23503", NotFound), ("55000", InvalidTransition)],
)
def test_accept_translates_database_errors(code, expected):
    fake = FakeSupabase(rpc_results={"accept_donation": _api_error(code)})

    with pytest.raises(expected):
        SupabaseStore(fake).accept_donation("don-1", "ngo-2", None, 100, NOW)


def test_unknown_database_errors_propagate():
    fake = FakeSupabase(rpc_results={"complete_donation": _api_error("XX000")})

    with pytest.raises(APIError):
        SupabaseStore(fake).complete_donation("don-1", NOW)


def test_transition_is_conditional_on_expected_status():
    fake = FakeSupabase(tables={"donations": []})

    with pytest.raises(NotFound):
        SupabaseStore(fake).transition_donation("don-1", "available", "cancelled")

    fake = FakeSupabase(tables={"donations": [_donation_row(status="accepted")]})
    cancelled = SupabaseStore(fake).transition_donation("don-1", "accepted", "cancelled")
    assert ("eq", ("status", "accepted")) in fake.log
    assert ("update", ({"status": "cancelled"},)) in fake.log
    assert cancelled.id == "don-1"


def test_trim_insights_deletes_beyond_retention():
    rows = [{"id": f"ins-{i}"} for i in range(12)]
    fake = FakeSupabase(tables={"ai_insights": rows})

    removed = SupabaseStore(fake).trim_insights(10)

    assert removed == 2
    assert ("in_", ("id", ["ins-10", "ins-11"])) in fake.log
