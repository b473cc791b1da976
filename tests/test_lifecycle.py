import threading
from datetime import datetime, timedelta, timezone

import pytest

from foodshare.errors import AlreadyAccepted, InvalidTransition, NotFound, Unauthorized
from foodshare.models.domain import Coordinate, Donation, Profile
from foodshare.persistence.memory import InMemoryStore
from foodshare.services.lifecycle import (
    accept_donation,
    can_transition,
    cancel_donation,
    complete_donation,
    rate_acceptance,
)

NOW = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)


def _donation(did: str, donor_id: str = "donor-1", status: str = "available", hours_left: float = 4) -> Donation:
    return Donation(
        id=did,
        donor_id=donor_id,
        food_name="Vegetable Biryani",
        food_type="vegetarian",
        quantity="20 plates",
        pickup_location=Coordinate(24.8650, 67.0150),
        pickup_address="Gulshan, Karachi",
        available_until=NOW + timedelta(hours=hours_left),
        created_at=NOW - timedelta(hours=1),
        status=status,
    )


@pytest.fixture
def store() -> InMemoryStore:
    store = InMemoryStore()
    store.add_profile(Profile(id="donor-1", role="donor", location=Coordinate(24.8650, 67.0150), green_points=50))
    store.add_profile(Profile(id="ngo-1", role="acceptor", location=Coordinate(24.8600, 67.0100), is_verified=True))
    store.add_profile(Profile(id="ngo-2", role="acceptor", location=Coordinate(24.8700, 67.0200), is_verified=True))
    store.add_profile(Profile(id="ngo-unverified", role="acceptor", location=Coordinate(24.86, 67.01)))
    store.add_profile(Profile(id="admin-1", role="admin"))
    store.insert_donation(_donation("don-1"))
    return store


def test_transition_table():
    assert can_transition("available", "accepted")
    assert can_transition("accepted", "completed")
    assert can_transition("available", "cancelled")
    assert can_transition("accepted", "cancelled")
    assert not can_transition("available", "completed")
    assert not can_transition("completed", "cancelled")
    assert not can_transition("cancelled", "available")


def test_accept_creates_acceptance_and_credits_donor(store: InMemoryStore):
    acceptance = accept_donation("don-1", "ngo-1", store=store, now=NOW)

    assert acceptance.donation_id == "don-1"
    assert acceptance.acceptor_id == "ngo-1"
    assert acceptance.accepted_at == NOW
    assert 0.7 < acceptance.distance_km < 0.8
    assert store.get_donation("don-1").status == "accepted"
    assert store.get_profile("donor-1").green_points == 150
    assert len(store.all_acceptances()) == 1


def test_accept_keeps_caller_supplied_distance(store: InMemoryStore):
    acceptance = accept_donation("don-1", "ngo-1", 2.5, store=store, now=NOW)

    assert acceptance.distance_km == 2.5


def test_second_accept_reports_already_accepted(store: InMemoryStore):
    accept_donation("don-1", "ngo-1", store=store, now=NOW)

    with pytest.raises(AlreadyAccepted):
        accept_donation("don-1", "ngo-2", store=store, now=NOW)

    assert store.get_profile("donor-1").green_points == 150
    assert len(store.all_acceptances()) == 1


def test_concurrent_accepts_yield_exactly_one_winner(store: InMemoryStore):
    barrier = threading.Barrier(2)
    outcomes: dict[str, object] = {}

    def attempt(acceptor_id: str) -> None:
        barrier.wait()
        try:
            outcomes[acceptor_id] = accept_donation("don-1", acceptor_id, store=store, now=NOW)
        except AlreadyAccepted as exc:
            outcomes[acceptor_id] = exc

    threads = [threading.Thread(target=attempt, args=(aid,)) for aid in ("ngo-1", "ngo-2")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    failures = [value for value in outcomes.values() if isinstance(value, AlreadyAccepted)]
    assert len(outcomes) == 2
    assert len(failures) == 1
    assert len(store.all_acceptances()) == 1
    assert store.get_donation("don-1").status == "accepted"
    assert store.get_profile("donor-1").green_points == 150


def test_store_uniqueness_constraint_without_precheck(store: InMemoryStore):
    store.accept_donation("don-1", "ngo-1", 0.5, 100, NOW)

    with pytest.raises(AlreadyAccepted):
        store.accept_donation("don-1", "ngo-2", 0.5, 100, NOW)
    assert len(store.all_acceptances()) == 1


def test_accept_rolls_back_when_donor_credit_fails(store: InMemoryStore):
    store.insert_donation(_donation("orphan", donor_id="missing-donor"))

    with pytest.raises(NotFound):
        accept_donation("orphan", "ngo-1", store=store, now=NOW)

    assert store.get_donation("orphan").status == "available"
    assert store.get_acceptance("orphan") is None
    # the donation can still be accepted once the failure is resolved
    store.add_profile(Profile(id="missing-donor", role="donor"))
    accept_donation("orphan", "ngo-2", store=store, now=NOW)
    assert store.get_profile("missing-donor").green_points == 100


def test_accept_preconditions(store: InMemoryStore):
    store.insert_donation(_donation("stale", hours_left=-1))
    store.insert_donation(_donation("gone", status="cancelled"))

    with pytest.raises(Unauthorized):
        accept_donation("don-1", "ngo-unverified", store=store, now=NOW)
    with pytest.raises(Unauthorized):
        accept_donation("don-1", "donor-1", store=store, now=NOW)
    with pytest.raises(NotFound):
        accept_donation("missing", "ngo-1", store=store, now=NOW)
    with pytest.raises(NotFound):
        accept_donation("don-1", "ghost", store=store, now=NOW)
    with pytest.raises(InvalidTransition):
        accept_donation("stale", "ngo-1", store=store, now=NOW)
    with pytest.raises(InvalidTransition):
        accept_donation("gone", "ngo-1", store=store, now=NOW)

    assert store.get_profile("donor-1").green_points == 50
    assert store.all_acceptances() == []


def test_complete_requires_accepted_state(store: InMemoryStore):
    with pytest.raises(InvalidTransition):
        complete_donation("don-1", store=store, now=NOW)
    assert store.get_donation("don-1").status == "available"

    accept_donation("don-1", "ngo-1", store=store, now=NOW)
    done_at = NOW + timedelta(hours=1)
    acceptance = complete_donation("don-1", "ngo-1", store=store, now=done_at)

    assert acceptance.completed_at == done_at
    assert store.get_donation("don-1").status == "completed"
    with pytest.raises(InvalidTransition):
        complete_donation("don-1", store=store, now=done_at)


def test_complete_rejects_unrelated_actor(store: InMemoryStore):
    accept_donation("don-1", "ngo-1", store=store, now=NOW)

    with pytest.raises(Unauthorized):
        complete_donation("don-1", "ngo-2", store=store, now=NOW)
    assert store.get_donation("don-1").status == "accepted"


def test_cancel_keeps_granted_points(store: InMemoryStore):
    accept_donation("don-1", "ngo-1", store=store, now=NOW)

    cancelled = cancel_donation("don-1", "ngo-1", store=store)

    assert cancelled.status == "cancelled"
    assert store.get_profile("donor-1").green_points == 150
    with pytest.raises(InvalidTransition):
        cancel_donation("don-1", "donor-1", store=store)


def test_cancel_authorization(store: InMemoryStore):
    with pytest.raises(Unauthorized):
        cancel_donation("don-1", "ngo-1", store=store)

    assert cancel_donation("don-1", "admin-1", store=store).status == "cancelled"


def test_rate_acceptance(store: InMemoryStore):
    accept_donation("don-1", "ngo-1", store=store, now=NOW)

    rated = rate_acceptance("don-1", "ngo-1", 5, "Still warm", store=store)

    assert rated.rating == 5
    assert rated.feedback == "Still warm"
    with pytest.raises(ValueError):
        rate_acceptance("don-1", "ngo-1", 6, store=store)
    with pytest.raises(Unauthorized):
        rate_acceptance("don-1", "ngo-2", 3, store=store)
