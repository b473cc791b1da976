"""Donation state transitions: accept, complete, cancel and rate."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from ...config import settings
from ...errors import AlreadyAccepted, InvalidTransition, NotFound, Unauthorized
from ...models.domain import Acceptance, Donation, Profile
from ...persistence.base import DonationStore
from ..geospatial import distance
from .transitions import can_transition

logger = logging.getLogger(__name__)


def _require_donation(store: DonationStore, donation_id: str) -> Donation:
    donation = store.get_donation(donation_id)
    if donation is None:
        raise NotFound(f"Donation '{donation_id}' not found.")
    return donation


def _require_profile(store: DonationStore, profile_id: str) -> Profile:
    profile = store.get_profile(profile_id)
    if profile is None:
        raise NotFound(f"Profile '{profile_id}' not found.")
    return profile


def _require_transition(donation: Donation, target: str) -> None:
    if not can_transition(donation.status, target):
        raise InvalidTransition(
            f"Cannot move donation '{donation.id}' from '{donation.status}' to '{target}'."
        )


def accept_donation(
    donation_id: str,
    acceptor_id: str,
    distance_km: float | None = None,
    *,
    store: DonationStore,
    now: datetime | None = None,
) -> Acceptance:
    """Claim an available donation for a verified acceptor and credit the donor.

    Exclusivity comes from the store's uniqueness constraint on the
    acceptance's donation reference; the status checks here only give early,
    specific errors.
    """

    now = now or datetime.now(timezone.utc)
    acceptor = _require_profile(store, acceptor_id)
    if acceptor.role != "acceptor":
        raise Unauthorized(f"Profile '{acceptor_id}' is not an acceptor.")
    if not acceptor.is_verified:
        raise Unauthorized(f"Acceptor '{acceptor_id}' is not verified.")

    donation = _require_donation(store, donation_id)
    if donation.status in ("accepted", "completed"):
        raise AlreadyAccepted(f"Donation '{donation_id}' has already been accepted.")
    _require_transition(donation, "accepted")
    if donation.is_expired(now):
        raise InvalidTransition(f"Donation '{donation_id}' expired at {donation.available_until.isoformat()}.")

    if distance_km is None and acceptor.location is not None:
        distance_km = distance(acceptor.location, donation.pickup_location)

    acceptance = store.accept_donation(
        donation_id,
        acceptor_id,
        distance_km,
        settings.acceptance_reward_points,
        now,
    )
    logger.info(
        f"Donation {donation_id} accepted by {acceptor_id} "
        f"({distance_km} km); credited {settings.acceptance_reward_points} points to {donation.donor_id}"
    )
    return acceptance


def complete_donation(
    donation_id: str,
    actor_id: str | None = None,
    *,
    store: DonationStore,
    now: datetime | None = None,
) -> Acceptance:
    """Mark an accepted donation as picked up and stamp the acceptance."""

    now = now or datetime.now(timezone.utc)
    donation = _require_donation(store, donation_id)
    _require_transition(donation, "completed")

    if actor_id is not None:
        actor = _require_profile(store, actor_id)
        acceptance = store.get_acceptance(donation_id)
        allowed = {donation.donor_id}
        if acceptance is not None:
            allowed.add(acceptance.acceptor_id)
        if actor.role != "admin" and actor_id not in allowed:
            raise Unauthorized(f"Profile '{actor_id}' cannot complete donation '{donation_id}'.")

    acceptance = store.complete_donation(donation_id, now)
    logger.info(f"Donation {donation_id} completed")
    return acceptance


def cancel_donation(donation_id: str, actor_id: str, *, store: DonationStore) -> Donation:
    """Cancel an available or accepted donation. Points already granted are kept."""

    donation = _require_donation(store, donation_id)
    actor = _require_profile(store, actor_id)
    _require_transition(donation, "cancelled")

    allowed = {donation.donor_id}
    if donation.status == "accepted":
        acceptance = store.get_acceptance(donation_id)
        if acceptance is not None:
            allowed.add(acceptance.acceptor_id)
    if actor.role != "admin" and actor_id not in allowed:
        raise Unauthorized(f"Profile '{actor_id}' cannot cancel donation '{donation_id}'.")

    cancelled = store.transition_donation(donation_id, donation.status, "cancelled")
    logger.info(f"Donation {donation_id} cancelled by {actor_id} (was {donation.status})")
    return cancelled


def rate_acceptance(
    donation_id: str,
    acceptor_id: str,
    rating: int,
    feedback: str | None = None,
    *,
    store: DonationStore,
) -> Acceptance:
    if not 1 <= rating <= 5:
        raise ValueError("Rating must be between 1 and 5.")
    donation = _require_donation(store, donation_id)
    if donation.status not in ("accepted", "completed"):
        raise InvalidTransition(f"Donation '{donation_id}' is '{donation.status}' and cannot be rated.")
    acceptance = store.get_acceptance(donation_id)
    if acceptance is None:
        raise NotFound(f"No acceptance recorded for donation '{donation_id}'.")
    if acceptance.acceptor_id != acceptor_id:
        raise Unauthorized(f"Profile '{acceptor_id}' did not accept donation '{donation_id}'.")
    return store.rate_acceptance(donation_id, rating, feedback)
