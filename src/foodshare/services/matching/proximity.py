"""Proximity filtering and ranking of available donations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Union

from ...config import settings
from ...errors import NotFound
from ...models.domain import Coordinate, Donation
from ...persistence.base import DonationStore
from ..geospatial import distance, ensure_valid

logger = logging.getLogger(__name__)

Candidate = Union[Donation, tuple[Donation, Coordinate]]


@dataclass(slots=True)
class NearbyDonation:
    donation: Donation
    distance_km: float


def _unpack(candidate: Candidate) -> tuple[Donation, Coordinate]:
    if isinstance(candidate, Donation):
        return candidate, candidate.pickup_location
    donation, location = candidate
    return donation, location


def find_nearby(
    origin: Coordinate,
    candidates: Iterable[Candidate],
    radius_km: float | None = None,
    now: datetime | None = None,
) -> list[NearbyDonation]:
    """Available, unexpired donations within ``radius_km`` of ``origin``, nearest first.

    Ties on distance are broken by posting time so earlier donations surface
    first. Raises ``InvalidLocation`` for an out-of-range origin or eligible candidate.
    """

    radius = settings.default_radius_km if radius_km is None else radius_km
    now = now or datetime.now(timezone.utc)
    ensure_valid(origin)

    matches: list[NearbyDonation] = []
    for candidate in candidates:
        donation, location = _unpack(candidate)
        if donation.status != "available" or donation.is_expired(now):
            continue
        ensure_valid(location)
        km = distance(origin, location)
        if km <= radius:
            matches.append(NearbyDonation(donation=donation, distance_km=km))

    matches.sort(key=lambda match: (match.distance_km, match.donation.created_at))
    return matches


def match_donations(
    acceptor_id: str,
    *,
    store: DonationStore,
    radius_km: float | None = None,
    now: datetime | None = None,
) -> list[NearbyDonation]:
    """Ranked nearby donations for an acceptor; empty unless the acceptor is verified and located."""

    profile = store.get_profile(acceptor_id)
    if profile is None:
        raise NotFound(f"Profile '{acceptor_id}' not found.")
    if profile.role != "acceptor" or not profile.is_verified:
        logger.info(f"Profile {acceptor_id} is not a verified acceptor; no matches exposed")
        return []
    if profile.location is None:
        logger.info(f"Acceptor {acceptor_id} has no location; no matches exposed")
        return []

    now = now or datetime.now(timezone.utc)
    candidates = store.list_available_donations(now)
    return find_nearby(profile.location, candidates, radius_km=radius_km, now=now)
