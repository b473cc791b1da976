"""Process-local store used when Supabase is not configured, and in tests."""

from __future__ import annotations

import itertools
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterator, Sequence

from ..errors import AlreadyAccepted, InvalidTransition, NotFound
from ..models.domain import Acceptance, Donation, Insight, Profile
from .base import DonationStore

logger = logging.getLogger(__name__)


def _id() -> str:
    return str(uuid.uuid4())


class InMemoryStore(DonationStore):
    """Thread-safe dictionary store.

    Records are copied on the way in and out so callers never hold a live
    reference to shared state. Multi-step writes run inside ``_unit_of_work``,
    which replays registered undo actions if any step raises.
    """

    backend = "memory"

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._profiles: dict[str, Profile] = {}
        self._donations: dict[str, Donation] = {}
        self._acceptances: dict[str, Acceptance] = {}
        # unique index: donation_id -> acceptance id
        self._acceptance_by_donation: dict[str, str] = {}
        self._insights: dict[str, Insight] = {}
        self._insight_seq: dict[str, int] = {}
        self._sequence = itertools.count()

    @contextmanager
    def _unit_of_work(self) -> Iterator[list[Callable[[], None]]]:
        undo: list[Callable[[], None]] = []
        with self._lock:
            try:
                yield undo
            except Exception:
                for action in reversed(undo):
                    action()
                raise

    # Profiles
    def add_profile(self, profile: Profile) -> Profile:
        with self._lock:
            self._profiles[profile.id] = replace(profile, preferred_food_types=list(profile.preferred_food_types))
            return self._profile_copy(profile.id)

    def get_profile(self, profile_id: str) -> Profile | None:
        with self._lock:
            if profile_id not in self._profiles:
                return None
            return self._profile_copy(profile_id)

    def update_preferred_food_types(self, profile_id: str, food_types: Sequence[str]) -> Profile:
        with self._lock:
            profile = self._profiles.get(profile_id)
            if profile is None:
                raise NotFound(f"Profile '{profile_id}' not found.")
            profile.preferred_food_types = list(food_types)
            return self._profile_copy(profile_id)

    def _profile_copy(self, profile_id: str) -> Profile:
        profile = self._profiles[profile_id]
        return replace(profile, preferred_food_types=list(profile.preferred_food_types))

    # Donations
    def insert_donation(self, donation: Donation) -> Donation:
        with self._lock:
            stored = replace(donation, id=donation.id or _id())
            self._donations[stored.id] = stored
            return replace(stored)

    def get_donation(self, donation_id: str) -> Donation | None:
        with self._lock:
            donation = self._donations.get(donation_id)
            return replace(donation) if donation else None

    def list_available_donations(self, now: datetime) -> list[Donation]:
        with self._lock:
            return [
                replace(donation)
                for donation in self._donations.values()
                if donation.status == "available" and donation.available_until > now
            ]

    def list_recent_donations(self, since: datetime, limit: int) -> list[Donation]:
        with self._lock:
            recent = [replace(d) for d in self._donations.values() if d.created_at >= since]
        recent.sort(key=lambda d: d.created_at, reverse=True)
        return recent[: max(limit, 0)]

    def transition_donation(self, donation_id: str, expected: str, target: str) -> Donation:
        with self._lock:
            donation = self._donations.get(donation_id)
            if donation is None:
                raise NotFound(f"Donation '{donation_id}' not found.")
            if donation.status != expected:
                raise InvalidTransition(
                    f"Donation '{donation_id}' is '{donation.status}', expected '{expected}'."
                )
            donation.status = target
            return replace(donation)

    # Acceptances
    def accept_donation(
        self,
        donation_id: str,
        acceptor_id: str,
        distance_km: float | None,
        reward_points: int,
        accepted_at: datetime,
    ) -> Acceptance:
        with self._unit_of_work() as undo:
            donation = self._donations.get(donation_id)
            if donation is None:
                raise NotFound(f"Donation '{donation_id}' not found.")

            if donation_id in self._acceptance_by_donation:
                raise AlreadyAccepted(f"Donation '{donation_id}' has already been accepted.")
            acceptance = Acceptance(
                id=_id(),
                donation_id=donation_id,
                acceptor_id=acceptor_id,
                distance_km=distance_km,
                accepted_at=accepted_at,
            )
            self._acceptances[acceptance.id] = acceptance
            self._acceptance_by_donation[donation_id] = acceptance.id
            undo.append(lambda: self._acceptances.pop(acceptance.id, None))
            undo.append(lambda: self._acceptance_by_donation.pop(donation_id, None))

            if donation.status != "available":
                raise InvalidTransition(f"Donation '{donation_id}' is '{donation.status}', not available.")
            previous_status = donation.status
            donation.status = "accepted"
            undo.append(lambda: setattr(donation, "status", previous_status))

            donor = self._profiles.get(donation.donor_id)
            if donor is None:
                raise NotFound(f"Donor profile '{donation.donor_id}' not found.")
            donor.green_points += reward_points

            return replace(acceptance)

    def complete_donation(self, donation_id: str, completed_at: datetime) -> Acceptance:
        with self._unit_of_work() as undo:
            donation = self._donations.get(donation_id)
            if donation is None:
                raise NotFound(f"Donation '{donation_id}' not found.")
            if donation.status != "accepted":
                raise InvalidTransition(f"Donation '{donation_id}' is '{donation.status}', not accepted.")
            donation.status = "completed"
            undo.append(lambda: setattr(donation, "status", "accepted"))

            acceptance_id = self._acceptance_by_donation.get(donation_id)
            if acceptance_id is None:
                raise NotFound(f"No acceptance recorded for donation '{donation_id}'.")
            acceptance = self._acceptances[acceptance_id]
            acceptance.completed_at = completed_at
            return replace(acceptance)

    def get_acceptance(self, donation_id: str) -> Acceptance | None:
        with self._lock:
            acceptance_id = self._acceptance_by_donation.get(donation_id)
            return replace(self._acceptances[acceptance_id]) if acceptance_id else None

    def list_acceptance_history(self, acceptor_id: str, limit: int) -> list[tuple[Acceptance, Donation]]:
        with self._lock:
            rows = [
                (replace(acceptance), replace(self._donations[acceptance.donation_id]))
                for acceptance in self._acceptances.values()
                if acceptance.acceptor_id == acceptor_id and acceptance.donation_id in self._donations
            ]
        rows.sort(key=lambda row: row[0].accepted_at, reverse=True)
        return rows[: max(limit, 0)]

    def rate_acceptance(self, donation_id: str, rating: int, feedback: str | None) -> Acceptance:
        with self._lock:
            acceptance_id = self._acceptance_by_donation.get(donation_id)
            if acceptance_id is None:
                raise NotFound(f"No acceptance recorded for donation '{donation_id}'.")
            acceptance = self._acceptances[acceptance_id]
            acceptance.rating = rating
            acceptance.feedback = feedback
            return replace(acceptance)

    def all_acceptances(self) -> list[Acceptance]:
        with self._lock:
            return [replace(acceptance) for acceptance in self._acceptances.values()]

    # Insights
    def insert_insights(self, insights: Sequence[Insight]) -> list[Insight]:
        stored: list[Insight] = []
        with self._lock:
            for insight in insights:
                record = replace(insight, id=insight.id or _id())
                self._insights[record.id] = record
                self._insight_seq[record.id] = next(self._sequence)
                stored.append(replace(record))
        return stored

    def list_insights(self, limit: int) -> list[Insight]:
        with self._lock:
            return [replace(insight) for insight in self._ordered_insights()[: max(limit, 0)]]

    def trim_insights(self, keep: int) -> int:
        with self._lock:
            stale = self._ordered_insights()[max(keep, 0):]
            for insight in stale:
                del self._insights[insight.id]
                del self._insight_seq[insight.id]
        if stale:
            logger.debug(f"Evicted {len(stale)} insight(s) beyond retention of {keep}")
        return len(stale)

    def _ordered_insights(self) -> list[Insight]:
        return sorted(
            self._insights.values(),
            key=lambda insight: (insight.created_at, self._insight_seq[insight.id]),
            reverse=True,
        )
