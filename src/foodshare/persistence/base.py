"""Storage contract consumed by the matching, lifecycle and insight services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Sequence

from ..models.domain import Acceptance, Donation, Insight, Profile


class DonationStore(ABC):
    """Query interface over profiles, donations, acceptances and insights.

    Implementations must enforce a uniqueness constraint on the donation
    reference of acceptances and apply ``accept_donation`` and
    ``complete_donation`` as single units of work.
    """

    backend: str = "abstract"

    # Profiles
    @abstractmethod
    def get_profile(self, profile_id: str) -> Profile | None:
        raise NotImplementedError

    @abstractmethod
    def update_preferred_food_types(self, profile_id: str, food_types: Sequence[str]) -> Profile:
        raise NotImplementedError

    # Donations
    @abstractmethod
    def insert_donation(self, donation: Donation) -> Donation:
        raise NotImplementedError

    @abstractmethod
    def get_donation(self, donation_id: str) -> Donation | None:
        raise NotImplementedError

    @abstractmethod
    def list_available_donations(self, now: datetime) -> list[Donation]:
        """Donations with status ``available`` and ``available_until`` after ``now``."""
        raise NotImplementedError

    @abstractmethod
    def list_recent_donations(self, since: datetime, limit: int) -> list[Donation]:
        """Donations created at or after ``since``, newest first, at most ``limit``."""
        raise NotImplementedError

    @abstractmethod
    def transition_donation(self, donation_id: str, expected: str, target: str) -> Donation:
        """Compare-and-set the status; raise ``InvalidTransition`` if it is no longer ``expected``."""
        raise NotImplementedError

    # Acceptances
    @abstractmethod
    def accept_donation(
        self,
        donation_id: str,
        acceptor_id: str,
        distance_km: float | None,
        reward_points: int,
        accepted_at: datetime,
    ) -> Acceptance:
        """Insert the acceptance, mark the donation accepted and credit the donor atomically.

        Raises ``AlreadyAccepted`` when the uniqueness constraint on the
        donation reference rejects the insert.
        """
        raise NotImplementedError

    @abstractmethod
    def complete_donation(self, donation_id: str, completed_at: datetime) -> Acceptance:
        raise NotImplementedError

    @abstractmethod
    def get_acceptance(self, donation_id: str) -> Acceptance | None:
        raise NotImplementedError

    @abstractmethod
    def list_acceptance_history(self, acceptor_id: str, limit: int) -> list[tuple[Acceptance, Donation]]:
        """Acceptances by ``acceptor_id`` joined with their donation, most recent first."""
        raise NotImplementedError

    @abstractmethod
    def rate_acceptance(self, donation_id: str, rating: int, feedback: str | None) -> Acceptance:
        raise NotImplementedError

    # Insights
    @abstractmethod
    def insert_insights(self, insights: Sequence[Insight]) -> list[Insight]:
        raise NotImplementedError

    @abstractmethod
    def list_insights(self, limit: int) -> list[Insight]:
        """Stored insights, newest first."""
        raise NotImplementedError

    @abstractmethod
    def trim_insights(self, keep: int) -> int:
        """Delete all but the ``keep`` most recent insights; return the number removed."""
        raise NotImplementedError
