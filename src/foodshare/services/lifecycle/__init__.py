"""Donation lifecycle operations."""

from .service import accept_donation, cancel_donation, complete_donation, rate_acceptance
from .transitions import DONATION_TRANSITIONS, can_transition

__all__ = [
    "DONATION_TRANSITIONS",
    "accept_donation",
    "can_transition",
    "cancel_donation",
    "complete_donation",
    "rate_acceptance",
]
