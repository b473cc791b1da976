"""Donation matching helpers."""

from .proximity import NearbyDonation, find_nearby, match_donations

__all__ = ["NearbyDonation", "find_nearby", "match_donations"]
