"""Typed failures raised by the matching, lifecycle and enrichment services."""

from __future__ import annotations


class FoodShareError(Exception):
    """Base class for domain failures surfaced to API callers."""


class InvalidLocation(FoodShareError):
    """Coordinates are missing or outside the valid latitude/longitude ranges."""


class NotFound(FoodShareError):
    """A referenced profile, donation or acceptance does not exist."""


class InvalidTransition(FoodShareError):
    """The requested lifecycle move is not legal from the donation's current status."""


class AlreadyAccepted(FoodShareError):
    """Another acceptor claimed the donation first."""


class Unauthorized(FoodShareError):
    """Role, verification or ownership check failed."""


class InferenceUnavailable(FoodShareError):
    """The inference service failed, timed out or returned unusable output."""
