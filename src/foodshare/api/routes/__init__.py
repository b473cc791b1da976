"""Route group exports."""

from . import ai, donations, health, insights

__all__ = ["ai", "donations", "health", "insights"]
