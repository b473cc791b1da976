"""Domain models for profiles, donations, acceptances and insights."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

FoodType = Literal["vegetarian", "non-vegetarian", "vegan", "mixed"]
DonationStatus = Literal["available", "accepted", "completed", "cancelled"]
UserRole = Literal["donor", "acceptor", "admin"]

FOOD_TYPES: tuple[str, ...] = ("vegetarian", "non-vegetarian", "vegan", "mixed")
DONATION_STATUSES: tuple[str, ...] = ("available", "accepted", "completed", "cancelled")
USER_ROLES: tuple[str, ...] = ("donor", "acceptor", "admin")


@dataclass(frozen=True, slots=True)
class Coordinate:
    """Latitude/longitude pair in degrees."""

    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0


@dataclass(slots=True)
class Profile:
    """Account record as seen by the matching core."""

    id: str
    role: str
    location: Optional[Coordinate] = None
    is_verified: bool = False
    green_points: int = 0
    preferred_food_types: list[str] = field(default_factory=list)
    full_name: Optional[str] = None
    address: Optional[str] = None
    organization_name: Optional[str] = None


@dataclass(slots=True)
class Donation:
    """Surplus food posted by a donor."""

    id: str
    donor_id: str
    food_name: str
    food_type: str
    quantity: str
    pickup_location: Coordinate
    pickup_address: str
    available_until: datetime
    created_at: datetime
    status: str = "available"
    description: Optional[str] = None
    image_url: Optional[str] = None
    quality_score: Optional[float] = None
    category: Optional[str] = None
    expiry_prediction: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.available_until <= now


@dataclass(slots=True)
class Acceptance:
    """Claim of a donation by an acceptor; at most one per donation."""

    id: str
    donation_id: str
    acceptor_id: str
    distance_km: Optional[float]
    accepted_at: datetime
    completed_at: Optional[datetime] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None


@dataclass(slots=True)
class Insight:
    """Narrative statistic generated from recent donation history."""

    id: str
    title: str
    message: str
    created_at: datetime
    insight_type: str = "general"
