"""Donation and acceptance API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FoodTypeField = Literal["vegetarian", "non-vegetarian", "vegan", "mixed"]


class CoordinateModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    latitude: float
    longitude: float


class DonationModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    donor_id: str
    food_name: str
    food_type: str
    quantity: str
    pickup_location: CoordinateModel
    pickup_address: str
    available_until: datetime
    created_at: datetime
    status: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    quality_score: Optional[float] = None
    category: Optional[str] = None
    expiry_prediction: Optional[datetime] = None


class NearbyDonationModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    donation: DonationModel
    distance_km: float
    distance_label: str


class MatchResponse(BaseModel):
    acceptor_id: str
    radius_km: float
    items: List[NearbyDonationModel]


class AcceptanceModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    donation_id: str
    acceptor_id: str
    distance_km: Optional[float] = None
    accepted_at: datetime
    completed_at: Optional[datetime] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None


class AcceptedDonationModel(BaseModel):
    acceptance: AcceptanceModel
    donation: DonationModel


class DonationCreateRequest(BaseModel):
    donor_id: str
    food_name: str = Field(..., min_length=1)
    food_type: FoodTypeField
    quantity: str
    available_until: datetime
    pickup_address: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    image_base64: Optional[str] = Field(default=None, description="Optional base64-encoded food photo.")
    image_mime_type: str = "image/jpeg"


class AcceptRequest(BaseModel):
    acceptor_id: str
    distance_km: Optional[float] = Field(default=None, ge=0.0)


class CompleteRequest(BaseModel):
    actor_id: Optional[str] = None


class CancelRequest(BaseModel):
    actor_id: str


class RatingRequest(BaseModel):
    acceptor_id: str
    rating: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = None
