"""Donation submission with optional image enrichment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..errors import InvalidLocation, NotFound, Unauthorized
from ..models.domain import FOOD_TYPES, Donation
from ..persistence.base import DonationStore
from .ai.client import InferenceService
from .ai.content import analyze_food_image
from .geospatial import ensure_valid

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DonationFields:
    food_name: str
    food_type: str
    quantity: str
    available_until: datetime
    pickup_address: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None


def submit_donation(
    donor_id: str,
    fields: DonationFields,
    image: bytes | None = None,
    *,
    store: DonationStore,
    mime_type: str = "image/jpeg",
    client: InferenceService | None = None,
    now: datetime | None = None,
) -> Donation:
    """Persist a new available donation at the donor's profile location.

    Image analysis is best effort: its defaults are stored when the
    inference service cannot produce a usable answer.
    """

    now = now or datetime.now(timezone.utc)
    donor = store.get_profile(donor_id)
    if donor is None:
        raise NotFound(f"Profile '{donor_id}' not found.")
    if donor.role not in ("donor", "admin"):
        raise Unauthorized(f"Profile '{donor_id}' cannot post donations.")
    if donor.location is None:
        raise InvalidLocation("Location not set in profile")
    ensure_valid(donor.location)

    food_type = (fields.food_type or "").strip().lower()
    if food_type not in FOOD_TYPES:
        raise ValueError(f"Unsupported food type '{fields.food_type}'.")
    if not fields.food_name or not fields.food_name.strip():
        raise ValueError("Food name is required.")

    available_until = fields.available_until
    if available_until.tzinfo is None:
        available_until = available_until.replace(tzinfo=timezone.utc)

    pickup_address = (fields.pickup_address or "").strip() or (donor.address or "")

    donation = Donation(
        id="",
        donor_id=donor_id,
        food_name=fields.food_name.strip(),
        food_type=food_type,
        quantity=fields.quantity,
        pickup_location=donor.location,
        pickup_address=pickup_address,
        available_until=available_until,
        created_at=now,
        description=fields.description,
        image_url=fields.image_url,
    )

    if image:
        analysis = analyze_food_image(image, mime_type=mime_type, client=client, now=now)
        donation.quality_score = analysis.quality_score
        donation.category = analysis.category
        donation.expiry_prediction = analysis.expiry_prediction
        if analysis.fallback:
            logger.info(f"Storing default image analysis for donation by {donor_id}")

    stored = store.insert_donation(donation)
    logger.info(f"Donation {stored.id} posted by {donor_id} at {pickup_address or 'unknown address'}")
    return stored
