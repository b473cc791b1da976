"""Donation submission, matching and lifecycle endpoints."""

from __future__ import annotations

import base64
import binascii
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...config import settings
from ...errors import FoodShareError
from ...persistence import DonationStore, get_store
from ...schemas.donations import (
    AcceptanceModel,
    AcceptedDonationModel,
    AcceptRequest,
    CancelRequest,
    CompleteRequest,
    DonationCreateRequest,
    DonationModel,
    MatchResponse,
    NearbyDonationModel,
    RatingRequest,
)
from ...services.donations import DonationFields, submit_donation
from ...services.geospatial import format_distance
from ...services.lifecycle import accept_donation, cancel_donation, complete_donation, rate_acceptance
from ...services.matching import match_donations
from ..errors import to_http_exception

router = APIRouter(tags=["donations"])


def _decode_image(payload: str | None) -> bytes | None:
    if not payload:
        return None
    # tolerate data URLs from browser file readers
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Image must be base64 encoded.") from exc


@router.post("/donations", response_model=DonationModel, status_code=status.HTTP_201_CREATED)
def create_donation(request: DonationCreateRequest, store: DonationStore = Depends(get_store)) -> DonationModel:
    image = _decode_image(request.image_base64)
    fields = DonationFields(
        food_name=request.food_name,
        food_type=request.food_type,
        quantity=request.quantity,
        available_until=request.available_until,
        pickup_address=request.pickup_address,
        description=request.description,
        image_url=request.image_url,
    )
    try:
        donation = submit_donation(
            request.donor_id, fields, image, store=store, mime_type=request.image_mime_type
        )
    except (FoodShareError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return DonationModel.model_validate(donation)


@router.get("/donations/{donation_id}", response_model=DonationModel)
def get_donation(donation_id: str, store: DonationStore = Depends(get_store)) -> DonationModel:
    donation = store.get_donation(donation_id)
    if donation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Donation '{donation_id}' not found.")
    return DonationModel.model_validate(donation)


@router.get("/acceptors/{acceptor_id}/matches", response_model=MatchResponse)
def get_matches(
    acceptor_id: str,
    radius_km: float | None = Query(default=None, gt=0, le=100, description="Override the default matching radius"),
    store: DonationStore = Depends(get_store),
) -> MatchResponse:
    radius = radius_km if radius_km is not None else settings.default_radius_km
    try:
        matches = match_donations(acceptor_id, store=store, radius_km=radius)
    except FoodShareError as exc:
        raise to_http_exception(exc) from exc
    return MatchResponse(
        acceptor_id=acceptor_id,
        radius_km=radius,
        items=[
            NearbyDonationModel(
                donation=DonationModel.model_validate(match.donation),
                distance_km=match.distance_km,
                distance_label=format_distance(match.distance_km),
            )
            for match in matches
        ],
    )


@router.get("/acceptors/{acceptor_id}/acceptances", response_model=List[AcceptedDonationModel])
def get_acceptances(
    acceptor_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    store: DonationStore = Depends(get_store),
) -> List[AcceptedDonationModel]:
    rows = store.list_acceptance_history(acceptor_id, limit)
    return [
        AcceptedDonationModel(
            acceptance=AcceptanceModel.model_validate(acceptance),
            donation=DonationModel.model_validate(donation),
        )
        for acceptance, donation in rows
    ]


@router.post("/donations/{donation_id}/accept", response_model=AcceptanceModel, status_code=status.HTTP_201_CREATED)
def accept(donation_id: str, request: AcceptRequest, store: DonationStore = Depends(get_store)) -> AcceptanceModel:
    try:
        acceptance = accept_donation(donation_id, request.acceptor_id, request.distance_km, store=store)
    except FoodShareError as exc:
        raise to_http_exception(exc) from exc
    return AcceptanceModel.model_validate(acceptance)


@router.post("/donations/{donation_id}/complete", response_model=AcceptanceModel)
def complete(
    donation_id: str,
    request: CompleteRequest | None = None,
    store: DonationStore = Depends(get_store),
) -> AcceptanceModel:
    actor_id = request.actor_id if request else None
    try:
        acceptance = complete_donation(donation_id, actor_id, store=store)
    except FoodShareError as exc:
        raise to_http_exception(exc) from exc
    return AcceptanceModel.model_validate(acceptance)


@router.post("/donations/{donation_id}/cancel", response_model=DonationModel)
def cancel(donation_id: str, request: CancelRequest, store: DonationStore = Depends(get_store)) -> DonationModel:
    try:
        donation = cancel_donation(donation_id, request.actor_id, store=store)
    except FoodShareError as exc:
        raise to_http_exception(exc) from exc
    return DonationModel.model_validate(donation)


@router.post("/donations/{donation_id}/rating", response_model=AcceptanceModel)
def rate(donation_id: str, request: RatingRequest, store: DonationStore = Depends(get_store)) -> AcceptanceModel:
    try:
        acceptance = rate_acceptance(
            donation_id, request.acceptor_id, request.rating, request.feedback, store=store
        )
    except (FoodShareError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return AcceptanceModel.model_validate(acceptance)
