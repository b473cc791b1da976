"""Supabase-backed implementation of the donation store."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence

from postgrest.exceptions import APIError

from ..db.supabase import get_supabase_client
from ..errors import AlreadyAccepted, InvalidTransition, NotFound
from ..models.domain import Acceptance, Coordinate, Donation, Insight, Profile
from .base import DonationStore

logger = logging.getLogger(__name__)

# Postgres error codes raised by the functions in sql/schema.sql
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NO_DATA_FOUND = "P0002"
NOT_IN_PREREQUISITE_STATE = "55000"


def _parse_ts(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _single_row(data: Any) -> dict | None:
    if isinstance(data, list):
        return data[0] if data else None
    return data or None


def _profile_from_row(row: dict) -> Profile:
    latitude, longitude = row.get("latitude"), row.get("longitude")
    location = None
    if latitude is not None and longitude is not None:
        location = Coordinate(float(latitude), float(longitude))
    return Profile(
        id=str(row["id"]),
        role=row.get("role") or "donor",
        location=location,
        is_verified=bool(row.get("is_verified")),
        green_points=int(row.get("green_points") or 0),
        preferred_food_types=list(row.get("preferred_food_types") or []),
        full_name=row.get("full_name"),
        address=row.get("address"),
        organization_name=row.get("organization_name"),
    )


def _donation_from_row(row: dict) -> Donation:
    quality = row.get("ai_quality_score")
    return Donation(
        id=str(row["id"]),
        donor_id=str(row["donor_id"]),
        food_name=row.get("food_name") or "",
        food_type=row.get("food_type") or "mixed",
        quantity=row.get("quantity") or "",
        pickup_location=Coordinate(float(row["latitude"]), float(row["longitude"])),
        pickup_address=row.get("pickup_address") or "",
        available_until=_parse_ts(row["available_until"]),
        created_at=_parse_ts(row.get("created_at")) or datetime.now(timezone.utc),
        status=row.get("status") or "available",
        description=row.get("description"),
        image_url=row.get("image_url"),
        quality_score=float(quality) if quality is not None else None,
        category=row.get("ai_category"),
        expiry_prediction=_parse_ts(row.get("ai_expiry_prediction")),
    )


def _donation_to_row(donation: Donation) -> dict:
    row = {
        "donor_id": donation.donor_id,
        "food_name": donation.food_name,
        "food_type": donation.food_type,
        "quantity": donation.quantity,
        "description": donation.description,
        "pickup_address": donation.pickup_address,
        "latitude": donation.pickup_location.latitude,
        "longitude": donation.pickup_location.longitude,
        "available_until": _iso(donation.available_until),
        "status": donation.status,
        "ai_quality_score": donation.quality_score,
        "ai_category": donation.category,
        "ai_expiry_prediction": _iso(donation.expiry_prediction),
        "image_url": donation.image_url,
        "created_at": _iso(donation.created_at),
    }
    if donation.id:
        row["id"] = donation.id
    return row


def _acceptance_from_row(row: dict) -> Acceptance:
    distance = row.get("distance_km")
    rating = row.get("rating")
    return Acceptance(
        id=str(row["id"]),
        donation_id=str(row["donation_id"]),
        acceptor_id=str(row["acceptor_id"]),
        distance_km=float(distance) if distance is not None else None,
        accepted_at=_parse_ts(row.get("accepted_at")) or datetime.now(timezone.utc),
        completed_at=_parse_ts(row.get("completed_at")),
        rating=int(rating) if rating is not None else None,
        feedback=row.get("feedback"),
    )


def _insight_from_row(row: dict) -> Insight:
    return Insight(
        id=str(row["id"]),
        title=row.get("title") or "",
        message=row.get("message") or "",
        created_at=_parse_ts(row.get("created_at")) or datetime.now(timezone.utc),
        insight_type=row.get("insight_type") or "general",
    )


def _translate_api_error(error: APIError, subject: str) -> Exception:
    """Map Postgres error codes raised by RPC functions onto the domain taxonomy."""

    code = getattr(error, "code", None)
    message = getattr(error, "message", None) or str(error)
    if code == UNIQUE_VIOLATION:
        return AlreadyAccepted(f"{subject} has already been accepted.")
    if code in (NO_DATA_FOUND, FOREIGN_KEY_VIOLATION):
        return NotFound(message)
    if code == NOT_IN_PREREQUISITE_STATE:
        return InvalidTransition(message)
    return error


class SupabaseStore(DonationStore):
    """Store backed by the Supabase tables described in ``sql/schema.sql``."""

    backend = "supabase"

    def __init__(self, client=None) -> None:
        self.client = client or get_supabase_client()
        if self.client is None:
            raise RuntimeError("Supabase is not configured. Set FOODSHARE_SUPABASE_URL and FOODSHARE_SUPABASE_KEY.")

    # Profiles
    def get_profile(self, profile_id: str) -> Profile | None:
        response = self.client.table("profiles").select("*").eq("id", profile_id).limit(1).execute()
        row = _single_row(response.data)
        return _profile_from_row(row) if row else None

    def update_preferred_food_types(self, profile_id: str, food_types: Sequence[str]) -> Profile:
        response = (
            self.client.table("profiles")
            .update({"preferred_food_types": list(food_types)})
            .eq("id", profile_id)
            .execute()
        )
        row = _single_row(response.data)
        if not row:
            raise NotFound(f"Profile '{profile_id}' not found.")
        return _profile_from_row(row)

    # Donations
    def insert_donation(self, donation: Donation) -> Donation:
        response = self.client.table("donations").insert(_donation_to_row(donation)).execute()
        row = _single_row(response.data)
        if not row:
            raise RuntimeError("Supabase returned no row for inserted donation.")
        return _donation_from_row(row)

    def get_donation(self, donation_id: str) -> Donation | None:
        response = self.client.table("donations").select("*").eq("id", donation_id).limit(1).execute()
        row = _single_row(response.data)
        return _donation_from_row(row) if row else None

    def list_available_donations(self, now: datetime) -> list[Donation]:
        response = (
            self.client.table("donations")
            .select("*")
            .eq("status", "available")
            .gt("available_until", now.isoformat())
            .execute()
        )
        return [_donation_from_row(row) for row in (response.data or [])]

    def list_recent_donations(self, since: datetime, limit: int) -> list[Donation]:
        response = (
            self.client.table("donations")
            .select("*")
            .gte("created_at", since.isoformat())
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_donation_from_row(row) for row in (response.data or [])]

    def transition_donation(self, donation_id: str, expected: str, target: str) -> Donation:
        response = (
            self.client.table("donations")
            .update({"status": target})
            .eq("id", donation_id)
            .eq("status", expected)
            .execute()
        )
        row = _single_row(response.data)
        if row:
            return _donation_from_row(row)
        if self.get_donation(donation_id) is None:
            raise NotFound(f"Donation '{donation_id}' not found.")
        raise InvalidTransition(f"Donation '{donation_id}' is no longer '{expected}'.")

    # Acceptances
    def accept_donation(
        self,
        donation_id: str,
        acceptor_id: str,
        distance_km: float | None,
        reward_points: int,
        accepted_at: datetime,
    ) -> Acceptance:
        params = {
            "p_donation_id": donation_id,
            "p_acceptor_id": acceptor_id,
            "p_distance_km": distance_km,
            "p_reward_points": reward_points,
            "p_accepted_at": accepted_at.isoformat(),
        }
        try:
            response = self.client.rpc("accept_donation", params).execute()
        except APIError as error:
            raise _translate_api_error(error, f"Donation '{donation_id}'") from error
        row = _single_row(response.data)
        if not row:
            raise RuntimeError(f"accept_donation returned no acceptance for donation '{donation_id}'.")
        return _acceptance_from_row(row)

    def complete_donation(self, donation_id: str, completed_at: datetime) -> Acceptance:
        params = {"p_donation_id": donation_id, "p_completed_at": completed_at.isoformat()}
        try:
            response = self.client.rpc("complete_donation", params).execute()
        except APIError as error:
            raise _translate_api_error(error, f"Donation '{donation_id}'") from error
        row = _single_row(response.data)
        if not row:
            raise RuntimeError(f"complete_donation returned no acceptance for donation '{donation_id}'.")
        return _acceptance_from_row(row)

    def get_acceptance(self, donation_id: str) -> Acceptance | None:
        response = (
            self.client.table("donation_acceptances")
            .select("*")
            .eq("donation_id", donation_id)
            .limit(1)
            .execute()
        )
        row = _single_row(response.data)
        return _acceptance_from_row(row) if row else None

    def list_acceptance_history(self, acceptor_id: str, limit: int) -> list[tuple[Acceptance, Donation]]:
        response = (
            self.client.table("donation_acceptances")
            .select("*, donations(*)")
            .eq("acceptor_id", acceptor_id)
            .order("accepted_at", desc=True)
            .limit(limit)
            .execute()
        )
        history: list[tuple[Acceptance, Donation]] = []
        for row in response.data or []:
            donation_row = row.get("donations")
            if not donation_row:
                logger.warning(f"Acceptance {row.get('id')} has no joined donation; skipping")
                continue
            history.append((_acceptance_from_row(row), _donation_from_row(donation_row)))
        return history

    def rate_acceptance(self, donation_id: str, rating: int, feedback: str | None) -> Acceptance:
        response = (
            self.client.table("donation_acceptances")
            .update({"rating": rating, "feedback": feedback})
            .eq("donation_id", donation_id)
            .execute()
        )
        row = _single_row(response.data)
        if not row:
            raise NotFound(f"No acceptance recorded for donation '{donation_id}'.")
        return _acceptance_from_row(row)

    # Insights
    def insert_insights(self, insights: Sequence[Insight]) -> list[Insight]:
        if not insights:
            return []
        rows = []
        for insight in insights:
            row = {
                "title": insight.title,
                "message": insight.message,
                "insight_type": insight.insight_type,
                "created_at": _iso(insight.created_at),
            }
            if insight.id:
                row["id"] = insight.id
            rows.append(row)
        response = self.client.table("ai_insights").insert(rows).execute()
        return [_insight_from_row(row) for row in (response.data or [])]

    def list_insights(self, limit: int) -> list[Insight]:
        response = (
            self.client.table("ai_insights")
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_insight_from_row(row) for row in (response.data or [])]

    def trim_insights(self, keep: int) -> int:
        response = (
            self.client.table("ai_insights")
            .select("id")
            .order("created_at", desc=True)
            .execute()
        )
        stale_ids = [row["id"] for row in (response.data or [])][keep:]
        if stale_ids:
            self.client.table("ai_insights").delete().in_("id", stale_ids).execute()
            logger.info(f"Deleted {len(stale_ids)} insight(s) beyond retention of {keep}")
        return len(stale_ids)
