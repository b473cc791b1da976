"""Assistant replies for the platform help widget."""

from __future__ import annotations

import logging

from ...config import settings
from ...errors import InferenceUnavailable
from .client import InferenceClient, InferenceService

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "I'm having trouble processing your request right now. "
    "Please try asking about registration, NGO verification, or coverage areas."
)

PLATFORM_PROMPT = """You are a helpful AI assistant for a food donation platform.

PLATFORM INFORMATION:
- Purpose: Connects food donors (individuals, restaurants, caterers) with verified NGOs and welfare organizations
- Features: AI-powered food quality analysis, proximity matching, Green Points rewards, NGO verification system

KEY FEATURES:
1. DONORS post donations with photos; AI analyzes food quality and suggests expiry times.
2. Verified NGOs browse available donations within {radius:g}km and accept them.
3. Donors earn {points} Green Points for each accepted donation.
4. NGOs must be verified by an admin before they can see donations.
{context}
USER QUESTION: "{message}"

INSTRUCTIONS: Answer the user's specific question based on the platform information above. Be concise (2-3 sentences), friendly, and directly address what they asked."""


def generate_chatbot_response(
    message: str,
    context: str | None = None,
    *,
    client: InferenceService | None = None,
) -> str:
    if not message or not message.strip():
        raise ValueError("Message is required")

    prompt = PLATFORM_PROMPT.format(
        radius=settings.default_radius_km,
        points=settings.acceptance_reward_points,
        context=f"\nAdditional Context: {context}\n" if context else "",
        message=message.strip(),
    )
    try:
        service = client or InferenceClient()
        reply = service.generate(prompt)
    except InferenceUnavailable as exc:
        logger.warning(f"Chatbot reply unavailable: {exc}")
        return FALLBACK_REPLY
    return reply.strip() or FALLBACK_REPLY
