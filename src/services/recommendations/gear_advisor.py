"""Cycling gear recommendations produced by the decoder model."""

from __future__ import annotations

import logging

from src.services.catalog.errors import ServiceUnavailable
from src.services.clients.decoder_client import DecoderClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert cycling gear advisor."

PROMPT_TEMPLATE = """Based on the cycle details and riding preferences provided, recommend relevant accessories and gear.
Explain why each item is suitable for the given cycle and preferences.

Cycle Details: {cycle_details}
Riding Preferences: {riding_preferences}

Format the recommendations as a list."""


def build_prompt(cycle_details: str, riding_preferences: str) -> str:
    return PROMPT_TEMPLATE.format(
        cycle_details=cycle_details.strip() or "not specified",
        riding_preferences=riding_preferences.strip(),
    )


async def recommend_gear(
    decoder: DecoderClient | None,
    cycle_details: str,
    riding_preferences: str,
) -> str:
    if decoder is None:
        raise ServiceUnavailable("Gear recommendations are not configured")

    prompt = build_prompt(cycle_details, riding_preferences)
    try:
        return await decoder.decode(prompt, system=SYSTEM_PROMPT)
    except Exception as exc:
        logger.exception("Decoder failed to produce gear recommendations")
        raise ServiceUnavailable(
            "Sorry, we couldn't generate recommendations at this time"
        ) from exc
