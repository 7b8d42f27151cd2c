"""Gear recommendation route."""

from __future__ import annotations

from fastapi import APIRouter

from src.models.recommendation import GearRecommendationRequest, GearRecommendationResponse
from src.services.clients.decoder_client import DecoderDependency
from src.services.recommendations.gear_advisor import recommend_gear

router = APIRouter(tags=["recommendations"])


@router.post(
    "/gear-recommendations",
    response_model=GearRecommendationResponse,
    summary="Recommend accessories for a cycle and riding style",
)
async def gear_recommendations(
    payload: GearRecommendationRequest,
    decoder: DecoderDependency,
) -> GearRecommendationResponse:
    recommendations = await recommend_gear(
        decoder,
        payload.cycle_details,
        payload.riding_preferences,
    )
    return GearRecommendationResponse(recommendations=recommendations)
