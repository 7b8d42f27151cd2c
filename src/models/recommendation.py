"""Schemas for the gear recommendation endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field


class GearRecommendationRequest(BaseModel):
    cycle_details: str = Field(
        "",
        alias="cycleDetails",
        description="Type, brand and features of the selected cycle",
    )
    riding_preferences: str = Field(
        ...,
        alias="ridingPreferences",
        min_length=10,
        description="Terrain, style and typical ride duration",
    )


class GearRecommendationResponse(BaseModel):
    recommendations: str
