"""System-level routes such as health checks."""

from __future__ import annotations

from fastapi import APIRouter

from src.config import settings

router = APIRouter(tags=["system"])


@router.get("/")
async def read_root() -> dict[str, str]:
    """Hello World endpoint used by smoke tests."""

    return {"message": "Cycling gear catalog"}


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {
        "status": "healthy",
        "store": settings.STORE_BACKEND,
        "environment": settings.ENVIRONMENT,
    }
