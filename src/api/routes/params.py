"""Helpers shared by routes that accept listing filters."""

from __future__ import annotations

from fastapi import Request

from src.services.catalog.filters import RawParams


def query_params(request: Request) -> RawParams:
    """Collapse the query string into name -> list of values."""
    params = request.query_params
    return {key: params.getlist(key) for key in params.keys()}


def client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"
