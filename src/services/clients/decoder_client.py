"""Decoder client abstractions and implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Annotated

from fastapi import Depends
from openai import AsyncOpenAI

from src.config import settings


class DecoderClient(ABC):
    """Abstract decoder interface for text generation models."""

    @abstractmethod
    async def decode(self, prompt: str, *, system: str | None = None) -> str:
        """Return the model's completion for ``prompt``."""


class OpenAIDecoderClient(DecoderClient):
    """Decoder implementation backed by the OpenAI Chat Completions API."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("OpenAI API key is required to initialize decoder client")
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url or None)
        self._model = model

    async def decode(self, prompt: str, *, system: str | None = None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        completion = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
        )
        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""


_decoder_client: DecoderClient | None = None


def _initialize_decoder() -> DecoderClient | None:
    if not settings.decoder_enabled:
        return None
    return OpenAIDecoderClient(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_MODEL,
    )


_decoder_client = _initialize_decoder()


def get_decoder_client() -> DecoderClient | None:
    """FastAPI dependency to obtain the configured decoder client if available."""

    return _decoder_client


DecoderDependency = Annotated[DecoderClient | None, Depends(get_decoder_client)]
