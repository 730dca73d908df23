"""Gemini provider implementation."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
import logging
from typing import TYPE_CHECKING, Any

from google import genai

from geminichat.errors import ProviderCallError
from geminichat.providers._errors import wrap_provider_error

if TYPE_CHECKING:
    from google.genai import types

    from geminichat.request import GenerationRequest

logger = logging.getLogger(__name__)


class GeminiProvider:
    """Google Gemini provider (Developer API or Vertex AI)."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        vertexai: bool = False,
        project: str | None = None,
        location: str | None = None,
    ) -> None:
        """Create provider; the SDK client is built on first use."""
        self.api_key = api_key
        self.vertexai = vertexai
        self.project = project
        self.location = location
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazy-initialize the Gemini client."""
        if self._client is None:
            if self.vertexai:
                self._client = genai.Client(
                    vertexai=True, project=self.project, location=self.location
                )
            else:
                self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate(self, request: GenerationRequest) -> types.GenerateContentResponse:
        """Generate one complete response."""
        client = self._get_client()
        try:
            response = await client.aio.models.generate_content(
                model=request.model,
                contents=list(request.contents),
                config=request.config,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise wrap_provider_error(
                e,
                provider="gemini",
                phase="generate",
                message="Gemini generate failed",
            ) from e

        if not response:
            raise ProviderCallError(
                "Gemini returned an empty response.", provider="gemini", phase="generate"
            )
        return response

    async def generate_stream(
        self, request: GenerationRequest
    ) -> AsyncIterator[types.GenerateContentResponse]:
        """Yield response chunks; closing this generator closes the SDK stream."""
        client = self._get_client()
        try:
            stream = await client.aio.models.generate_content_stream(
                model=request.model,
                contents=list(request.contents),
                config=request.config,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise wrap_provider_error(
                e,
                provider="gemini",
                phase="stream",
                message="Gemini stream failed",
            ) from e

        try:
            async for chunk in stream:
                yield chunk
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise wrap_provider_error(
                e,
                provider="gemini",
                phase="stream",
                message="Gemini stream failed",
            ) from e
        finally:
            aclose = getattr(stream, "aclose", None)
            if callable(aclose):
                await aclose()

    async def aclose(self) -> None:
        """Close the SDK client once; later calls are no-ops."""
        client, self._client = self._client, None
        if client is None:
            return
        aio_close = getattr(getattr(client, "aio", None), "aclose", None)
        if callable(aio_close):
            await aio_close()
        close = getattr(client, "close", None)
        if callable(close):
            close()
        logger.debug("Gemini client closed")
