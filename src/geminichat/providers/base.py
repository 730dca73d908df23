"""Provider protocol: minimal interface for generation backends."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from google.genai import types

    from geminichat.request import GenerationRequest


@runtime_checkable
class Provider(Protocol):
    """Minimal provider protocol: generate, generate_stream, aclose."""

    async def generate(
        self, request: GenerationRequest
    ) -> types.GenerateContentResponse:
        """Generate one complete response."""
        ...

    def generate_stream(
        self, request: GenerationRequest
    ) -> AsyncIterator[types.GenerateContentResponse]:
        """Yield response chunks as the model produces them."""
        ...

    async def aclose(self) -> None:
        """Release the underlying client. Safe to call more than once."""
        ...
