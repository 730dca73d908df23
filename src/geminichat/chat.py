"""Gemini chat model: request building, tool orchestration and streaming."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any

from geminichat import codec
from geminichat.errors import ConfigurationError, GeminiChatError
from geminichat.functions import FunctionRegistry
from geminichat.messages import (
    AssistantMessage,
    Prompt,
    ToolCall,
    ToolResponseMessage,
)
from geminichat.options import DEFAULT_OPTIONS, ChatOptions, merge_options
from geminichat.orchestrator import DEFAULT_MAX_TOOL_ROUNDS, ToolCallOrchestrator
from geminichat.request import GenerationRequest, build_request, make_resolver
from geminichat.result import ChatResponse, to_chat_response

if TYPE_CHECKING:
    from google.genai import types

    from geminichat.providers.base import Provider

logger = logging.getLogger(__name__)


class GeminiChatModel:
    """Chat model over a Gemini provider with automatic function calling.

    Example:
        model = GeminiChatModel(GeminiProvider(api_key), ChatOptions(model="gemini-2.0-flash"))

        @model.registry.function
        def get_weather(city: str) -> dict:
            '''Current weather for a city.'''
            return {"city": city, "temp_c": 21}

        reply = await model.call(
            Prompt.of("Weather in Paris?", ChatOptions(functions={"get_weather"}))
        )
        print(reply.text)
    """

    def __init__(
        self,
        provider: Provider,
        default_options: ChatOptions | None = None,
        *,
        registry: FunctionRegistry | None = None,
        max_tool_rounds: int | None = DEFAULT_MAX_TOOL_ROUNDS,
    ) -> None:
        if provider is None:
            raise ConfigurationError("provider must not be None")
        options = DEFAULT_OPTIONS if default_options is None else default_options
        if not options.model:
            raise ConfigurationError(
                "Default options must name a model",
                hint="Pass ChatOptions(model='gemini-2.0-flash').",
            )
        self._provider = provider
        self._default_options = options
        self._closed = False
        self.registry = registry if registry is not None else FunctionRegistry()
        self._orchestrator: ToolCallOrchestrator[types.GenerateContentResponse] = (
            ToolCallOrchestrator(self, max_tool_rounds=max_tool_rounds)
        )

    @property
    def default_options(self) -> ChatOptions:
        """A copy of the default options."""
        return ChatOptions.from_options(self._default_options)

    async def call(self, prompt: Prompt | str) -> ChatResponse:
        """Generate a final response, executing requested tools along the way."""
        return await self._orchestrator.call(self._as_prompt(prompt))

    def stream(self, prompt: Prompt | str) -> AsyncIterator[ChatResponse]:
        """Stream final response chunks, executing requested tools along the way."""
        return self._orchestrator.stream(self._as_prompt(prompt))

    def _as_prompt(self, prompt: Prompt | str) -> Prompt:
        if self._closed:
            raise GeminiChatError("Chat model is closed")
        if isinstance(prompt, str):
            return Prompt.of(prompt)
        return prompt

    def build_request(self, prompt: Prompt) -> GenerationRequest:
        """Build the provider request for *prompt* without sending it."""
        return build_request(prompt, self._default_options, registry=self.registry)

    # -- orchestrator capabilities -------------------------------------------

    async def generate(self, prompt: Prompt) -> types.GenerateContentResponse:
        return await self._provider.generate(self.build_request(prompt))

    def generate_stream(
        self, prompt: Prompt
    ) -> AsyncIterator[types.GenerateContentResponse]:
        return self._provider.generate_stream(self.build_request(prompt))

    def is_tool_call_request(self, response: Any) -> bool:
        """Only the first part of the first candidate is inspected."""
        candidates = getattr(response, "candidates", None)
        if not candidates:
            return False
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None)
        if not parts:
            return False
        return getattr(parts[0], "function_call", None) is not None

    def extract_tool_calls(self, response: Any) -> AssistantMessage:
        content = response.candidates[0].content
        calls = tuple(
            ToolCall(
                id=part.function_call.id or "",
                name=part.function_call.name or "",
                arguments=codec.from_struct(part.function_call.args),
            )
            for part in content.parts
            if part.function_call is not None
        )
        return AssistantMessage(content="", tool_calls=calls)

    async def execute_tool_calls(
        self, prompt: Prompt, message: AssistantMessage
    ) -> ToolResponseMessage:
        options = merge_options(prompt.options, self._default_options)
        resolver = make_resolver(prompt, self._default_options, self.registry)
        return await resolver.execute(message, parallel=bool(options.parallel_tool_calls))

    def build_continuation(
        self,
        prompt: Prompt,
        message: AssistantMessage,
        tool_response: ToolResponseMessage,
    ) -> Prompt:
        return prompt.extend((message, tool_response))

    def to_chat_response(self, response: Any) -> ChatResponse:
        model_version = getattr(response, "model_version", None)
        return to_chat_response(
            response, model=model_version if isinstance(model_version, str) else None
        )

    # -- lifecycle -----------------------------------------------------------

    async def aclose(self) -> None:
        """Release the provider once; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        await self._provider.aclose()

    async def __aenter__(self) -> GeminiChatModel:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            await self.aclose()
        except asyncio.CancelledError:
            raise
        except Exception as cleanup_exc:
            if exc is None:
                raise
            # Cleanup should never mask the primary failure.
            logger.warning("Provider cleanup failed: %s", cleanup_exc)
