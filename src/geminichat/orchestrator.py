"""Tool-call orchestration loop.

A response whose first part is a function call is a tool request: the calls
are executed, the synthetic assistant turn and the tool results are appended
to a copy of the conversation, and generation is reissued. Anything else is
final and becomes the result.

The loop is provider-agnostic. Model adapters supply the capabilities in
``ToolCallSupport`` and compose an orchestrator rather than inheriting one.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
import logging
from typing import Generic, Protocol, TypeVar

from geminichat.errors import ToolCallLimitError
from geminichat.messages import AssistantMessage, Prompt, ToolResponseMessage
from geminichat.result import ChatResponse

logger = logging.getLogger(__name__)

#: Default bound on consecutive tool rounds within one call.
DEFAULT_MAX_TOOL_ROUNDS = 10

ResponseT = TypeVar("ResponseT")


class ToolCallSupport(Protocol[ResponseT]):
    """Capabilities an adapter provides to the orchestrator."""

    async def generate(self, prompt: Prompt) -> ResponseT:
        """Issue one provider call for *prompt*."""
        ...

    def generate_stream(self, prompt: Prompt) -> AsyncIterator[ResponseT]:
        """Open a provider response stream for *prompt*."""
        ...

    def is_tool_call_request(self, response: ResponseT) -> bool:
        """Whether *response* asks for tool execution."""
        ...

    def extract_tool_calls(self, response: ResponseT) -> AssistantMessage:
        """Build the synthetic assistant turn carrying the requested calls."""
        ...

    async def execute_tool_calls(
        self, prompt: Prompt, message: AssistantMessage
    ) -> ToolResponseMessage:
        """Execute the calls of *message* in the context of *prompt*."""
        ...

    def build_continuation(
        self,
        prompt: Prompt,
        message: AssistantMessage,
        tool_response: ToolResponseMessage,
    ) -> Prompt:
        """Return the conversation to continue generation with."""
        ...

    def to_chat_response(self, response: ResponseT) -> ChatResponse:
        """Normalize a final response."""
        ...


class ToolCallOrchestrator(Generic[ResponseT]):
    """Drive generate -> execute tools -> generate until a final answer.

    Args:
        support: Adapter capabilities.
        max_tool_rounds: Tool rounds allowed per call; ``None`` is unbounded.
    """

    def __init__(
        self,
        support: ToolCallSupport[ResponseT],
        *,
        max_tool_rounds: int | None = DEFAULT_MAX_TOOL_ROUNDS,
    ) -> None:
        self.support = support
        self.max_tool_rounds = max_tool_rounds

    async def call(self, prompt: Prompt) -> ChatResponse:
        """Return the final response, running tool rounds as requested."""
        rounds = 0
        while True:
            response = await self.support.generate(prompt)
            if not self.support.is_tool_call_request(response):
                return self.support.to_chat_response(response)
            rounds += 1
            prompt = await self._handle_tool_request(prompt, response, rounds)

    async def stream(self, prompt: Prompt) -> AsyncIterator[ChatResponse]:
        """Yield final items in order, switching streams on tool requests.

        A tool request closes the current provider stream without draining
        it; its remaining items are never surfaced.
        """
        rounds = 0
        while True:
            tool_request: ResponseT | None = None
            chunks = self.support.generate_stream(prompt)
            try:
                async for chunk in chunks:
                    if self.support.is_tool_call_request(chunk):
                        tool_request = chunk
                        break
                    yield self.support.to_chat_response(chunk)
            finally:
                await _aclose(chunks)

            if tool_request is None:
                return
            rounds += 1
            prompt = await self._handle_tool_request(prompt, tool_request, rounds)

    async def _handle_tool_request(
        self, prompt: Prompt, response: ResponseT, rounds: int
    ) -> Prompt:
        if self.max_tool_rounds is not None and rounds > self.max_tool_rounds:
            raise ToolCallLimitError(self.max_tool_rounds)

        message = self.support.extract_tool_calls(response)
        logger.debug(
            "Tool round %d: executing %s",
            rounds,
            [call.name for call in message.tool_calls],
        )
        tool_response = await self.support.execute_tool_calls(prompt, message)
        return self.support.build_continuation(prompt, message, tool_response)


async def _aclose(stream: object) -> None:
    aclose = getattr(stream, "aclose", None)
    if callable(aclose):
        await aclose()
