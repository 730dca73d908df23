"""Mock provider for offline use and testing."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable, Sequence
from typing import TYPE_CHECKING, Any

from google.genai import types

if TYPE_CHECKING:
    from geminichat.request import GenerationRequest

ScriptItem = types.GenerateContentResponse | BaseException


def text_response(
    *texts: str,
    prompt_tokens: int = 10,
    completion_tokens: int = 10,
) -> types.GenerateContentResponse:
    """Build a single-candidate response with one text part per *texts* item."""
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(
                    role="model", parts=[types.Part(text=t) for t in texts]
                )
            )
        ],
        usage_metadata=types.GenerateContentResponseUsageMetadata(
            prompt_token_count=prompt_tokens,
            candidates_token_count=completion_tokens,
            total_token_count=prompt_tokens + completion_tokens,
        ),
    )


def function_call_response(
    *calls: tuple[str, dict[str, Any]],
    leading_text: str | None = None,
) -> types.GenerateContentResponse:
    """Build a response requesting each ``(name, args)`` call in order."""
    parts: list[types.Part] = []
    if leading_text is not None:
        parts.append(types.Part(text=leading_text))
    parts.extend(
        types.Part(function_call=types.FunctionCall(name=name, args=args))
        for name, args in calls
    )
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=parts))]
    )


class MockProvider:
    """Provider returning scripted responses without API calls.

    ``script`` feeds ``generate``; each entry of ``stream_script`` is the chunk
    sequence for one ``generate_stream`` call. Exceptions in either script are
    raised in place. With an empty script the provider echoes the last user
    text.
    """

    def __init__(
        self,
        script: Iterable[ScriptItem] = (),
        stream_script: Iterable[Sequence[ScriptItem]] = (),
    ) -> None:
        self.script: list[ScriptItem] = list(script)
        self.stream_script: list[Sequence[ScriptItem]] = list(stream_script)
        self.requests: list[GenerationRequest] = []
        #: Every chunk handed out by generate_stream, across calls.
        self.streamed: list[types.GenerateContentResponse] = []
        self.close_calls = 0

    @property
    def generate_calls(self) -> int:
        return len(self.requests)

    async def generate(self, request: GenerationRequest) -> types.GenerateContentResponse:
        """Return the next scripted response."""
        self.requests.append(request)
        item = self.script.pop(0) if self.script else _echo(request)
        if isinstance(item, BaseException):
            raise item
        return item

    async def generate_stream(
        self, request: GenerationRequest
    ) -> AsyncIterator[types.GenerateContentResponse]:
        """Yield the next scripted chunk sequence."""
        self.requests.append(request)
        chunks = self.stream_script.pop(0) if self.stream_script else [_echo(request)]
        for chunk in chunks:
            if isinstance(chunk, BaseException):
                raise chunk
            self.streamed.append(chunk)
            yield chunk

    async def aclose(self) -> None:
        self.close_calls += 1


def _echo(request: GenerationRequest) -> types.GenerateContentResponse:
    text = ""
    for content in reversed(request.contents):
        if content.role == "user" and content.parts and content.parts[0].text:
            text = content.parts[0].text
            break
    return text_response(f"echo: {text[:100]}")
