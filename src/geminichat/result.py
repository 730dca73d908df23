"""Provider response -> chat result normalization."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Usage:
    """Token counters reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class ResponseMetadata:
    """Metadata attached to a chat response."""

    usage: Usage = field(default_factory=Usage)
    model: str | None = None


@dataclass(frozen=True)
class Generation:
    """One generated text segment."""

    text: str


@dataclass(frozen=True)
class ChatResponse:
    """Ordered generated segments plus response metadata."""

    generations: tuple[Generation, ...] = ()
    metadata: ResponseMetadata = field(default_factory=ResponseMetadata)

    @property
    def text(self) -> str:
        """All segments concatenated in order."""
        return "".join(g.text for g in self.generations)

    @property
    def result(self) -> Generation | None:
        """The first generation, if any."""
        return self.generations[0] if self.generations else None


def _count(usage_metadata: Any, attr: str) -> int:
    value = getattr(usage_metadata, attr, None)
    return value if isinstance(value, int) else 0


def to_usage(response: Any) -> Usage:
    """Read usage counters verbatim; missing counters count as zero."""
    um = getattr(response, "usage_metadata", None)
    if um is None:
        return Usage()
    return Usage(
        prompt_tokens=_count(um, "prompt_token_count"),
        completion_tokens=_count(um, "candidates_token_count"),
        total_tokens=_count(um, "total_token_count"),
    )


def iter_parts(response: Any) -> list[Any]:
    """Flatten every candidate's content parts, in order."""
    parts: list[Any] = []
    for candidate in getattr(response, "candidates", None) or ():
        content = getattr(candidate, "content", None)
        parts.extend(getattr(content, "parts", None) or ())
    return parts


def part_text(part: Any) -> str:
    text = getattr(part, "text", None)
    return text if isinstance(text, str) else ""


def to_chat_response(response: Any, *, model: str | None = None) -> ChatResponse:
    """One generation per part; non-text parts contribute an empty segment."""
    generations = tuple(Generation(text=part_text(part)) for part in iter_parts(response))
    return ChatResponse(
        generations=generations,
        metadata=ResponseMetadata(usage=to_usage(response), model=model),
    )
