"""Conversation data model.

Messages are immutable value objects. A conversation is a tuple of them, so
continuing a conversation always produces a new tuple.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Literal

if TYPE_CHECKING:
    from geminichat.options import ChatOptions

MessageType = Literal["system", "user", "assistant", "tool"]


@dataclass(frozen=True)
class Media:
    """Binary attachment on a user message."""

    mime_type: str
    data: bytes


@dataclass(frozen=True)
class ToolCall:
    """A tool call requested by the model."""

    id: str
    name: str
    #: JSON-encoded arguments.
    arguments: str
    type: str = "function"


@dataclass(frozen=True)
class ToolResponse:
    """Result of one executed tool call."""

    id: str
    name: str
    #: JSON-encoded result payload.
    response_data: str


@dataclass(frozen=True)
class SystemMessage:
    """Out-of-band instruction text."""

    content: str
    message_type: ClassVar[MessageType] = "system"


@dataclass(frozen=True)
class UserMessage:
    """A user turn: optional text plus media attachments."""

    content: str | None = None
    media: tuple[Media, ...] = ()
    message_type: ClassVar[MessageType] = "user"


@dataclass(frozen=True)
class AssistantMessage:
    """A model turn: optional text plus requested tool calls."""

    content: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()
    message_type: ClassVar[MessageType] = "assistant"


@dataclass(frozen=True)
class ToolResponseMessage:
    """Results for every tool call of the preceding assistant turn, in order."""

    responses: tuple[ToolResponse, ...] = ()
    message_type: ClassVar[MessageType] = "tool"


Message = SystemMessage | UserMessage | AssistantMessage | ToolResponseMessage


@dataclass(frozen=True)
class Prompt:
    """An ordered conversation plus optional per-call options."""

    messages: tuple[Message, ...] = field(default_factory=tuple)
    options: ChatOptions | None = None

    def __post_init__(self) -> None:
        # Accept any iterable but always store a tuple.
        if not isinstance(self.messages, tuple):
            object.__setattr__(self, "messages", tuple(self.messages))

    @classmethod
    def of(cls, text: str, options: ChatOptions | None = None) -> Prompt:
        """Build a single-turn prompt from user text."""
        return cls((UserMessage(text),), options)

    def extend(self, messages: Iterable[Message]) -> Prompt:
        """Return a new prompt with *messages* appended, keeping the options."""
        return Prompt((*self.messages, *messages), self.options)
