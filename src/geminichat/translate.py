"""Conversation -> Gemini content translation."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from google.genai import types

from geminichat import codec
from geminichat.errors import InvalidPayloadError, UnsupportedMessageTypeError
from geminichat.messages import (
    AssistantMessage,
    Message,
    SystemMessage,
    ToolResponseMessage,
    UserMessage,
)

USER_ROLE = "user"
MODEL_ROLE = "model"

# Gemini requires a leading text part on user turns; absent text is sent as
# this literal.
MISSING_TEXT = "null"


def system_instruction(messages: Iterable[Message]) -> str:
    """Join all system message contents with newlines ("" when none)."""
    return "\n".join(m.content for m in messages if isinstance(m, SystemMessage))


def to_contents(messages: Iterable[Message]) -> list[types.Content]:
    """Translate conversation turns, skipping system messages."""
    contents: list[types.Content] = []
    for message in messages:
        if isinstance(message, SystemMessage):
            continue
        contents.append(
            types.Content(role=_role_for(message), parts=to_parts(message))
        )
    return contents


def _role_for(message: Message) -> str:
    if isinstance(message, (UserMessage, ToolResponseMessage)):
        return USER_ROLE
    if isinstance(message, AssistantMessage):
        return MODEL_ROLE
    raise UnsupportedMessageTypeError(
        f"Unsupported message type: {type(message).__name__}",
        hint="Use SystemMessage, UserMessage, AssistantMessage or ToolResponseMessage.",
    )


def to_parts(message: Any) -> list[types.Part]:
    """Translate one non-system message into provider parts."""
    if isinstance(message, UserMessage):
        text = MISSING_TEXT if message.content is None else message.content
        parts = [types.Part(text=text)]
        parts.extend(
            types.Part.from_bytes(data=media.data, mime_type=media.mime_type)
            for media in message.media
        )
        return parts

    if isinstance(message, AssistantMessage):
        parts = []
        if message.content:
            parts.append(types.Part(text=message.content))
        parts.extend(
            types.Part(
                function_call=types.FunctionCall(
                    id=call.id or None,
                    name=call.name,
                    args=_payload(call.arguments, call.name, "arguments"),
                )
            )
            for call in message.tool_calls
        )
        return parts

    if isinstance(message, ToolResponseMessage):
        return [
            types.Part(
                function_response=types.FunctionResponse(
                    id=response.id or None,
                    name=response.name,
                    response=_payload(
                        response.response_data, response.name, "response data"
                    ),
                )
            )
            for response in message.responses
        ]

    raise UnsupportedMessageTypeError(
        f"Gemini does not support message type: {type(message).__name__}",
        hint="Use SystemMessage, UserMessage, AssistantMessage or ToolResponseMessage.",
    )


def _payload(text: str | None, name: str, what: str) -> dict[str, Any]:
    try:
        return codec.to_struct(text)
    except ValueError as e:
        raise InvalidPayloadError(
            f"{what.capitalize()} for tool {name!r} are not valid JSON: {e}",
            hint="ToolCall.arguments and ToolResponse.response_data must hold JSON text.",
        ) from e
