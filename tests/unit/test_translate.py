"""Conversation -> Gemini content translation (characterization)."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from geminichat.errors import InvalidPayloadError, UnsupportedMessageTypeError
from geminichat.messages import (
    AssistantMessage,
    Media,
    SystemMessage,
    ToolCall,
    ToolResponse,
    ToolResponseMessage,
    UserMessage,
)
from geminichat.translate import system_instruction, to_contents
from tests.helpers import part_kinds, roles

pytestmark = pytest.mark.unit


def test_system_messages_are_excluded_from_contents() -> None:
    contents = to_contents(
        [SystemMessage("Be terse."), UserMessage("hi"), SystemMessage("Use metric.")]
    )

    assert roles(contents) == ["user"]


def test_system_instruction_joins_with_newline() -> None:
    messages = [SystemMessage("Be terse."), UserMessage("hi"), SystemMessage("Use metric.")]

    assert system_instruction(messages) == "Be terse.\nUse metric."
    assert system_instruction([UserMessage("hi")]) == ""


def test_user_message_without_text_uses_null_placeholder() -> None:
    (content,) = to_contents([UserMessage()])

    assert content.parts[0].text == "null"


def test_user_message_media_follow_leading_text() -> None:
    (content,) = to_contents(
        [
            UserMessage(
                "describe",
                media=(Media("image/png", b"\x89PNG"), Media("audio/wav", b"RIFF")),
            )
        ]
    )

    assert content.role == "user"
    assert part_kinds(content) == ["text", "inline_data", "inline_data"]
    assert content.parts[1].inline_data.mime_type == "image/png"
    assert content.parts[1].inline_data.data == b"\x89PNG"


def test_assistant_message_maps_to_model_role_with_text_and_calls() -> None:
    (content,) = to_contents(
        [
            AssistantMessage(
                "Checking.",
                tool_calls=(
                    ToolCall(id="c1", name="get_weather", arguments='{"city": "Paris"}'),
                    ToolCall(id="", name="get_time", arguments="{}"),
                ),
            )
        ]
    )

    assert content.role == "model"
    assert part_kinds(content) == ["text", "function_call", "function_call"]
    assert content.parts[0].text == "Checking."
    first = content.parts[1].function_call
    assert (first.id, first.name, first.args) == ("c1", "get_weather", {"city": "Paris"})
    assert content.parts[2].function_call.id is None


def test_assistant_message_with_empty_text_emits_only_calls() -> None:
    (content,) = to_contents(
        [AssistantMessage("", tool_calls=(ToolCall(id="", name="f", arguments="{}"),))]
    )

    assert part_kinds(content) == ["function_call"]


def test_tool_response_maps_to_user_role_in_order() -> None:
    (content,) = to_contents(
        [
            ToolResponseMessage(
                (
                    ToolResponse(id="", name="a", response_data='{"v": 1}'),
                    ToolResponse(id="", name="b", response_data="42"),
                )
            )
        ]
    )

    assert content.role == "user"
    assert [p.function_response.name for p in content.parts] == ["a", "b"]
    assert content.parts[0].function_response.response == {"v": 1}
    assert content.parts[1].function_response.response == {"result": 42}


def test_turn_order_is_preserved() -> None:
    contents = to_contents(
        [
            UserMessage("q"),
            AssistantMessage("", tool_calls=(ToolCall(id="", name="f", arguments="{}"),)),
            ToolResponseMessage((ToolResponse(id="", name="f", response_data="{}"),)),
            AssistantMessage("done"),
        ]
    )

    assert roles(contents) == ["user", "model", "user", "model"]


def test_unknown_message_variant_raises() -> None:
    @dataclass(frozen=True)
    class FunctionMessage:
        content: str

    with pytest.raises(UnsupportedMessageTypeError, match="FunctionMessage"):
        to_contents([UserMessage("ok"), FunctionMessage("x")])  # type: ignore[list-item]


@pytest.mark.parametrize(
    "message",
    [
        AssistantMessage("", tool_calls=(ToolCall(id="", name="f", arguments="{oops"),)),
        ToolResponseMessage((ToolResponse(id="", name="f", response_data="not json"),)),
    ],
)
def test_malformed_tool_payload_raises_invalid_payload(message) -> None:
    with pytest.raises(InvalidPayloadError, match="'f' are not valid JSON") as exc_info:
        to_contents([UserMessage("q"), message])
    assert exc_info.value.hint is not None
