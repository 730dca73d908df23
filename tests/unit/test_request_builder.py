"""Generation request construction."""

from __future__ import annotations

import pytest

from geminichat.errors import ConfigurationError, UnknownFunctionError
from geminichat.functions import FunctionCallback, FunctionRegistry
from geminichat.messages import Prompt, SystemMessage, UserMessage
from geminichat.options import ChatOptions
from geminichat.request import build_request, make_resolver
from tests.conftest import GEMINI_MODEL
from tests.helpers import RecordingTool, roles

pytestmark = pytest.mark.unit

DEFAULTS = ChatOptions(model=GEMINI_MODEL, temperature=0.8)


def test_unset_generation_parameters_are_omitted() -> None:
    request = build_request(Prompt.of("hi"), DEFAULTS)

    config = request.config
    assert config.temperature == 0.8
    for name in ("max_output_tokens", "top_k", "top_p", "candidate_count", "stop_sequences"):
        assert getattr(config, name) is None
    assert config.tools is None
    assert request.model == GEMINI_MODEL


def test_all_generation_parameters_are_populated() -> None:
    prompt = Prompt.of(
        "hi",
        ChatOptions(
            max_output_tokens=100,
            top_k=5,
            top_p=0.9,
            candidate_count=2,
            stop_sequences=["STOP"],
        ),
    )

    config = build_request(prompt, DEFAULTS).config

    assert config.temperature == 0.8
    assert config.max_output_tokens == 100
    assert config.top_k == 5
    assert config.top_p == 0.9
    assert config.candidate_count == 2
    assert config.stop_sequences == ["STOP"]


def test_per_call_model_overrides_default() -> None:
    request = build_request(Prompt.of("hi", ChatOptions(model="gemini-2.5-pro")), DEFAULTS)

    assert request.model == "gemini-2.5-pro"
    assert request.options.model == "gemini-2.5-pro"


def test_system_instruction_attached_only_when_present() -> None:
    with_system = build_request(
        Prompt((SystemMessage("Be terse."), UserMessage("hi"))), DEFAULTS
    )
    without_system = build_request(Prompt.of("hi"), DEFAULTS)

    assert with_system.config.system_instruction == "Be terse."
    assert roles(with_system.contents) == ["user"]
    assert without_system.config.system_instruction is None


def test_tools_attached_from_both_scopes() -> None:
    registry = FunctionRegistry([FunctionCallback.from_function(RecordingTool(), name="f1")])
    per_call_cb = FunctionCallback.from_function(RecordingTool(), name="f2")
    prompt = Prompt.of("hi", ChatOptions(function_callbacks=[per_call_cb]))
    defaults = ChatOptions(model=GEMINI_MODEL, functions={"f1"})

    request = build_request(prompt, defaults, registry=registry)

    (tool,) = request.config.tools
    assert sorted(d.name for d in tool.function_declarations) == ["f1", "f2"]


def test_no_tools_when_nothing_enabled() -> None:
    registry = FunctionRegistry([FunctionCallback.from_function(RecordingTool(), name="f1")])

    request = build_request(Prompt.of("hi"), DEFAULTS, registry=registry)

    assert request.config.tools is None


def test_unknown_function_fails_at_build_time() -> None:
    prompt = Prompt.of("hi", ChatOptions(functions={"does_not_exist"}))

    with pytest.raises(UnknownFunctionError):
        build_request(prompt, DEFAULTS)


def test_missing_model_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        build_request(Prompt.of("hi"), ChatOptions(temperature=0.1))


def test_make_resolver_scopes() -> None:
    request_cb = FunctionCallback.from_function(RecordingTool(), name="shared", description="req")
    default_cb = FunctionCallback.from_function(RecordingTool(), name="shared", description="def")
    prompt = Prompt.of("hi", ChatOptions(function_callbacks=[request_cb]))

    resolver = make_resolver(
        prompt, ChatOptions(model=GEMINI_MODEL, function_callbacks=[default_cb])
    )

    assert "shared" in resolver.request_registry
    assert resolver.default_registry.get("shared").description == "def"
    assert resolver.lookup("shared").description == "req"


def test_prompt_messages_are_not_mutated() -> None:
    messages = [UserMessage("hi")]
    prompt = Prompt(messages)

    build_request(prompt, DEFAULTS)
    continued = prompt.extend([UserMessage("again")])

    assert len(prompt.messages) == 1
    assert len(continued.messages) == 2
    assert isinstance(prompt.messages, tuple)
