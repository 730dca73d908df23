"""Generation request construction.

Pure: merges options, resolves tool declarations and translates the
conversation. No provider call happens here.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from google.genai import types

from geminichat.errors import ConfigurationError
from geminichat.functions import FunctionRegistry, ToolResolver
from geminichat.messages import Prompt
from geminichat.options import ChatOptions, merge_options
from geminichat.translate import system_instruction, to_contents

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    """Everything needed for one provider generation call."""

    model: str
    config: types.GenerateContentConfig
    contents: tuple[types.Content, ...]
    #: Effective options the request was built from.
    options: ChatOptions


def make_resolver(
    prompt: Prompt,
    defaults: ChatOptions,
    registry: FunctionRegistry | None = None,
) -> ToolResolver:
    """Build the two-scope resolver for one call.

    Callbacks on the per-call options form the request scope. Callbacks on
    the default options plus the model-owned registry form the default scope.
    """
    request_callbacks = prompt.options.function_callbacks if prompt.options else None
    return ToolResolver(
        FunctionRegistry(request_callbacks or ()),
        FunctionRegistry([*(defaults.function_callbacks or ()), *(registry or ())]),
    )


def build_request(
    prompt: Prompt,
    defaults: ChatOptions,
    *,
    registry: FunctionRegistry | None = None,
) -> GenerationRequest:
    """Assemble the request for *prompt* against the model *defaults*.

    Raises:
        UnknownFunctionError: An enabled function has no callback.
        UnsupportedMessageTypeError: A message cannot be translated.
        InvalidPayloadError: A tool call or tool response is not valid JSON.
    """
    options = merge_options(prompt.options, defaults)
    if options.model is None:
        raise ConfigurationError(
            "No model configured for this call",
            hint="Set ChatOptions(model=...) on the default or per-call options.",
        )

    resolver = make_resolver(prompt, defaults, registry)

    config_kwargs: dict[str, Any] = options.generation_kwargs()

    enabled = options.enabled_functions()
    if enabled:
        config_kwargs["tools"] = resolver.tool_declarations(enabled)

    instruction = system_instruction(prompt.messages)
    if instruction:
        config_kwargs["system_instruction"] = instruction

    contents = tuple(to_contents(prompt.messages))
    logger.debug(
        "Built request: model=%s turns=%d tools=%s",
        options.model,
        len(contents),
        sorted(enabled) or None,
    )
    return GenerationRequest(
        model=options.model,
        config=types.GenerateContentConfig(**config_kwargs),
        contents=contents,
        options=options,
    )
