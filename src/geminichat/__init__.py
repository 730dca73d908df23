"""geminichat: chat conversations over Gemini with automatic function calling.

Public API:
    - GeminiChatModel: call() and stream() with tool-call orchestration
    - create_chat_model(): build a model from Config
    - Prompt and the message types
    - ChatOptions: default and per-call generation settings
    - FunctionRegistry / FunctionCallback: tools the model may call
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from geminichat.chat import GeminiChatModel
from geminichat.config import Config
from geminichat.errors import (
    ConfigurationError,
    FunctionExecutionError,
    GeminiChatError,
    InvalidPayloadError,
    ProviderCallError,
    RateLimitError,
    ToolCallLimitError,
    UnknownFunctionError,
    UnsupportedMessageTypeError,
)
from geminichat.functions import FunctionCallback, FunctionRegistry, ToolResolver
from geminichat.messages import (
    AssistantMessage,
    Media,
    Message,
    Prompt,
    SystemMessage,
    ToolCall,
    ToolResponse,
    ToolResponseMessage,
    UserMessage,
)
from geminichat.options import ChatModelName, ChatOptions, merge_options
from geminichat.result import ChatResponse, Generation, ResponseMetadata, Usage

if TYPE_CHECKING:
    from geminichat.providers.base import Provider

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("geminichat")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("geminichat").addHandler(logging.NullHandler())


def create_chat_model(
    config: Config,
    options: ChatOptions | None = None,
    *,
    registry: FunctionRegistry | None = None,
) -> GeminiChatModel:
    """Build a chat model from configuration.

    Args:
        config: Credentials, backend and tool-round bound.
        options: Default options; ``config.model`` fills an unset model.
        registry: Default-scope function callbacks.

    Example:
        model = create_chat_model(Config(model="gemini-2.0-flash"))
        reply = await model.call("Hello!")
    """
    defaults = merge_options(options, ChatOptions(model=config.model))
    return GeminiChatModel(
        _get_provider(config),
        defaults,
        registry=registry,
        max_tool_rounds=config.max_tool_rounds,
    )


def _get_provider(config: Config) -> Provider:
    """Get the appropriate provider based on configuration."""
    if config.use_mock:
        from geminichat.providers.mock import MockProvider

        return MockProvider()

    from geminichat.providers.gemini import GeminiProvider

    if config.vertexai:
        return GeminiProvider(
            vertexai=True, project=config.project, location=config.location
        )
    if not config.api_key:
        raise ConfigurationError(
            "api_key required for real API",
            hint="Set GEMINI_API_KEY or pass Config(api_key=...).",
        )
    return GeminiProvider(config.api_key)


__all__ = [
    "AssistantMessage",
    "ChatModelName",
    "ChatOptions",
    "ChatResponse",
    "Config",
    "ConfigurationError",
    "FunctionCallback",
    "FunctionExecutionError",
    "FunctionRegistry",
    "GeminiChatError",
    "GeminiChatModel",
    "Generation",
    "InvalidPayloadError",
    "Media",
    "Message",
    "Prompt",
    "ProviderCallError",
    "RateLimitError",
    "ResponseMetadata",
    "SystemMessage",
    "ToolCall",
    "ToolCallLimitError",
    "ToolResolver",
    "ToolResponse",
    "ToolResponseMessage",
    "UnknownFunctionError",
    "UnsupportedMessageTypeError",
    "Usage",
    "UserMessage",
    "create_chat_model",
    "merge_options",
]
