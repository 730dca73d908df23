"""Exception hierarchy for geminichat."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class GeminiChatError(Exception):
    """Base exception for all geminichat errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(GeminiChatError):
    """Configuration validation or resolution failed."""


class UnsupportedMessageTypeError(GeminiChatError):
    """A message variant cannot be mapped onto provider content."""


class InvalidPayloadError(GeminiChatError):
    """A tool call or tool response in the conversation is not valid JSON."""


class UnknownFunctionError(GeminiChatError):
    """One or more enabled function names have no registered callback."""

    def __init__(self, names: Iterable[str], *, hint: str | None = None) -> None:
        self.names = tuple(sorted(names))
        super().__init__(
            f"No function callback registered for: {', '.join(self.names)}",
            hint=hint
            or "Register the function on the model registry or pass it via "
            "ChatOptions(function_callbacks=...).",
        )


class FunctionExecutionError(GeminiChatError):
    """A tool invocation requested by the model failed."""

    def __init__(self, message: str, *, name: str, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)
        self.name = name


class ToolCallLimitError(GeminiChatError):
    """The model kept requesting tools past the configured round limit."""

    def __init__(self, rounds: int) -> None:
        super().__init__(
            f"Model requested tool calls for more than {rounds} consecutive rounds",
            hint="Raise max_tool_rounds or check the tool results the model receives.",
        )
        self.rounds = rounds


class ProviderCallError(GeminiChatError):
    """The underlying provider call failed.

    ``status_code`` is the HTTP status when the SDK reported one; ``phase`` is
    ``"generate"`` or ``"stream"``.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
        provider: str | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.provider = provider
        self.phase = phase


class RateLimitError(ProviderCallError):
    """Rate limit exceeded (HTTP 429)."""


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
