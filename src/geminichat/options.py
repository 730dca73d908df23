"""Chat options and the default/per-call merge."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from geminichat.errors import ConfigurationError

if TYPE_CHECKING:
    from geminichat.functions import FunctionCallback


class ChatModelName(str, Enum):
    """Known Gemini model identifiers."""

    GEMINI_PRO_VISION = "gemini-pro-vision"
    GEMINI_PRO = "gemini-pro"
    GEMINI_1_5_PRO = "gemini-1.5-pro-001"
    GEMINI_1_5_FLASH = "gemini-1.5-flash-001"
    GEMINI_2_0_FLASH = "gemini-2.0-flash"
    GEMINI_2_5_FLASH = "gemini-2.5-flash"
    GEMINI_2_5_PRO = "gemini-2.5-pro"

    def __str__(self) -> str:
        return self.value


# Fields merged by "per-call wins when set"; the function fields merge by union.
_SCALAR_FIELDS = (
    "model",
    "temperature",
    "max_output_tokens",
    "top_k",
    "top_p",
    "candidate_count",
    "stop_sequences",
    "parallel_tool_calls",
)


@dataclass(frozen=True)
class ChatOptions:
    """Generation settings; ``None`` means "not supplied"."""

    #: Model identifier. Required on the chat model's default options.
    model: str | None = None
    temperature: float | None = None
    max_output_tokens: int | None = None
    top_k: int | None = None
    top_p: float | None = None
    candidate_count: int | None = None
    stop_sequences: tuple[str, ...] | None = None
    #: Names of functions to enable, resolved against the registries.
    functions: frozenset[str] | None = None
    #: Callbacks registered (and enabled) for the scope of these options.
    function_callbacks: tuple[FunctionCallback, ...] | None = None
    #: Execute one round's tool calls concurrently. Results keep call order.
    parallel_tool_calls: bool | None = None

    def __post_init__(self) -> None:
        """Normalize collection fields and validate option shapes."""
        if isinstance(self.model, ChatModelName):
            object.__setattr__(self, "model", self.model.value)
        if self.model is not None and (
            not isinstance(self.model, str) or not self.model.strip()
        ):
            raise ConfigurationError(
                "model must be a non-empty string",
                hint="Pass model='gemini-2.0-flash' or a ChatModelName member.",
            )

        if self.stop_sequences is not None:
            if isinstance(self.stop_sequences, str):
                raise ConfigurationError(
                    "stop_sequences must be a sequence of strings",
                    hint="Pass stop_sequences=['END'] rather than a bare string.",
                )
            object.__setattr__(self, "stop_sequences", tuple(self.stop_sequences))
            if not all(isinstance(s, str) for s in self.stop_sequences):
                raise ConfigurationError("stop_sequences must contain only strings")

        if self.functions is not None:
            if isinstance(self.functions, str):
                raise ConfigurationError(
                    "functions must be a collection of names",
                    hint="Pass functions={'get_weather'}.",
                )
            object.__setattr__(self, "functions", frozenset(self.functions))
            if not all(isinstance(n, str) and n for n in self.functions):
                raise ConfigurationError("functions must contain non-empty strings")

        if self.function_callbacks is not None:
            object.__setattr__(
                self, "function_callbacks", tuple(self.function_callbacks)
            )

        if self.temperature is not None and not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(
                f"temperature must be within [0, 2], got {self.temperature}",
            )
        if self.top_p is not None and not 0.0 <= self.top_p <= 1.0:
            raise ConfigurationError(f"top_p must be within [0, 1], got {self.top_p}")
        for name in ("max_output_tokens", "top_k", "candidate_count"):
            value = getattr(self, name)
            if value is not None and (
                not isinstance(value, int) or isinstance(value, bool) or value <= 0
            ):
                raise ConfigurationError(
                    f"{name} must be a positive integer, got {value!r}",
                )

    @classmethod
    def from_options(cls, other: ChatOptions) -> ChatOptions:
        """Return an independent copy of *other*."""
        return replace(other)

    def supplied(self) -> frozenset[str]:
        """Names of the fields that were explicitly set."""
        return frozenset(f.name for f in fields(self) if getattr(self, f.name) is not None)

    def enabled_functions(self) -> frozenset[str]:
        """Explicitly enabled names plus the names of scoped callbacks."""
        names = set(self.functions or ())
        names.update(cb.name for cb in self.function_callbacks or ())
        return frozenset(names)

    def generation_kwargs(self) -> dict[str, Any]:
        """Generation parameters with unset values omitted."""
        kwargs: dict[str, Any] = {}
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        if self.max_output_tokens is not None:
            kwargs["max_output_tokens"] = self.max_output_tokens
        if self.top_k is not None:
            kwargs["top_k"] = self.top_k
        if self.top_p is not None:
            kwargs["top_p"] = self.top_p
        if self.candidate_count is not None:
            kwargs["candidate_count"] = self.candidate_count
        if self.stop_sequences is not None:
            kwargs["stop_sequences"] = list(self.stop_sequences)
        return kwargs


DEFAULT_OPTIONS = ChatOptions(model=ChatModelName.GEMINI_2_0_FLASH, temperature=0.8)


def merge_options(per_call: ChatOptions | None, defaults: ChatOptions) -> ChatOptions:
    """Overlay *per_call* on *defaults*.

    Scalars take the per-call value when set. Enabled function names are the
    union of both sides; callbacks are concatenated with per-call ones first.
    """
    if per_call is None:
        return defaults

    merged: dict[str, Any] = {}
    for name in _SCALAR_FIELDS:
        value = getattr(per_call, name)
        merged[name] = value if value is not None else getattr(defaults, name)

    functions = set(per_call.functions or ()) | set(defaults.functions or ())
    merged["functions"] = frozenset(functions) if functions else None

    callbacks = (*(per_call.function_callbacks or ()), *(defaults.function_callbacks or ()))
    merged["function_callbacks"] = callbacks or None
    return ChatOptions(**merged)
