"""Configuration: frozen Config with environment-resolved credentials."""

from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

from geminichat.errors import ConfigurationError
from geminichat.orchestrator import DEFAULT_MAX_TOOL_ROUNDS

load_dotenv()

_API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")
_DEFAULT_LOCATION = "us-central1"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Config:
    """Immutable client configuration.

    Credentials are auto-resolved from standard environment variables:
    ``GEMINI_API_KEY``/``GOOGLE_API_KEY`` for the Developer API, or
    ``GOOGLE_GENAI_USE_VERTEXAI`` + ``GOOGLE_CLOUD_PROJECT`` +
    ``GOOGLE_CLOUD_LOCATION`` for Vertex AI.

    Example:
        config = Config(model="gemini-2.0-flash")
        model = create_chat_model(config)
    """

    model: str
    api_key: str | None = None
    #: Auto-resolved from ``GOOGLE_GENAI_USE_VERTEXAI`` when *None*.
    vertexai: bool | None = None
    project: str | None = None
    location: str | None = None
    use_mock: bool = False
    #: Tool rounds allowed per call; ``None`` removes the bound.
    max_tool_rounds: int | None = DEFAULT_MAX_TOOL_ROUNDS

    def __post_init__(self) -> None:
        """Auto-resolve credentials and validate configuration."""
        if not isinstance(self.model, str) or not self.model.strip():
            raise ConfigurationError(
                "model is required",
                hint="Pass Config(model='gemini-2.0-flash').",
            )

        if self.max_tool_rounds is not None and self.max_tool_rounds < 1:
            raise ConfigurationError(
                f"max_tool_rounds must be ≥ 1, got {self.max_tool_rounds}",
                hint="Pass max_tool_rounds=None to remove the bound entirely.",
            )

        if self.vertexai is None:
            object.__setattr__(self, "vertexai", _env_flag("GOOGLE_GENAI_USE_VERTEXAI"))

        if self.use_mock:
            return

        if self.vertexai:
            if self.project is None:
                object.__setattr__(self, "project", os.environ.get("GOOGLE_CLOUD_PROJECT"))
            if self.location is None:
                object.__setattr__(
                    self,
                    "location",
                    os.environ.get("GOOGLE_CLOUD_LOCATION", _DEFAULT_LOCATION),
                )
            if not self.project:
                raise ConfigurationError(
                    "project required for Vertex AI",
                    hint="Set GOOGLE_CLOUD_PROJECT or pass Config(project=...).",
                )
            return

        if self.api_key is None:
            resolved = next(
                (os.environ[v] for v in _API_KEY_ENV_VARS if os.environ.get(v)), None
            )
            object.__setattr__(self, "api_key", resolved)
        if not self.api_key:
            raise ConfigurationError(
                "API key required for the Gemini Developer API",
                hint="Set GEMINI_API_KEY or pass Config(api_key=...), "
                "or use vertexai=True with a project.",
            )

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(model={self.model!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"vertexai={self.vertexai}, project={self.project!r}, "
            f"use_mock={self.use_mock})"
        )

    __repr__ = __str__
