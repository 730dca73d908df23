"""Provider implementations."""

from .base import Provider
from .gemini import GeminiProvider
from .mock import MockProvider

__all__ = [
    "GeminiProvider",
    "MockProvider",
    "Provider",
]
