"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: it exists to stop suites from
growing one-off tool functions and content inspectors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from google.genai import types


@dataclass
class RecordingTool:
    """Callable tool that records every invocation and returns a fixed result."""

    result: Any = field(default_factory=lambda: {"ok": True})
    calls: list[dict[str, Any]] = field(default_factory=list)

    def __call__(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        return self.result


def roles(contents: tuple[types.Content, ...] | list[types.Content]) -> list[str]:
    """Roles of *contents* in order."""
    return [c.role or "" for c in contents]


def part_kinds(content: types.Content) -> list[str]:
    """Describe each part as text/function_call/function_response/inline_data."""
    kinds: list[str] = []
    for part in content.parts or ():
        if part.function_call is not None:
            kinds.append("function_call")
        elif part.function_response is not None:
            kinds.append("function_response")
        elif part.inline_data is not None:
            kinds.append("inline_data")
        else:
            kinds.append("text")
    return kinds
