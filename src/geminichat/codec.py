"""JSON text <-> structured-args conversion.

Gemini carries function-call arguments and function responses as JSON
objects (``dict``). Tool calls and results travel through the conversation as
JSON text. ``encode``/``decode`` are lossless for every JSON value kind;
``to_struct`` additionally wraps non-object values because the provider only
accepts object payloads.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

#: Key used when a non-object value must travel as an object payload.
WRAPPED_RESULT_KEY = "result"


def encode(value: Any) -> str:
    """Serialize a JSON-compatible value (or pydantic model) to JSON text."""
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    return json.dumps(value, ensure_ascii=False)


def decode(text: str) -> Any:
    """Parse JSON text into Python values."""
    return json.loads(text)


def to_struct(text: str | None) -> dict[str, Any]:
    """Parse JSON text into an object payload for the provider.

    Empty input yields ``{}``; non-object values are wrapped under
    ``"result"``.
    """
    if text is None or not text.strip():
        return {}
    value = decode(text)
    if isinstance(value, dict):
        return value
    return {WRAPPED_RESULT_KEY: value}


def from_struct(struct: Any) -> str:
    """Serialize a provider object payload (``None`` means empty) to JSON text."""
    if struct is None:
        return "{}"
    return encode(dict(struct))


def to_schema(schema: str | dict[str, Any] | type[BaseModel] | None) -> dict[str, Any] | None:
    """Normalize an input schema given as JSON text, dict or pydantic model."""
    if schema is None:
        return None
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema.model_json_schema()
    if isinstance(schema, str):
        return to_struct(schema)
    return dict(schema)
