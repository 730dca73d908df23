"""Function callbacks: registration, resolution and execution.

Two registries take part in every request: the request-scoped one (callbacks
passed on the per-call ``ChatOptions``) and the default one (callbacks owned
by the chat model and its default options). ``ToolResolver`` takes both as
explicit handles and consults the request scope first.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass, field
import inspect
import logging
import typing
from typing import Any

from google.genai import types
from pydantic import BaseModel, ValidationError, create_model

from geminichat import codec
from geminichat.errors import (
    ConfigurationError,
    FunctionExecutionError,
    UnknownFunctionError,
)
from geminichat.messages import AssistantMessage, ToolResponse, ToolResponseMessage

logger = logging.getLogger(__name__)

ToolFunction = Callable[..., Any] | Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class FunctionCallback:
    """A named, described, schema-carrying function the model may call.

    When ``input_type`` is set, arguments are validated into that model and
    passed as a single positional argument. Otherwise they are validated
    against ``arguments_model`` (derived from the signature) and passed as
    keyword arguments.
    """

    name: str
    description: str
    input_schema: dict[str, Any]
    fn: ToolFunction = field(repr=False, compare=False)
    input_type: type[BaseModel] | None = None
    arguments_model: type[BaseModel] | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ConfigurationError(
                "Function callback name must be a non-empty string",
                hint="Pass name='get_weather' or use a named function.",
            )
        if not callable(self.fn):
            raise ConfigurationError(
                f"Function callback {self.name!r} is not callable",
            )

    @classmethod
    def from_function(
        cls,
        fn: ToolFunction,
        *,
        name: str | None = None,
        description: str | None = None,
        input_type: type[BaseModel] | None = None,
        input_schema: str | dict[str, Any] | None = None,
    ) -> FunctionCallback:
        """Build a callback, deriving name, description and schema from *fn*.

        Schema precedence: explicit ``input_schema``, then ``input_type``,
        then the function signature.
        """
        resolved_name = name or getattr(fn, "__name__", None)
        if not resolved_name:
            raise ConfigurationError(
                "Cannot derive a function name",
                hint="Pass name=... for lambdas and callable objects.",
            )
        doc = inspect.getdoc(fn) or ""
        resolved_description = description if description is not None else doc

        arguments_model: type[BaseModel] | None = None
        if input_type is None:
            arguments_model = _arguments_model_for(fn, resolved_name)

        schema = codec.to_schema(input_schema)
        if schema is None:
            model = input_type or arguments_model
            schema = codec.to_schema(model) or {"type": "object", "properties": {}}

        return cls(
            name=resolved_name,
            description=resolved_description,
            input_schema=schema,
            fn=fn,
            input_type=input_type,
            arguments_model=arguments_model,
        )

    def declaration(self) -> types.FunctionDeclaration:
        """Return the provider function declaration."""
        return types.FunctionDeclaration(
            name=self.name,
            description=self.description,
            parameters_json_schema=self.input_schema,
        )

    async def invoke(self, arguments: str) -> str:
        """Call the function with JSON *arguments* and return a JSON result."""
        try:
            payload = codec.to_struct(arguments)
            if self.input_type is not None:
                call_args: tuple[Any, ...] = (self.input_type.model_validate(payload),)
                call_kwargs: dict[str, Any] = {}
            elif self.arguments_model is not None:
                validated = self.arguments_model.model_validate(payload)
                call_args = ()
                call_kwargs = {
                    key: getattr(validated, key)
                    for key in type(validated).model_fields
                }
            else:
                call_args, call_kwargs = (), payload
        except ValidationError as e:
            raise FunctionExecutionError(
                f"Invalid arguments for function {self.name!r}: {e.error_count()} error(s)",
                name=self.name,
                hint="The model produced arguments that do not match the input schema.",
            ) from e
        except ValueError as e:
            raise FunctionExecutionError(
                f"Arguments for function {self.name!r} are not valid JSON: {e}",
                name=self.name,
            ) from e

        try:
            result = self.fn(*call_args, **call_kwargs)
            if inspect.isawaitable(result):
                result = await result
            return codec.encode(result)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise FunctionExecutionError(
                f"Function {self.name!r} failed: {e}", name=self.name
            ) from e


def _arguments_model_for(fn: ToolFunction, name: str) -> type[BaseModel] | None:
    """Build a pydantic model mirroring *fn*'s keyword-capable parameters."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None
    try:
        hints = typing.get_type_hints(fn)
    except (NameError, TypeError) as e:
        logger.debug("Unresolved annotations on %r, treating as Any: %s", name, e)
        hints = {}

    # **kwargs functions receive the raw payload.
    if any(p.kind is p.VAR_KEYWORD for p in signature.parameters.values()):
        return None

    fields: dict[str, Any] = {}
    for param in signature.parameters.values():
        if param.kind is param.VAR_POSITIONAL:
            continue
        annotation = hints.get(param.name, Any)
        default = ... if param.default is param.empty else param.default
        fields[param.name] = (annotation, default)
    return create_model(f"{_camel(name)}Arguments", **fields)


def _camel(name: str) -> str:
    return "".join(chunk[:1].upper() + chunk[1:] for chunk in name.split("_"))


class FunctionRegistry:
    """Name-keyed collection of function callbacks."""

    def __init__(self, callbacks: Iterable[FunctionCallback] = ()) -> None:
        self._callbacks: dict[str, FunctionCallback] = {}
        for callback in callbacks:
            self.register(callback)

    def register(self, callback: FunctionCallback) -> FunctionCallback:
        """Add *callback*, replacing any previous one with the same name."""
        if callback.name in self._callbacks:
            logger.debug("Replacing function callback %r", callback.name)
        self._callbacks[callback.name] = callback
        return callback

    def function(
        self,
        fn: ToolFunction | None = None,
        *,
        name: str | None = None,
        description: str | None = None,
        input_type: type[BaseModel] | None = None,
    ) -> Any:
        """Decorator registering a plain function as a callback.

        Usable bare (``@registry.function``) or with arguments.
        """

        def decorate(target: ToolFunction) -> ToolFunction:
            self.register(
                FunctionCallback.from_function(
                    target, name=name, description=description, input_type=input_type
                )
            )
            return target

        if fn is not None:
            return decorate(fn)
        return decorate

    def get(self, name: str) -> FunctionCallback | None:
        return self._callbacks.get(name)

    def names(self) -> frozenset[str]:
        return frozenset(self._callbacks)

    def __contains__(self, name: object) -> bool:
        return name in self._callbacks

    def __iter__(self) -> Iterator[FunctionCallback]:
        return iter(self._callbacks.values())

    def __len__(self) -> int:
        return len(self._callbacks)


class ToolResolver:
    """Resolve function names against a request-scoped and a default registry."""

    def __init__(
        self,
        request_registry: FunctionRegistry | None = None,
        default_registry: FunctionRegistry | None = None,
    ) -> None:
        self.request_registry = request_registry or FunctionRegistry()
        self.default_registry = default_registry or FunctionRegistry()

    def lookup(self, name: str) -> FunctionCallback | None:
        return self.request_registry.get(name) or self.default_registry.get(name)

    def resolve(self, names: Iterable[str]) -> list[FunctionCallback]:
        """Return callbacks for *names*; raise UnknownFunctionError on any miss."""
        resolved: list[FunctionCallback] = []
        missing: list[str] = []
        for name in sorted(set(names)):
            callback = self.lookup(name)
            if callback is None:
                missing.append(name)
            else:
                resolved.append(callback)
        if missing:
            raise UnknownFunctionError(missing)
        return resolved

    def tool_declarations(self, names: Iterable[str]) -> list[types.Tool]:
        """Return a single tool group declaring every resolved function."""
        declarations = [callback.declaration() for callback in self.resolve(names)]
        return [types.Tool(function_declarations=declarations)]

    async def invoke(self, name: str, arguments: str) -> str:
        """Execute function *name* with JSON *arguments*; return JSON text."""
        callback = self.lookup(name)
        if callback is None:
            raise UnknownFunctionError([name])
        logger.debug("Invoking function %r", name)
        return await callback.invoke(arguments)

    async def execute(
        self, message: AssistantMessage, *, parallel: bool = False
    ) -> ToolResponseMessage:
        """Run every tool call of *message*; results keep call order.

        A failure yields no partial result. In parallel mode every sibling
        call settles before the lowest-index failure is raised.
        """
        calls = message.tool_calls
        if parallel and len(calls) > 1:
            tasks = [
                asyncio.create_task(self.invoke(call.name, call.arguments))
                for call in calls
            ]
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
            for item in outcomes:
                if isinstance(item, asyncio.CancelledError):
                    raise item
            for item in outcomes:
                if isinstance(item, BaseException):
                    raise item
            results = list(outcomes)
        else:
            results = [await self.invoke(call.name, call.arguments) for call in calls]
        return ToolResponseMessage(
            tuple(
                ToolResponse(id=call.id, name=call.name, response_data=data)
                for call, data in zip(calls, results, strict=True)
            )
        )
