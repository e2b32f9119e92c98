"""
Tool Registry - Single source of truth for tool definitions.

Provides a central registry for all tools with their descriptors,
argument models and handlers. Descriptors are derived from the pydantic
argument model, so the schema advertised to the model is exactly the
contract the executor validates against.
"""

import logging
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Literal, Optional, Union

from pydantic import BaseModel

from ..exceptions import ToolRegistrationError
from ..models import SessionContext

logger = logging.getLogger(__name__)

_JSON_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}


@dataclass(frozen=True)
class ToolParameter:
    """One argument of a tool as advertised to the model."""

    name: str
    type: str
    description: str = ""
    required: bool = False
    enum: Optional[tuple[Any, ...]] = None


@dataclass(frozen=True)
class ToolDescriptor:
    """Immutable, model-facing description of a tool."""

    name: str
    description: str
    parameters: tuple[ToolParameter, ...] = ()

    def parameter(self, name: str) -> Optional[ToolParameter]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None


@dataclass(frozen=True)
class ToolContext:
    """Per-call collaborators handed to tool handlers."""

    session: SessionContext
    records_client: Any = None
    low_grade_threshold: float = 70.0


ToolHandler = Callable[[BaseModel, ToolContext], BaseModel]


@dataclass(frozen=True)
class ToolDefinition:
    """Metadata for a tool - defined once, used everywhere."""

    descriptor: ToolDescriptor
    arguments_model: type[BaseModel]
    handler: ToolHandler
    requires_auth: bool = False

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def description(self) -> str:
        return self.descriptor.description


def _describe_annotation(annotation: Any) -> tuple[str, Optional[tuple[Any, ...]]]:
    """Map a field annotation to a JSON schema type and optional enum."""
    origin = typing.get_origin(annotation)
    if origin in (Union, types.UnionType):
        members = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(members) == 1:
            return _describe_annotation(members[0])
        return "string", None
    if origin is Literal:
        values = typing.get_args(annotation)
        return _JSON_TYPES.get(type(values[0]), "string"), tuple(values)
    if origin in (list, tuple):
        return "array", None
    return _JSON_TYPES.get(annotation, "string"), None


def describe_arguments(model: type[BaseModel]) -> tuple[ToolParameter, ...]:
    """Build the parameter list of a descriptor from a pydantic model."""
    params = []
    for field_name, field_info in model.model_fields.items():
        json_type, enum = _describe_annotation(field_info.annotation)
        params.append(
            ToolParameter(
                name=field_name,
                type=json_type,
                description=field_info.description or "",
                required=field_info.is_required(),
                enum=enum,
            )
        )
    return tuple(params)


class ToolRegistry:
    """Central registry for all tools."""

    _tools: dict[str, ToolDefinition] = {}

    @classmethod
    def register(
        cls,
        name: str,
        description: str,
        arguments_model: type[BaseModel],
        handler: ToolHandler,
        requires_auth: bool = False,
    ) -> ToolDefinition:
        """Register a tool with its metadata.

        Raises:
            ToolRegistrationError: If a tool with the same name exists.
        """
        if name in cls._tools:
            raise ToolRegistrationError(f"Tool '{name}' is already registered")
        if handler is None:
            raise ToolRegistrationError(f"Tool '{name}' has no handler")

        definition = ToolDefinition(
            descriptor=ToolDescriptor(
                name=name,
                description=description,
                parameters=describe_arguments(arguments_model),
            ),
            arguments_model=arguments_model,
            handler=handler,
            requires_auth=requires_auth,
        )
        cls._tools[name] = definition
        logger.debug("Registered tool: %s", name)
        return definition

    @classmethod
    def unregister(cls, name: str) -> None:
        """Remove a tool (mainly for testing)."""
        cls._tools.pop(name, None)

    @classmethod
    def get(cls, name: str) -> Optional[ToolDefinition]:
        """Get a tool by name."""
        return cls._tools.get(name)

    @classmethod
    def all_tools(cls) -> dict[str, ToolDefinition]:
        """Get a copy of all registered tools."""
        return cls._tools.copy()

    @classmethod
    def describe_tools(cls) -> list[ToolDescriptor]:
        """Descriptors of all tools, in registration order."""
        return [tool.descriptor for tool in cls._tools.values()]

    @classmethod
    def get_tools_summary(cls) -> str:
        """Get formatted summary of all tools for prompts."""
        lines = []
        for name, tool in cls._tools.items():
            lines.append(f"- {name}: {tool.description}")
        return "\n".join(lines)

    @classmethod
    def validate(cls, required_names: Iterable[str] = ()) -> None:
        """
        Check that every referenced tool has a registered handler.

        Called at startup with the names used by trigger rules, so a
        dangling reference fails fast instead of at request time.

        Raises:
            ToolRegistrationError: If a name is missing.
        """
        missing = sorted({name for name in required_names if name not in cls._tools})
        if missing:
            raise ToolRegistrationError(
                f"No handler registered for tool(s): {', '.join(missing)}"
            )

    @classmethod
    def clear(cls) -> None:
        """Clear all registered tools (mainly for testing)."""
        cls._tools.clear()
