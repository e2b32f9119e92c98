"""
Tool definitions for the orchestration loop.

Converts ToolRegistry descriptors into OpenAI function-calling JSON
definitions (the ``functions`` request parameter).
"""

import logging
from typing import Iterable, Optional

from ..tools.registry import ToolDescriptor, ToolParameter, ToolRegistry

logger = logging.getLogger(__name__)


def _parameter_schema(param: ToolParameter) -> dict:
    schema: dict = {"type": param.type}
    if param.description:
        schema["description"] = param.description
    if param.enum:
        schema["enum"] = list(param.enum)
    return schema


def build_function_definition(descriptor: ToolDescriptor) -> dict:
    """Convert one descriptor to an OpenAI function definition."""
    properties = {p.name: _parameter_schema(p) for p in descriptor.parameters}
    required = [p.name for p in descriptor.parameters if p.required]
    return {
        "name": descriptor.name,
        "description": descriptor.description,
        "parameters": {
            "type": "object",
            "properties": properties,
            "required": required,
        },
    }


def build_function_definitions(
    descriptors: Optional[Iterable[ToolDescriptor]] = None,
) -> list[dict]:
    """
    Build the function definitions advertised to the model.

    Args:
        descriptors: Descriptors to convert. Defaults to every registered
            tool, in registration order.
    """
    if descriptors is None:
        descriptors = ToolRegistry.describe_tools()
    definitions = [build_function_definition(d) for d in descriptors]
    logger.debug("Built %d function definitions", len(definitions))
    return definitions
