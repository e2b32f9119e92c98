"""
EduBot Tools Package

Available tools:
- get_grades: Student grade lookup against the academic records API
- search_study_resources: Study resource catalog for a subject
"""

from .registry import ToolContext, ToolDescriptor, ToolParameter, ToolRegistry
from .schemas import ToolResult
from .grades import summarize_enrollments, TOOL_NAME as GRADES_TOOL
from .resources import (
    build_resource_catalog,
    format_catalog_text,
    TOOL_NAME as RESOURCES_TOOL,
)
from .executor import ToolExecutor

__all__ = [
    "ToolContext",
    "ToolDescriptor",
    "ToolParameter",
    "ToolRegistry",
    "ToolResult",
    "ToolExecutor",
    "summarize_enrollments",
    "build_resource_catalog",
    "format_catalog_text",
    "GRADES_TOOL",
    "RESOURCES_TOOL",
]
