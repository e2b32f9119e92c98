"""
Tool Executor - runs registered tools and never raises.

Every failure (unknown tool, undecodable or invalid arguments, missing
credentials, backend errors) is converted into a ToolError result so the
orchestration loop can hand it to the model like any other tool output.
"""

import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from ..config import config
from ..models import ANONYMOUS, ArgumentsDecodeError, SessionContext, ToolRequest
from .registry import ToolContext, ToolRegistry
from .schemas import ToolResult

logger = logging.getLogger(__name__)

UNRECOGNIZED_TOOL = "unrecognized tool"
INVALID_ARGUMENTS = "invalid arguments"
NOT_AUTHENTICATED = "not authenticated"
EXECUTION_FAILED = "tool execution failed"

MAX_ERROR_DETAIL = 500


def _truncate(message: str) -> str:
    if len(message) > MAX_ERROR_DETAIL:
        return message[:MAX_ERROR_DETAIL] + "..."
    return message


def _validation_detail(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "arguments"
        parts.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)


class ToolExecutor:
    """Dispatches tool requests to their registered handlers."""

    def __init__(
        self,
        records_client: Any = None,
        low_grade_threshold: Optional[float] = None,
    ):
        """
        Args:
            records_client: Data-access collaborator for record lookups
                (an AcademicRecordsClient or compatible object).
            low_grade_threshold: Scores below this need attention.
        """
        self.records_client = records_client
        self.low_grade_threshold = (
            low_grade_threshold
            if low_grade_threshold is not None
            else config.assistant.low_grade_threshold
        )

    def execute(
        self,
        tool_name: str,
        arguments: Union[dict, str, None] = None,
        session: Optional[SessionContext] = None,
    ) -> ToolResult:
        """
        Execute a tool by name.

        Args:
            tool_name: Name of the tool to execute.
            arguments: Argument mapping, or the JSON text produced by the model.
            session: Identity of the caller; anonymous when omitted.

        Returns:
            The tool's result, or a ToolError result on any failure.
        """
        session = session or ANONYMOUS

        tool_def = ToolRegistry.get(tool_name)
        if tool_def is None:
            logger.warning("Unknown tool: %s", tool_name)
            return ToolResult.failure(tool_name, UNRECOGNIZED_TOOL)

        if tool_def.requires_auth and not session.has_credential:
            logger.info("Tool '%s' refused: caller not authenticated", tool_name)
            return ToolResult.failure(
                tool_name,
                NOT_AUTHENTICATED,
                "El estudiante debe iniciar sesión para consultar calificaciones",
            )

        if arguments is None:
            arguments = {}
        if isinstance(arguments, str):
            try:
                arguments = ToolRequest(tool_name, arguments).parse_arguments()
            except ArgumentsDecodeError as e:
                logger.warning("Tool '%s' received undecodable arguments: %s", tool_name, e)
                return ToolResult.failure(tool_name, INVALID_ARGUMENTS, _truncate(str(e)))

        try:
            validated = tool_def.arguments_model.model_validate(arguments)
        except ValidationError as e:
            detail = _validation_detail(e)
            logger.warning("Tool '%s' received invalid arguments: %s", tool_name, detail)
            return ToolResult.failure(tool_name, INVALID_ARGUMENTS, _truncate(detail))

        context = ToolContext(
            session=session,
            records_client=self.records_client,
            low_grade_threshold=self.low_grade_threshold,
        )

        try:
            logger.debug("Executing tool '%s' with args=%s", tool_name, validated)
            body = tool_def.handler(validated, context)
        except Exception as e:
            logger.error("Tool '%s' execution failed: %s", tool_name, e)
            return ToolResult.failure(tool_name, EXECUTION_FAILED, _truncate(str(e)))

        return ToolResult(tool_name=tool_name, body=body)
