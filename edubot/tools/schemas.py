"""
Argument and result shapes for the assistant's tools.

Arguments produced by the model are validated against these pydantic models
at the executor boundary; handlers only ever see validated instances.
Results are pydantic models as well, so every payload handed back to the
model is JSON-serialisable by construction.
"""

import json
from dataclasses import dataclass
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

GradeQueryType = Literal[
    "todas", "promedio", "mejor", "peor", "materias", "aulas", "especifica"
]
ResourceType = Literal["videos", "tutoriales", "ejercicios", "general"]
Urgency = Literal["alta", "media", "baja"]


# =============================================================================
# Arguments
# =============================================================================


class GradeQueryArgs(BaseModel):
    """Arguments of the grade lookup tool."""

    model_config = ConfigDict(extra="ignore")

    tipo_consulta: GradeQueryType = Field(
        ...,
        description=(
            "Tipo de consulta: todas las calificaciones, solo promedio, mejor nota, "
            "peor nota, lista de materias, información de aulas, o consulta "
            "específica de una materia"
        ),
    )
    materia_especifica: Optional[str] = Field(
        default=None,
        description="Nombre de la materia si la consulta es específica (opcional)",
    )


class StudyResourceArgs(BaseModel):
    """Arguments of the study resource discovery tool."""

    model_config = ConfigDict(extra="ignore")

    materia: str = Field(
        ..., min_length=1, description="Nombre de la materia para la cual buscar recursos"
    )
    tipo_recurso: ResourceType = Field(
        default="general", description="Tipo de recurso educativo a buscar"
    )
    nivel_urgencia: Urgency = Field(
        default="media",
        description=(
            "Urgencia basada en la calificación: alta (< 60), media (60-69), baja (70+)"
        ),
    )


# =============================================================================
# Results
# =============================================================================


class ToolError(BaseModel):
    """Generic error shape returned by any tool."""

    error: str
    detail: Optional[str] = None


class SubjectSummary(BaseModel):
    """One enrolled subject as reported back to the model."""

    name: str
    score: Optional[float] = None
    room: Optional[str] = None
    section: Optional[str] = None
    program: Optional[str] = None


class GradeReport(BaseModel):
    """Result of the grade lookup tool."""

    total_subjects: int
    graded_subjects: int
    subjects: list[SubjectSummary] = Field(default_factory=list)
    average: Optional[float] = None
    best_subject: Optional[SubjectSummary] = None
    worst_subject: Optional[SubjectSummary] = None
    subject: Optional[SubjectSummary] = None
    needs_resources: Optional[bool] = None
    critical_subject: Optional[str] = None
    subjects_needing_attention: Optional[list[SubjectSummary]] = None
    message: Optional[str] = None
    error: Optional[str] = None


class ResourceLink(BaseModel):
    label: str
    url: str


class ResourceEntry(BaseModel):
    """One platform in a study resource catalog."""

    platform: str
    kind: str
    description: str
    links: list[ResourceLink]


class StudyResources(BaseModel):
    """Result of the study resource discovery tool."""

    subject: str
    resource_type: ResourceType
    urgency: Urgency
    formatted_text: str
    resources: list[ResourceEntry]


ToolPayload = Union[GradeReport, StudyResources, ToolError]


@dataclass(frozen=True)
class ToolResult:
    """Result from a tool execution."""

    tool_name: str
    body: ToolPayload

    @classmethod
    def failure(
        cls, tool_name: str, error: str, detail: Optional[str] = None
    ) -> "ToolResult":
        body = ToolError(error=error, detail=detail) if detail else ToolError(error=error)
        return cls(tool_name=tool_name, body=body)

    @property
    def is_error(self) -> bool:
        return isinstance(self.body, ToolError)

    @property
    def payload(self) -> dict:
        """Mapping sent back to the model; only fields set by the tool appear."""
        return self.body.model_dump(mode="json", exclude_unset=True)

    def to_json(self) -> str:
        return json.dumps(self.payload, ensure_ascii=False)
