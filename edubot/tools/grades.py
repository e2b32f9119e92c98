"""
Grade Lookup Tool

Reads the student's enrollments from the academic records backend and
answers one of several query modes over them (all grades, average, best,
worst, a specific subject, or the subject/room list).
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ..models import EnrollmentRecord
from .registry import ToolContext
from .schemas import GradeQueryArgs, GradeReport, SubjectSummary

logger = logging.getLogger(__name__)

TOOL_NAME = "get_grades"

UNKNOWN_SUBJECT = "Materia desconocida"
UNASSIGNED_ROOM = "No asignada"
NOT_AVAILABLE = "N/A"

TWO_PLACES = Decimal("0.01")


def average_score(records: Iterable[EnrollmentRecord]) -> Optional[float]:
    """
    Mean score over graded records, rounded half up to two decimals.

    Ungraded records are excluded from both the sum and the count.
    Returns None when nothing is graded.
    """
    scores = [r.score for r in records if r.score is not None]
    if not scores:
        return None
    mean = Decimal(sum(scores) / len(scores))
    return float(mean.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def best_record(records: Iterable[EnrollmentRecord]) -> Optional[EnrollmentRecord]:
    """First graded record with the highest score."""
    best = None
    for record in records:
        if record.score is None:
            continue
        if best is None or record.score > best.score:
            best = record
    return best


def worst_record(records: Iterable[EnrollmentRecord]) -> Optional[EnrollmentRecord]:
    """First graded record with the lowest score."""
    worst = None
    for record in records:
        if record.score is None:
            continue
        if worst is None or record.score < worst.score:
            worst = record
    return worst


def records_needing_attention(
    records: Iterable[EnrollmentRecord], threshold: float
) -> list[EnrollmentRecord]:
    """Graded records strictly below the threshold, in input order."""
    return [r for r in records if r.score is not None and r.score < threshold]


def _full_summary(record: EnrollmentRecord) -> SubjectSummary:
    return SubjectSummary(
        name=record.subject or UNKNOWN_SUBJECT,
        score=record.score,
        room=record.room or UNASSIGNED_ROOM,
        section=record.section or NOT_AVAILABLE,
        program=record.program or NOT_AVAILABLE,
    )


def _listing_summary(record: EnrollmentRecord) -> SubjectSummary:
    return SubjectSummary(
        name=record.subject or UNKNOWN_SUBJECT,
        score=record.score,
        room=record.room or UNASSIGNED_ROOM,
        section=record.section or NOT_AVAILABLE,
    )


def _ranked_summary(record: EnrollmentRecord) -> SubjectSummary:
    return SubjectSummary(
        name=record.subject or UNKNOWN_SUBJECT,
        score=record.score,
        room=record.room,
        section=record.section,
    )


def summarize_enrollments(
    records: list[EnrollmentRecord],
    args: GradeQueryArgs,
    threshold: float = 70.0,
) -> GradeReport:
    """
    Build the grade report for one query mode.

    The list of subjects below ``threshold`` is attached whatever the mode,
    so callers can react to failing subjects even when the question was
    about something else.

    Args:
        records: Enrollments in backend order.
        args: Validated query arguments.
        threshold: Scores strictly below this value need attention.
    """
    graded = [r for r in records if r.is_graded]
    fields: dict = {
        "total_subjects": len(records),
        "graded_subjects": len(graded),
        "subjects": [],
    }
    mode = args.tipo_consulta

    if mode == "todas":
        fields["subjects"] = [_full_summary(r) for r in records]

    elif mode == "promedio":
        fields["average"] = average_score(records)
        if fields["average"] is None:
            fields["message"] = "No hay calificaciones disponibles"

    elif mode == "mejor":
        best = best_record(records)
        if best is not None:
            fields["best_subject"] = _ranked_summary(best)

    elif mode == "peor":
        worst = worst_record(records)
        if worst is not None:
            fields["worst_subject"] = _ranked_summary(worst)
            if worst.score < threshold:
                fields["needs_resources"] = True
                fields["critical_subject"] = worst.subject or UNKNOWN_SUBJECT

    elif mode == "especifica":
        wanted = (args.materia_especifica or "").strip().lower()
        if wanted:
            match = next(
                (r for r in records if r.subject and wanted in r.subject.lower()),
                None,
            )
            if match is not None:
                fields["subject"] = SubjectSummary(
                    name=match.subject,
                    score=match.score,
                    room=match.room,
                    section=match.section,
                    program=match.program,
                )
            else:
                fields["error"] = f"No se encontró la materia: {wanted}"

    elif mode in ("materias", "aulas"):
        fields["subjects"] = [_listing_summary(r) for r in records]

    failing = records_needing_attention(records, threshold)
    if failing:
        fields["subjects_needing_attention"] = [
            SubjectSummary(name=r.subject or UNKNOWN_SUBJECT, score=r.score)
            for r in failing
        ]

    return GradeReport(**fields)


def _handle_get_grades(args: GradeQueryArgs, context: ToolContext) -> GradeReport:
    """Fetch the student's enrollments and summarise them."""
    if context.records_client is None:
        raise RuntimeError("No academic records client configured")

    records = context.records_client.fetch_enrollments(context.session.token)
    if not records:
        return GradeReport(
            total_subjects=0,
            graded_subjects=0,
            subjects=[],
            message="No se encontraron materias inscritas",
        )

    report = summarize_enrollments(records, args, context.low_grade_threshold)
    logger.debug(
        "Grade report (%s): %d subjects, %d graded",
        args.tipo_consulta,
        report.total_subjects,
        report.graded_subjects,
    )
    return report


# Register tool with the registry
def _register():
    from .registry import ToolRegistry

    ToolRegistry.register(
        name=TOOL_NAME,
        description=(
            "Obtiene las calificaciones y datos académicos del estudiante. Úsala "
            "cuando el estudiante pregunte sobre sus notas, materias, promedio, "
            "aulas, o cualquier información académica."
        ),
        arguments_model=GradeQueryArgs,
        handler=_handle_get_grades,
        requires_auth=True,
    )


_register()
