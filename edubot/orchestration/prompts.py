"""
System prompt for the EduBot assistant.

The prompt is rendered once, when a conversation is seeded, with the
student's name, login status and the local date and time.
"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..config import config
from ..models import SessionContext
from ..tools.grades import TOOL_NAME as GRADES_TOOL
from ..tools.resources import TOOL_NAME as RESOURCES_TOOL

WEEKDAYS = ("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo")
MONTHS = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)

SYSTEM_PROMPT_TEMPLATE = """Eres "EduBot", un asistente educativo universitario experto y empático.

DATOS DEL ESTUDIANTE:
- Nombre: {name}
- Sesión activa: {logged_in}
- Fecha actual: {date}
- Hora actual: {time}

INSTRUCCIONES CRÍTICAS:
1. **Mantén el contexto**: Recuerda lo que el estudiante preguntó antes y responde en consecuencia
2. **Sé conversacional**: Responde como un tutor amigable, no como un sistema automatizado
3. **Usa las funciones**: Cuando el estudiante pida información académica, usa las funciones disponibles
4. **Recomienda material**: Si detectas materias con calificación < {threshold}, busca automáticamente recursos en internet
5. **Sigue el hilo**: Si el estudiante hace preguntas relacionadas, conecta con lo anterior

FORMATO ESPECIAL PARA ENLACES:
- NUNCA escribas URLs directamente como texto
- SIEMPRE envuelve las URLs con el formato [LINK:url]
- Ejemplo correcto: [LINK:https://www.youtube.com/results?search_query=matematicas]
- Cuando presentes recursos, di "Enlace" y usa el formato especial

ESCALA DE CALIFICACIONES:
- 90-100: Excelente 🏆
- 80-89: Muy bueno ⭐
- 70-79: Satisfactorio ✅
- < 70: Necesita mejora urgente ⚠️

FUNCIONES DISPONIBLES:
- {grades_tool}: Consulta las notas del estudiante
- {resources_tool}: Busca material educativo en internet para materias específicas

ESTILO DE RESPUESTA:
- Natural y conversacional
- Empático pero honesto
- Motivador cuando sea apropiado
- Directo al punto sin ser robótico
- Usa emojis solo cuando agreguen valor emocional
- Presenta los recursos de forma clara usando el formato [LINK:url]"""


def _local_now(timezone: str) -> datetime:
    try:
        return datetime.now(ZoneInfo(timezone))
    except ZoneInfoNotFoundError:
        return datetime.now()


def format_spanish_date(moment: datetime) -> str:
    """e.g. ``lunes, 19 de octubre de 2026``"""
    weekday = WEEKDAYS[moment.weekday()]
    month = MONTHS[moment.month - 1]
    return f"{weekday}, {moment.day} de {month} de {moment.year}"


def build_system_prompt(
    session: SessionContext,
    now: Optional[datetime] = None,
    low_grade_threshold: Optional[float] = None,
) -> str:
    """Render the system prompt for a student session."""
    moment = now or _local_now(config.assistant.timezone)
    threshold = (
        low_grade_threshold
        if low_grade_threshold is not None
        else config.assistant.low_grade_threshold
    )
    return SYSTEM_PROMPT_TEMPLATE.format(
        name=session.display_name or "Usuario",
        logged_in="Sí" if session.is_logged_in else "No",
        date=format_spanish_date(moment),
        time=moment.strftime("%H:%M:%S"),
        threshold=f"{threshold:g}",
        grades_tool=GRADES_TOOL,
        resources_tool=RESOURCES_TOOL,
    )
