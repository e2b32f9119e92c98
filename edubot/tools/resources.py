"""
Study Resource Discovery Tool

Builds a small, deterministic catalog of places where a student can study
a subject. No network call is made: every link is a search URL on the
target platform. Links in the rendered text use the ``[LINK:<url>]``
marker, which the chat renderer turns into a labelled link.
"""

import logging
from urllib.parse import quote

from .registry import ToolContext
from .schemas import ResourceEntry, ResourceLink, StudyResourceArgs, StudyResources

logger = logging.getLogger(__name__)

TOOL_NAME = "search_study_resources"

LINK_MARKER = "[LINK:{url}]"


def _q(text: str) -> str:
    return quote(text, safe="")


def link_marker(url: str) -> str:
    """Wrap an absolute URL in the inline link marker."""
    return LINK_MARKER.format(url=url)


def build_resource_catalog(
    subject: str,
    resource_type: str = "general",
    urgency: str = "media",
) -> list[ResourceEntry]:
    """
    Build the catalog of study resources for a subject.

    A solved-exercises entry is appended when the urgency is ``alta`` or
    exercises were explicitly requested.
    """
    resources = [
        ResourceEntry(
            platform="YouTube",
            kind="Videos educativos",
            description="Videos explicativos en español",
            links=[
                ResourceLink(
                    label="Tutorial en español",
                    url="https://www.youtube.com/results?search_query="
                    + _q(f"{subject} tutorial español"),
                ),
                ResourceLink(
                    label="Explicación paso a paso",
                    url="https://www.youtube.com/results?search_query="
                    + _q(f"{subject} explicación paso a paso"),
                ),
            ],
        ),
        ResourceEntry(
            platform="Khan Academy",
            kind="Cursos interactivos",
            description="Cursos gratuitos con ejercicios prácticos",
            links=[
                ResourceLink(
                    label="Buscar en Khan Academy",
                    url="https://es.khanacademy.org/search?search_again=1"
                    "&page_search_query=" + _q(subject),
                )
            ],
        ),
        ResourceEntry(
            platform="Coursera",
            kind="Cursos universitarios",
            description="Cursos de universidades reconocidas",
            links=[
                ResourceLink(
                    label="Buscar en Coursera",
                    url="https://www.coursera.org/search?query=" + _q(subject),
                )
            ],
        ),
        ResourceEntry(
            platform="MIT OpenCourseWare",
            kind="Material académico avanzado",
            description="Recursos del MIT de acceso libre",
            links=[
                ResourceLink(
                    label="Buscar en MIT OCW",
                    url="https://ocw.mit.edu/search/?q=" + _q(subject),
                )
            ],
        ),
    ]

    if resource_type == "ejercicios" or urgency == "alta":
        resources.append(
            ResourceEntry(
                platform="Varios",
                kind="Ejercicios resueltos",
                description="Problemas resueltos paso a paso",
                links=[
                    ResourceLink(
                        label="Ejercicios resueltos PDF",
                        url="https://www.google.com/search?q="
                        + _q(f"{subject} ejercicios resueltos pdf"),
                    ),
                    ResourceLink(
                        label="Problemas paso a paso",
                        url="https://www.google.com/search?q="
                        + _q(f"{subject} problemas resueltos paso a paso"),
                    ),
                ],
            )
        )

    return resources


def format_catalog_text(resources: list[ResourceEntry]) -> str:
    """
    Render the catalog as the text block shown to the model.

    Every URL is wrapped in the link marker; no bare URL is emitted.
    """
    lines = [
        "",
        "📚 **RECURSOS EDUCATIVOS ENCONTRADOS**",
        "",
        "⚠️ IMPORTANTE: Usa el formato [LINK:url] para TODOS los enlaces.",
        "",
    ]
    for index, resource in enumerate(resources, 1):
        lines.append(f"{index}. **{resource.platform}**")
        lines.append(f"   - {resource.description}")
        for link in resource.links:
            lines.append(f"   - {link.label}: {link_marker(link.url)}")
        lines.append("")

    lines.append("")
    lines.append("💡 **Instrucción para presentación:**")
    lines.append(
        "Presenta estos recursos de forma amigable manteniendo EXACTAMENTE "
        "el formato [LINK:url] para cada enlace."
    )
    return "\n".join(lines) + "\n"


def search_study_resources(args: StudyResourceArgs) -> StudyResources:
    """Build the catalog and its rendered text for validated arguments."""
    resources = build_resource_catalog(
        args.materia, args.tipo_recurso, args.nivel_urgencia
    )
    return StudyResources(
        subject=args.materia,
        resource_type=args.tipo_recurso,
        urgency=args.nivel_urgencia,
        formatted_text=format_catalog_text(resources),
        resources=resources,
    )


def _handle_search_resources(
    args: StudyResourceArgs, context: ToolContext
) -> StudyResources:
    """Handle study resource tool invocation."""
    logger.debug(
        "Building resources for '%s' (type=%s, urgency=%s)",
        args.materia,
        args.tipo_recurso,
        args.nivel_urgencia,
    )
    return search_study_resources(args)


# Register tool with the registry
def _register():
    from .registry import ToolRegistry

    ToolRegistry.register(
        name=TOOL_NAME,
        description=(
            "Busca recursos educativos en internet para una materia específica. "
            "Úsala automáticamente cuando detectes que una materia tiene "
            "calificación menor a 70, o cuando el estudiante pida ayuda para mejorar."
        ),
        arguments_model=StudyResourceArgs,
        handler=_handle_search_resources,
    )


_register()
