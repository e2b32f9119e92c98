"""
Assistant message renderer.

Classifies each line of an answer (titles, bullets, numbered items, ...)
and splits it into plain, bold and link segments. Rendering is pure:
the same text always yields the same lines.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

TITLE_EMOJIS = ("🎓", "📊", "📖", "🏫", "💪", "🎯", "⚠️", "⚠", "✨", "🏆", "⭐")
SUBTITLE_EMOJIS = ("📚", "📈", "🏠", "👥", "📝", "💡")

NUMBERED_PATTERN = re.compile(r"^\d+\.")
INLINE_PATTERN = re.compile(r"\*\*(.*?)\*\*|\[LINK:([^\]\s]+)\]")
LEADING_SPACE = re.compile(r"\S")

LINK_LABEL = "Enlace"


@dataclass(frozen=True)
class Segment:
    """A run of text inside a line: ``text``, ``bold`` or ``link``."""

    kind: str
    text: str
    url: Optional[str] = None


@dataclass(frozen=True)
class RenderedLine:
    kind: str
    segments: tuple[Segment, ...] = field(default_factory=tuple)
    indent: int = 0
    original: str = ""

    @property
    def plain_text(self) -> str:
        parts = []
        for segment in self.segments:
            if segment.kind == "link":
                parts.append(f"{LINK_LABEL}: {segment.url}")
            else:
                parts.append(segment.text)
        return "".join(parts)


def classify_line(line: str) -> str:
    """Line kind, checked in priority order."""
    trimmed = line.strip()
    if not trimmed:
        return "blank"
    if trimmed == "---":
        return "separator"
    if trimmed.startswith(TITLE_EMOJIS):
        return "title"
    if trimmed.startswith(SUBTITLE_EMOJIS):
        return "subtitle"
    if trimmed.startswith("•"):
        return "bullet"
    if NUMBERED_PATTERN.match(trimmed):
        return "numbered"
    if line.startswith("   "):
        return "indented"
    return "normal"


def parse_segments(text: str) -> tuple[Segment, ...]:
    """Split a line into text, ``**bold**`` and ``[LINK:url]`` segments."""
    segments: list[Segment] = []
    last = 0
    for match in INLINE_PATTERN.finditer(text):
        if match.start() > last:
            segments.append(Segment("text", text[last:match.start()]))
        if match.group(2) is not None:
            segments.append(Segment("link", LINK_LABEL, url=match.group(2)))
        else:
            segments.append(Segment("bold", match.group(1)))
        last = match.end()
    if last < len(text):
        segments.append(Segment("text", text[last:]))
    return tuple(segments)


def render(text: str) -> list[RenderedLine]:
    lines = []
    for line in text.split("\n"):
        found = LEADING_SPACE.search(line)
        lines.append(
            RenderedLine(
                kind=classify_line(line),
                segments=parse_segments(line),
                indent=found.start() if found else 0,
                original=line,
            )
        )
    return lines


def render_plain(text: str) -> str:
    """Terminal rendering: markers removed, links spelled out."""
    out = []
    for line in render(text):
        if line.kind == "separator":
            out.append("-" * 40)
        else:
            out.append(line.plain_text)
    return "\n".join(out)
