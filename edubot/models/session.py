"""
Caller identity and academic record models.

Both are supplied from outside the core and never mutated by it.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SessionContext:
    """Identity of the student talking to the assistant."""

    is_logged_in: bool = False
    display_name: Optional[str] = None
    token: Optional[str] = None

    @property
    def has_credential(self) -> bool:
        """Whether tools that read personal records may run."""
        return self.is_logged_in and bool(self.token)


ANONYMOUS = SessionContext()


@dataclass(frozen=True)
class EnrollmentRecord:
    """One enrollment returned by the academic records backend.

    ``score`` is None while the subject is still ungraded.
    """

    subject: Optional[str] = None
    score: Optional[float] = None
    room: Optional[str] = None
    section: Optional[str] = None
    program: Optional[str] = None

    @property
    def is_graded(self) -> bool:
        return self.score is not None
