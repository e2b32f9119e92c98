"""
Academic records backend client.

Fetches the logged-in student's enrollments from the university REST API
and normalises them into EnrollmentRecord instances.
"""

import logging
from typing import Any, Optional

import requests

from .config import config
from .exceptions import RecordsAPIError
from .models import EnrollmentRecord

logger = logging.getLogger(__name__)

ENROLLMENTS_PATH = "/mis-inscripciones/"


def _parse_score(value: Any) -> Optional[float]:
    """Scores may arrive as numbers or decimal strings; anything else is ungraded."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric score: %r", value)
        return None


def _nested(data: dict, *keys: str) -> Any:
    current: Any = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def parse_enrollment(item: dict) -> EnrollmentRecord:
    """Convert one enrollment JSON object into an EnrollmentRecord."""
    section = _nested(item, "paralelo", "numero_paralelo")
    room = _nested(item, "paralelo", "aula")
    return EnrollmentRecord(
        subject=_nested(item, "paralelo", "materia", "nombre"),
        score=_parse_score(item.get("calificacion")),
        room=str(room) if room is not None else None,
        section=str(section) if section is not None else None,
        program=_nested(item, "carrera", "nombre"),
    )


class AcademicRecordsClient:
    """Client for the academic records REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or config.academic_api.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else config.academic_api.timeout

    def fetch_enrollments(self, token: str) -> list[EnrollmentRecord]:
        """
        Fetch the enrollments of the student owning ``token``.

        Args:
            token: Bearer credential of the logged-in student.

        Returns:
            Enrollments in the order returned by the backend.

        Raises:
            RecordsAPIError: On HTTP errors, timeouts or undecodable bodies.
        """
        url = f"{self.base_url}{ENROLLMENTS_PATH}"
        try:
            response = requests.get(
                url,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            logger.error(f"Records API returned HTTP {status}")
            raise RecordsAPIError(f"Error HTTP: {status}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Records API request failed: {e}")
            raise RecordsAPIError(f"Error al obtener datos: {e}") from e
        except ValueError as e:
            raise RecordsAPIError("Respuesta inválida del servidor académico") from e

        # Paginated responses wrap the list in "results"
        if isinstance(data, dict) and isinstance(data.get("results"), list):
            data = data["results"]
        if not isinstance(data, list):
            logger.warning("Records API returned %s instead of a list", type(data).__name__)
            return []

        records = [parse_enrollment(item) for item in data if isinstance(item, dict)]
        logger.debug("Fetched %d enrollments", len(records))
        return records
