"""
Pytest configuration and fixtures for EduBot tests.
"""

from unittest.mock import Mock

import pytest

from edubot.models import EnrollmentRecord, SessionContext


@pytest.fixture
def student() -> SessionContext:
    """A logged-in student with a token."""
    return SessionContext(is_logged_in=True, display_name="Ana", token="tok-123")


@pytest.fixture
def anonymous() -> SessionContext:
    return SessionContext()


@pytest.fixture
def mock_llm():
    """LLM client double; script replies via ``complete.side_effect``."""
    llm = Mock()
    llm.chat_model = "gpt-test"
    return llm


@pytest.fixture
def records_client():
    """Records client double returning a failing and a passing subject."""
    client = Mock()
    client.fetch_enrollments.return_value = [
        EnrollmentRecord(subject="Cálculo", score=55.0, room="A1", section="1"),
        EnrollmentRecord(subject="Programación", score=85.0, room="B2", section="2"),
    ]
    return client
