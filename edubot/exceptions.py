"""Exception types raised across EduBot."""


class EduBotError(Exception):
    """Base class for EduBot errors."""


class ToolRegistrationError(EduBotError, ValueError):
    """A tool is registered twice or a referenced tool has no handler."""


class SessionBusyError(EduBotError):
    """A second request arrived while the session was still processing one."""

    def __init__(self, session_id: str = ""):
        self.session_id = session_id
        label = f"'{session_id}' " if session_id else ""
        super().__init__(f"Session {label}is already processing a message")


class RecordsAPIError(EduBotError):
    """The academic records backend answered with an error or bad payload."""
