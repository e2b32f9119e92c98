"""
Per-session conversation log with bounded history.

The log is the single source of truth for what is sent to the model. It
only grows by appending immutable turns, and is compacted to the system
turn plus the most recent turns once it exceeds its ceiling.
"""

import logging
from typing import Optional

from ..models import Role, Turn

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20


class ConversationState:
    """Ordered list of turns owned by one session."""

    def __init__(
        self,
        system_prompt: Optional[str] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        if history_limit < 2:
            raise ValueError("history_limit must be at least 2")
        self.history_limit = history_limit
        self._turns: list[Turn] = []
        if system_prompt is not None:
            self.seed(system_prompt)

    def __len__(self) -> int:
        return len(self._turns)

    @property
    def system_turn(self) -> Optional[Turn]:
        if self._turns and self._turns[0].role is Role.SYSTEM:
            return self._turns[0]
        return None

    def seed(self, system_prompt: str) -> None:
        """Start a fresh log holding only the system turn."""
        self._turns = [Turn.system(system_prompt)]

    def append(self, turn: Turn) -> None:
        if turn.role is Role.SYSTEM and self._turns:
            raise ValueError("A system turn may only open the conversation")
        self._turns.append(turn)

    def compact_if_needed(self) -> bool:
        """
        Drop the oldest non-system turns once the log exceeds its ceiling.

        Keeps the system turn (when present) followed by the most recent
        turns, in their original order, so the result has exactly
        ``history_limit`` entries. Calling it again is a no-op.

        Returns:
            True if turns were dropped.
        """
        if len(self._turns) <= self.history_limit:
            return False

        before = len(self._turns)
        system = self.system_turn
        if system is not None:
            keep = self.history_limit - 1
            self._turns = [system] + self._turns[-keep:]
        else:
            self._turns = self._turns[-self.history_limit:]
        logger.debug("Compacted conversation from %d to %d turns", before, len(self._turns))
        return True

    def snapshot(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def reset(self) -> None:
        """Forget everything, including the system turn."""
        self._turns = []

    def to_messages(self) -> list[dict]:
        """Wire representation for the chat completion endpoint."""
        return [turn.to_message() for turn in self._turns]
