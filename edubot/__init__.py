"""
EduBot - conversational academic assistant

This package provides:
- Tool registry and executor (grade lookup, study resources)
- Bounded tool-calling orchestration loop with auto-triggered follow-ups
- Audio and image intake adapters
- FastAPI server and interactive CLI
"""

__version__ = "0.1.0"

from .assistant import AssistantSession
from .llm_call import LLMClient

__all__ = [
    "AssistantSession",
    "LLMClient",
]
