"""
FastAPI server module for EduBot.

Exposes the assistant sessions over REST.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
