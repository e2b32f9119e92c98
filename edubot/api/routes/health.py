"""Health and service status endpoints."""

from fastapi import APIRouter

from ... import __version__
from ...config import config
from ..schemas import HealthResponse, StatusResponse

router = APIRouter()


def _service_available() -> bool:
    return config.inference.is_configured


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the API server is running and healthy.",
)
def health_check() -> HealthResponse:
    """Return health status of the API server."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        model=config.inference.chat_model,
        assistant_available=_service_available(),
    )


@router.get(
    "/v1/status",
    response_model=StatusResponse,
    summary="Assistant status",
    description="Whether the assistant is backed by OpenAI or running in fallback mode.",
)
def service_status() -> StatusResponse:
    available = _service_available()
    return StatusResponse(available=available, mode="openai" if available else "fallback")
