"""
FastAPI application for EduBot.

Usage:
    # Development server with auto-reload
    uvicorn edubot.api.main:app --reload --host 0.0.0.0 --port 8000

    # Debug mode (verbose logging)
    LOG_LEVEL=DEBUG uvicorn edubot.api.main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import config
from ..orchestration.triggers import DEFAULT_TRIGGER_RULES, referenced_tools
from ..tools.registry import ToolRegistry
from ..tracing import init_tracing_client, shutdown_tracing
from .routes import chat, health


def configure_logging():
    """Configure logging based on the configured log level."""
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("edubot").setLevel(log_level)


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting EduBot API server")

    ToolRegistry.validate(referenced_tools(DEFAULT_TRIGGER_RULES))

    logger.info("=" * 60)
    logger.info("INFERENCE")
    if config.inference.is_configured:
        logger.info(f"  Chat model: {config.inference.chat_model}")
        logger.info(f"  Vision model: {config.inference.vision_model}")
        logger.info(f"  Transcription: {config.inference.transcription_model}")
        logger.info(f"  Timeout: {config.inference.timeout}s")
    else:
        logger.info("  Status: FALLBACK (OpenAI API key not configured)")

    logger.info("-" * 60)
    logger.info("ASSISTANT")
    logger.info(f"  Max iterations: {config.assistant.max_iterations}")
    logger.info(f"  History limit: {config.assistant.history_limit}")
    logger.info(f"  Low grade threshold: {config.assistant.low_grade_threshold}")
    logger.info(f"  Max sessions: {config.assistant.max_sessions}")
    logger.info(f"  Session TTL: {config.assistant.session_ttl}s")
    logger.info(f"  Records API: {config.academic_api.base_url}")

    logger.info("-" * 60)
    logger.info("REGISTERED TOOLS")
    for name, tool in ToolRegistry.all_tools().items():
        logger.info(f"  - {name}: {tool.description[:60]}...")

    logger.info("-" * 60)
    logger.info("LANGFUSE OBSERVABILITY")
    tracing_client = init_tracing_client(config.langfuse)
    if tracing_client.enabled:
        logger.info("  Status: ENABLED")
    else:
        logger.info("  Status: DISABLED")
        if tracing_client.error:
            logger.info(f"  Reason: {tracing_client.error}")
    logger.info("=" * 60)

    yield

    logger.info("Shutting down EduBot API server")
    shutdown_tracing()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="EduBot API",
        description="Academic assistant with grade lookup and study resource tools.",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(chat.router, tags=["Chat"])

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Log validation errors before returning 400 response."""
        logger.warning(
            f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
        )
        return JSONResponse(
            status_code=400,
            content={"detail": jsonable_errors(exc)},
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the non-serialisable ``ctx`` entries."""
    return [
        {key: value for key, value in error.items() if key in ("loc", "msg", "type")}
        for error in exc.errors()
    ]


# Create the application instance
app = create_app()


def run_server():
    """Run the server using uvicorn."""
    import uvicorn

    uvicorn.run(
        "edubot.api.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
        workers=1 if config.server.reload else config.server.workers,
    )


if __name__ == "__main__":
    run_server()
