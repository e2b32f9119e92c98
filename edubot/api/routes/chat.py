"""
Conversation endpoints.

Each session id maps to one AssistantSession held in process memory.
The student's credential is read from the ``Authorization: Bearer``
header; login status and display name come from the request body.
"""

import base64
import binascii
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from ...exceptions import SessionBusyError
from ...models import SessionContext
from ...sessions import SessionStore
from ...tracing import TracingContext, get_tracing_client
from ..schemas import (
    AudioRequest,
    HistoryResponse,
    ImageRequest,
    IntakeResponse,
    MessageRequest,
    MessageResponse,
    StudentFields,
    TraceStep,
    TurnModel,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    """Process-wide session store (overridden in tests)."""
    global _store
    if _store is None:
        _store = SessionStore()
    return _store


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _session_context(fields: StudentFields, authorization: Optional[str]) -> SessionContext:
    return SessionContext(
        is_logged_in=fields.is_logged_in,
        display_name=fields.display_name,
        token=_bearer_token(authorization),
    )


def _decode_base64(data: str, what: str) -> bytes:
    # Accept data URLs as produced by browsers
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail=f"Invalid base64 {what} data")
    if not decoded:
        raise HTTPException(status_code=400, detail=f"Empty {what} data")
    return decoded


def _busy(session_id: str) -> HTTPException:
    return HTTPException(
        status_code=409,
        detail=f"Session '{session_id}' is already processing a message",
    )


def _flush_tracing() -> None:
    """Flush tracing client if available."""
    client = get_tracing_client()
    if client:
        client.flush()


@router.post(
    "/v1/sessions/{session_id}/messages",
    response_model=MessageResponse,
    summary="Send a message",
    description="Run a text message through the assistant's tool loop.",
)
def send_message(
    session_id: str,
    request: MessageRequest,
    authorization: Optional[str] = Header(default=None),
    store: SessionStore = Depends(get_session_store),
) -> MessageResponse:
    execution_id = f"exec-{uuid.uuid4().hex[:8]}"
    logger.info(f"[{execution_id}] Message for session {session_id}: {request.message[:100]}")

    assistant = store.get_or_create(session_id)
    context = _session_context(request, authorization)

    tracing_context = TracingContext(
        execution_id=execution_id,
        session_id=session_id,
        user_id=context.display_name,
    )
    tracing_context.start_trace(name="send_message", query=request.message)

    try:
        result = assistant.send_message(request.message, context, tracing_context)
    except SessionBusyError:
        tracing_context.end_trace(status="error")
        raise _busy(session_id)
    except Exception as e:
        logger.exception(f"[{execution_id}] Message processing failed: {e}")
        tracing_context.end_trace(output=str(e), status="error")
        _flush_tracing()
        raise HTTPException(status_code=500, detail=str(e))

    tracing_context.end_trace(
        output=result.answer,
        status="success" if result.succeeded else "error",
    )
    _flush_tracing()

    trace = None
    if request.include_trace:
        trace = [
            TraceStep(
                step=step.step_number,
                iteration=step.iteration,
                action=step.action,
                action_input=step.action_input,
                observation=step.observation,
                auto_triggered=step.auto_triggered,
                is_final=step.is_final,
                error=step.error,
            )
            for step in result.steps
        ]

    return MessageResponse(
        answer=result.answer,
        state=result.state.value,
        iterations=result.iterations,
        tools_used=result.tools_used,
        trace=trace,
    )


@router.post(
    "/v1/sessions/{session_id}/image",
    response_model=IntakeResponse,
    summary="Ask about an image",
)
def send_image(
    session_id: str,
    request: ImageRequest,
    authorization: Optional[str] = Header(default=None),
    store: SessionStore = Depends(get_session_store),
) -> IntakeResponse:
    image = _decode_base64(request.image_base64, "image")
    assistant = store.get_or_create(session_id)
    try:
        reply = assistant.send_message_with_image(
            request.message,
            image,
            request.mime_type,
            _session_context(request, authorization),
        )
    except SessionBusyError:
        raise _busy(session_id)
    return IntakeResponse(answer=reply.answer)


@router.post(
    "/v1/sessions/{session_id}/audio",
    response_model=IntakeResponse,
    summary="Send a voice message",
)
def send_audio(
    session_id: str,
    request: AudioRequest,
    authorization: Optional[str] = Header(default=None),
    store: SessionStore = Depends(get_session_store),
) -> IntakeResponse:
    audio = _decode_base64(request.audio_base64, "audio")
    execution_id = f"exec-{uuid.uuid4().hex[:8]}"
    logger.info(f"[{execution_id}] Audio for session {session_id} ({len(audio)} bytes)")

    assistant = store.get_or_create(session_id)
    context = _session_context(request, authorization)

    tracing_context = TracingContext(
        execution_id=execution_id,
        session_id=session_id,
        user_id=context.display_name,
    )
    tracing_context.start_trace(
        name="send_audio", metadata={"filename": request.filename, "bytes": len(audio)}
    )

    try:
        reply = assistant.send_message_with_audio(
            audio,
            request.filename,
            context,
            tracing_context,
        )
    except SessionBusyError:
        tracing_context.end_trace(status="error")
        raise _busy(session_id)

    tracing_context.end_trace(
        output=reply.answer,
        status="success" if reply.forwarded else "error",
    )
    _flush_tracing()
    return IntakeResponse(answer=reply.answer, transcript=reply.transcript)


@router.get(
    "/v1/sessions/{session_id}/history",
    response_model=HistoryResponse,
    summary="Conversation history",
)
def get_history(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> HistoryResponse:
    assistant = store.get(session_id)
    if assistant is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return HistoryResponse(
        session_id=session_id,
        turns=[TurnModel(**turn) for turn in assistant.history()],
    )


@router.delete(
    "/v1/sessions/{session_id}",
    status_code=204,
    summary="Start a new conversation",
)
def reset_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> None:
    assistant = store.get(session_id)
    if assistant is None:
        return None
    try:
        assistant.reset()
    except SessionBusyError:
        raise _busy(session_id)
    store.drop(session_id)
    return None
