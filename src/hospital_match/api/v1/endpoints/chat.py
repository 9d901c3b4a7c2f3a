"""Conversational endpoints."""

from fastapi import APIRouter, status

from hospital_match.core.exceptions import NotFoundException
from hospital_match.core.logging import get_logger
from hospital_match.dependencies import ChatServiceDep
from hospital_match.schemas.chat import (
    ChatRequest,
    ChatResponse,
    TranscriptResponse,
    TranscriptTurn,
)

logger = get_logger(__name__)

router = APIRouter(tags=["chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Chat",
    description="Handles one user turn: classify, search or confirm, and reply",
    status_code=status.HTTP_200_OK,
)
async def chat(request: ChatRequest, chat_service: ChatServiceDep) -> ChatResponse:
    """Handle one conversational turn.

    Args:
        request: Session id and user text.
        chat_service: Injected chat service.

    Returns:
        ChatResponse: Reply text, referenced hospitals and optional audio.
    """
    logger.info("Chat turn: session=%s text=%r", request.session_id, request.text)
    return await chat_service.handle(request.session_id, request.text)


@router.get(
    "/chat/{session_id}/transcript",
    response_model=TranscriptResponse,
    summary="Chat Transcript",
    description="Returns the recorded turns of a live session",
)
async def transcript(session_id: str, chat_service: ChatServiceDep) -> TranscriptResponse:
    """Raises NotFoundException for unknown or evicted sessions."""
    if session_id not in chat_service.sessions:
        raise NotFoundException(f"Session '{session_id}' not found")
    turns = chat_service.sessions.transcript(session_id)
    return TranscriptResponse(
        session_id=session_id,
        turns=[TranscriptTurn(role=t.role, text=t.text) for t in turns],
    )
