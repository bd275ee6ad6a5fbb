"""Chat and handbook catalog endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ...services.answer import AnswerService
from ...services.errors import AnswerError
from ...services.history import HistoryTurn
from ..dependencies import get_answer_service

logger = logging.getLogger(__name__)


router = APIRouter(tags=["chat"])


# =============================================================================
# Request/Response Models
# =============================================================================


class ChatRequest(BaseModel):
    """Question posted by the chat form."""

    message: str = Field(default="", description="User question")
    faculty: str = Field(default="", description="Faculty (handbook) identifier")
    department: str = Field(default="", description="Department identifier")
    history: list[HistoryTurn] = Field(
        default_factory=list,
        description="Earlier conversation turns, oldest first",
    )


class ChatResponse(BaseModel):
    """Answer text."""

    response: str


class ErrorResponse(BaseModel):
    """Error body; retryAfter is set on 429 only."""

    error: str
    retryAfter: Optional[int] = None


def error_response(error: AnswerError) -> JSONResponse:
    """Render an AnswerError as the chat endpoint's error body."""
    headers = None
    if error.retry_after_seconds is not None:
        headers = {"Retry-After": str(error.retry_after_seconds)}
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_payload(),
        headers=headers,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
@router.post(
    "/api/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(
    payload: ChatRequest,
    service: AnswerService = Depends(get_answer_service),
):
    """Answer a question from the selected faculty's handbook."""
    logger.info(
        f"Question for {payload.faculty or '-'}/{payload.department or '-'} "
        f"({len(payload.history)} history turns)"
    )

    try:
        answer = await service.answer(
            payload.message,
            payload.faculty,
            department_id=payload.department,
            history=payload.history,
        )
    except AnswerError as e:
        if e.status_code >= 500:
            logger.error(f"Chat request failed ({e.kind.value}): {e.detail}")
        else:
            logger.info(f"Chat request rejected ({e.kind.value}): {e.detail}")
        return error_response(e)

    return ChatResponse(response=answer.text)


@router.get("/api/handbooks")
async def list_handbooks(service: AnswerService = Depends(get_answer_service)):
    """Faculties and departments available to the chat form."""
    return {"handbooks": service.registry.to_catalog()}
