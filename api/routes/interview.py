"""
Interview API Routes - Thin Controller Layer.

Handles HTTP concerns (request/response, validation, status codes)
and delegates business logic to InterviewService.

Endpoints:
- POST /interview/sessions - Start a new session
- GET /interview/sessions - List the caller's sessions
- GET /interview/sessions/{id} - Full session document
- GET /interview/sessions/{id}/state - Current phase, question and progress
- POST /interview/sessions/{id}/questions - Get the question to answer now
- POST /interview/sessions/{id}/answers - Answer the pending question
- POST /interview/sessions/{id}/batch-feedback - Grade the full level
- POST /interview/sessions/{id}/advance - Move to the next level / finish
- GET /interview/sessions/{id}/levels/{n}/summary - Summary of a graded level
- GET /interview/sessions/{id}/summary - Final summary
"""

import logging
from functools import lru_cache
from typing import Generator, Optional

from fastapi import APIRouter, HTTPException, Depends, Path, Query, status
from sqlmodel import Session

from agents.interview import (
    InterviewError,
    InterviewSessionState,
    InvalidStateError,
    NotFoundError,
    ProviderError,
    ValidationError,
)
from agents.interview.provider import LLMQuestionProvider, QuestionProvider
from agents.interview.state import TOTAL_LEVELS
from agents.interview.summary import FinalSummaryView, LevelSummaryView, SessionStateView
from api.auth import get_current_owner, verify_api_key
from api.models.interview_schemas import (
    ErrorResponse,
    NextQuestionResponse,
    SessionListItem,
    SessionListResponse,
    StartSessionRequest,
    StartSessionResponse,
    SubmitAnswerRequest,
)
from config.settings import settings
from repositories import InMemorySessionStore, InterviewSessionRepository, SessionStore
from services import InterviewService
from utils.database import get_engine

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/interview",
    tags=["Interview"],
    dependencies=[Depends(verify_api_key)]
)

_memory_store = InMemorySessionStore()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Session, question or level not found"},
    409: {"model": ErrorResponse, "description": "Operation not allowed in the current phase"},
    429: {"model": ErrorResponse, "description": "Question provider is rate limited"},
    502: {"model": ErrorResponse, "description": "Question provider failed"},
}

# ============ DEPENDENCY INJECTION ============


def get_session_store() -> Generator[SessionStore, None, None]:
    """Session store selected by SESSION_STORE."""
    if settings.SESSION_STORE == "memory":
        yield _memory_store
        return
    with Session(get_engine()) as db:
        yield InterviewSessionRepository(db)


@lru_cache()
def get_question_provider() -> QuestionProvider:
    return LLMQuestionProvider()


def get_interview_service(
    store: SessionStore = Depends(get_session_store),
    provider: QuestionProvider = Depends(get_question_provider),
) -> InterviewService:
    """Get InterviewService instance with injected dependencies."""
    return InterviewService(store, provider)


def _to_http_exception(e: InterviewError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, InvalidStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, ProviderError):
        if e.retry_after:
            return HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=str(e),
                headers={"Retry-After": str(e.retry_after)},
            )
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.exception("Failed to %s", action)
    return HTTPException(status_code=500, detail=f"Failed to {action}: {str(e)}")


# ============ SESSION ENDPOINTS ============

@router.post(
    "/sessions",
    response_model=StartSessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: ERROR_RESPONSES[400]},
)
async def start_session(
    request: StartSessionRequest,
    service: InterviewService = Depends(get_interview_service),
    owner_id: str = Depends(get_current_owner),
):
    """
    Start a new interview session.

    The session starts at level 1 (Starter) with no questions yet; call
    `POST /interview/sessions/{id}/questions` to get the first question.
    """
    context = request.model_dump(exclude_none=True)
    try:
        session = await service.start_session(owner_id, context)
    except InterviewError as e:
        raise _to_http_exception(e) from e
    except Exception as e:
        raise _internal_error("start interview session", e) from e

    return StartSessionResponse(
        session_id=session.session_id,
        session_title=session.session_title,
        session_number=session.session_number,
        current_level=session.current_level,
        difficulty=session.open_level.difficulty,
        created_at=session.created_at,
    )


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(
    completed: Optional[bool] = Query(None, description="Filter by completion"),
    limit: int = Query(10, ge=1, le=100),
    service: InterviewService = Depends(get_interview_service),
    owner_id: str = Depends(get_current_owner),
):
    """List the caller's sessions, newest first."""
    try:
        sessions = await service.list_sessions(owner_id, completed=completed, limit=limit)
    except InterviewError as e:
        raise _to_http_exception(e) from e
    except Exception as e:
        raise _internal_error("list sessions", e) from e

    items = [SessionListItem.from_state(s) for s in sessions]
    return SessionListResponse(sessions=items, count=len(items))


@router.get(
    "/sessions/{session_id}",
    response_model=InterviewSessionState,
    responses={404: ERROR_RESPONSES[404]},
)
async def get_session(
    session_id: str,
    service: InterviewService = Depends(get_interview_service),
    owner_id: str = Depends(get_current_owner),
):
    """Full session document: context, levels, questions, answers and scores."""
    try:
        return await service.get_session(session_id, owner_id=owner_id)
    except InterviewError as e:
        raise _to_http_exception(e) from e
    except Exception as e:
        raise _internal_error("get session", e) from e


@router.get(
    "/sessions/{session_id}/state",
    response_model=SessionStateView,
    responses={404: ERROR_RESPONSES[404]},
)
async def get_session_state(
    session_id: str,
    service: InterviewService = Depends(get_interview_service),
    owner_id: str = Depends(get_current_owner),
):
    """Current phase, pending question and progress. Use this to resume a session."""
    try:
        return await service.get_state(session_id, owner_id=owner_id)
    except InterviewError as e:
        raise _to_http_exception(e) from e
    except Exception as e:
        raise _internal_error("get session state", e) from e


# ============ INTERVIEW FLOW ENDPOINTS ============

@router.post(
    "/sessions/{session_id}/questions",
    response_model=NextQuestionResponse,
    responses={k: ERROR_RESPONSES[k] for k in (404, 409, 429, 502)},
)
async def next_question(
    session_id: str,
    service: InterviewService = Depends(get_interview_service),
    owner_id: str = Depends(get_current_owner),
):
    """
    Get the question to answer now.

    Returns the pending question when one is already waiting for an answer,
    otherwise generates the next question for the current level.
    """
    try:
        question = await service.next_question(session_id, owner_id=owner_id)
        state = await service.get_state(session_id, owner_id=owner_id)
    except InterviewError as e:
        raise _to_http_exception(e) from e
    except Exception as e:
        raise _internal_error("generate question", e) from e

    return NextQuestionResponse(question=question, state=state)


@router.post(
    "/sessions/{session_id}/answers",
    response_model=SessionStateView,
    responses={k: ERROR_RESPONSES[k] for k in (400, 404, 409)},
)
async def submit_answer(
    session_id: str,
    request: SubmitAnswerRequest,
    service: InterviewService = Depends(get_interview_service),
    owner_id: str = Depends(get_current_owner),
):
    """
    Answer the pending question.

    When this was the fifth answer of the level, the returned phase is
    `awaiting_batch_feedback`.
    """
    try:
        return await service.submit_answer(
            session_id, request.question_id, request.answer, owner_id=owner_id
        )
    except InterviewError as e:
        raise _to_http_exception(e) from e
    except Exception as e:
        raise _internal_error("submit answer", e) from e


@router.post(
    "/sessions/{session_id}/batch-feedback",
    response_model=LevelSummaryView,
    responses={k: ERROR_RESPONSES[k] for k in (404, 409, 429, 502)},
)
async def submit_level_batch(
    session_id: str,
    service: InterviewService = Depends(get_interview_service),
    owner_id: str = Depends(get_current_owner),
):
    """Grade all five answers of the current level and return the level summary."""
    try:
        return await service.submit_level_batch(session_id, owner_id=owner_id)
    except InterviewError as e:
        raise _to_http_exception(e) from e
    except Exception as e:
        raise _internal_error("generate batch feedback", e) from e


@router.post(
    "/sessions/{session_id}/advance",
    response_model=SessionStateView,
    responses={k: ERROR_RESPONSES[k] for k in (404, 409)},
)
async def advance_level(
    session_id: str,
    service: InterviewService = Depends(get_interview_service),
    owner_id: str = Depends(get_current_owner),
):
    """Open the next level, or complete the session after level 5."""
    try:
        return await service.advance_level(session_id, owner_id=owner_id)
    except InterviewError as e:
        raise _to_http_exception(e) from e
    except Exception as e:
        raise _internal_error("advance level", e) from e


# ============ SUMMARY ENDPOINTS ============

@router.get(
    "/sessions/{session_id}/levels/{level_number}/summary",
    response_model=LevelSummaryView,
    responses={k: ERROR_RESPONSES[k] for k in (404, 409)},
)
async def get_level_summary(
    session_id: str,
    level_number: int = Path(..., ge=1, le=TOTAL_LEVELS),
    service: InterviewService = Depends(get_interview_service),
    owner_id: str = Depends(get_current_owner),
):
    try:
        return await service.get_level_summary(session_id, level_number, owner_id=owner_id)
    except InterviewError as e:
        raise _to_http_exception(e) from e
    except Exception as e:
        raise _internal_error("get level summary", e) from e


@router.get(
    "/sessions/{session_id}/summary",
    response_model=FinalSummaryView,
    responses={k: ERROR_RESPONSES[k] for k in (404, 409)},
)
async def get_final_summary(
    session_id: str,
    service: InterviewService = Depends(get_interview_service),
    owner_id: str = Depends(get_current_owner),
):
    """Overall score, performance band, strengths and topics to revise."""
    try:
        return await service.get_final_summary(session_id, owner_id=owner_id)
    except InterviewError as e:
        raise _to_http_exception(e) from e
    except Exception as e:
        raise _internal_error("get final summary", e) from e
