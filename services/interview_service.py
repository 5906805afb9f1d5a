"""
Interview Service - Business Logic Layer.

Orchestrates the adaptive interview engine:
- Session creation (context validation, per-owner numbering)
- Question generation and answer collection, one question at a time
- Batch feedback once a level holds five answers
- Level advancement and final summary

Every mutating operation loads a private copy of the session, applies one
transition and writes it back with a single store.put. Provider calls are
the only suspension points; when they fail, time out or are cancelled the
stored session is left exactly as it was.
"""

import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional, Type, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError

from agents.interview import transitions
from agents.interview.conditions import derive_phase, is_ready_for_batch, pending_question
from agents.interview.errors import (
    FeedbackError,
    GenerationError,
    InvalidStateError,
    NotFoundError,
    ProviderError,
    ValidationError,
)
from agents.interview.provider import QuestionAnswerPair, QuestionProvider, is_duplicate_question
from agents.interview.state import InterviewContext, InterviewSessionState, Question, SessionPhase
from agents.interview.summary import (
    FinalSummaryView,
    LevelSummaryView,
    SessionStateView,
    build_final_summary,
    build_level_summary,
    build_state_view,
)
from config.settings import settings
from repositories.session_store import SessionStore
from services.session_locks import SessionLockRegistry, session_locks

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InterviewService:
    """
    Application service for interview sessions.

    Responsibilities:
    - Validate caller input and map it onto the engine's error taxonomy
    - Serialize writers per session id
    - Bound provider calls with a timeout
    - Persist exactly one new session state per successful operation
    """

    def __init__(
        self,
        store: SessionStore,
        provider: QuestionProvider,
        lock_registry: Optional[SessionLockRegistry] = None,
        provider_timeout: Optional[float] = None,
        max_answer_length: Optional[int] = None,
    ):
        self.store = store
        self.provider = provider
        self.locks = lock_registry or session_locks
        self.provider_timeout = (
            settings.PROVIDER_TIMEOUT_SECONDS if provider_timeout is None else provider_timeout
        )
        self.max_answer_length = (
            settings.MAX_ANSWER_LENGTH if max_answer_length is None else max_answer_length
        )

    # ============ SESSION LIFECYCLE ============

    async def start_session(
        self,
        owner_id: str,
        context: Union[InterviewContext, Dict[str, Any]],
    ) -> InterviewSessionState:
        """
        Create a session with level 1 open and empty.

        Numbering is serialized per owner within this process; separate
        worker processes sharing one database may still hand out the same
        session number.

        Raises:
            ValidationError: Missing owner, role, company, experience level or skills
        """
        if not owner_id or not str(owner_id).strip():
            raise ValidationError("owner_id is required")

        context = self._validate_context(context)
        async with self.locks.hold(f"owner:{owner_id}"):
            session_number = self.store.count_by_owner(owner_id) + 1
            session = InterviewSessionState.new(owner_id, context, session_number=session_number)
            self.store.put(session.session_id, session)

        logger.info(
            "Started session %s (#%d) for owner %s: %s at %s",
            session.session_id, session_number, owner_id,
            context.target_role, context.target_company,
        )
        return session

    async def next_question(self, session_id: str, owner_id: Optional[str] = None) -> Question:
        """
        Return the question the candidate should answer now.

        A pending unanswered question is returned as-is; otherwise a new one
        is generated for the open level.

        Raises:
            NotFoundError: Unknown session
            InvalidStateError: Level full, level awaiting feedback or session finished
            GenerationError: Provider failed or timed out (nothing stored)
        """
        async with self.locks.hold(session_id):
            session = self._load(session_id, owner_id)
            phase = derive_phase(session)

            if phase == SessionPhase.AWAITING_ANSWER:
                return pending_question(session)
            if phase != SessionPhase.AWAITING_QUESTION:
                raise InvalidStateError(
                    f"Cannot generate a question: session {session_id} is in phase '{phase.value}'"
                )

            level_number = session.current_level
            generated = await self._call_provider(
                self.provider.generate_question(
                    session.context, level_number, list(session.previous_questions)
                ),
                GenerationError,
                session_id,
                "question generation",
            )

            text = (generated.text or "").strip()
            if not text:
                raise GenerationError("Question provider returned an empty question")
            if is_duplicate_question(text, session.previous_questions):
                raise GenerationError("Question provider repeated a previous question")

            question = transitions.append_question(session, text)
            self.store.put(session_id, session)

        logger.info(
            "Session %s: level %d question %d asked (%s)",
            session_id, level_number, len(session.open_level.questions), question.id,
        )
        return question

    async def submit_answer(
        self,
        session_id: str,
        question_id: str,
        answer_text: str,
        owner_id: Optional[str] = None,
    ) -> SessionStateView:
        """
        Record the answer to the pending question.

        Raises:
            ValidationError: Empty or oversized answer
            NotFoundError: Unknown session or question
            InvalidStateError: Question already answered or not the pending one
        """
        answer = self._validate_answer(answer_text)

        async with self.locks.hold(session_id):
            session = self._load(session_id, owner_id)
            transitions.record_answer(session, question_id, answer)
            self.store.put(session_id, session)

        view = build_state_view(session)
        logger.info(
            "Session %s: answer recorded for %s (%d/%d in level %d)",
            session_id, question_id, view.answered_in_level,
            len(session.open_level.questions), session.current_level,
        )
        return view

    async def submit_level_batch(self, session_id: str, owner_id: Optional[str] = None) -> LevelSummaryView:
        """
        Grade all five answers of the open level in one provider call.

        Raises:
            NotFoundError: Unknown session
            InvalidStateError: Level not full, not fully answered or already graded
            FeedbackError: Provider failed, timed out or returned an unusable batch
        """
        async with self.locks.hold(session_id):
            session = self._load(session_id, owner_id)
            if not is_ready_for_batch(session):
                raise InvalidStateError(
                    f"Level {session.current_level} of session {session_id} is not ready for feedback "
                    f"(phase '{derive_phase(session).value}')"
                )

            level_number = session.current_level
            pairs = [
                QuestionAnswerPair(question_text=q.text, answer_text=q.answer)
                for q in session.open_level.questions
            ]
            batch = await self._call_provider(
                self.provider.generate_batch_feedback(pairs, session.context, level_number),
                FeedbackError,
                session_id,
                "batch feedback",
            )

            level = transitions.apply_batch_feedback(session, batch)
            self.store.put(session_id, session)

        logger.info(
            "Session %s: level %d graded, average %.2f, total %.2f",
            session_id, level_number, level.average_score, session.total_score,
        )
        return build_level_summary(session, level)

    async def advance_level(self, session_id: str, owner_id: Optional[str] = None) -> SessionStateView:
        """
        Move on from a graded level: open the next one, or finish after level 5.

        Raises:
            NotFoundError: Unknown session
            InvalidStateError: Open level not graded yet, or session already finished
        """
        async with self.locks.hold(session_id):
            session = self._load(session_id, owner_id)
            phase = transitions.advance_level(session)
            self.store.put(session_id, session)

        if phase == SessionPhase.FINAL_SUMMARY:
            logger.info("Session %s completed with total score %.2f", session_id, session.total_score)
        else:
            logger.info("Session %s advanced to level %d", session_id, session.current_level)
        return build_state_view(session)

    # ============ READ OPERATIONS ============

    async def get_session(self, session_id: str, owner_id: Optional[str] = None) -> InterviewSessionState:
        """Load the full session document. Never changes anything."""
        return self._load(session_id, owner_id)

    async def get_state(self, session_id: str, owner_id: Optional[str] = None) -> SessionStateView:
        return build_state_view(self._load(session_id, owner_id))

    async def list_sessions(
        self,
        owner_id: str,
        completed: Optional[bool] = None,
        limit: int = 10,
    ) -> List[InterviewSessionState]:
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        return self.store.list_by_owner(owner_id, completed=completed, limit=limit)

    async def get_level_summary(
        self,
        session_id: str,
        level_number: int,
        owner_id: Optional[str] = None,
    ) -> LevelSummaryView:
        session = self._load(session_id, owner_id)
        level = session.get_level(level_number)
        if level is None:
            raise NotFoundError(f"Level {level_number} does not exist")
        if not level.is_completed:
            raise InvalidStateError(f"Level {level_number} of session {session_id} has not been graded yet")
        return build_level_summary(session, level)

    async def get_final_summary(self, session_id: str, owner_id: Optional[str] = None) -> FinalSummaryView:
        session = self._load(session_id, owner_id)
        if not session.is_completed:
            raise InvalidStateError(f"Session {session_id} is not completed yet")
        return build_final_summary(session)

    # ============ HELPERS ============

    def _load(self, session_id: str, owner_id: Optional[str]) -> InterviewSessionState:
        session = self.store.get(session_id)
        # Someone else's session is reported exactly like a missing one
        if session is None or (owner_id is not None and session.owner_id != owner_id):
            raise NotFoundError(f"Session {session_id} not found")
        return session

    def _validate_context(self, context: Union[InterviewContext, Dict[str, Any]]) -> InterviewContext:
        if not isinstance(context, InterviewContext):
            try:
                context = InterviewContext.model_validate(context)
            except PydanticValidationError as e:
                fields = ", ".join(
                    ".".join(str(part) for part in err["loc"]) or "context" for err in e.errors()
                )
                raise ValidationError(f"Invalid interview context: {fields}") from e

        missing = [
            name for name in ("target_role", "target_company", "experience_level")
            if not getattr(context, name)
        ]
        if not context.skills:
            missing.append("skills")
        if missing:
            raise ValidationError(f"Missing required context fields: {', '.join(missing)}")
        return context

    def _validate_answer(self, answer_text: Optional[str]) -> str:
        if answer_text is None or not answer_text.strip():
            raise ValidationError("Answer must not be empty")
        answer = answer_text.strip()
        if len(answer) > self.max_answer_length:
            raise ValidationError(f"Answer exceeds {self.max_answer_length} characters")
        return answer

    async def _call_provider(
        self,
        call: Awaitable[T],
        error_cls: Type[ProviderError],
        session_id: str,
        what: str,
    ) -> T:
        timeout = self.provider_timeout if self.provider_timeout and self.provider_timeout > 0 else None
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning("Session %s: %s timed out (limit %s)", session_id, what, timeout)
            message = f"{what.capitalize()} timed out"
            if timeout is not None:
                message += f" after {timeout:g} seconds"
            raise error_cls(message) from e
        except ProviderError as e:
            logger.warning("Session %s: %s failed: %s", session_id, what, e)
            raise
        except Exception as e:
            logger.warning("Session %s: %s failed: %s", session_id, what, e)
            raise error_cls(f"{what.capitalize()} failed: {e}") from e
