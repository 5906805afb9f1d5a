"""
Transition rules of the interview state machine.

Each function validates that the session is in the phase the transition
starts from, then mutates the given session in place. They are pure and
synchronous: the orchestrator calls them on a private copy of the stored
session and persists the copy only after the transition succeeded.

    AWAITING_QUESTION --append_question--> AWAITING_ANSWER
    AWAITING_ANSWER --record_answer--> AWAITING_QUESTION | AWAITING_BATCH_FEEDBACK
    AWAITING_BATCH_FEEDBACK --apply_batch_feedback--> LEVEL_SUMMARY
    LEVEL_SUMMARY --advance_level--> AWAITING_QUESTION | FINAL_SUMMARY
"""

import uuid
from datetime import datetime
from typing import Optional

from agents.interview.conditions import derive_phase, is_ready_for_batch, pending_question
from agents.interview.errors import FeedbackError, InvalidStateError, NotFoundError
from agents.interview.provider import BatchFeedback
from agents.interview.scoring import level_average, session_total_score
from agents.interview.state import (
    InterviewSessionState,
    Level,
    Question,
    SessionPhase,
    QUESTIONS_PER_LEVEL,
    TOTAL_LEVELS,
)


def _require_phase(session: InterviewSessionState, expected: SessionPhase, action: str) -> None:
    phase = derive_phase(session)
    if phase != expected:
        raise InvalidStateError(
            f"Cannot {action}: session {session.session_id} is in phase '{phase.value}', "
            f"expected '{expected.value}'"
        )


def _new_question_id(level_number: int, slot: int) -> str:
    return f"q{level_number}_{slot}_{uuid.uuid4().hex[:8]}"


def append_question(
    session: InterviewSessionState,
    text: str,
    now: Optional[datetime] = None,
) -> Question:
    """Add a freshly generated question to the open level."""
    _require_phase(session, SessionPhase.AWAITING_QUESTION, "add a question")

    level = session.open_level
    if level.is_full:
        raise InvalidStateError(f"Level {level.level_number} already has {QUESTIONS_PER_LEVEL} questions")

    now = now or datetime.utcnow()
    question = Question(
        id=_new_question_id(level.level_number, len(level.questions) + 1),
        text=text,
        asked_at=now,
    )
    level.questions.append(question)
    session.previous_questions.append(text)
    session.updated_at = now
    return question


def record_answer(
    session: InterviewSessionState,
    question_id: str,
    answer_text: str,
    now: Optional[datetime] = None,
) -> Question:
    """Set the answer on the pending question of the open level."""
    if session.find_question(question_id) is None:
        raise NotFoundError(f"Question {question_id} not found in session {session.session_id}")

    _require_phase(session, SessionPhase.AWAITING_ANSWER, "submit an answer")

    pending = pending_question(session)
    if pending is None or pending.id != question_id:
        raise InvalidStateError(f"Question {question_id} is not waiting for an answer")

    now = now or datetime.utcnow()
    pending.answer = answer_text
    pending.answered_at = now
    session.updated_at = now
    return pending


def apply_batch_feedback(
    session: InterviewSessionState,
    batch: BatchFeedback,
    now: Optional[datetime] = None,
) -> Level:
    """
    Write the graded results onto the open level and close it.

    All five questions are updated or none is: the scored copies are built
    first and swapped in together.
    """
    _require_phase(session, SessionPhase.AWAITING_BATCH_FEEDBACK, "apply batch feedback")
    if not is_ready_for_batch(session):
        raise InvalidStateError(
            f"Level {session.current_level} does not have {QUESTIONS_PER_LEVEL} answered, unscored questions"
        )

    level = session.open_level
    if len(batch.items) != len(level.questions):
        raise FeedbackError(
            f"Received {len(batch.items)} feedback results for {len(level.questions)} questions"
        )

    now = now or datetime.utcnow()
    scored = [
        question.model_copy(update={
            "score": item.score,
            "feedback": item.feedback,
            "suggestions": list(item.suggestions),
            "correct_answer": item.correct_answer,
            "topics_to_revise": list(item.topics_to_revise),
        })
        for question, item in zip(level.questions, batch.items)
    ]

    level.questions = scored
    level.average_score = level_average(scored)
    level.overall_topics_to_revise = list(batch.overall_topics_to_revise)
    level.is_completed = True
    level.completed_at = now

    session.total_score = session_total_score(session.levels)
    session.updated_at = now
    return level


def advance_level(session: InterviewSessionState, now: Optional[datetime] = None) -> SessionPhase:
    """Open the next level, or finish the session after level 5."""
    _require_phase(session, SessionPhase.LEVEL_SUMMARY, "advance")

    now = now or datetime.utcnow()
    if session.current_level < TOTAL_LEVELS:
        session.current_level += 1
    else:
        session.is_completed = True
        session.completed_at = now
    session.updated_at = now
    return derive_phase(session)
