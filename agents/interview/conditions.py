"""
Phase derivation for the interview state machine.

The phase is computed from the session document every time it is needed,
so a reloaded session always resumes exactly where the stored data says it is.
"""

from typing import Optional

from agents.interview.state import InterviewSessionState, Question, SessionPhase, QUESTIONS_PER_LEVEL


def derive_phase(session: InterviewSessionState) -> SessionPhase:
    """
    Determine which phase a session is in.

    Precedence:
    1. Session completed -> FINAL_SUMMARY
    2. Open level completed -> LEVEL_SUMMARY
    3. Open level has an unanswered question -> AWAITING_ANSWER
    4. Open level holds 5 answered, unscored questions -> AWAITING_BATCH_FEEDBACK
    5. Otherwise -> AWAITING_QUESTION
    """
    if session.is_completed:
        return SessionPhase.FINAL_SUMMARY

    level = session.open_level
    if level.is_completed:
        return SessionPhase.LEVEL_SUMMARY

    if level.first_unanswered() is not None:
        return SessionPhase.AWAITING_ANSWER

    if len(level.questions) >= QUESTIONS_PER_LEVEL:
        return SessionPhase.AWAITING_BATCH_FEEDBACK

    return SessionPhase.AWAITING_QUESTION


def pending_question(session: InterviewSessionState) -> Optional[Question]:
    """The question waiting for an answer, if any."""
    if session.is_completed:
        return None
    level = session.open_level
    if level.is_completed:
        return None
    return level.first_unanswered()


def is_ready_for_batch(session: InterviewSessionState) -> bool:
    """True when the open level has exactly 5 answered questions and none is scored."""
    if session.is_completed:
        return False
    level = session.open_level
    return (
        not level.is_completed
        and len(level.questions) == QUESTIONS_PER_LEVEL
        and all(q.is_answered for q in level.questions)
        and not any(q.is_scored for q in level.questions)
    )
