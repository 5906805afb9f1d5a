"""
Read-side views of an interview session.

These are what callers see after each orchestrator operation: the current
state of the session, the summary of a finished level and the final report.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from agents.interview.conditions import derive_phase, pending_question
from agents.interview.scoring import (
    merge_topics,
    performance_band,
    progress_percentage,
    score_to_percentage,
    split_strengths,
)
from agents.interview.state import (
    Difficulty,
    InterviewSessionState,
    Level,
    Question,
    SessionPhase,
    QUESTIONS_PER_LEVEL,
    TOTAL_LEVELS,
)


class SessionStateView(BaseModel):
    session_id: str
    phase: SessionPhase
    current_level: int
    difficulty: Difficulty
    current_question: Optional[Question] = None
    question_number: int = Field(description="1-based slot of the current/next question within the level")
    answered_in_level: int
    progress_percentage: float
    total_score: float
    is_completed: bool


class LevelSummaryView(BaseModel):
    level_number: int
    difficulty: Difficulty
    questions: List[Question]
    average_score: float
    percentage: float
    performance: str
    overall_topics_to_revise: List[str]
    total_score: float
    can_advance: bool
    is_final_level: bool


class FinalSummaryView(BaseModel):
    session_id: str
    session_title: str
    total_score: float
    performance: str
    levels: List[LevelSummaryView]
    strengths: List[str]
    areas_to_improve: List[str]
    topics_to_revise: List[str]


def build_state_view(session: InterviewSessionState) -> SessionStateView:
    level = session.open_level
    phase = derive_phase(session)
    current = pending_question(session)

    if current is not None:
        question_number = level.questions.index(current) + 1
    elif level.is_full:
        question_number = QUESTIONS_PER_LEVEL
    else:
        question_number = len(level.questions) + 1

    answered = level.answered_count
    if session.is_completed:
        progress = 100.0
    else:
        progress = progress_percentage(session.current_level, answered)

    return SessionStateView(
        session_id=session.session_id,
        phase=phase,
        current_level=session.current_level,
        difficulty=level.difficulty,
        current_question=current,
        question_number=question_number,
        answered_in_level=answered,
        progress_percentage=progress,
        total_score=session.total_score,
        is_completed=session.is_completed,
    )


def build_level_summary(session: InterviewSessionState, level: Level) -> LevelSummaryView:
    percentage = score_to_percentage(level.average_score)
    is_final = level.level_number == TOTAL_LEVELS
    return LevelSummaryView(
        level_number=level.level_number,
        difficulty=level.difficulty,
        questions=list(level.questions),
        average_score=level.average_score,
        percentage=percentage,
        performance=performance_band(percentage),
        overall_topics_to_revise=list(level.overall_topics_to_revise),
        total_score=session.total_score,
        can_advance=(
            derive_phase(session) == SessionPhase.LEVEL_SUMMARY
            and level.level_number == session.current_level
            and not is_final
        ),
        is_final_level=is_final,
    )


def _describe_level(level: Level) -> str:
    return f"Level {level.level_number} ({level.difficulty.value}): {level.average_score:.1f}/10 average"


def build_final_summary(session: InterviewSessionState) -> FinalSummaryView:
    completed = session.completed_levels()
    strengths, improvements = split_strengths(completed)
    topics = merge_topics(
        *[level.overall_topics_to_revise for level in completed],
        *[q.topics_to_revise for level in completed for q in level.questions],
    )
    return FinalSummaryView(
        session_id=session.session_id,
        session_title=session.session_title,
        total_score=session.total_score,
        performance=performance_band(session.total_score),
        levels=[build_level_summary(session, level) for level in completed],
        strengths=[_describe_level(level) for level in strengths],
        areas_to_improve=[_describe_level(level) for level in improvements],
        topics_to_revise=topics,
    )
