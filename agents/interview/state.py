"""
State schema for the adaptive interview engine.

An interview session is a single document: the candidate's context snapshot,
five fixed difficulty levels with up to five questions each, and the derived
scores. The document is what the session store persists; the current phase
of the state machine is always derived from it (see conditions.py), never
stored next to it.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


TOTAL_LEVELS = 5
QUESTIONS_PER_LEVEL = 5


class Difficulty(str, Enum):
    """Difficulty label of a level. The order is fixed: level 1 is Starter, level 5 is Excellent."""
    STARTER = "Starter"
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    EXCELLENT = "Excellent"


LEVEL_DIFFICULTIES = [
    Difficulty.STARTER,
    Difficulty.EASY,
    Difficulty.MEDIUM,
    Difficulty.HARD,
    Difficulty.EXCELLENT,
]


def difficulty_for_level(level_number: int) -> Difficulty:
    """Map a level number (1..5) to its difficulty label."""
    if not 1 <= level_number <= TOTAL_LEVELS:
        raise ValueError(f"Level number must be between 1 and {TOTAL_LEVELS}, got {level_number}")
    return LEVEL_DIFFICULTIES[level_number - 1]


class SessionPhase(str, Enum):
    """Phases of the session state machine."""
    AWAITING_QUESTION = "awaiting_question"
    AWAITING_ANSWER = "awaiting_answer"
    AWAITING_BATCH_FEEDBACK = "awaiting_batch_feedback"
    LEVEL_SUMMARY = "level_summary"
    FINAL_SUMMARY = "final_summary"


def _utcnow() -> datetime:
    return datetime.utcnow()


class InterviewContext(BaseModel):
    """
    Snapshot of what the candidate is preparing for.

    Taken once when the session starts and never edited afterwards.
    """
    model_config = ConfigDict(frozen=True)

    target_role: str
    target_company: str
    experience_level: str
    skills: List[str]
    focus_areas: List[str] = Field(default_factory=list)
    industry: str = "Technology"

    @field_validator("target_role", "target_company", "experience_level", "industry")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("skills", "focus_areas")
    @classmethod
    def drop_blank_items(cls, v: List[str]) -> List[str]:
        return [item.strip() for item in v if item and item.strip()]


class Question(BaseModel):
    """One question slot of a level."""
    id: str
    text: str
    answer: Optional[str] = None

    # Written together by the batch feedback step, never independently
    score: Optional[int] = None
    feedback: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    correct_answer: Optional[str] = None
    topics_to_revise: List[str] = Field(default_factory=list)

    asked_at: datetime = Field(default_factory=_utcnow)
    answered_at: Optional[datetime] = None

    @property
    def is_answered(self) -> bool:
        return bool(self.answer and self.answer.strip())

    @property
    def is_scored(self) -> bool:
        return self.score is not None


class Level(BaseModel):
    """A difficulty stage holding at most five questions."""
    level_number: int = Field(ge=1, le=TOTAL_LEVELS)
    questions: List[Question] = Field(default_factory=list)
    is_completed: bool = False
    average_score: float = 0.0
    overall_topics_to_revise: List[str] = Field(default_factory=list)
    completed_at: Optional[datetime] = None

    @computed_field
    @property
    def difficulty(self) -> Difficulty:
        return difficulty_for_level(self.level_number)

    @property
    def is_full(self) -> bool:
        return len(self.questions) >= QUESTIONS_PER_LEVEL

    @property
    def answered_count(self) -> int:
        return sum(1 for q in self.questions if q.is_answered)

    def first_unanswered(self) -> Optional[Question]:
        for question in self.questions:
            if not question.is_answered:
                return question
        return None


class InterviewSessionState(BaseModel):
    """
    One complete attempt at the 5x5 interview, owned by one candidate.

    Mutated only by the orchestrator (services/interview_service.py) through
    the transitions in transitions.py.
    """
    session_id: str
    owner_id: str
    context: InterviewContext
    levels: List[Level]
    current_level: int = Field(default=1, ge=1, le=TOTAL_LEVELS)
    total_score: float = 0.0
    is_completed: bool = False

    session_number: int = 1
    session_title: str = ""
    previous_questions: List[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @classmethod
    def new(
        cls,
        owner_id: str,
        context: InterviewContext,
        session_number: int = 1,
        session_id: Optional[str] = None,
    ) -> "InterviewSessionState":
        """Create a session in its initial state: level 1 open and empty."""
        return cls(
            session_id=session_id or f"interview_{uuid.uuid4()}",
            owner_id=owner_id,
            context=context,
            levels=[Level(level_number=n) for n in range(1, TOTAL_LEVELS + 1)],
            session_number=session_number,
            session_title=f"Interview Session #{session_number}",
        )

    @property
    def open_level(self) -> Level:
        """The level at current_level."""
        return self.levels[self.current_level - 1]

    def get_level(self, level_number: int) -> Optional[Level]:
        if not 1 <= level_number <= len(self.levels):
            return None
        return self.levels[level_number - 1]

    def find_question(self, question_id: str) -> Optional[Tuple[Level, Question]]:
        for level in self.levels:
            for question in level.questions:
                if question.id == question_id:
                    return level, question
        return None

    def completed_levels(self) -> List[Level]:
        return [level for level in self.levels if level.is_completed]
