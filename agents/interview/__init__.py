"""
Adaptive interview engine: state, transitions, scoring and the question provider.
"""

from agents.interview.errors import (
    InterviewError,
    ValidationError,
    NotFoundError,
    InvalidStateError,
    ProviderError,
    GenerationError,
    FeedbackError,
)
from agents.interview.state import (
    Difficulty,
    InterviewContext,
    InterviewSessionState,
    Level,
    Question,
    SessionPhase,
    QUESTIONS_PER_LEVEL,
    TOTAL_LEVELS,
)
from agents.interview.provider import (
    BatchFeedback,
    FeedbackItem,
    GeneratedQuestion,
    LLMQuestionProvider,
    QuestionAnswerPair,
    QuestionProvider,
)
from agents.interview.summary import FinalSummaryView, LevelSummaryView, SessionStateView

__all__ = [
    "InterviewError",
    "ValidationError",
    "NotFoundError",
    "InvalidStateError",
    "ProviderError",
    "GenerationError",
    "FeedbackError",
    "Difficulty",
    "InterviewContext",
    "InterviewSessionState",
    "Level",
    "Question",
    "SessionPhase",
    "QUESTIONS_PER_LEVEL",
    "TOTAL_LEVELS",
    "BatchFeedback",
    "FeedbackItem",
    "GeneratedQuestion",
    "LLMQuestionProvider",
    "QuestionAnswerPair",
    "QuestionProvider",
    "FinalSummaryView",
    "LevelSummaryView",
    "SessionStateView",
]
