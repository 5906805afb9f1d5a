"""
Shared fixtures for the interview engine tests.

FakeQuestionProvider stands in for the LLM: questions are numbered strings
and batch feedback uses configurable per-level scores.
"""

import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from agents.interview.provider import (  # noqa: E402
    BatchFeedback,
    FeedbackItem,
    GeneratedQuestion,
    QuestionAnswerPair,
    QuestionProvider,
)
from agents.interview.state import InterviewContext, QUESTIONS_PER_LEVEL  # noqa: E402
from repositories.session_store import InMemorySessionStore  # noqa: E402
from services.interview_service import InterviewService  # noqa: E402
from services.session_locks import SessionLockRegistry  # noqa: E402


class FakeQuestionProvider(QuestionProvider):
    """Deterministic provider with switches for failures and slowness."""

    def __init__(self, default_scores: Optional[List[float]] = None):
        self.default_scores = default_scores or [7, 7, 7, 7, 7]
        self.level_scores: Dict[int, List[float]] = {}
        self.question_calls = 0
        self.feedback_calls = 0
        self.question_error: Optional[Exception] = None
        self.feedback_error: Optional[Exception] = None
        self.question_delay = 0.0
        self.feedback_delay = 0.0
        self.last_previous_questions: List[str] = []

    async def generate_question(
        self,
        context: InterviewContext,
        level_number: int,
        previous_questions: Sequence[str],
    ) -> GeneratedQuestion:
        self.question_calls += 1
        self.last_previous_questions = list(previous_questions)
        if self.question_delay:
            await asyncio.sleep(self.question_delay)
        if self.question_error is not None:
            error, self.question_error = self.question_error, None
            raise error
        return GeneratedQuestion(
            text=f"Level {level_number} question {self.question_calls} about {context.skills[0]}"
        )

    async def generate_batch_feedback(
        self,
        pairs: Sequence[QuestionAnswerPair],
        context: InterviewContext,
        level_number: int,
    ) -> BatchFeedback:
        self.feedback_calls += 1
        if self.feedback_delay:
            await asyncio.sleep(self.feedback_delay)
        if self.feedback_error is not None:
            error, self.feedback_error = self.feedback_error, None
            raise error
        scores = self.level_scores.get(level_number, self.default_scores)
        items = [
            FeedbackItem(
                score=score,
                feedback=f"Feedback on: {pair.question_text}",
                suggestions=["Give a concrete example"],
                correct_answer="A reference answer",
                topics_to_revise=[f"Topic {level_number}.{i}"],
            )
            for i, (pair, score) in enumerate(zip(pairs, scores), 1)
        ]
        return BatchFeedback(items=items, overall_topics_to_revise=[f"Level {level_number} fundamentals"])


@pytest.fixture
def context() -> InterviewContext:
    return InterviewContext(
        target_role="Backend Engineer",
        target_company="Acme Corp",
        experience_level="Mid-level (3-5 years)",
        skills=["Python", "PostgreSQL"],
        focus_areas=["System design"],
    )


@pytest.fixture
def context_payload() -> dict:
    return {
        "target_role": "Backend Engineer",
        "target_company": "Acme Corp",
        "experience_level": "Mid-level (3-5 years)",
        "skills": ["Python", "PostgreSQL"],
        "focus_areas": ["System design"],
    }


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def provider() -> FakeQuestionProvider:
    return FakeQuestionProvider()


@pytest.fixture
def lock_registry() -> SessionLockRegistry:
    return SessionLockRegistry()


@pytest.fixture
def service(store, provider, lock_registry) -> InterviewService:
    return InterviewService(
        store,
        provider,
        lock_registry=lock_registry,
        provider_timeout=5.0,
        max_answer_length=500,
    )


@pytest.fixture
def answer_questions():
    """Ask and answer `count` questions of the open level."""

    async def _answer(service: InterviewService, session_id: str, count: int = QUESTIONS_PER_LEVEL):
        state = None
        for _ in range(count):
            question = await service.next_question(session_id)
            state = await service.submit_answer(session_id, question.id, f"My answer to {question.text}")
        return state

    return _answer


@pytest.fixture
def complete_level(answer_questions):
    """Fill, grade and leave the open level in its summary phase."""

    async def _complete(service: InterviewService, session_id: str):
        await answer_questions(service, session_id)
        return await service.submit_level_batch(session_id)

    return _complete
