"""
Question provider: the external capability that writes questions and grades answers.

The engine only depends on the QuestionProvider interface. LLMQuestionProvider
is the production implementation backed by LLMService; tests substitute a
deterministic fake.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from agents.interview.errors import FeedbackError, GenerationError
from agents.interview.scoring import normalize_score
from agents.interview.state import InterviewContext, TOTAL_LEVELS, difficulty_for_level
from config.settings import settings
from utils.llm_service import LLMRateLimitError, LLMService, LLMServiceError
from utils.prompt_loader import PromptLoader

logger = logging.getLogger(__name__)


DIFFICULTY_DESCRIPTIONS = {
    1: "entry-level",
    2: "basic",
    3: "intermediate",
    4: "advanced",
    5: "expert",
}

LEVEL_FOCUS = {
    1: "Basic concepts",
    2: "Practical application",
    3: "Problem-solving",
    4: "System design",
    5: "Architecture/optimization",
}


class GeneratedQuestion(BaseModel):
    text: str


class QuestionAnswerPair(BaseModel):
    question_text: str
    answer_text: str


class FeedbackItem(BaseModel):
    """Grading of a single answer. Scores are clamped into [1, 10] on construction."""
    score: int
    feedback: str
    suggestions: List[str] = Field(default_factory=list)
    correct_answer: str = ""
    topics_to_revise: List[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> int:
        return normalize_score(v)


class BatchFeedback(BaseModel):
    items: List[FeedbackItem]
    overall_topics_to_revise: List[str] = Field(default_factory=list)


def normalize_question_text(text: str) -> str:
    """Case- and whitespace-insensitive form used for duplicate detection."""
    return " ".join(text.lower().split())


def is_duplicate_question(text: str, previous_questions: Sequence[str]) -> bool:
    key = normalize_question_text(text)
    return any(normalize_question_text(prev) == key for prev in previous_questions)


class QuestionProvider(ABC):
    """Contract for question generation and batch feedback."""

    @abstractmethod
    async def generate_question(
        self,
        context: InterviewContext,
        level_number: int,
        previous_questions: Sequence[str],
    ) -> GeneratedQuestion:
        """
        Write one new question for the given level.

        Raises:
            GenerationError: Provider failed, output was malformed, or the
                question duplicates one in previous_questions
        """

    @abstractmethod
    async def generate_batch_feedback(
        self,
        pairs: Sequence[QuestionAnswerPair],
        context: InterviewContext,
        level_number: int,
    ) -> BatchFeedback:
        """
        Grade every (question, answer) pair of a level in one call.

        Returns one FeedbackItem per pair, in input order.

        Raises:
            FeedbackError: Provider failed, output was malformed, or the
                number of results does not match the number of pairs
        """


def _as_str_list(value: Any, field: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, list):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    raise FeedbackError(f"Field '{field}' must be a list of strings")


def _first_present(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


class LLMQuestionProvider(QuestionProvider):
    """
    QuestionProvider backed by a LangChain chat model.

    Prompts live in prompts/interview/*.md and are filled by PromptLoader.
    """

    QUESTION_SCHEMA = {"question": "string"}
    FEEDBACK_SCHEMA = {
        "results": [
            {
                "question_index": "integer (0-based)",
                "feedback": "string",
                "score": "integer 1-10",
                "correct_answer": "string",
                "suggestions": ["string"],
                "topics_to_revise": ["string"],
            }
        ],
        "overall_topics_to_revise": ["string"],
    }

    def __init__(
        self,
        llm_service: Optional[LLMService] = None,
        prompt_loader: Optional[PromptLoader] = None,
        max_previous_questions: Optional[int] = None,
    ):
        self.llm_service = llm_service or LLMService()
        self.prompt_loader = prompt_loader or PromptLoader()
        self.max_previous_questions = (
            settings.PREVIOUS_QUESTIONS_IN_PROMPT
            if max_previous_questions is None
            else max_previous_questions
        )

    # ============ QUESTION GENERATION ============

    def build_question_prompts(
        self,
        context: InterviewContext,
        level_number: int,
        previous_questions: Sequence[str],
    ) -> Dict[str, str]:
        difficulty = difficulty_for_level(level_number)
        recent = list(previous_questions)[-self.max_previous_questions:] if self.max_previous_questions else []
        previous_text = "\n".join(f"- {q}" for q in recent) if recent else "(none yet)"

        system_prompt = self.prompt_loader.load_interview("question_system", total_levels=TOTAL_LEVELS)
        human_prompt = self.prompt_loader.load_interview(
            "question",
            target_role=context.target_role,
            target_company=context.target_company,
            industry=context.industry,
            experience_level=context.experience_level,
            skills=", ".join(context.skills),
            focus_areas=", ".join(context.focus_areas) or "general",
            level_number=level_number,
            total_levels=TOTAL_LEVELS,
            difficulty=difficulty.value,
            difficulty_description=DIFFICULTY_DESCRIPTIONS[level_number],
            level_focus=LEVEL_FOCUS[level_number],
            previous_questions=previous_text,
        )
        return {"system": system_prompt, "human": human_prompt}

    async def generate_question(
        self,
        context: InterviewContext,
        level_number: int,
        previous_questions: Sequence[str],
    ) -> GeneratedQuestion:
        prompts = self.build_question_prompts(context, level_number, previous_questions)

        try:
            data = await self.llm_service.generate_json_async(
                system_prompt=prompts["system"],
                human_prompt=prompts["human"],
                schema=self.QUESTION_SCHEMA,
                metadata={"langfuse_tags": ["generate_question", f"level_{level_number}"]},
            )
        except LLMRateLimitError as e:
            raise GenerationError("Question provider is rate limited", retry_after=e.retry_after) from e
        except LLMServiceError as e:
            raise GenerationError(f"Failed to generate interview question: {e}") from e

        text = data.get("question")
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Question provider returned no question text")

        text = text.strip()
        if is_duplicate_question(text, previous_questions):
            logger.warning("Provider repeated an earlier question at level %d", level_number)
            raise GenerationError("Question provider repeated a previous question")

        return GeneratedQuestion(text=text)

    # ============ BATCH FEEDBACK ============

    def build_feedback_prompts(
        self,
        pairs: Sequence[QuestionAnswerPair],
        context: InterviewContext,
        level_number: int,
    ) -> Dict[str, str]:
        difficulty = difficulty_for_level(level_number)
        qa_text = "\n\n".join(
            f'Question {i}: "{pair.question_text}"\nAnswer {i}: "{pair.answer_text}"'
            for i, pair in enumerate(pairs, 1)
        )

        system_prompt = self.prompt_loader.load_interview("batch_feedback_system")
        human_prompt = self.prompt_loader.load_interview(
            "batch_feedback",
            target_role=context.target_role,
            target_company=context.target_company,
            experience_level=context.experience_level,
            difficulty=difficulty.value,
            difficulty_description=DIFFICULTY_DESCRIPTIONS[level_number],
            level_number=level_number,
            total_levels=TOTAL_LEVELS,
            question_count=len(pairs),
            qa_text=qa_text,
        )
        return {"system": system_prompt, "human": human_prompt}

    async def generate_batch_feedback(
        self,
        pairs: Sequence[QuestionAnswerPair],
        context: InterviewContext,
        level_number: int,
    ) -> BatchFeedback:
        prompts = self.build_feedback_prompts(pairs, context, level_number)

        try:
            data = await self.llm_service.generate_json_async(
                system_prompt=prompts["system"],
                human_prompt=prompts["human"],
                schema=self.FEEDBACK_SCHEMA,
                metadata={"langfuse_tags": ["batch_feedback", f"level_{level_number}"]},
            )
        except LLMRateLimitError as e:
            raise FeedbackError("Feedback provider is rate limited", retry_after=e.retry_after) from e
        except LLMServiceError as e:
            raise FeedbackError(f"Failed to generate batch feedback: {e}") from e

        return self.parse_batch_feedback(data, expected_count=len(pairs))

    def parse_batch_feedback(self, data: Dict[str, Any], expected_count: int) -> BatchFeedback:
        """
        Validate a raw batch-feedback payload.

        Results carrying a complete set of question_index values are reordered
        by that index; otherwise the payload order is used.
        """
        results = data.get("results")
        if not isinstance(results, list):
            raise FeedbackError("Feedback payload has no 'results' list")
        if len(results) != expected_count:
            raise FeedbackError(
                f"Feedback payload has {len(results)} results for {expected_count} questions"
            )
        if not all(isinstance(item, dict) for item in results):
            raise FeedbackError("Every feedback result must be an object")

        indexes = [_first_present(item, "question_index", "questionIndex") for item in results]
        if all(isinstance(i, int) and not isinstance(i, bool) for i in indexes) \
                and sorted(indexes) == list(range(expected_count)):
            results = [item for _, item in sorted(zip(indexes, results), key=lambda pair: pair[0])]

        items = [self._parse_item(item, position) for position, item in enumerate(results)]
        overall = _as_str_list(
            _first_present(data, "overall_topics_to_revise", "overallTopicsToRevise"),
            "overall_topics_to_revise",
        )
        return BatchFeedback(items=items, overall_topics_to_revise=overall)

    def _parse_item(self, item: Dict[str, Any], position: int) -> FeedbackItem:
        raw_score = item.get("score")
        if raw_score is None:
            raise FeedbackError(f"Feedback result {position} has no score")
        try:
            score = normalize_score(raw_score)
        except ValueError as e:
            raise FeedbackError(f"Feedback result {position} has an invalid score: {e}") from e

        feedback = item.get("feedback")
        if not isinstance(feedback, str) or not feedback.strip():
            raise FeedbackError(f"Feedback result {position} has no feedback text")

        correct_answer = _first_present(item, "correct_answer", "correctAnswer")
        return FeedbackItem(
            score=score,
            feedback=feedback.strip(),
            suggestions=_as_str_list(item.get("suggestions"), "suggestions"),
            correct_answer=str(correct_answer).strip() if correct_answer is not None else "",
            topics_to_revise=_as_str_list(
                _first_present(item, "topics_to_revise", "topicsToRevise"),
                "topics_to_revise",
            ),
        )
