"""
Unit tests for LLMQuestionProvider: prompt building, JSON validation and error mapping.

The LLM is replaced by a stub exposing generate_json_async.
Run: pytest tests/unit/test_question_provider.py -v
"""

from typing import Any, Dict, List, Optional

import pytest

from agents.interview.errors import FeedbackError, GenerationError
from agents.interview.provider import (
    LLMQuestionProvider,
    QuestionAnswerPair,
    is_duplicate_question,
)
from utils.llm_service import LLMRateLimitError, LLMResponseFormatError, LLMServiceError


class StubLLMService:
    def __init__(self, response: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.response = response or {}
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def generate_json_async(self, system_prompt, human_prompt, schema, metadata=None):
        self.calls.append({
            "system_prompt": system_prompt,
            "human_prompt": human_prompt,
            "schema": schema,
            "metadata": metadata,
        })
        if self.error is not None:
            raise self.error
        return self.response


def _provider(response=None, error=None, max_previous_questions=None):
    llm = StubLLMService(response=response, error=error)
    return LLMQuestionProvider(llm_service=llm, max_previous_questions=max_previous_questions), llm


def _pairs(n=5):
    return [QuestionAnswerPair(question_text=f"Question {i}", answer_text=f"Answer {i}") for i in range(n)]


def _result(index, score=7, **extra):
    item = {
        "question_index": index,
        "feedback": f"Feedback {index}",
        "score": score,
        "correct_answer": f"Correct {index}",
        "suggestions": [f"Suggestion {index}"],
        "topics_to_revise": [f"Topic {index}"],
    }
    item.update(extra)
    return item


# ---------------------------------------------------------------------------
# Question generation
# ---------------------------------------------------------------------------

class TestGenerateQuestion:

    @pytest.mark.asyncio
    async def test_returns_stripped_question(self, context):
        provider, llm = _provider({"question": "  What is a Python generator?  "})
        generated = await provider.generate_question(context, 1, [])
        assert generated.text == "What is a Python generator?"
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_prompt_targets_level_and_context(self, context):
        provider, llm = _provider({"question": "Design a rate limiter."})
        await provider.generate_question(context, 4, ["Earlier question"])
        human = llm.calls[0]["human_prompt"]
        assert "Backend Engineer" in human
        assert "Acme Corp" in human
        assert "Hard" in human
        assert "advanced" in human
        assert "System design" in human
        assert "- Earlier question" in human

    @pytest.mark.asyncio
    async def test_prompt_keeps_only_recent_previous_questions(self, context):
        provider, llm = _provider({"question": "Brand new"}, max_previous_questions=2)
        await provider.generate_question(context, 2, ["old one", "middle one", "latest one"])
        human = llm.calls[0]["human_prompt"]
        assert "old one" not in human
        assert "middle one" in human and "latest one" in human

    @pytest.mark.asyncio
    async def test_duplicate_question_rejected(self, context):
        provider, _ = _provider({"question": "what is   a TUPLE?"})
        with pytest.raises(GenerationError):
            await provider.generate_question(context, 1, ["What is a tuple?"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"question": ""}, {"question": 42}])
    async def test_missing_question_text(self, context, payload):
        provider, _ = _provider(payload)
        with pytest.raises(GenerationError):
            await provider.generate_question(context, 1, [])

    @pytest.mark.asyncio
    async def test_rate_limit_carries_retry_after(self, context):
        provider, _ = _provider(error=LLMRateLimitError("429 quota exceeded", retry_after=60))
        with pytest.raises(GenerationError) as exc_info:
            await provider.generate_question(context, 1, [])
        assert exc_info.value.retry_after == 60

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [LLMServiceError("boom"), LLMResponseFormatError("not json")])
    async def test_llm_failures_map_to_generation_error(self, context, error):
        provider, _ = _provider(error=error)
        with pytest.raises(GenerationError) as exc_info:
            await provider.generate_question(context, 1, [])
        assert exc_info.value.retry_after is None


# ---------------------------------------------------------------------------
# Batch feedback
# ---------------------------------------------------------------------------

class TestGenerateBatchFeedback:

    @pytest.mark.asyncio
    async def test_parses_results_in_order(self, context):
        payload = {
            "results": [_result(i, score=i + 4) for i in range(5)],
            "overall_topics_to_revise": ["Indexes", "Transactions"],
        }
        provider, llm = _provider(payload)
        batch = await provider.generate_batch_feedback(_pairs(), context, 3)

        assert [item.score for item in batch.items] == [4, 5, 6, 7, 8]
        assert batch.items[0].feedback == "Feedback 0"
        assert batch.items[0].correct_answer == "Correct 0"
        assert batch.items[0].suggestions == ["Suggestion 0"]
        assert batch.overall_topics_to_revise == ["Indexes", "Transactions"]
        assert 'Question 1: "Question 0"' in llm.calls[0]["human_prompt"]
        assert "Medium" in llm.calls[0]["human_prompt"]

    @pytest.mark.asyncio
    async def test_reorders_by_question_index(self, context):
        results = [_result(i, score=i + 1) for i in range(5)]
        provider, _ = _provider({"results": list(reversed(results))})
        batch = await provider.generate_batch_feedback(_pairs(), context, 1)
        assert [item.feedback for item in batch.items] == [f"Feedback {i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_scores_are_clamped_and_rounded(self, context):
        scores = [0, 11, 7.5, "6", 3]
        provider, _ = _provider({"results": [_result(i, score=s) for i, s in enumerate(scores)]})
        batch = await provider.generate_batch_feedback(_pairs(), context, 1)
        assert [item.score for item in batch.items] == [1, 10, 8, 6, 3]

    @pytest.mark.asyncio
    async def test_accepts_camel_case_keys(self, context):
        results = [
            {"questionIndex": i, "feedback": "ok", "score": 5, "correctAnswer": "c", "topicsToRevise": "Locks"}
            for i in range(5)
        ]
        provider, _ = _provider({"results": results, "overallTopicsToRevise": ["Concurrency"]})
        batch = await provider.generate_batch_feedback(_pairs(), context, 1)
        assert batch.items[0].correct_answer == "c"
        assert batch.items[0].topics_to_revise == ["Locks"]
        assert batch.overall_topics_to_revise == ["Concurrency"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {},
        {"results": "not a list"},
        {"results": [_result(i) for i in range(4)]},
        {"results": [_result(i) for i in range(6)]},
        {"results": [_result(i) for i in range(4)] + ["oops"]},
        {"results": [_result(i) for i in range(4)] + [_result(4, score=None)]},
        {"results": [_result(i) for i in range(4)] + [_result(4, score="great")]},
        {"results": [_result(i) for i in range(4)] + [_result(4, feedback="  ")]},
        {"results": [_result(i) for i in range(4)] + [_result(4, suggestions=42)]},
    ])
    async def test_malformed_payload_raises_feedback_error(self, context, payload):
        provider, _ = _provider(payload)
        with pytest.raises(FeedbackError):
            await provider.generate_batch_feedback(_pairs(), context, 1)

    @pytest.mark.asyncio
    async def test_rate_limit_carries_retry_after(self, context):
        provider, _ = _provider(error=LLMRateLimitError("RESOURCE_EXHAUSTED", retry_after=30))
        with pytest.raises(FeedbackError) as exc_info:
            await provider.generate_batch_feedback(_pairs(), context, 1)
        assert exc_info.value.retry_after == 30

    @pytest.mark.asyncio
    async def test_llm_failure_maps_to_feedback_error(self, context):
        provider, _ = _provider(error=LLMServiceError("connection reset"))
        with pytest.raises(FeedbackError):
            await provider.generate_batch_feedback(_pairs(), context, 1)


def test_is_duplicate_question_ignores_case_and_spacing():
    assert is_duplicate_question("Explain  REST", ["explain rest"])
    assert not is_duplicate_question("Explain REST", ["Explain GraphQL"])
