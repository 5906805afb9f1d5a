"""
Unit tests for score aggregation.

Run: pytest tests/unit/test_scoring.py -v
"""

import math

import pytest

from agents.interview.provider import FeedbackItem
from agents.interview.scoring import (
    level_average,
    merge_topics,
    normalize_score,
    performance_band,
    progress_percentage,
    score_to_percentage,
    session_total_score,
    split_strengths,
)
from agents.interview.state import Level, Question


def _scored_level(level_number, scores, completed=True):
    questions = [
        Question(id=f"q{level_number}_{i}", text=f"Question {i}", answer="answer", score=s)
        for i, s in enumerate(scores, 1)
    ]
    return Level(
        level_number=level_number,
        questions=questions,
        is_completed=completed,
        average_score=level_average(questions) if completed else 0.0,
    )


# ---------------------------------------------------------------------------
# normalize_score
# ---------------------------------------------------------------------------

class TestNormalizeScore:

    @pytest.mark.parametrize("raw, expected", [
        (0, 1),
        (11, 10),
        (-3, 1),
        (100, 10),
        (7, 7),
        (7.5, 8),
        (6.5, 7),
        (6.49, 6),
        ("9", 9),
        (" 4.5 ", 5),
    ])
    def test_rounds_half_up_and_clamps(self, raw, expected):
        assert normalize_score(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "", None, True, math.nan, math.inf])
    def test_rejects_non_numeric(self, raw):
        with pytest.raises(ValueError):
            normalize_score(raw)

    def test_feedback_item_clamps_on_construction(self):
        assert FeedbackItem(score=0, feedback="x").score == 1
        assert FeedbackItem(score=11, feedback="x").score == 10


# ---------------------------------------------------------------------------
# Averages and totals
# ---------------------------------------------------------------------------

class TestAggregation:

    def test_level_average_keeps_precision(self):
        level = _scored_level(1, [7, 8, 8, 8, 8])
        assert level.average_score == pytest.approx(7.8)

    def test_level_average_of_unscored_is_zero(self):
        assert level_average([Question(id="q", text="t")]) == 0.0

    def test_single_level_total(self):
        # 8, 6, 10, 4, 2 -> average 6.0 -> 60%
        level = _scored_level(1, [8, 6, 10, 4, 2])
        assert level.average_score == 6.0
        assert session_total_score([level]) == 60.0

    def test_total_over_five_completed_levels(self):
        levels = [
            _scored_level(number, [average] * 5)
            for number, average in enumerate([8, 6, 10, 4, 2], 1)
        ]
        assert [level.average_score for level in levels] == [8, 6, 10, 4, 2]
        assert session_total_score(levels) == 60.0

    def test_total_is_mean_of_completed_levels_only(self):
        levels = [
            _scored_level(1, [10, 10, 10, 10, 10]),
            _scored_level(2, [5, 5, 5, 5, 5]),
            _scored_level(3, [], completed=False),
        ]
        assert session_total_score(levels) == 75.0

    def test_total_rounded_to_two_decimals_at_the_end(self):
        levels = [
            _scored_level(1, [7, 7, 7, 7, 8]),  # 7.2
            _scored_level(2, [6, 6, 6, 7, 7]),  # 6.4
            _scored_level(3, [9, 9, 9, 9, 8]),  # 8.8
        ]
        assert session_total_score(levels) == 74.67

    def test_total_without_completed_levels_is_zero(self):
        assert session_total_score([]) == 0.0
        assert session_total_score([_scored_level(1, [], completed=False)]) == 0.0

    def test_score_to_percentage(self):
        assert score_to_percentage(7.8) == 78.0


# ---------------------------------------------------------------------------
# Presentation helpers
# ---------------------------------------------------------------------------

class TestPresentationHelpers:

    @pytest.mark.parametrize("percentage, band", [
        (95, "Outstanding"),
        (90, "Outstanding"),
        (89.99, "Excellent"),
        (80, "Excellent"),
        (70, "Good"),
        (60, "Fair"),
        (59.9, "Needs Improvement"),
        (0, "Needs Improvement"),
    ])
    def test_performance_band(self, percentage, band):
        assert performance_band(percentage) == band

    def test_progress_percentage(self):
        assert progress_percentage(1, 0) == 0.0
        assert progress_percentage(1, 3) == 12.0
        assert progress_percentage(3, 2) == 48.0
        assert progress_percentage(5, 5) == 100.0

    def test_split_strengths(self):
        strong = _scored_level(1, [7, 7, 7, 7, 7])
        weak = _scored_level(2, [6, 7, 7, 7, 7])
        open_level = _scored_level(3, [], completed=False)
        strengths, improvements = split_strengths([strong, weak, open_level])
        assert strengths == [strong]
        assert improvements == [weak]

    def test_merge_topics_dedupes_case_insensitively(self):
        merged = merge_topics(["Indexes", "Caching"], ["caching ", "Sharding", ""], ["INDEXES"])
        assert merged == ["Indexes", "Caching", "Sharding"]
