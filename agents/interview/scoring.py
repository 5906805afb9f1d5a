"""
Score aggregation for interview levels and sessions.

Per-question scores live on a 1-10 integer scale. Level averages keep full
float precision; only the final session percentage is rounded (2 decimals).
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable, List, Tuple

from agents.interview.state import Level, Question, QUESTIONS_PER_LEVEL, TOTAL_LEVELS


MIN_SCORE = 1
MAX_SCORE = 10
STRENGTH_THRESHOLD = 7.0

PERFORMANCE_BANDS = [
    (90.0, "Outstanding"),
    (80.0, "Excellent"),
    (70.0, "Good"),
    (60.0, "Fair"),
]
LOWEST_BAND = "Needs Improvement"


def normalize_score(value: Any) -> int:
    """
    Round a raw score half-up to an integer and clamp it into [1, 10].

    Raises:
        ValueError: If value is not numeric (bools are rejected too)
    """
    if isinstance(value, bool):
        raise ValueError(f"Score must be numeric, got {value!r}")
    try:
        rounded = Decimal(str(value).strip()).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise ValueError(f"Score must be numeric, got {value!r}")
    if not rounded.is_finite():
        raise ValueError(f"Score must be finite, got {value!r}")
    return max(MIN_SCORE, min(MAX_SCORE, int(rounded)))


def level_average(questions: Iterable[Question]) -> float:
    """Mean score over a level's scored questions (0.0 when nothing is scored)."""
    scores = [q.score for q in questions if q.score is not None]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def session_total_score(levels: Iterable[Level]) -> float:
    """
    Overall percentage: mean of completed level averages, scaled from 0-10 to 0-100.

    Returns 0.0 when no level is completed.
    """
    averages = [level.average_score for level in levels if level.is_completed]
    if not averages:
        return 0.0
    return round(sum(averages) / len(averages) / MAX_SCORE * 100, 2)


def score_to_percentage(average: float) -> float:
    return round(average / MAX_SCORE * 100, 2)


def performance_band(percentage: float) -> str:
    """Label a 0-100 percentage: Outstanding, Excellent, Good, Fair or Needs Improvement."""
    for threshold, label in PERFORMANCE_BANDS:
        if percentage >= threshold:
            return label
    return LOWEST_BAND


def progress_percentage(current_level: int, answered_in_level: int) -> float:
    """Share of the 25 question slots answered so far."""
    total_slots = TOTAL_LEVELS * QUESTIONS_PER_LEVEL
    answered = (current_level - 1) * QUESTIONS_PER_LEVEL + answered_in_level
    return round(answered / total_slots * 100, 2)


def split_strengths(levels: Iterable[Level]) -> Tuple[List[Level], List[Level]]:
    """Split completed levels into strengths (average >= 7) and areas to improve."""
    strengths: List[Level] = []
    improvements: List[Level] = []
    for level in levels:
        if not level.is_completed:
            continue
        if level.average_score >= STRENGTH_THRESHOLD:
            strengths.append(level)
        else:
            improvements.append(level)
    return strengths, improvements


def merge_topics(*topic_lists: Iterable[str]) -> List[str]:
    """Concatenate topic lists, dropping case-insensitive duplicates and keeping first-seen order."""
    seen = set()
    merged: List[str] = []
    for topics in topic_lists:
        for topic in topics:
            key = topic.strip().lower()
            if not key or key in seen:
                continue
            seen.add(key)
            merged.append(topic.strip())
    return merged
