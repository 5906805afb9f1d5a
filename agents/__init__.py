"""
Agents module containing the adaptive interview engine.
"""

from .interview import LLMQuestionProvider, QuestionProvider

__all__ = ["LLMQuestionProvider", "QuestionProvider"]
