"""
Error taxonomy for the interview engine.

Every failure raised by the engine is an InterviewError subclass so callers
(API routes, CLI) can map them without inspecting messages.
"""

from typing import Optional


class InterviewError(Exception):
    """Base class for all interview engine errors."""


class ValidationError(InterviewError):
    """Malformed input to a public operation (missing context fields, empty answer)."""


class NotFoundError(InterviewError):
    """Unknown session, question or level."""


class InvalidStateError(InterviewError):
    """Operation attempted from a phase that does not permit it."""


class ProviderError(InterviewError):
    """
    The question provider failed or returned unusable output.

    Nothing was committed when this is raised, so the same operation can be
    retried from the same state.
    """

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class GenerationError(ProviderError):
    """Question generation failed."""


class FeedbackError(ProviderError):
    """Batch feedback generation failed."""
