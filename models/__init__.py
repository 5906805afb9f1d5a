from models.interview_session import InterviewSession

__all__ = [
    "InterviewSession",
]
