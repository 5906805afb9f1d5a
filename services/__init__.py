"""
Services module - Business Logic Layer.

Contains application services that orchestrate business logic,
sitting between the API layer (routes) and the data layer (repositories).

Services handle:
- Business rule validation
- Per-session write serialization
- Coordinating with the question provider
- Persisting state transitions

Usage:
    from services import InterviewService

    service = InterviewService(store, provider)
    session = await service.start_session(owner_id, context)
    question = await service.next_question(session.session_id)
"""

from services.interview_service import InterviewService
from services.session_locks import SessionLockRegistry, session_locks

__all__ = [
    "InterviewService",
    "SessionLockRegistry",
    "session_locks",
]
