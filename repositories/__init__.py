"""
Repositories module - Data Access Layer.

Usage:
    from repositories import InterviewSessionRepository, InMemorySessionStore

    # Database-backed store
    store = InterviewSessionRepository(db_session)

    # Process-local store
    store = InMemorySessionStore()

    session = store.get(session_id)
"""

from repositories.base_repository import BaseRepository
from repositories.session_store import SessionStore, InMemorySessionStore
from repositories.interview_session_repository import InterviewSessionRepository

__all__ = [
    "BaseRepository",
    "SessionStore",
    "InMemorySessionStore",
    "InterviewSessionRepository",
]
