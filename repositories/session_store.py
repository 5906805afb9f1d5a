"""
Session store contract and the in-process implementation.

The interview engine treats the store as a strongly consistent key-value
store keyed by session id. Every get() returns an independent copy, so a
caller can mutate what it loaded without affecting other readers until it
calls put().
"""

from abc import ABC, abstractmethod
from threading import Lock
from typing import Any, Dict, List, Optional

from agents.interview.state import InterviewSessionState


class SessionStore(ABC):
    """Persistence interface for interview sessions."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[InterviewSessionState]:
        """Return a copy of the stored session, or None if unknown."""

    @abstractmethod
    def put(self, session_id: str, session: InterviewSessionState) -> None:
        """Insert or replace the session stored under session_id."""

    @abstractmethod
    def list_by_owner(
        self,
        owner_id: str,
        completed: Optional[bool] = None,
        limit: int = 10,
    ) -> List[InterviewSessionState]:
        """Sessions of one owner, newest first."""

    @abstractmethod
    def count_by_owner(self, owner_id: str) -> int:
        """Number of sessions an owner has ever started."""


class InMemorySessionStore(SessionStore):
    """
    Process-local store holding JSON documents in a dict.

    Suitable for tests, the CLI demo and single-process deployments.
    """

    def __init__(self):
        self._lock = Lock()
        self._documents: Dict[str, Dict[str, Any]] = {}

    def get(self, session_id: str) -> Optional[InterviewSessionState]:
        with self._lock:
            document = self._documents.get(session_id)
        if document is None:
            return None
        return InterviewSessionState.model_validate(document)

    def put(self, session_id: str, session: InterviewSessionState) -> None:
        document = session.model_dump(mode="json")
        with self._lock:
            self._documents[session_id] = document

    def list_by_owner(
        self,
        owner_id: str,
        completed: Optional[bool] = None,
        limit: int = 10,
    ) -> List[InterviewSessionState]:
        with self._lock:
            documents = [doc for doc in self._documents.values() if doc["owner_id"] == owner_id]
        sessions = [InterviewSessionState.model_validate(doc) for doc in documents]
        if completed is not None:
            sessions = [s for s in sessions if s.is_completed == completed]
        sessions.sort(key=lambda s: (s.created_at, s.session_number), reverse=True)
        return sessions[:limit]

    def count_by_owner(self, owner_id: str) -> int:
        with self._lock:
            return sum(1 for doc in self._documents.values() if doc["owner_id"] == owner_id)
