"""
Interview Session repository for interview session persistence.

Stores the whole session document as JSON in interview_sessions and keeps
a few denormalized columns in sync for listing and filtering.
"""

from typing import List, Optional
from sqlalchemy import func
from sqlmodel import Session, select

from agents.interview.state import InterviewSessionState
from models.interview_session import InterviewSession
from repositories.base_repository import BaseRepository
from repositories.session_store import SessionStore


class InterviewSessionRepository(BaseRepository[InterviewSession], SessionStore):
    """Database-backed SessionStore."""

    def __init__(self, db_session: Session):
        super().__init__(db_session, InterviewSession)

    def get(self, session_id: str) -> Optional[InterviewSessionState]:
        """
        Load a session document.

        Args:
            session_id: Session identifier

        Returns:
            A fresh InterviewSessionState, None if not found
        """
        row = self.get_by_id(session_id)
        if row is None:
            return None
        return InterviewSessionState.model_validate(row.document)

    def put(self, session_id: str, session: InterviewSessionState) -> None:
        """
        Insert or replace a session document.

        Args:
            session_id: Session identifier
            session: Full session state to persist
        """
        row = self.get_by_id(session_id)
        if row is None:
            row = InterviewSession(id=session_id, owner_id=session.owner_id)

        row.owner_id = session.owner_id
        row.session_number = session.session_number
        row.session_title = session.session_title
        row.target_role = session.context.target_role
        row.target_company = session.context.target_company
        row.current_level = session.current_level
        row.total_score = session.total_score
        row.is_completed = session.is_completed
        # New dict object so the JSON column is flagged as modified
        row.document = session.model_dump(mode="json")
        row.created_at = session.created_at
        row.updated_at = session.updated_at
        row.completed_at = session.completed_at

        self.save(row)

    def list_by_owner(
        self,
        owner_id: str,
        completed: Optional[bool] = None,
        limit: int = 10,
    ) -> List[InterviewSessionState]:
        """
        Get sessions of an owner, newest first.

        Args:
            owner_id: Owner identifier
            completed: Optional filter on completion
            limit: Maximum number of results

        Returns:
            List of session states
        """
        statement = select(InterviewSession).where(InterviewSession.owner_id == owner_id)
        if completed is not None:
            statement = statement.where(InterviewSession.is_completed == completed)
        statement = statement.order_by(
            InterviewSession.created_at.desc(),
            InterviewSession.session_number.desc(),
        ).limit(limit)

        rows = self.db.exec(statement).all()
        return [InterviewSessionState.model_validate(row.document) for row in rows]

    def count_by_owner(self, owner_id: str) -> int:
        statement = select(func.count()).select_from(InterviewSession).where(
            InterviewSession.owner_id == owner_id
        )
        return int(self.db.exec(statement).one())
