from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON


class InterviewSession(SQLModel, table=True):
    """
    Persisted interview session record.

    The full session document (context, levels, questions, scores) is stored
    in `document`; the scalar columns duplicate the parts needed for listing
    and filtering so they can be queried without decoding JSON.
    """
    __tablename__ = "interview_sessions"

    id: str = Field(primary_key=True)
    owner_id: str = Field(index=True)

    session_number: int = Field(default=1)
    session_title: str = Field(default="")
    target_role: str = Field(default="")
    target_company: str = Field(default="")

    # Session state
    current_level: int = Field(default=1)
    total_score: float = Field(default=0.0)
    is_completed: bool = Field(default=False, index=True)

    document: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
