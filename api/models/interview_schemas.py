from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from agents.interview.state import Difficulty, InterviewSessionState, Question
from agents.interview.summary import SessionStateView


# ============ Request Schemas ============

class StartSessionRequest(BaseModel):
    """Schema for starting a new interview session"""
    target_role: str = Field(..., description="Role the candidate is preparing for")
    target_company: str = Field(..., description="Company the candidate is targeting")
    experience_level: str = Field(..., description="Candidate experience level, e.g. 'Mid-level (3-5 years)'")
    skills: List[str] = Field(..., description="Skills to be tested (at least one)")
    focus_areas: List[str] = Field(default_factory=list, description="Optional areas to emphasize")
    industry: Optional[str] = Field(default=None, description="Industry of the target company (defaults to Technology)")

    class Config:
        json_schema_extra = {
            "example": {
                "target_role": "Backend Engineer",
                "target_company": "Acme Corp",
                "experience_level": "Mid-level (3-5 years)",
                "skills": ["Python", "PostgreSQL", "REST APIs"],
                "focus_areas": ["System design"],
                "industry": "Fintech"
            }
        }


class SubmitAnswerRequest(BaseModel):
    """Schema for answering the pending question"""
    question_id: str = Field(..., description="ID of the question being answered")
    answer: str = Field(..., description="Candidate's answer")

    class Config:
        json_schema_extra = {
            "example": {
                "question_id": "q1_1_3fa85f64",
                "answer": "A list is mutable while a tuple is immutable, so tuples can be used as dict keys..."
            }
        }


# ============ Response Schemas ============

class SessionListItem(BaseModel):
    """Short form of a session used in listings"""
    session_id: str
    session_number: int
    session_title: str
    target_role: str
    target_company: str
    current_level: int
    total_score: float = Field(description="Overall score percentage (0-100)")
    is_completed: bool
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_state(cls, session: InterviewSessionState) -> "SessionListItem":
        return cls(
            session_id=session.session_id,
            session_number=session.session_number,
            session_title=session.session_title,
            target_role=session.context.target_role,
            target_company=session.context.target_company,
            current_level=session.current_level,
            total_score=session.total_score,
            is_completed=session.is_completed,
            created_at=session.created_at,
            completed_at=session.completed_at,
        )


class SessionListResponse(BaseModel):
    sessions: List[SessionListItem]
    count: int


class StartSessionResponse(BaseModel):
    """Schema for start session response"""
    session_id: str = Field(..., description="Interview session ID")
    session_title: str
    session_number: int
    current_level: int
    difficulty: Difficulty
    created_at: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "session_id": "interview_12345678-1234-1234-1234-123456789abc",
                "session_title": "Interview Session #1",
                "session_number": 1,
                "current_level": 1,
                "difficulty": "Starter",
                "created_at": "2024-01-15T10:30:00Z"
            }
        }


class NextQuestionResponse(BaseModel):
    """The question to answer now, with the session state around it"""
    question: Question
    state: SessionStateView


# ============ Error Response Schema ============

class ErrorResponse(BaseModel):
    """Schema for error responses"""
    detail: str = Field(..., description="Error message")

    class Config:
        json_schema_extra = {
            "example": {
                "detail": "Session interview_3fa85f64 not found"
            }
        }
