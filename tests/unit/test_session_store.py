"""
Unit tests for the session stores: in-memory and the SQLModel repository on SQLite.

Run: pytest tests/unit/test_session_store.py -v
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from agents.interview import transitions
from agents.interview.state import InterviewSessionState
from models.interview_session import InterviewSession
from repositories import InMemorySessionStore, InterviewSessionRepository


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(params=["memory", "database"])
def any_store(request, db_session):
    if request.param == "memory":
        return InMemorySessionStore()
    return InterviewSessionRepository(db_session)


def _session(context, owner="owner-1", number=1, created_offset=0):
    session = InterviewSessionState.new(owner, context, session_number=number)
    session.created_at = datetime(2026, 1, 1, 12, 0, 0) + timedelta(minutes=created_offset)
    return session


class TestSessionStoreContract:

    def test_get_unknown_returns_none(self, any_store):
        assert any_store.get("interview_missing") is None

    def test_put_then_get_round_trip(self, any_store, context):
        session = _session(context)
        question = transitions.append_question(session, "What is an index?")
        transitions.record_answer(session, question.id, "A lookup structure")
        any_store.put(session.session_id, session)

        loaded = any_store.get(session.session_id)
        assert loaded == session
        assert loaded.levels[0].questions[0].answer == "A lookup structure"
        assert loaded.context.skills == ["Python", "PostgreSQL"]

    def test_put_replaces_existing(self, any_store, context):
        session = _session(context)
        any_store.put(session.session_id, session)

        transitions.append_question(session, "Second version")
        any_store.put(session.session_id, session)

        loaded = any_store.get(session.session_id)
        assert [q.text for q in loaded.levels[0].questions] == ["Second version"]

    def test_get_returns_independent_copy(self, any_store, context):
        session = _session(context)
        any_store.put(session.session_id, session)

        loaded = any_store.get(session.session_id)
        transitions.append_question(loaded, "Uncommitted question")

        assert any_store.get(session.session_id).levels[0].questions == []

    def test_list_and_count_by_owner(self, any_store, context):
        older = _session(context, number=1, created_offset=0)
        newer = _session(context, number=2, created_offset=5)
        finished = _session(context, number=3, created_offset=10)
        finished.is_completed = True
        other = _session(context, owner="owner-2")
        for s in (older, newer, finished, other):
            any_store.put(s.session_id, s)

        assert any_store.count_by_owner("owner-1") == 3
        assert any_store.count_by_owner("nobody") == 0

        listed = any_store.list_by_owner("owner-1")
        assert [s.session_id for s in listed] == [finished.session_id, newer.session_id, older.session_id]

        open_only = any_store.list_by_owner("owner-1", completed=False)
        assert [s.session_id for s in open_only] == [newer.session_id, older.session_id]

        assert len(any_store.list_by_owner("owner-1", limit=2)) == 2


class TestInterviewSessionRepository:

    def test_denormalized_columns_follow_document(self, db_session, context):
        repo = InterviewSessionRepository(db_session)
        session = _session(context)
        session.total_score = 64.5
        session.current_level = 3
        repo.put(session.session_id, session)

        row = db_session.get(InterviewSession, session.session_id)
        assert row.owner_id == "owner-1"
        assert row.target_role == "Backend Engineer"
        assert row.current_level == 3
        assert row.total_score == 64.5
        assert row.session_title == "Interview Session #1"
        assert row.document["session_id"] == session.session_id
