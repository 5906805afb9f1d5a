"""
Main entry point for the adaptive interview engine.

Runs a full 5-level interview in the terminal against the configured LLM.
"""

import asyncio

from sqlmodel import Session

from agents.interview import (
    InterviewContext,
    InterviewError,
    LLMQuestionProvider,
    ProviderError,
    SessionPhase,
    QUESTIONS_PER_LEVEL,
    TOTAL_LEVELS,
)
from config.settings import settings
from repositories import InMemorySessionStore, InterviewSessionRepository
from services import InterviewService
from utils.database import get_engine, init_db
from utils.logging_config import configure_logging

QUIT_WORDS = ["quit", "exit", "q"]


def _ask(prompt: str, default: str = "") -> str:
    value = input(prompt).strip()
    return value or default


def _read_context() -> InterviewContext:
    print("Tell us what you are preparing for (press Enter to accept defaults).\n")
    role = _ask("Target role [Backend Engineer]: ", "Backend Engineer")
    company = _ask("Target company [Acme Corp]: ", "Acme Corp")
    experience = _ask("Experience level [Mid-level (3-5 years)]: ", "Mid-level (3-5 years)")
    skills = _ask("Skills, comma separated [Python, SQL, REST APIs]: ", "Python, SQL, REST APIs")
    focus = _ask("Focus areas, comma separated (optional): ")
    return InterviewContext(
        target_role=role,
        target_company=company,
        experience_level=experience,
        skills=[s for s in skills.split(",")],
        focus_areas=[f for f in focus.split(",")],
    )


def _print_level_summary(summary) -> None:
    print("\n" + "=" * 80)
    print(f"LEVEL {summary.level_number} ({summary.difficulty.value}) RESULTS")
    print("=" * 80)
    for i, question in enumerate(summary.questions, 1):
        print(f"\n{i}. {question.text}")
        print(f"   Score: {question.score}/10")
        print(f"   Feedback: {question.feedback}")
        if question.suggestions:
            print(f"   Suggestions: {'; '.join(question.suggestions)}")
    print(f"\nAverage: {summary.average_score:.1f}/10 ({summary.performance})")
    if summary.overall_topics_to_revise:
        print(f"Topics to revise: {', '.join(summary.overall_topics_to_revise)}")
    print(f"Total score so far: {summary.total_score:.2f}%")


def _print_final_summary(final) -> None:
    print("\n" + "=" * 80)
    print(f"{final.session_title.upper()} COMPLETE")
    print("=" * 80)
    print(f"Overall score: {final.total_score:.2f}% ({final.performance})")
    if final.strengths:
        print("\nStrengths:")
        for line in final.strengths:
            print(f"  - {line}")
    if final.areas_to_improve:
        print("\nAreas to improve:")
        for line in final.areas_to_improve:
            print(f"  - {line}")
    if final.topics_to_revise:
        print(f"\nTopics to revise: {', '.join(final.topics_to_revise)}")


def _retry_after_failure(e: ProviderError) -> bool:
    print(f"\n[!] {e}")
    if e.retry_after:
        print(f"    The provider asked to wait {e.retry_after}s before retrying.")
    reply = _ask("Try again? [Y/n]: ", "y")
    if reply.lower() in ("y", "yes"):
        return True
    print("\nSession saved. You can resume it later.")
    return False


async def run_interview(service: InterviewService, owner_id: str) -> None:
    session = await service.start_session(owner_id, _read_context())
    session_id = session.session_id
    print(f"\nStarted {session.session_title} ({session_id})\n")

    while True:
        state = await service.get_state(session_id)

        if state.phase == SessionPhase.FINAL_SUMMARY:
            _print_final_summary(await service.get_final_summary(session_id))
            return

        if state.phase == SessionPhase.AWAITING_BATCH_FEEDBACK:
            print("\nGrading this level...")
            try:
                summary = await service.submit_level_batch(session_id)
            except ProviderError as e:
                if _retry_after_failure(e):
                    continue
                return
            _print_level_summary(summary)
            continue

        if state.phase == SessionPhase.LEVEL_SUMMARY:
            if state.current_level < TOTAL_LEVELS:
                reply = _ask("\nContinue to the next level? [Y/n]: ", "y")
                if reply.lower() not in ("y", "yes"):
                    print("\nSession saved. You can resume it later.")
                    return
            await service.advance_level(session_id)
            continue

        try:
            question = await service.next_question(session_id)
        except ProviderError as e:
            if _retry_after_failure(e):
                continue
            return
        state = await service.get_state(session_id)
        print(f"\n[Level {state.current_level} - {state.difficulty.value}] "
              f"Question {state.question_number}/{QUESTIONS_PER_LEVEL} ({state.progress_percentage:.0f}% done)")
        print(f"Interviewer: {question.text}\n")

        answer = input("You: ").strip()
        if answer.lower() in QUIT_WORDS:
            print("\nExiting interview early. Session saved.")
            return
        if not answer:
            print("Please provide an answer, or type 'quit' to exit.\n")
            continue

        try:
            await service.submit_answer(session_id, question.id, answer)
        except InterviewError as e:
            print(f"[!] {e}")


def main():
    configure_logging()

    print("=" * 80)
    print("Adaptive Interview - 5 levels x 5 questions")
    print("=" * 80)
    print()

    owner_id = _ask("Your user id [cli_user]: ", "cli_user")
    provider = LLMQuestionProvider()

    if settings.SESSION_STORE == "memory":
        asyncio.run(run_interview(InterviewService(InMemorySessionStore(), provider), owner_id))
        return

    init_db()
    with Session(get_engine()) as db_session:
        service = InterviewService(InterviewSessionRepository(db_session), provider)
        asyncio.run(run_interview(service, owner_id))


if __name__ == "__main__":
    main()
