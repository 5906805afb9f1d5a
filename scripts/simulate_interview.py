"""
Interview Simulation Script

Simulates a complete 5-level interview session by:
1. Starting a session via the API
2. Using an LLM to generate realistic candidate answers based on a persona
3. Requesting batch feedback after every level and advancing until the session completes

Usage:
    python scripts/simulate_interview.py [--base-url URL] [--api-key KEY] [--user-id ID] [--persona PERSONA]

Examples:
    # Local server with the default persona
    python scripts/simulate_interview.py

    # Nervous junior candidate, stop after two levels
    python scripts/simulate_interview.py --persona nervous --max-levels 2

    # List available personas
    python scripts/simulate_interview.py --list-personas

Personas:
    - detailed: Thorough, provides comprehensive answers (default)
    - concise: Direct and to-the-point answers
    - nervous: Less confident, sometimes vague
    - evasive: Avoids specifics, gives generic answers

Requires:
    pip install httpx
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.llm_service import LLMService, LLMServiceError
from utils.logging_config import configure_logging

# === CONSTANTS ===
DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_USER_ID = "simulated_candidate"
DEFAULT_MAX_LEVELS = 5
MAX_RATE_LIMIT_RETRIES = 3

DEFAULT_CONTEXT = {
    "target_role": "Senior Backend Engineer",
    "target_company": "Acme Corp",
    "experience_level": "Senior (5+ years)",
    "skills": ["Python", "PostgreSQL", "Distributed systems", "REST APIs"],
    "focus_areas": ["System design"],
    "industry": "E-commerce",
}


# === PERSONAS ===
PERSONAS = {
    "detailed": {
        "name": "Detailed Expert",
        "traits": """
- Always provides detailed, comprehensive answers
- Includes specific numbers, metrics, and concrete examples
- Explains the "why" behind decisions
- Sometimes goes deeper than asked, showing expertise
"""
    },
    "concise": {
        "name": "Concise Professional",
        "traits": """
- Gives direct, focused answers without unnecessary detail
- Answers exactly what's asked, no more
- Provides specifics only when directly relevant
"""
    },
    "nervous": {
        "name": "Nervous Junior",
        "traits": """
- Slightly uncertain in responses, uses hedging language ("I think", "maybe")
- Sometimes gives shorter, incomplete answers
- Shows enthusiasm but lacks confidence in articulation
"""
    },
    "evasive": {
        "name": "Evasive Candidate",
        "traits": """
- Gives vague, non-specific answers
- Uses generic statements like "I have experience with that"
- Rarely provides concrete technical detail
"""
    },
}

DEFAULT_PERSONA = "detailed"

ANSWER_GENERATION_PROMPT = """You are simulating a candidate in a technical interview for the role of
{target_role} at {target_company}.

=== PERSONA ===
You must embody this persona throughout the interview:
{persona_traits}

=== INSTRUCTIONS ===
Answer the interview question the way this persona would. The answer should:
- Be conversational and natural (not too formal)
- Stay consistent with the persona traits above
- Be at most two short paragraphs

Respond only with the answer, no labels or prefixes."""


class InterviewSimulator:
    """Simulates an interview session using API calls and LLM-generated answers."""

    def __init__(
        self,
        base_url: str,
        user_id: str,
        api_key: Optional[str] = None,
        persona: str = DEFAULT_PERSONA,
        max_levels: int = DEFAULT_MAX_LEVELS,
        context: Optional[Dict[str, Any]] = None,
        verbose: bool = True,
    ):
        if persona not in PERSONAS:
            raise ValueError(f"Unknown persona: {persona}. Available: {list(PERSONAS.keys())}")

        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.api_key = api_key
        self.persona = PERSONAS[persona]
        self.persona_name = persona
        self.max_levels = max_levels
        self.context = context or DEFAULT_CONTEXT
        self.verbose = verbose

        self.llm_service = LLMService()
        self.session_id: Optional[str] = None
        self.transcript: List[Dict[str, Any]] = []

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "X-User-Id": self.user_id}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def _log(self, message: str = ""):
        if self.verbose:
            print(message)

    async def generate_answer(self, question: str) -> str:
        """Use LLM to generate a realistic candidate answer based on persona."""
        system_prompt = ANSWER_GENERATION_PROMPT.format(
            target_role=self.context["target_role"],
            target_company=self.context["target_company"],
            persona_traits=self.persona["traits"],
        )
        try:
            answer = await self.llm_service.generate_async(prompt=question, system_prompt=system_prompt)
            return answer.strip() or "I'm not sure, I would need to look that up."
        except LLMServiceError as e:
            self._log(f"[ERROR] Failed to generate answer: {e}")
            return "I have worked with that before, but I can't recall the details right now."

    async def _post(self, client: httpx.AsyncClient, path: str, payload: Optional[dict] = None) -> dict:
        """POST with Retry-After handling for rate-limited provider calls."""
        for attempt in range(MAX_RATE_LIMIT_RETRIES + 1):
            response = await client.post(f"{self.base_url}{path}", json=payload, headers=self._headers())
            if response.status_code == 429 and attempt < MAX_RATE_LIMIT_RETRIES:
                wait = int(response.headers.get("Retry-After", "60"))
                self._log(f"[RATE LIMITED] waiting {wait}s before retrying {path}")
                await asyncio.sleep(wait)
                continue
            response.raise_for_status()
            return response.json()
        raise RuntimeError(f"Gave up on {path} after {MAX_RATE_LIMIT_RETRIES} rate-limited attempts")

    async def run(self) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=300.0) as client:
            started = await self._post(client, "/interview/sessions", self.context)
            self.session_id = started["session_id"]

            self._log("=" * 60)
            self._log(f"Session: {started['session_title']} ({self.session_id})")
            self._log(f"Persona: {self.persona['name']} ({self.persona_name})")
            self._log("=" * 60)

            for _ in range(self.max_levels):
                await self._run_level(client)
                state = await self._post(client, f"/interview/sessions/{self.session_id}/advance")
                if state["is_completed"]:
                    break

            response = await client.get(
                f"{self.base_url}/interview/sessions/{self.session_id}/state",
                headers=self._headers(),
            )
            response.raise_for_status()
            state = response.json()
            if not state["is_completed"]:
                self._log(f"\nStopped after {self.max_levels} level(s); session left open.")
                return state

            response = await client.get(
                f"{self.base_url}/interview/sessions/{self.session_id}/summary",
                headers=self._headers(),
            )
            response.raise_for_status()
            final = response.json()
            self._log(f"\nFinal score: {final['total_score']:.2f}% ({final['performance']})")
            return final

    async def _run_level(self, client: httpx.AsyncClient) -> None:
        while True:
            data = await self._post(client, f"/interview/sessions/{self.session_id}/questions")
            question = data["question"]
            state = data["state"]
            self._log(f"\n[Level {state['current_level']} - {state['difficulty']}] "
                      f"Q{state['question_number']}: {question['text']}")

            answer = await self.generate_answer(question["text"])
            self._log(f"[CANDIDATE] {answer}")
            self.transcript.append({"question": question["text"], "answer": answer})

            state = await self._post(
                client,
                f"/interview/sessions/{self.session_id}/answers",
                {"question_id": question["id"], "answer": answer},
            )
            if state["phase"] == "awaiting_batch_feedback":
                break

        summary = await self._post(client, f"/interview/sessions/{self.session_id}/batch-feedback")
        self._log(f"\nLevel {summary['level_number']} average: "
                  f"{summary['average_score']:.1f}/10 ({summary['performance']})")


def main():
    parser = argparse.ArgumentParser(description="Simulate a full interview session against the API")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL)
    parser.add_argument("--api-key", default=None)
    parser.add_argument("--user-id", default=DEFAULT_USER_ID)
    parser.add_argument("--persona", default=DEFAULT_PERSONA)
    parser.add_argument("--max-levels", type=int, default=DEFAULT_MAX_LEVELS)
    parser.add_argument("--output", default=None, help="Write the transcript and result to this JSON file")
    parser.add_argument("--list-personas", action="store_true")
    args = parser.parse_args()

    if args.list_personas:
        for key, persona in PERSONAS.items():
            print(f"{key:12} {persona['name']}")
        return

    configure_logging()
    simulator = InterviewSimulator(
        base_url=args.base_url,
        user_id=args.user_id,
        api_key=args.api_key,
        persona=args.persona,
        max_levels=args.max_levels,
    )
    result = asyncio.run(simulator.run())

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump({
                "session_id": simulator.session_id,
                "persona": simulator.persona_name,
                "finished_at": datetime.utcnow().isoformat(),
                "transcript": simulator.transcript,
                "result": result,
            }, f, indent=2)
        print(f"\nSaved results to {args.output}")


if __name__ == "__main__":
    main()
