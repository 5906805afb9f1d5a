import json
import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from config.settings import settings
from utils.langfuse_config import get_langfuse_handler

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("quota", "rate limit", "resource_exhausted", "too many requests")
# "429" only counts when it reads as an HTTP status
RATE_LIMIT_STATUS_PATTERN = re.compile(r"(?:^|error code:?\s*|status(?: code)?:?\s*)429\b")
DEFAULT_RETRY_AFTER_SECONDS = 60


class LLMServiceError(Exception):
    """The LLM call failed."""


class LLMRateLimitError(LLMServiceError):
    """The provider rejected the call because of rate limits or quota."""

    def __init__(self, message: str, retry_after: int = DEFAULT_RETRY_AFTER_SECONDS):
        super().__init__(message)
        self.retry_after = retry_after


class LLMResponseFormatError(LLMServiceError):
    """The LLM answered, but not with a JSON object."""


class LLMProvider(Enum):
    GEMINI = "gemini"
    OPENAI = "openai"
    OLLAMA = "ollama"
    OPENROUTER = "openrouter"


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Pull a JSON object out of raw model output.

    Accepts bare JSON, JSON inside a ```json fence, or the outermost {...}
    span embedded in surrounding prose. Returns None when nothing parses
    to a dict.
    """
    text = (text or "").strip()
    if not text:
        return None

    candidates = [text]
    fenced = re.search(r"```(?:json)?\s*(\{[\s\S]*\})\s*```", text, re.IGNORECASE)
    if fenced:
        candidates.append(fenced.group(1))
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _is_rate_limit(exc: Exception) -> bool:
    for attr in ("status_code", "code"):
        if getattr(exc, attr, None) == 429:
            return True
    message = str(exc).lower().strip()
    if RATE_LIMIT_STATUS_PATTERN.search(message):
        return True
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class LLMService:
    """
    Provider-agnostic LLM wrapper that supports:
    - Gemini
    - OpenAI
    - OpenRouter (OpenAI-compatible)
    - Ollama (local, OpenAI-compatible)
    """

    def __init__(
        self,
        provider: Optional[str] = None,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        self.provider = (provider or settings.LLM_PROVIDER).lower()
        self.model_name = model_name or settings.LLM_MODEL
        self.temperature = settings.LLM_TEMPERATURE if temperature is None else temperature

        self.model = self._load_provider_model()

    # ---------------------------------------------------------------------
    # Provider Loader
    # ---------------------------------------------------------------------
    def _load_provider_model(self):
        provider = self.provider

        # ★ OPENAI (native)
        if provider == LLMProvider.OPENAI.value:
            return ChatOpenAI(
                model=self.model_name,
                temperature=self.temperature,
            )

        # ★ OPENROUTER (OpenAI-compatible API)
        if provider == LLMProvider.OPENROUTER.value:
            return ChatOpenAI(
                api_key=settings.OPENROUTER_API_KEY,
                base_url="https://openrouter.ai/api/v1",
                model=self.model_name,
                temperature=self.temperature,
            )

        # ★ OLLAMA (OpenAI-compatible)
        if provider == LLMProvider.OLLAMA.value:
            return ChatOpenAI(
                api_key="ollama",  # not used
                base_url="http://localhost:11434/v1",
                model=self.model_name,
                temperature=self.temperature,
            )

        # ★ GOOGLE GEMINI
        if provider == LLMProvider.GEMINI.value:
            kwargs: Dict[str, Any] = {}
            if settings.GEMINI_API_KEY:
                kwargs["google_api_key"] = settings.GEMINI_API_KEY
            return ChatGoogleGenerativeAI(
                model=self.model_name,
                temperature=self.temperature,
                **kwargs,
            )

        raise ValueError(f"Unsupported LLM provider: {provider}")

    # ---------------------------------------------------------------------
    # Async Text Generator
    # ---------------------------------------------------------------------
    async def generate_async(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Generate raw text response from LLM

        Args:
            prompt: The main prompt/question
            system_prompt: Optional system prompt for context
            metadata: Optional trace metadata (session id, tags) for Langfuse

        Returns:
            Raw text response from LLM

        Raises:
            LLMRateLimitError: Provider quota / 429
            LLMServiceError: Any other provider failure
        """
        messages: List[BaseMessage] = []

        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))

        messages.append(HumanMessage(content=prompt))

        return await self._ainvoke(messages, metadata=metadata)

    # ---------------------------------------------------------------------
    # Async JSON Generator
    # ---------------------------------------------------------------------
    async def generate_json_async(
        self,
        system_prompt: str,
        human_prompt: str,
        schema: Dict[str, Any],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Generate a JSON object from the LLM.

        Args:
            system_prompt: System prompt with instructions
            human_prompt: Human prompt with the task
            schema: Expected JSON schema (injected into the system prompt)
            metadata: Optional trace metadata for Langfuse

        Returns:
            Parsed JSON dict

        Raises:
            LLMResponseFormatError: Reply did not contain a JSON object
            LLMRateLimitError: Provider quota / 429
            LLMServiceError: Any other provider failure
        """
        messages = [
            SystemMessage(content=self._inject_json_rules(system_prompt, schema)),
            HumanMessage(content=human_prompt)
        ]

        # For providers that support response_format, pass it dynamically
        # For Gemini and Ollama, rely on system prompt enforcement
        extra: Dict[str, Any] = {}
        if self.provider in [LLMProvider.OPENAI.value, LLMProvider.OPENROUTER.value]:
            extra["response_format"] = {"type": "json_object"}

        content = await self._ainvoke(messages, metadata=metadata, **extra)

        parsed = extract_json_object(content)
        if parsed is None:
            logger.warning("LLM reply did not contain a JSON object (%d chars)", len(content))
            raise LLMResponseFormatError("LLM response was not a JSON object")
        return parsed

    async def _ainvoke(
        self,
        messages: List[BaseMessage],
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> str:
        try:
            response = await self.model.ainvoke(
                messages,
                config=self._build_config(metadata),
                **kwargs,
            )
        except Exception as e:
            if _is_rate_limit(e):
                logger.warning("LLM rate limited (%s/%s): %s", self.provider, self.model_name, e)
                raise LLMRateLimitError(str(e)) from e
            logger.error("LLM call failed (%s/%s): %s", self.provider, self.model_name, e)
            raise LLMServiceError(str(e)) from e

        # LangChain models return text in different formats
        if isinstance(response.content, str):
            return response.content
        parts = [
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in response.content
        ]
        return "".join(parts)

    def _build_config(self, metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Build the runnable config with Langfuse tracing when enabled."""
        handler = get_langfuse_handler()
        return {
            "callbacks": [handler] if handler else [],
            "metadata": metadata or {},
        }

    # ---------------------------------------------------------------------
    # JSON Enforcement Layer
    # ---------------------------------------------------------------------
    def _inject_json_rules(self, system_prompt: str, schema: Dict[str, Any]) -> str:
        """
        Ensures all providers return the correct JSON, especially Ollama and Gemini.
        """

        return f"""
{system_prompt}

You MUST return ONLY valid JSON matching this schema:

{json.dumps(schema, indent=2)}

Rules:
- Output **only** a JSON object.
- No commentary, no markdown, no code fences.
- Do not explain the JSON, only output it.
- Keys and structure must match the schema exactly.
"""
