from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from dotenv import load_dotenv

# Load .env file into os.environ BEFORE pydantic reads it
# This ensures ALL environment variables are available to both:
# - pydantic-settings (reads from os.environ)
# - Langfuse SDK (reads from os.environ)
# - LangChain chat model clients (OPENAI_API_KEY, GOOGLE_API_KEY, ...)
load_dotenv()


class Settings(BaseSettings):
    # LLM Configuration
    LLM_PROVIDER: str = "gemini"
    LLM_MODEL: str = "gemini-1.5-flash"
    LLM_TEMPERATURE: float = 0.7

    # OpenRouter
    OPENROUTER_API_KEY: Optional[str] = None

    # Gemini
    GEMINI_API_KEY: Optional[str] = None

    # Session store: "memory" (process-local, no DB) or "database" (SQLModel table)
    SESSION_STORE: str = "database"

    # Optional app/server/database fields (in .env)
    DATABASE_URL: Optional[str] = "sqlite:///./interview_sessions.db"
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8000
    ALLOWED_ORIGINS: str = "*"

    # API Security (X-API-Key is only enforced when this is set)
    API_SECRET_KEY: Optional[str] = None

    # Langfuse Observability
    LANGFUSE_PUBLIC_KEY: Optional[str] = None
    LANGFUSE_SECRET_KEY: Optional[str] = None
    LANGFUSE_HOST: str = "https://cloud.langfuse.com"
    LANGFUSE_ENABLED: bool = False

    # Interview engine
    PROVIDER_TIMEOUT_SECONDS: float = 60.0  # Upper bound for a single question / feedback call
    MAX_ANSWER_LENGTH: int = 10000
    PREVIOUS_QUESTIONS_IN_PROMPT: int = 25  # Whole session (5 levels x 5 questions)

    LOG_LEVEL: str = "INFO"

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # ignore unknown env vars instead of raising errors
    )


settings = Settings()
