from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes.interview import router as interview_router
from config.settings import settings
from utils.database import init_db
from utils.logging_config import configure_logging

DESCRIPTION = """
Adaptive interview practice engine: five difficulty levels of five questions each,
graded level by level.

## Authentication

Every `/interview` endpoint identifies the caller through the `X-User-Id` header.
When the server is configured with `API_SECRET_KEY`, an `X-API-Key` header is required too.

## Quick Start

1. **Start a session** → `POST /interview/sessions`
2. **Get a question** → `POST /interview/sessions/{session_id}/questions`
3. **Answer it** → `POST /interview/sessions/{session_id}/answers` (repeat 2-3 five times)
4. **Grade the level** → `POST /interview/sessions/{session_id}/batch-feedback`
5. **Advance** → `POST /interview/sessions/{session_id}/advance` (after level 5 this completes the session)
6. **Get results** → `GET /interview/sessions/{session_id}/summary`

## Levels

| Level | Difficulty |
|-------|------------|
| 1 | Starter |
| 2 | Easy |
| 3 | Medium |
| 4 | Hard |
| 5 | Excellent |
"""

tags_metadata = [
    {
        "name": "Health",
        "description": "Health check endpoints. No authentication required.",
    },
    {
        "name": "Interview",
        "description": "Run adaptive interview sessions. Start → Question → Answer → Batch feedback → Advance.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.SESSION_STORE == "database":
        init_db()
    yield


app = FastAPI(
    title="Interview Engine API",
    description=DESCRIPTION,
    version="1.0.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Configure CORS
ALLOWED_ORIGINS = settings.ALLOWED_ORIGINS.split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information and documentation links"""
    return {
        "message": "Welcome to the Interview Engine API",
        "version": "1.0.0",
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "authentication": {
            "identity_header": "X-User-Id",
            "api_key_header": "X-API-Key",
            "note": "X-API-Key is only required when the server sets API_SECRET_KEY"
        },
        "endpoints": {
            "health": "/health",
            "ping": "/ping",
            "interview": "/interview"
        }
    }


# Health check endpoints (public - no authentication required)
@app.get("/ping", tags=["Health"])
def ping():
    """Simple ping endpoint to check if API is responding. No authentication required."""
    return {"message": "pong"}


@app.get("/health", tags=["Health"])
def health():
    """Health check endpoint with basic status information. No authentication required."""
    return {
        "status": "healthy",
        "service": "Interview Engine API",
        "version": "1.0.0",
        "session_store": settings.SESSION_STORE,
    }


# Register routers
app.include_router(interview_router)
