import hashlib
import hmac
from typing import Optional

from fastapi import Header, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from config.settings import settings

# Define API Key security scheme for OpenAPI/Swagger
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def _hash_api_key(raw_key: str) -> str:
    """Derive deterministic hash for API key secrets."""
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


async def verify_api_key(api_key: Optional[str] = Security(api_key_header)) -> None:
    """
    Dependency to verify the X-API-Key header against API_SECRET_KEY.

    No-op when API_SECRET_KEY is not configured.

    Raises:
        HTTPException: If API key is missing or does not match.
    """
    if not settings.API_SECRET_KEY:
        return

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not hmac.compare_digest(_hash_api_key(api_key), _hash_api_key(settings.API_SECRET_KEY)):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )


def get_current_owner(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    """
    Extract the caller's identity, set by the authenticating gateway.

    Usage:
        @router.get("/sessions")
        def list_sessions(owner_id: str = Depends(get_current_owner)):
            # All lookups are scoped to owner_id
            pass
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id.strip()
