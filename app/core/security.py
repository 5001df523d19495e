"""Provides optional API key-based security for FastAPI endpoints."""

import logging

from fastapi import Depends
from fastapi import HTTPException
from fastapi.security import APIKeyHeader

from app.core.config import settings

# Initialize logger
logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(key: str | None = Depends(api_key_header)) -> bool:
    """Verifies the provided API key against the server's configured API key.

    Used as a FastAPI dependency to protect routes. When no API_KEY is
    configured the service runs open, which is the local development setup.

    Raises:
        HTTPException: With status code 403 if a key is configured and the header does not match.
    """
    if not settings.api_key:
        return True

    if key != settings.api_key:
        logger.warning("Rejected request with missing or invalid API key")
        raise HTTPException(status_code=403, detail="Invalid API Key")
    return True
