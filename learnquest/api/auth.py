"""API authentication using API keys"""
import hmac
import logging
from typing import Optional
from fastapi import HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from learnquest import config
from learnquest.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# auto_error=False so a missing header goes through AuthenticationError (401) too
security = HTTPBearer(auto_error=False)


def get_api_keys() -> list[str]:
    """Configured API keys (API_KEYS, comma-separated)"""
    if not config.API_KEYS:
        logger.warning("No API_KEYS configured in environment")
    return config.API_KEYS


def _key_fingerprint(api_key: str) -> str:
    return f"{api_key[:4]}…" if len(api_key) > 4 else "…"


def is_valid_key(api_key: str, valid_keys: list[str]) -> bool:
    """Constant-time membership check"""
    return any(hmac.compare_digest(api_key.encode(), key.encode()) for key in valid_keys)


async def verify_api_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """
    Verify the bearer API key sent by the web client

    Returns:
        The verified API key

    Raises:
        HTTPException: 503 if no keys are configured
        AuthenticationError: Missing or unknown key (401)
    """
    valid_keys = get_api_keys()
    if not valid_keys:
        logger.error("No API keys configured - rejecting all requests")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API authentication not configured"
        )

    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer API key", operation="verify_api_key")

    api_key = credentials.credentials
    if not is_valid_key(api_key, valid_keys):
        raise AuthenticationError(
            f"Invalid API key {_key_fingerprint(api_key)}",
            operation="verify_api_key"
        )

    logger.debug(f"API key validated: {_key_fingerprint(api_key)}")
    return api_key
