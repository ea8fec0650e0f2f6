"""
Authentication dependencies.

Operator endpoints (job triggers, sample data, alert resolution) are guarded
by a single shared key sent in the X-API-Key header. When OPERATOR_API_KEY
is not configured the guard is disabled.
"""

import secrets
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from weather_batch.config import settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_operator(api_key: Optional[str] = Security(api_key_header)) -> Optional[str]:
    """
    Validate the operator API key.

    Args:
        api_key: Value of the X-API-Key header

    Returns:
        The accepted key, or None when the guard is disabled

    Raises:
        HTTPException: If the key is missing or wrong
    """
    expected = settings.OPERATOR_API_KEY
    if not expected:
        return None

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required. Provide it in the X-API-Key header",
        )
    if not secrets.compare_digest(api_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
    return api_key
