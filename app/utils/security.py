"""Security utilities for inbound webhook authorization."""

from __future__ import annotations

import hmac
from collections.abc import Mapping

from structlog import get_logger

logger = get_logger()

# Header names the webhook sender may use for the shared secret.
# Starlette headers are case-insensitive, so each alias covers all casings.
API_KEY_HEADERS = ("resume_sync_api_key", "resume-sync-api-key")


def extract_api_key(headers: Mapping[str, str]) -> str | None:
    """Return the first shared-secret header value present, if any."""
    for name in API_KEY_HEADERS:
        value = headers.get(name)
        if value:
            return value
    return None


def verify_api_key(expected_key: str, provided_key: str) -> bool:
    """
    Verify the shared-secret header value.

    Uses constant-time comparison to prevent timing attacks.

    Args:
        expected_key: Configured RESUME_SYNC_API_KEY
        provided_key: Value from the request header

    Returns:
        True if the keys match, False otherwise
    """
    if not expected_key or not provided_key:
        return False

    is_valid = hmac.compare_digest(expected_key.encode(), provided_key.encode())

    if not is_valid:
        logger.warning("api_key_invalid", provided_length=len(provided_key))

    return is_valid
