"""Exception types raised by the resume sync clients and services."""

from __future__ import annotations

import json
from typing import Any


class ResumeSyncError(Exception):
    """Base class for all resume sync failures."""


class ConfigurationError(ResumeSyncError):
    """Required operator configuration is missing."""


class ExternalAPIError(ResumeSyncError):
    """
    An outbound HTTP call failed.

    Carries the HTTP status (None when the request never got a response)
    and the decoded response body so callers can log and report both.
    """

    def __init__(self, message: str, status: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    @classmethod
    def from_response(
        cls, prefix: str, status: int | None, body: Any
    ) -> ExternalAPIError:
        """Build an error with the ``<prefix> (<status>): <body>`` message format."""
        if body is None or body == "":
            detail = "no response body"
        elif isinstance(body, str):
            detail = body
        else:
            detail = json.dumps(body)
        return cls(f"{prefix} ({status or 'unknown'}): {detail}", status=status, body=body)


class HubSpotAPIError(ExternalAPIError):
    """HubSpot API request failed."""


class BullhornAPIError(ExternalAPIError):
    """Bullhorn REST request failed."""


class BullhornAuthError(BullhornAPIError):
    """Bullhorn OAuth token exchange or session login failed."""
