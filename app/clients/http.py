"""Thin aiohttp transport shared by the HubSpot and Bullhorn clients."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from structlog import get_logger

from app.core.errors import ExternalAPIError

logger = get_logger()


@dataclass
class HTTPResponse:
    """Fully-read HTTP response."""

    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status < 400

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def json(self) -> Any:
        """Decode the body as JSON, returning None when it is not JSON."""
        if not self.body:
            return None
        try:
            return json.loads(self.body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None

    def error_body(self) -> Any:
        """Body for error reporting: parsed JSON if possible, else text."""
        parsed = self.json()
        return parsed if parsed is not None else self.text


Transport = Callable[..., Awaitable[HTTPResponse]]


async def send_request(
    method: str,
    url: str,
    *,
    params: Mapping[str, str] | None = None,
    headers: Mapping[str, str] | None = None,
    data: Any = None,
    json_data: Any = None,
    allow_redirects: bool = True,
) -> HTTPResponse:
    """
    Perform one HTTP request and read the whole response.

    Non-2xx statuses are returned, not raised; callers decide what is an
    error. Transport failures (DNS, connection reset) raise ExternalAPIError
    without a status.
    """
    try:
        async with aiohttp.ClientSession() as session:
            async with session.request(
                method,
                url,
                params=params,
                headers=headers,
                data=data,
                json=json_data,
                allow_redirects=allow_redirects,
            ) as response:
                body = await response.read()
                return HTTPResponse(
                    status=response.status,
                    body=body,
                    headers={key: value for key, value in response.headers.items()},
                )
    except aiohttp.ClientError as e:
        logger.error("http_transport_error", method=method, url=url, error=str(e))
        raise ExternalAPIError(f"{method} {url} failed: {e}") from e
