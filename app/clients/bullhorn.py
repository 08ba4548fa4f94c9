"""Bullhorn REST client for candidate lookup, categories and file uploads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast

import aiohttp
from structlog import get_logger

from app.clients.bullhorn_auth import BullhornAuth, BullhornSession
from app.clients.http import HTTPResponse, Transport, send_request
from app.core.config import SyncConfig
from app.core.errors import BullhornAPIError, ExternalAPIError
from app.types.bullhorn import CandidateMatchTD, CandidateNameTD, CategoryTD
from app.utils.query import escape_query_value, quote_where_value

logger = get_logger()

CATEGORY_SCAN_LIMIT = 200


@dataclass(frozen=True)
class CandidateName:
    first_name: str | None
    last_name: str | None


def _require_session(session: BullhornSession | None) -> BullhornSession:
    if session is None or not session.is_valid:
        raise ValueError("Missing Bullhorn session details")
    return session


def _first_id(payload: Any) -> int | None:
    if not isinstance(payload, dict):
        return None
    rows = payload.get("data") or []
    if not rows:
        return None
    return cast(CandidateMatchTD, rows[0]).get("id") or None


class BullhornClient:
    """HTTP client for the Bullhorn REST API, authenticated per session."""

    def __init__(
        self,
        config: SyncConfig,
        transport: Transport | None = None,
        auth: BullhornAuth | None = None,
    ) -> None:
        self.config = config
        self._send = transport or send_request
        self.auth = auth or BullhornAuth(config, transport=self._send)

    async def get_session(self) -> BullhornSession:
        """Acquire a fresh REST session (never reused across events)."""
        return await self.auth.acquire_session()

    async def request(
        self,
        session: BullhornSession,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        error_prefix: str | None = None,
        **kwargs: Any,
    ) -> HTTPResponse:
        """
        Make an authenticated request relative to the session's restUrl.

        Args:
            session: Bullhorn REST session
            method: HTTP method
            path: Path below restUrl (e.g., "search/Candidate")
            params: Query parameters; BhRestToken is added automatically
            error_prefix: Message prefix for the raised error

        Returns:
            HTTPResponse with a 2xx/3xx status

        Raises:
            ValueError: If the session is missing or incomplete
            BullhornAPIError: On 4xx/5xx response
        """
        session = _require_session(session)
        url = f"{session.rest_url.rstrip('/')}/{path.lstrip('/')}"
        query = {"BhRestToken": session.bh_rest_token, **(params or {})}

        logger.info("bullhorn_api_request", method=method, path=path)
        response = await self._send(method, url, params=query, **kwargs)

        if not response.ok:
            body = response.error_body()
            logger.error(
                "bullhorn_api_error", method=method, path=path, status=response.status, body=body
            )
            raise BullhornAPIError.from_response(
                error_prefix or f"Bullhorn request failed ({method} {path})",
                response.status,
                body,
            )
        return response

    async def find_candidate_id_by_email(
        self, session: BullhornSession, email: str | None
    ) -> int | None:
        """
        Find a candidate whose email, email2 or email3 equals the address.

        Returns:
            Candidate id of the first match, or None
        """
        _require_session(session)
        normalized = str(email or "").strip()
        if not normalized:
            return None

        escaped = escape_query_value(normalized)
        query = f'(email:"{escaped}" OR email2:"{escaped}" OR email3:"{escaped}")'

        response = await self.request(
            session,
            "GET",
            "search/Candidate",
            {"query": query, "fields": "id,email,email2,email3", "count": "1"},
        )
        return _first_id(response.json())

    async def find_category_id_by_name(
        self, session: BullhornSession, name: str | None
    ) -> int | None:
        """
        Find a category by exact name.

        Falls back to scanning the first 200 categories case-insensitively
        when the backend rejects the ``name`` filter.

        Returns:
            Category id, or None when no category matches
        """
        _require_session(session)
        normalized = str(name or "").strip()
        if not normalized:
            return None

        try:
            response = await self.request(
                session,
                "GET",
                "query/Category",
                {"where": f"name={quote_where_value(normalized)}", "fields": "id,name"},
            )
            return _first_id(response.json())
        except BullhornAPIError as e:
            if not _is_rejected_filter(e):
                raise
            logger.warning(
                "bullhorn_category_filter_rejected", category_name=normalized, status=e.status
            )

        return await self._scan_categories(session, normalized)

    async def _scan_categories(self, session: BullhornSession, name: str) -> int | None:
        response = await self.request(
            session,
            "GET",
            "query/Category",
            {"where": "id>0", "fields": "id,name", "count": str(CATEGORY_SCAN_LIMIT)},
        )
        payload = response.json()
        rows = payload.get("data") if isinstance(payload, dict) else None
        wanted = name.casefold()
        for row in rows if isinstance(rows, list) else []:
            if not isinstance(row, dict):
                continue
            category = cast(CategoryTD, row)
            if str(category.get("name") or "").strip().casefold() == wanted:
                return category.get("id")
        return None

    async def update_candidate_category(
        self, session: BullhornSession, candidate_id: int, category_id: int
    ) -> Any:
        """
        Associate a category with a candidate via a partial entity update.

        Returns:
            Bullhorn change response JSON
        """
        if self.config.category_update_mode == "association":
            body: dict[str, Any] = {"categories": {"add": [category_id]}}
        else:
            body = {"categoryID": category_id}

        response = await self.request(
            session,
            "POST",
            f"entity/Candidate/{candidate_id}",
            json_data=body,
            headers={"Content-Type": "application/json"},
            error_prefix="Bullhorn category update failed",
        )
        return response.json()

    async def upload_candidate_file(
        self,
        session: BullhornSession,
        candidate_id: int,
        content: bytes,
        file_name: str,
        content_type: str,
        source_contact_id: int | str,
    ) -> Any:
        """
        Upload a raw file attachment to a candidate.

        The upload is tagged with the configured file type label and an
        externalID correlating it to the HubSpot contact.

        Returns:
            Bullhorn file response JSON

        Raises:
            BullhornAPIError: "Bullhorn file upload failed (<status>): <body>"
        """
        form = aiohttp.FormData()
        form.add_field("file", content, filename=file_name, content_type=content_type)

        response = await self.request(
            session,
            "PUT",
            f"file/Candidate/{candidate_id}/raw",
            {
                "filetype": self.config.bullhorn_file_type,
                "externalID": external_id_for_contact(source_contact_id),
            },
            data=form,
            error_prefix="Bullhorn file upload failed",
        )
        return response.json()

    async def get_candidate_name(
        self, session: BullhornSession, candidate_id: int
    ) -> CandidateName | None:
        """
        Fetch the candidate's first and last name.

        Best-effort: failures are logged and returned as None so the upload
        can continue with a generic file name.
        """
        try:
            response = await self.request(
                session,
                "GET",
                f"entity/Candidate/{candidate_id}",
                {"fields": "firstName,lastName"},
            )
        except ExternalAPIError as e:
            logger.warning(
                "bullhorn_candidate_name_failed",
                candidate_id=candidate_id,
                status=e.status,
                error=str(e),
            )
            return None

        payload = response.json()
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            logger.warning("bullhorn_candidate_name_unexpected_body", candidate_id=candidate_id)
            return None
        data = cast(CandidateNameTD, data)
        return CandidateName(first_name=data.get("firstName"), last_name=data.get("lastName"))


def external_id_for_contact(contact_id: int | str) -> str:
    """Correlation tag stored on uploaded files."""
    return f"hubspot-contact-{contact_id}"


def _is_rejected_filter(error: BullhornAPIError) -> bool:
    if error.status == 400:
        return True
    message = str(error.body or "").lower()
    return "name" in message and ("invalid" in message or "unknown" in message)
