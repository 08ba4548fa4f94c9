"""HubSpot API client for contact properties and stored files."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, cast

from structlog import get_logger

from app.clients.http import HTTPResponse, Transport, send_request
from app.core.errors import ExternalAPIError, HubSpotAPIError
from app.types.files import DownloadedFile, FileReference, ResolvedFile
from app.types.hubspot import ContactTD, FileMetadataTD, SignedUrlTD

logger = get_logger()

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class HubSpotClient:
    """HTTP client for the HubSpot REST API with private-app bearer auth."""

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.hubapi.com",
        transport: Transport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        self._send = transport or send_request

    async def get(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """
        Make GET request to HubSpot API.

        Args:
            path: API path (e.g., "/files/v3/files/123")
            params: Query string parameters

        Returns:
            Response JSON dict

        Raises:
            HubSpotAPIError: On non-2xx response
        """
        url = f"{self.base_url}{path}"
        logger.info("hubspot_api_request", path=path)

        response = await self._send("GET", url, params=params, headers=self.headers)
        if not response.ok:
            body = response.error_body()
            logger.error("hubspot_api_error", path=path, status=response.status, body=body)
            raise HubSpotAPIError.from_response(
                f"HubSpot request failed ({path})", response.status, body
            )

        result = response.json()
        return result if isinstance(result, dict) else {}

    async def get_contact(
        self, contact_id: int | str, properties: Iterable[str]
    ) -> dict[str, str | None]:
        """
        Fetch selected properties of a contact.

        Args:
            contact_id: HubSpot contact id (webhook objectId)
            properties: Property names to read

        Returns:
            Property name to value mapping (missing properties are absent)
        """
        data = await self.get(
            f"/crm/v3/objects/contacts/{contact_id}",
            {"properties": ",".join(properties)},
        )
        contact = cast(ContactTD, data)
        return dict(contact.get("properties") or {})

    async def get_file_metadata(self, file_id: str) -> FileMetadataTD:
        """Fetch file metadata. Errors propagate."""
        data = await self.get(f"/files/v3/files/{file_id}")
        return cast(FileMetadataTD, data)

    async def get_signed_url(self, file_id: str) -> str | None:
        """
        Fetch a short-lived signed download URL.

        Best-effort: any failure is logged and returned as None so the caller
        can fall back to the metadata URLs.
        """
        try:
            data = cast(SignedUrlTD, await self.get(f"/files/v3/files/{file_id}/signed-url"))
        except ExternalAPIError as e:
            logger.warning(
                "hubspot_signed_url_failed",
                file_id=file_id,
                error=str(e),
                status=e.status,
                body=e.body,
            )
            return None

        return data.get("url") or None

    async def resolve_file(self, ref: FileReference) -> ResolvedFile:
        """
        Resolve a file reference to a downloadable URL.

        Preference order: signed URL, metadata url, metadata downloadUrl,
        the reference's own URL. A reference without an id is returned as-is.

        Args:
            ref: Parsed resume property value

        Returns:
            ResolvedFile whose url is None when nothing could be located
        """
        if ref.is_empty:
            return ResolvedFile(url=None, file_name=ref.file_name)
        if not ref.file_id:
            return ResolvedFile(url=ref.file_url, file_name=ref.file_name)

        metadata = await self.get_file_metadata(ref.file_id)
        signed_url = await self.get_signed_url(ref.file_id)

        url = signed_url or metadata.get("url") or metadata.get("downloadUrl") or ref.file_url
        return ResolvedFile(url=url or None, file_name=metadata.get("name") or ref.file_name)

    async def download_file(self, url: str) -> DownloadedFile:
        """
        Download file bytes from a resolved URL.

        Signed URLs carry their own credentials, so no auth header is sent.

        Raises:
            HubSpotAPIError: On non-2xx response
        """
        response: HTTPResponse = await self._send("GET", url)
        if not response.ok:
            logger.error("hubspot_file_download_failed", url=url, status=response.status)
            raise HubSpotAPIError.from_response(
                "HubSpot file download failed", response.status, response.error_body()
            )

        content_type = response.header("Content-Type") or DEFAULT_CONTENT_TYPE
        return DownloadedFile(content=response.body, content_type=content_type)
