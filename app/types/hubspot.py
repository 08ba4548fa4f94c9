"""Type definitions for HubSpot API responses."""

from typing import NotRequired, TypedDict


class ContactTD(TypedDict):
    """Contact from HubSpot crm/v3/objects/contacts/{id}.

    Only includes fields actually used in the app.
    """

    id: str
    properties: dict[str, str | None]
    archived: NotRequired[bool]


class FileMetadataTD(TypedDict, total=False):
    """File metadata from HubSpot files/v3/files/{id}."""

    id: str
    name: str
    extension: str
    type: str
    url: str
    downloadUrl: str
    access: str


class SignedUrlTD(TypedDict, total=False):
    """Short-lived download link from files/v3/files/{id}/signed-url."""

    url: str
    expiresAt: str
    name: str
    extension: str
