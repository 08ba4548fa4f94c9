"""Helpers for turning stored resume values into uploadable file metadata."""

from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import unquote, urlsplit

from app.types.files import FileReference

URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
DIGITS_PATTERN = re.compile(r"^\d+$")
EXTENSION_PATTERN = re.compile(r"\.([A-Za-z0-9]{1,5})$")
UNSAFE_NAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')

# Alias keys seen in HubSpot file property JSON blobs, in priority order
ID_KEYS = ("id", "fileId")
URL_KEYS = ("url", "downloadUrl", "link")
NAME_KEYS = ("name", "fileName")

CONTENT_TYPE_EXTENSIONS: dict[str, str] = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/rtf": "rtf",
    "text/rtf": "rtf",
    "text/plain": "txt",
    "application/vnd.oasis.opendocument.text": "odt",
    "text/html": "html",
    "image/png": "png",
    "image/jpeg": "jpg",
}

EXTENSION_CONTENT_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "rtf": "application/rtf",
    "txt": "text/plain",
    "odt": "application/vnd.oasis.opendocument.text",
    "html": "text/html",
    "htm": "text/html",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}


def _first_present(data: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def parse_resume_value(value: Any) -> FileReference:
    """
    Parse a stored resume property into a file reference.

    Accepts a JSON object (with id/url/name under several alias keys),
    an absolute http(s) URL, or a bare numeric file id. Anything else
    resolves to an empty reference; malformed input never raises.

    Args:
        value: Raw contact property value

    Returns:
        FileReference with unmatched fields set to None
    """
    if not isinstance(value, str):
        return FileReference()

    trimmed = value.strip()
    if not trimmed:
        return FileReference()

    if trimmed.startswith("{"):
        try:
            parsed = json.loads(trimmed)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return FileReference(
                file_id=_first_present(parsed, ID_KEYS),
                file_url=_first_present(parsed, URL_KEYS),
                file_name=_first_present(parsed, NAME_KEYS),
            )

    if URL_PATTERN.match(trimmed):
        return FileReference(file_url=trimmed)
    if DIGITS_PATTERN.match(trimmed):
        return FileReference(file_id=trimmed)

    return FileReference()


def _extension_from_name(name: str | None) -> str | None:
    if not name:
        return None
    match = EXTENSION_PATTERN.search(name.strip())
    return match.group(1).lower() if match else None


def _extension_from_url(url: str | None) -> str | None:
    if not url:
        return None
    try:
        path = urlsplit(url).path
    except ValueError:
        return None
    last_segment = unquote(path.rsplit("/", 1)[-1])
    return _extension_from_name(last_segment)


def _extension_from_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    mime = content_type.split(";", 1)[0].strip().lower()
    return CONTENT_TYPE_EXTENSIONS.get(mime)


def resolve_resume_extension(
    file_name: str | None = None,
    file_url: str | None = None,
    content_type: str | None = None,
) -> str | None:
    """
    Derive a file extension (without the dot).

    The file name wins over the URL path, which wins over the
    content-type mapping.
    """
    return (
        _extension_from_name(file_name)
        or _extension_from_url(file_url)
        or _extension_from_content_type(content_type)
    )


def guess_content_type(extension: str | None) -> str | None:
    """Map an extension back to a MIME type, if known."""
    if not extension:
        return None
    return EXTENSION_CONTENT_TYPES.get(extension.lower().lstrip("."))


def _clean_name_part(value: str | None) -> str:
    if not value:
        return ""
    return " ".join(UNSAFE_NAME_CHARS.sub(" ", value).split())


def build_resume_file_name(
    candidate_id: int | str,
    first_name: str | None = None,
    last_name: str | None = None,
    extension: str | None = None,
) -> str:
    """
    Compose the file name shown on the candidate's attachment list.

    Examples:
        build_resume_file_name(12, "Jane", "Smith", "pdf")
        -> "Jane Smith Resume 12.pdf"
        build_resume_file_name(12) -> "Candidate 12 Resume"
    """
    full_name = " ".join(
        part for part in (_clean_name_part(first_name), _clean_name_part(last_name)) if part
    )
    base = f"{full_name} Resume {candidate_id}" if full_name else f"Candidate {candidate_id} Resume"

    if extension:
        return f"{base}.{extension.lower().lstrip('.')}"
    return base
