"""Value types passed between the file resolution helpers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FileReference:
    """File pointer parsed out of a stored contact property value."""

    file_id: str | None = None
    file_url: str | None = None
    file_name: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.file_id is None and self.file_url is None


@dataclass(frozen=True)
class ResolvedFile:
    """Downloadable location for a file reference."""

    url: str | None
    file_name: str | None = None


@dataclass(frozen=True)
class DownloadedFile:
    """Raw file bytes with the content type reported by the server."""

    content: bytes
    content_type: str

    @property
    def is_html(self) -> bool:
        return "text/html" in self.content_type.lower()
