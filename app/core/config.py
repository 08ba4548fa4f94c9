"""Application configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

RESUME_PROPERTY = "resume"
CATEGORY_FIELDS: tuple[str, ...] = (
    "creative",
    "content",
    "marketing",
    "technical",
    "strategicoperational",
    "emerging",
)


class Settings(BaseSettings):
    """Application configuration from environment variables."""

    # Inbound authorization
    resume_sync_api_key: str = ""

    # HubSpot
    hubspot_private_app_token: str = ""
    hubspot_base_url: str = "https://api.hubapi.com"

    # Bullhorn OAuth
    bullhorn_client_id: str = ""
    bullhorn_client_secret: str = ""
    bullhorn_refresh_token: str = ""
    bullhorn_redirect_uri: str | None = None
    bullhorn_username: str | None = None
    bullhorn_password: str | None = None
    bullhorn_auth_url: str = "https://auth.bullhornstaffing.com"

    # Bullhorn REST
    bullhorn_rest_base_url: str = "https://rest.bullhornstaffing.com"
    bullhorn_file_type: str = "Talent Resume"
    bullhorn_category_update_mode: Literal["field", "association"] = "field"

    # Application
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env")


def normalize_oauth_url(url: str | None) -> str:
    """Return the Bullhorn OAuth base URL, always ending in ``/oauth``."""
    if not url:
        return "https://auth.bullhornstaffing.com/oauth"
    url = url.rstrip("/")
    return url if url.endswith("/oauth") else f"{url}/oauth"


class SyncConfig(BaseModel):
    """
    Immutable configuration handed to the resume sync dispatcher.

    Built once from Settings at startup so the dispatcher never reads
    environment state while processing a batch.
    """

    model_config = ConfigDict(frozen=True)

    hubspot_token: str
    hubspot_base_url: str = "https://api.hubapi.com"

    bullhorn_client_id: str = ""
    bullhorn_client_secret: str = ""
    bullhorn_refresh_token: str = ""
    bullhorn_redirect_uri: str | None = None
    bullhorn_username: str | None = None
    bullhorn_password: str | None = None
    bullhorn_oauth_url: str = "https://auth.bullhornstaffing.com/oauth"
    bullhorn_rest_base_url: str = "https://rest.bullhornstaffing.com"
    bullhorn_file_type: str = "Talent Resume"
    category_update_mode: Literal["field", "association"] = "field"

    resume_property: str = RESUME_PROPERTY
    category_fields: tuple[str, ...] = CATEGORY_FIELDS

    @property
    def tracked_properties(self) -> frozenset[str]:
        """Contact properties whose changes are synced."""
        return frozenset((self.resume_property, *self.category_fields))

    @property
    def has_password_fallback(self) -> bool:
        """Whether headless authorization-code login is configured."""
        return bool(self.bullhorn_username and self.bullhorn_password)

    @classmethod
    def from_settings(cls, source: Settings) -> SyncConfig:
        """Build dispatcher configuration from environment settings."""
        return cls(
            hubspot_token=source.hubspot_private_app_token,
            hubspot_base_url=source.hubspot_base_url.rstrip("/"),
            bullhorn_client_id=source.bullhorn_client_id,
            bullhorn_client_secret=source.bullhorn_client_secret,
            bullhorn_refresh_token=source.bullhorn_refresh_token,
            bullhorn_redirect_uri=source.bullhorn_redirect_uri,
            bullhorn_username=source.bullhorn_username,
            bullhorn_password=source.bullhorn_password,
            bullhorn_oauth_url=normalize_oauth_url(source.bullhorn_auth_url),
            bullhorn_rest_base_url=source.bullhorn_rest_base_url.rstrip("/"),
            bullhorn_file_type=source.bullhorn_file_type,
            category_update_mode=source.bullhorn_category_update_mode,
        )


settings = Settings.model_validate({})
