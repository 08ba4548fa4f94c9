"""Pydantic models for webhook payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class HubSpotWebhookEvent(BaseModel):
    """
    HubSpot webhook event structure.

    Minimal validation - every field is optional so that unrelated
    subscription types pass through and are filtered by the dispatcher.
    """

    subscriptionType: str | None = None  # e.g., "object.propertyChange"
    propertyName: str | None = None
    objectId: int | str | None = None

    # Optional fields that may or may not be present
    propertyValue: Any = None
    portalId: int | None = None
    eventId: int | None = None

    model_config = ConfigDict(extra="allow")  # Allow additional fields


class Base64Envelope(BaseModel):
    """Serverless-style wrapper carrying a base64-encoded JSON body."""

    isBase64Encoded: bool
    body: str

