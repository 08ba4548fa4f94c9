"""HubSpot resume sync webhook handler."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address
from structlog import get_logger

from app.core.config import SyncConfig, settings
from app.models.webhooks import Base64Envelope, HubSpotWebhookEvent
from app.utils.security import extract_api_key, verify_api_key

logger = get_logger()
router = APIRouter()

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address)


def decode_events(body: bytes) -> list[dict[str, Any]]:
    """
    Parse the request body into a list of event dicts.

    Accepts a JSON array, a single JSON object, or a
    ``{"isBase64Encoded": true, "body": "..."}`` envelope around either.

    Items that are not JSON objects are dropped. Objects with unexpected
    field types are passed through unvalidated.

    Raises:
        ValueError: If the body (or the decoded envelope) is not valid JSON
    """
    parsed: Any = json.loads(body) if body.strip() else []

    if isinstance(parsed, dict) and "isBase64Encoded" in parsed and "body" in parsed:
        try:
            envelope = Base64Envelope(**parsed)
        except ValidationError as e:
            raise ValueError("Invalid envelope") from e
        inner = envelope.body
        if envelope.isBase64Encoded:
            try:
                inner = base64.b64decode(inner, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as e:
                raise ValueError("Invalid base64 body") from e
        parsed = json.loads(inner) if inner.strip() else []

    items = parsed if isinstance(parsed, list) else [parsed]
    events: list[dict[str, Any]] = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("webhook_event_not_object", item_type=type(item).__name__)
            continue
        try:
            events.append(HubSpotWebhookEvent(**item).model_dump())
        except ValidationError as e:
            # Left for the dispatcher to filter or record
            logger.warning("webhook_event_unexpected_shape", error_count=e.error_count())
            events.append(dict(item))
    return events


@router.post("/webhooks/hubspot")
@limiter.limit("100/minute")
async def handle_hubspot_webhook(request: Request) -> dict[str, Any]:
    """
    Receive HubSpot contact property-change events and sync them to Bullhorn.

    Returns 200 with per-event results (even when individual events fail),
    401 on missing/invalid API key, 400 on invalid JSON, 500 on missing
    HubSpot configuration. Non-POST methods get 405 from routing.
    """
    if not settings.resume_sync_api_key:
        logger.error("webhook_api_key_not_configured")
        raise HTTPException(status_code=401, detail="Missing RESUME_SYNC_API_KEY configuration")

    provided_key = extract_api_key(request.headers)
    if not provided_key:
        logger.warning("webhook_missing_api_key_header")
        raise HTTPException(status_code=401, detail="Missing RESUME_SYNC_API_KEY header")

    if not verify_api_key(settings.resume_sync_api_key, provided_key):
        raise HTTPException(status_code=401, detail="Invalid API key")

    if not settings.hubspot_private_app_token:
        logger.error("webhook_hubspot_token_not_configured")
        raise HTTPException(status_code=500, detail="Missing HUBSPOT_PRIVATE_APP_TOKEN")

    body = await request.body()
    try:
        events = decode_events(body)
    except ValueError as e:
        logger.error("webhook_invalid_json", error=str(e))
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from e

    if not events:
        return {"message": "No events to process"}

    logger.info("webhook_received", event_count=len(events))

    # Import here so tests can patch the service layer
    from app.services.resume_sync import process_events

    results = await process_events(events, SyncConfig.from_settings(settings))

    logger.info("webhook_processed", event_count=len(events), result_count=len(results))
    return {"results": results}
