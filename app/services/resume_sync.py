"""HubSpot contact change → Bullhorn candidate sync business logic."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from structlog import get_logger

from app.clients.bullhorn import BullhornClient, external_id_for_contact
from app.clients.bullhorn_auth import BullhornSession
from app.clients.hubspot import HubSpotClient
from app.core.config import SyncConfig
from app.core.errors import ExternalAPIError
from app.utils.files import (
    build_resume_file_name,
    guess_content_type,
    parse_resume_value,
    resolve_resume_extension,
)

logger = get_logger()

PROPERTY_CHANGE = "object.propertyChange"


def _skipped(reason: str, **extra: Any) -> dict[str, Any]:
    return {"skipped": True, "reason": reason, **extra}


def selected_category_name(
    properties: Mapping[str, Any], category_fields: Iterable[str]
) -> str | None:
    """Return the first non-blank category field value, trimmed."""
    for field in category_fields:
        value = properties.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def should_process(event: Mapping[str, Any], config: SyncConfig) -> bool:
    """
    Filter webhook events down to tracked property changes.

    Events without a propertyName pass; events naming an untracked
    property do not.
    """
    if event.get("subscriptionType") != PROPERTY_CHANGE:
        return False
    property_name = event.get("propertyName")
    if not property_name:
        return True
    return isinstance(property_name, str) and property_name in config.tracked_properties


async def process_events(
    events: Iterable[Mapping[str, Any]],
    config: SyncConfig,
    *,
    hubspot: HubSpotClient | None = None,
    bullhorn: BullhornClient | None = None,
) -> list[dict[str, Any]]:
    """
    Process a batch of HubSpot webhook events sequentially.

    Each event runs to completion before the next one starts. Failures are
    folded into that event's record; the batch never aborts.

    Args:
        events: Webhook event dicts ({subscriptionType, propertyName, objectId})
        config: Immutable sync configuration
        hubspot: HubSpot client (built from config when omitted)
        bullhorn: Bullhorn client (built from config when omitted)

    Returns:
        One result record per processed or skipped event; filtered events
        produce no record
    """
    hubspot = hubspot or HubSpotClient(config.hubspot_token, config.hubspot_base_url)
    bullhorn = bullhorn or BullhornClient(config)

    results: list[dict[str, Any]] = []
    for event in events:
        if not isinstance(event, Mapping):
            logger.warning("resume_sync_event_not_object", item_type=type(event).__name__)
            continue

        event_context = {
            "subscriptionType": event.get("subscriptionType"),
            "propertyName": event.get("propertyName"),
            "objectId": event.get("objectId"),
        }
        logger.info(
            "resume_sync_event_received",
            subscription_type=event_context["subscriptionType"],
            property_name=event_context["propertyName"],
            object_id=event_context["objectId"],
        )

        if not should_process(event, config):
            logger.info("resume_sync_event_ignored", **event_context)
            continue

        try:
            result = await process_event(event, config, hubspot, bullhorn)
        except Exception as e:
            status = e.status if isinstance(e, ExternalAPIError) else None
            logger.exception("resume_sync_event_failed", **event_context, status=status)
            result = {**event_context, "error": str(e)}
            if status is not None:
                result["status"] = status

        results.append(result)

    return results


async def process_event(
    event: Mapping[str, Any],
    config: SyncConfig,
    hubspot: HubSpotClient,
    bullhorn: BullhornClient,
) -> dict[str, Any]:
    """
    Sync one tracked property change to the matching Bullhorn candidate.

    Raises:
        Exception: Anything outside the per-field branches (contact fetch,
            session acquisition, candidate lookup) propagates to the batch loop
    """
    contact_id = event.get("objectId")
    property_name = event.get("propertyName")

    if not contact_id:
        return {"contactId": contact_id, **_skipped("Missing contact id")}

    properties = await hubspot.get_contact(
        contact_id, ["email", config.resume_property, *config.category_fields]
    )
    email = properties.get("email")
    logger.info(
        "resume_sync_expertise_fields",
        contact_id=contact_id,
        property_name=property_name,
        expertise_fields={field: properties.get(field) for field in config.category_fields},
    )

    if not email:
        return {"contactId": contact_id, **_skipped("Missing email")}

    session = await bullhorn.get_session()
    candidate_id = await bullhorn.find_candidate_id_by_email(session, email)
    if not candidate_id:
        return {"contactId": contact_id, **_skipped("Candidate not found")}

    result: dict[str, Any] = {"contactId": contact_id, "candidateId": candidate_id}
    logger.info("resume_sync_processing_contact", contact_id=contact_id, candidate_id=candidate_id)

    if property_name in config.category_fields:
        result.update(
            await sync_category(
                bullhorn,
                session,
                contact_id,
                candidate_id,
                selected_category_name(properties, config.category_fields),
            )
        )

    if property_name == config.resume_property:
        result.update(
            await sync_resume(
                hubspot,
                bullhorn,
                config,
                session,
                contact_id,
                candidate_id,
                properties.get(config.resume_property),
            )
        )

    if "categoryUpdate" not in result and "resumeUpload" not in result:
        result.update(_skipped("No category or resume updates to apply"))

    return result


async def sync_category(
    bullhorn: BullhornClient,
    session: BullhornSession,
    contact_id: Any,
    candidate_id: int,
    category_name: str | None,
) -> dict[str, Any]:
    """Apply the selected category to the candidate; returns result fields."""
    if not category_name:
        return {"categoryUpdate": _skipped("Missing category")}

    fields: dict[str, Any] = {"categoryName": category_name}
    try:
        category_id = await bullhorn.find_category_id_by_name(session, category_name)
        if not category_id:
            fields["categoryUpdate"] = _skipped("Category not found")
            return fields

        fields["categoryId"] = category_id
        fields["categoryUpdate"] = await bullhorn.update_candidate_category(
            session, candidate_id, category_id
        )
    except ExternalAPIError as e:
        logger.error(
            "resume_sync_category_update_failed",
            contact_id=contact_id,
            candidate_id=candidate_id,
            category_name=category_name,
            error=str(e),
            status=e.status,
            body=e.body,
        )
        fields["categoryUpdate"] = _skipped("Category update failed", error=str(e))

    return fields


async def sync_resume(
    hubspot: HubSpotClient,
    bullhorn: BullhornClient,
    config: SyncConfig,
    session: BullhornSession,
    contact_id: Any,
    candidate_id: int,
    resume_value: Any,
) -> dict[str, Any]:
    """Resolve, download and upload the contact's resume; returns result fields."""
    if not resume_value:
        return {"resumeUpload": _skipped("Missing resume")}

    ref = parse_resume_value(resume_value)
    try:
        resolved = await hubspot.resolve_file(ref)
        if not resolved.url:
            return {"resumeUpload": _skipped("Resume file not found")}

        logger.info(
            "resume_sync_resolved_file",
            contact_id=contact_id,
            candidate_id=candidate_id,
            file_id=ref.file_id,
            file_name=resolved.file_name,
            file_url=resolved.url,
        )
        downloaded = await hubspot.download_file(resolved.url)

        # Expired signed URLs come back as an HTML login page
        if downloaded.is_html:
            logger.warning(
                "resume_sync_file_fetch_returned_html",
                contact_id=contact_id,
                candidate_id=candidate_id,
                file_id=ref.file_id,
                file_url=resolved.url,
                content_type=downloaded.content_type,
            )
            return {
                "resumeUpload": _skipped(
                    "HubSpot file fetch returned HTML", contentType=downloaded.content_type
                )
            }

        extension = resolve_resume_extension(
            file_name=resolved.file_name,
            file_url=resolved.url,
            content_type=downloaded.content_type,
        )
        content_type = downloaded.content_type
        if content_type.startswith("application/octet-stream"):
            content_type = guess_content_type(extension) or content_type

        name = await bullhorn.get_candidate_name(session, candidate_id)
        file_name = build_resume_file_name(
            candidate_id,
            name.first_name if name else None,
            name.last_name if name else None,
            extension,
        )

        upload_meta = {
            "candidateId": candidate_id,
            "fileName": file_name,
            "contentType": content_type,
            "fileType": config.bullhorn_file_type,
            "externalId": external_id_for_contact(contact_id),
        }
        logger.info("resume_sync_uploading_file", **upload_meta)

        upload = await bullhorn.upload_candidate_file(
            session,
            candidate_id,
            downloaded.content,
            file_name,
            content_type,
            contact_id,
        )
        logger.info("resume_sync_upload_complete", candidate_id=candidate_id, response=upload)
    except ExternalAPIError as e:
        logger.error(
            "resume_sync_resume_upload_failed",
            contact_id=contact_id,
            candidate_id=candidate_id,
            error=str(e),
            status=e.status,
            body=e.body,
        )
        return {"resumeUpload": _skipped("Resume upload failed", error=str(e))}

    return {"resumeUpload": upload, "resumeUploadMeta": upload_meta}
