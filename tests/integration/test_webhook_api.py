"""Integration tests for the HubSpot webhook API endpoint."""

import base64
import json

import pytest
from fastapi import HTTPException

from tests.fixtures.mock_clients import json_response
from tests.fixtures.sample_payloads import (
    BULLHORN_CANDIDATE_SEARCH,
    BULLHORN_LOGIN,
    BULLHORN_TOKEN,
    HUBSPOT_PROPERTY_CHANGE_BATCH,
)


def create_webhook_request(body: bytes, api_key: str | None = None, header: str = "resume-sync-api-key"):
    """Helper to create a proper Starlette Request for webhook tests."""
    from starlette.requests import Request

    headers = []
    if api_key is not None:
        headers.append([header.lower().encode(), api_key.encode()])

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/webhooks/hubspot",
        "query_string": b"",
        "headers": headers,
        "client": ("127.0.0.1", 8000),
        "server": ("localhost", 8000),
    }

    async def receive():
        return {"type": "http.request", "body": body}

    return Request(scope, receive=receive)


@pytest.fixture
def captured_events(monkeypatch):
    """Replace the service layer and capture what it receives."""
    captured: list = []

    async def fake_process_events(events, config, **kwargs):
        captured.append((events, config))
        return [{"contactId": event.get("objectId"), "skipped": True} for event in events]

    monkeypatch.setattr("app.services.resume_sync.process_events", fake_process_events)
    return captured


class TestWebhookAuthorization:
    """Test shared-secret authorization and configuration checks."""

    @pytest.mark.asyncio
    async def test_missing_header_returns_401(self):
        from app.api.webhooks import handle_hubspot_webhook

        request = create_webhook_request(b"[]", None)

        with pytest.raises(HTTPException) as exc_info:
            await handle_hubspot_webhook(request)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Missing RESUME_SYNC_API_KEY header"

    @pytest.mark.asyncio
    async def test_invalid_key_returns_401(self):
        from app.api.webhooks import handle_hubspot_webhook

        request = create_webhook_request(b"[]", "wrong_key")

        with pytest.raises(HTTPException) as exc_info:
            await handle_hubspot_webhook(request)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid API key"

    @pytest.mark.asyncio
    async def test_unconfigured_key_returns_401(self, monkeypatch):
        from app.api.webhooks import handle_hubspot_webhook
        from app.core.config import settings

        monkeypatch.setattr(settings, "resume_sync_api_key", "")
        request = create_webhook_request(b"[]", "anything")

        with pytest.raises(HTTPException) as exc_info:
            await handle_hubspot_webhook(request)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_hubspot_token_returns_500(self, monkeypatch):
        from app.api.webhooks import handle_hubspot_webhook
        from app.core.config import settings

        monkeypatch.setattr(settings, "hubspot_private_app_token", "")
        request = create_webhook_request(b"[]", "test_api_key")

        with pytest.raises(HTTPException) as exc_info:
            await handle_hubspot_webhook(request)

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_underscore_header_alias_accepted(self, captured_events):
        from app.api.webhooks import handle_hubspot_webhook

        request = create_webhook_request(b"[]", "test_api_key", header="RESUME_SYNC_API_KEY")

        response = await handle_hubspot_webhook(request)

        assert response == {"message": "No events to process"}


class TestWebhookPayloads:
    """Test body parsing and dispatch."""

    @pytest.mark.asyncio
    async def test_invalid_json_returns_400(self):
        from app.api.webhooks import handle_hubspot_webhook

        request = create_webhook_request(b"not valid json {", "test_api_key")

        with pytest.raises(HTTPException) as exc_info:
            await handle_hubspot_webhook(request)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_list_is_noop(self, captured_events):
        from app.api.webhooks import handle_hubspot_webhook

        response = await handle_hubspot_webhook(create_webhook_request(b"[]", "test_api_key"))

        assert response == {"message": "No events to process"}
        assert captured_events == []

    @pytest.mark.asyncio
    async def test_batch_dispatched_to_service(self, captured_events):
        from app.api.webhooks import handle_hubspot_webhook
        from app.core.config import SyncConfig

        body = json.dumps(HUBSPOT_PROPERTY_CHANGE_BATCH).encode()

        response = await handle_hubspot_webhook(create_webhook_request(body, "test_api_key"))

        assert response["results"] == [
            {"contactId": 42, "skipped": True},
            {"contactId": 42, "skipped": True},
            {"contactId": 43, "skipped": True},
        ]
        events, config = captured_events[0]
        assert events[1]["propertyName"] == "technical"
        assert isinstance(config, SyncConfig)
        assert config.hubspot_token == "pat-test-token"

    @pytest.mark.asyncio
    async def test_single_object_wrapped_in_list(self, captured_events):
        from app.api.webhooks import handle_hubspot_webhook

        body = json.dumps(HUBSPOT_PROPERTY_CHANGE_BATCH[0]).encode()

        response = await handle_hubspot_webhook(create_webhook_request(body, "test_api_key"))

        assert len(response["results"]) == 1

    @pytest.mark.asyncio
    async def test_base64_envelope_decoded(self, captured_events):
        from app.api.webhooks import handle_hubspot_webhook

        inner = base64.b64encode(json.dumps(HUBSPOT_PROPERTY_CHANGE_BATCH[:2]).encode()).decode()
        body = json.dumps({"isBase64Encoded": True, "body": inner}).encode()

        response = await handle_hubspot_webhook(create_webhook_request(body, "test_api_key"))

        assert len(response["results"]) == 2

    @pytest.mark.asyncio
    async def test_bad_base64_returns_400(self):
        from app.api.webhooks import handle_hubspot_webhook

        body = json.dumps({"isBase64Encoded": True, "body": "%%%not-base64"}).encode()

        with pytest.raises(HTTPException) as exc_info:
            await handle_hubspot_webhook(create_webhook_request(body, "test_api_key"))

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_mixed_batch_still_dispatched(self, captured_events):
        """Test that an oddly typed item does not turn the batch into a 400."""
        from app.api.webhooks import handle_hubspot_webhook

        body = json.dumps(
            [
                {"subscriptionType": "object.propertyChange", "objectId": 1, "propertyName": "resume"},
                {"subscriptionType": "x", "propertyName": 5},
                None,
            ]
        ).encode()

        response = await handle_hubspot_webhook(create_webhook_request(body, "test_api_key"))

        assert response["results"][0] == {"contactId": 1, "skipped": True}
        events, _ = captured_events[0]
        assert len(events) == 2
        assert events[1]["propertyName"] == 5

    @pytest.mark.asyncio
    async def test_null_body_is_noop(self, captured_events):
        from app.api.webhooks import handle_hubspot_webhook

        response = await handle_hubspot_webhook(create_webhook_request(b"null", "test_api_key"))

        assert response == {"message": "No events to process"}
        assert captured_events == []


@pytest.mark.asyncio
async def test_webhook_end_to_end_with_http_mocks(patched_transport):
    """Test the full path from request to Bullhorn lookup through the HTTP layer."""
    from app.api.webhooks import handle_hubspot_webhook

    patched_transport.add_response(
        "GET",
        "/crm/v3/objects/contacts/42",
        json_response(200, {"id": "42", "properties": {"email": "jane.smith@example.com"}}),
    )
    patched_transport.add_response("POST", "/oauth/token", json_response(200, BULLHORN_TOKEN))
    patched_transport.add_response("GET", "/rest-services/login", json_response(200, BULLHORN_LOGIN))
    patched_transport.add_response(
        "GET", "search/Candidate", json_response(200, BULLHORN_CANDIDATE_SEARCH)
    )

    body = json.dumps(
        [
            {"subscriptionType": "object.propertyChange", "objectId": 42, "propertyName": "resume"},
            {"subscriptionType": "object.propertyChange", "objectId": 42, "propertyName": "phone"},
        ]
    ).encode()

    response = await handle_hubspot_webhook(create_webhook_request(body, "test_api_key"))

    assert response == {
        "results": [
            {
                "contactId": 42,
                "candidateId": 7001,
                "resumeUpload": {"skipped": True, "reason": "Missing resume"},
            }
        ]
    }


def test_non_post_method_returns_405():
    """Test that routing rejects non-POST methods."""
    from fastapi.testclient import TestClient

    from app.main import app

    client = TestClient(app)

    response = client.get("/webhooks/hubspot")

    assert response.status_code == 405


class TestWebhookRateLimiting:
    """Test rate limiting on webhook endpoint."""

    def test_webhook_endpoint_rate_limiting(self):
        """Smoke test to ensure rate limiter is configured."""
        from app.api.webhooks import limiter

        assert limiter is not None
        assert hasattr(limiter, "limit")
