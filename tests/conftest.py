"""Pytest configuration for tests."""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env.test file if it exists
env_test_path = Path(__file__).parent.parent / ".env.test"
if env_test_path.exists():
    load_dotenv(env_test_path)

# Set test environment variables before any imports (only if not already set)
os.environ.setdefault("RESUME_SYNC_API_KEY", "test_api_key")
os.environ.setdefault("HUBSPOT_PRIVATE_APP_TOKEN", "pat-test-token")
os.environ.setdefault("BULLHORN_CLIENT_ID", "client-id")
os.environ.setdefault("BULLHORN_CLIENT_SECRET", "client-secret")
os.environ.setdefault("BULLHORN_REFRESH_TOKEN", "refresh-token")
os.environ.setdefault("LOG_LEVEL", "INFO")


@pytest.fixture
def sync_config():
    """Default immutable sync configuration."""
    from tests.fixtures.factories import create_sync_config

    return create_sync_config()


@pytest.fixture
def mock_transport():
    """Create a queue-based HTTP transport."""
    from tests.fixtures.mock_clients import MockTransport

    transport = MockTransport()

    yield transport

    transport.reset()


@pytest.fixture
def bullhorn_auth(sync_config, mock_transport):
    """Bullhorn session manager wired to the mock transport, without hop delays."""
    from app.clients.bullhorn_auth import BullhornAuth

    auth = BullhornAuth(sync_config, transport=mock_transport)
    sleeps: list[float] = []

    async def no_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    auth._sleep = no_sleep
    auth.sleeps = sleeps
    return auth


@pytest.fixture
def bullhorn_session():
    """A valid Bullhorn REST session."""
    from app.clients.bullhorn_auth import BullhornSession

    return BullhornSession(
        bh_rest_token="bh-rest-token",
        rest_url="https://rest99.bullhornstaffing.com/rest-services/abc123/",
    )


@pytest.fixture
def mock_hubspot_client():
    """Create mocked HubSpot client."""
    from tests.fixtures.mock_clients import MockHubSpotClient

    mock_client = MockHubSpotClient()

    yield mock_client

    mock_client.reset()


@pytest.fixture
def mock_bullhorn_client():
    """Create mocked Bullhorn client."""
    from tests.fixtures.mock_clients import MockBullhornClient

    mock_client = MockBullhornClient()

    yield mock_client

    mock_client.reset()


@pytest.fixture
def patched_transport(monkeypatch, mock_transport):
    """Route every client's default transport through the mock transport."""
    monkeypatch.setattr("app.clients.hubspot.send_request", mock_transport)
    monkeypatch.setattr("app.clients.bullhorn.send_request", mock_transport)
    monkeypatch.setattr("app.clients.bullhorn_auth.send_request", mock_transport)

    monkeypatch.setattr("app.clients.bullhorn_auth.REDIRECT_DELAY_SECONDS", 0)

    return mock_transport
