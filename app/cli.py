"""Command-line entry points for running the sync locally."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from app.core.errors import ResumeSyncError

DEFAULT_EVENTS: list[dict[str, Any]] = [
    {
        "subscriptionType": "object.propertyChange",
        "objectId": 100133051,
        "propertyName": "resume",
    }
]


def load_payload(payload_path: str | None) -> list[dict[str, Any]]:
    """Read events from a JSON file, or return the sample resume event."""
    if not payload_path:
        return DEFAULT_EVENTS

    raw = json.loads(Path(payload_path).expanduser().resolve().read_text(encoding="utf-8"))
    return raw if isinstance(raw, list) else [raw]


async def run_sync(payload_path: str | None) -> int:
    from app.core.config import SyncConfig, settings
    from app.services.resume_sync import process_events

    if not settings.hubspot_private_app_token:
        print("Missing HUBSPOT_PRIVATE_APP_TOKEN", file=sys.stderr)
        return 1

    events = load_payload(payload_path)
    results = await process_events(events, SyncConfig.from_settings(settings))
    print(json.dumps({"results": results}, indent=2, default=str))
    return 0


async def run_check_token() -> int:
    from app.clients.bullhorn_auth import BullhornAuth
    from app.core.config import SyncConfig, settings

    auth = BullhornAuth(SyncConfig.from_settings(settings))
    try:
        payload = await auth.check_refresh_token()
    except ResumeSyncError as e:
        print(f"Refresh token check failed: {e}", file=sys.stderr)
        return 1

    print("Refresh token is valid.")
    if payload.get("access_token"):
        print("Access token acquired.")
    if payload.get("expires_in"):
        print(f"Access token expires in {payload['expires_in']} seconds.")
    rotated = payload.get("refresh_token")
    if rotated and rotated != settings.bullhorn_refresh_token:
        print("Refresh token rotated; update BULLHORN_REFRESH_TOKEN.")
    return 0


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="HubSpot to Bullhorn resume sync")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Run webhook events through the sync")
    sync_parser.add_argument(
        "-p",
        "--payload",
        default=None,
        help="JSON file with one event or a list of events (default: sample resume event)",
    )

    subparsers.add_parser("check-token", help="Validate BULLHORN_REFRESH_TOKEN")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    args = _parse_args(argv)

    from app.core.logging import setup_logging

    setup_logging()

    if args.command == "sync":
        return asyncio.run(run_sync(args.payload))
    return asyncio.run(run_check_token())


if __name__ == "__main__":
    raise SystemExit(main())
