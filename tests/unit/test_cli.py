"""Unit tests for the command-line entry points."""

import json

import pytest

from app.cli import DEFAULT_EVENTS, _parse_args, load_payload, run_sync


def test_load_payload_defaults_to_sample_event():
    assert load_payload(None) == DEFAULT_EVENTS
    assert DEFAULT_EVENTS[0]["propertyName"] == "resume"


def test_load_payload_wraps_single_object(tmp_path):
    path = tmp_path / "event.json"
    path.write_text(json.dumps({"objectId": 5, "propertyName": "technical"}))

    assert load_payload(str(path)) == [{"objectId": 5, "propertyName": "technical"}]


def test_parse_args():
    args = _parse_args(["sync", "--payload", "events.json"])

    assert args.command == "sync"
    assert args.payload == "events.json"
    assert _parse_args(["check-token"]).command == "check-token"


@pytest.mark.asyncio
async def test_run_sync_prints_results(monkeypatch, capsys, tmp_path):
    path = tmp_path / "events.json"
    path.write_text(json.dumps([{"objectId": 9, "subscriptionType": "object.propertyChange"}]))

    async def fake_process_events(events, config, **kwargs):
        return [{"contactId": event["objectId"], "skipped": True} for event in events]

    monkeypatch.setattr("app.services.resume_sync.process_events", fake_process_events)

    exit_code = await run_sync(str(path))

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out) == {
        "results": [{"contactId": 9, "skipped": True}]
    }
