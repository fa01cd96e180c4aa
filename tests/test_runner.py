"""End-to-end tests of one monitoring pass with fake network and browser."""

from __future__ import annotations

import hashlib
import json
import os
from datetime import datetime

import pytest

from jsmonitor.core.errors import AssetNotFoundError, FetchError
from jsmonitor.core.logger import logger
from jsmonitor.core.redactor import REDACTED
from jsmonitor.models import CapturedRequest, CheckKeyFinding, CheckKeyPattern, HeaderFinding, RunStatus
from jsmonitor.pipelines.monitor import MonitorRunner

from conftest import HEADER_SOURCE, PUSH_SOURCE, FakeCapturer, FakeFetcher


API_URL = "https://apiv3.fansly.com/api/v1/account/me"


def _runner(config, datastore, content: bytes = b"", requests=None, fetch_error=None, capture_error=None):
    fetcher = FakeFetcher(content=content, error=fetch_error)
    capturer = FakeCapturer(config, requests=requests, error=capture_error)
    return MonitorRunner(config, fetcher=fetcher, capturer=capturer, datastore=datastore)


def test_push_and_reference_header_without_traffic(config, datastore):
    """Push recipe plus one reference literal and no requests."""
    source = PUSH_SOURCE + ';h["fansly-client-check"]=v;'
    outcome = _runner(config, datastore, source.encode()).run_sync()

    assert outcome.status == RunStatus.NEW_VERSION
    assert outcome.record.check_keys == [CheckKeyFinding(CheckKeyPattern.PUSH, "session-client-ts")]
    assert outcome.record.headers == [HeaderFinding("fansly-client-check", "Client check hash value")]
    assert outcome.record.requests == []


def test_preflight_only_traffic(config, datastore):
    """A preflight listing contributes vendor names only."""
    request = CapturedRequest(
        url=API_URL,
        method="OPTIONS",
        headers={"access-control-request-headers": "fansly-client-id, x-other"}
    )
    outcome = _runner(config, datastore, b"var a=1;", requests=[request]).run_sync()

    record = outcome.record
    assert record.check_keys == []
    assert [h.name for h in record.headers] == ["fansly-client-id"]
    assert "access-control-request-headers" in record.headers[0].description
    assert record.requests == [request]


def test_new_version_persists_everything(config, datastore):
    """Asset copy, metadata and latest snapshot are written for a new version."""
    source = PUSH_SOURCE + HEADER_SOURCE
    request = CapturedRequest(
        url=API_URL,
        method="GET",
        headers={
            "authorization": "Bearer live-token",
            "fansly-client-id": "123",
            "fansly-extra-hdr": "1",
        }
    )
    outcome = _runner(config, datastore, source.encode(), requests=[request]).run_sync()

    assert outcome.is_new_version
    record = outcome.record
    assert [h.name for h in record.headers] == [
        "fansly-client-check",
        "fansly-client-ts",
        "fansly-new-thing",
        "fansly-client-id",
        "fansly-extra-hdr",
    ]
    assert record.requests[0].headers == {
        "authorization": REDACTED,
        "fansly-client-id": "123",
        "fansly-extra-hdr": "1",
    }

    with open(outcome.asset_path, encoding="utf-8") as f:
        assert f.read() == source
    assert os.path.basename(outcome.asset_path) == f"{record.version_id}_main.abc123.js"
    assert record.version_id.endswith("_" + outcome.source_hash[:8])

    with open(outcome.metadata_path, encoding="utf-8") as f:
        metadata = json.load(f)
    assert "live-token" not in json.dumps(metadata)

    latest = datastore.load_latest()
    assert latest.js_file == record.asset_filename
    assert latest.header_names == [h.name for h in record.headers]


def test_token_passed_to_capturer(config, datastore):
    """The configured token reaches the capturer."""
    config.auth_token = "tok"
    runner = _runner(config, datastore, b"x")
    runner.run_sync()
    assert runner.capturer.tokens == ["tok"]


def test_unchanged_content_is_noop(config, datastore):
    """A second run over the same bytes records nothing new."""
    first = _runner(config, datastore, PUSH_SOURCE.encode()).run_sync()
    runner = _runner(config, datastore, PUSH_SOURCE.encode())
    second = runner.run_sync()

    assert first.status == RunStatus.NEW_VERSION
    assert second.status == RunStatus.UNCHANGED
    assert second.record is None
    assert second.source_hash == first.source_hash
    assert runner.capturer.tokens == []
    assert len(datastore.list_versions()) == 1


@pytest.mark.parametrize("error", [
    FetchError("https://fansly.com", "Timeout"),
    AssetNotFoundError("https://fansly.com"),
])
def test_fatal_fetch_errors_stop_before_persistence(config, datastore, error):
    """Fetch failures propagate and nothing is written."""
    runner = _runner(config, datastore, fetch_error=error)
    with pytest.raises(type(error)):
        runner.run_sync()
    assert datastore.list_versions() == []
    assert datastore.list_asset_identifiers() == []
    assert datastore.load_latest() is None


def test_capture_failure_keeps_static_findings(config, datastore):
    """A browser failure degrades to static-only findings."""
    outcome = _runner(
        config, datastore, (PUSH_SOURCE + HEADER_SOURCE).encode(),
        capture_error=RuntimeError("browser crashed")
    ).run_sync()

    assert outcome.is_new_version
    assert outcome.record.requests == []
    assert [h.name for h in outcome.record.headers] == [
        "fansly-client-check", "fansly-client-ts", "fansly-new-thing"
    ]
    assert outcome.record.check_keys[0].value == "session-client-ts"


def test_prettify_failure_saves_raw(config, datastore, monkeypatch):
    """When beautifying fails the raw text is stored."""
    import jsmonitor.services.formatter as formatter

    def broken(content):
        raise ValueError("cannot beautify")

    monkeypatch.setattr(formatter, "prettify_js", broken)
    config.prettify_js = True

    outcome = _runner(config, datastore, b"var a=1;").run_sync()
    with open(outcome.asset_path, encoding="utf-8") as f:
        assert f.read() == "var a=1;"


def test_prettify_applies_to_copy_only(config, datastore):
    """Extraction runs on raw text even when the stored copy is beautified."""
    config.prettify_js = True
    outcome = _runner(config, datastore, PUSH_SOURCE.encode()).run_sync()

    with open(outcome.asset_path, encoding="utf-8") as f:
        stored = f.read()
    assert stored != PUSH_SOURCE
    assert outcome.record.check_keys == [CheckKeyFinding(CheckKeyPattern.PUSH, "session-client-ts")]


def test_failed_metadata_write_leaves_version_unrecorded(config, datastore, monkeypatch):
    """If the record cannot be written the same bytes are treated as new next run."""
    def broken(record):
        raise OSError("disk full")

    monkeypatch.setattr(datastore, "save_metadata", broken)
    with pytest.raises(OSError):
        _runner(config, datastore, PUSH_SOURCE.encode()).run_sync()
    assert datastore.list_asset_identifiers() == []
    assert datastore.load_latest() is None

    monkeypatch.undo()
    outcome = _runner(config, datastore, PUSH_SOURCE.encode()).run_sync()
    assert outcome.status == RunStatus.NEW_VERSION
    assert datastore.list_versions() == [outcome.record.version_id]


def test_failed_latest_write_leaves_version_unrecorded(config, datastore, monkeypatch):
    """The asset copy that marks a version as seen is only written after the snapshot."""
    def broken(snapshot):
        raise OSError("disk full")

    monkeypatch.setattr(datastore, "save_latest", broken)
    with pytest.raises(OSError):
        _runner(config, datastore, PUSH_SOURCE.encode()).run_sync()
    assert datastore.list_asset_identifiers() == []


@pytest.mark.parametrize("prettify", [False, True])
def test_undecodable_asset_stored_verbatim(config, datastore, prettify):
    """Bytes that are not UTF-8 reach disk unchanged."""
    raw = b"var a='\xff\xfe';"
    config.prettify_js = prettify
    outcome = _runner(config, datastore, raw).run_sync()

    with open(outcome.asset_path, "rb") as f:
        assert f.read() == raw
    assert outcome.source_hash == hashlib.sha256(raw).hexdigest()


def test_record_timestamp_is_iso(config, datastore):
    """The stored timestamp is ISO-8601 and the version id is its filename-safe form."""
    outcome = _runner(config, datastore, b"var a=1;").run_sync()
    record = outcome.record

    datetime.strptime(record.captured_at, "%Y-%m-%dT%H:%M:%S.%fZ")
    safe = record.captured_at.replace(":", "-").replace(".", "-")
    assert record.version_id == f"{safe}_{outcome.source_hash[:8]}"

    with open(outcome.metadata_path, encoding="utf-8") as f:
        assert json.load(f)["timestamp"] == record.captured_at
    assert datastore.load_latest().captured_at == record.captured_at


def test_runner_leaves_log_level_alone(config, datastore):
    """Constructing a silent runner does not change the shared logger."""
    before = logger.level
    runner = MonitorRunner(
        config, fetcher=FakeFetcher(), capturer=FakeCapturer(config),
        datastore=datastore, silent_mode=True
    )
    assert runner.silent_mode
    assert logger.level == before
