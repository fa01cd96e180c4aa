"""Shared test fixtures for the JS monitor tests."""

from __future__ import annotations

from typing import List, Optional

import pytest

from jsmonitor.collectors.base import BaseCapturer
from jsmonitor.core.config import Config, get_default_config
from jsmonitor.models import (
    CapturedRequest, CheckKeyFinding, CheckKeyPattern, FetchedAsset, HeaderFinding, VersionRecord
)
from jsmonitor.services.datastore import DataStore


ARRAY_REVERSE_SOURCE = (
    'var a=1;function n(){this.checkKey_=["abc","xyz"].reverse().join("-")+"-suffix";}'
)

PUSH_SOURCE = (
    'function t(){let e=[];e.push("session"),e.push("client"),e.push("ts"),'
    'this.checkKey_=e.join("-")}'
)

HEADER_SOURCE = (
    'const h={"fansly-client-check":c};'
    'const defs=[{key:"fansly-client-ts",value:1},{key:"fansly-new-thing"},{key:"x-other"}];'
)


class FakeFetcher:
    """Stands in for AssetFetcher; returns fixed content or raises."""

    def __init__(self, content: bytes = b"", filename: str = "main.abc123.js", error: Optional[Exception] = None):
        self.content = content
        self.filename = filename
        self.error = error
        self.calls = 0

    async def fetch(self) -> FetchedAsset:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return FetchedAsset(
            filename=self.filename,
            content=self.content,
            url=f"https://fansly.com/{self.filename}"
        )


class FakeCapturer(BaseCapturer):
    """Returns canned requests, or fails inside _capture to exercise isolation."""

    name = "fake"

    def __init__(self, config: Config, requests: Optional[List[CapturedRequest]] = None, error: Optional[Exception] = None):
        super().__init__(config, silent_mode=True)
        self.requests = requests or []
        self.error = error
        self.tokens: List[Optional[str]] = []

    async def _capture(self, token: Optional[str]) -> List[CapturedRequest]:
        self.tokens.append(token)
        if self.error is not None:
            raise self.error
        return list(self.requests)


@pytest.fixture
def config(tmp_path) -> Config:
    """Default config pointed at a temporary output directory."""
    cfg = get_default_config()
    cfg.storage.output_dir = str(tmp_path / "data")
    return cfg


@pytest.fixture
def datastore(config) -> DataStore:
    return DataStore.from_config(config.storage)


@pytest.fixture
def sample_record() -> VersionRecord:
    return VersionRecord(
        version_id="2024-05-01T10-00-00-000Z_0badc0de",
        captured_at="2024-05-01T10:00:00.000Z",
        source_hash="0badc0de" + "0" * 56,
        original_filename="main.abc123.js",
        check_keys=[CheckKeyFinding(CheckKeyPattern.PUSH, "session-client-ts")],
        headers=[
            HeaderFinding("fansly-client-check", "Client check hash value"),
            HeaderFinding("fansly-client-ts", "Captured from GET request to /api/v1/account"),
        ],
        requests=[
            CapturedRequest(
                url="https://apiv3.fansly.com/api/v1/account",
                method="GET",
                headers={"fansly-client-check": "[REDACTED]", "accept": "*/*"}
            )
        ]
    )
