"""
Monitor Runner - one monitoring pass over the main script asset.
Fetches the asset, gates on novelty, extracts static findings while live traffic is
captured, reconciles both and persists a redacted version record.
"""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from jsmonitor.analyzers.check_key import CheckKeyExtractor
from jsmonitor.analyzers.headers import StaticHeaderScanner
from jsmonitor.analyzers.reconciler import HeaderReconciler
from jsmonitor.collectors.asset_fetcher import AssetFetcher
from jsmonitor.collectors.base import BaseCapturer, NullCapturer
from jsmonitor.collectors.browser_capture import BrowserTrafficCapturer
from jsmonitor.core.change_gate import ChangeGate, format_iso_timestamp
from jsmonitor.core.config import Config, get_default_config
from jsmonitor.core.logger import logger
from jsmonitor.core.redactor import Redactor
from jsmonitor.models import (
    CapturedRequest, CheckKeyFinding, HeaderFinding,
    LatestSnapshot, RunOutcome, RunStatus, VersionRecord
)
from jsmonitor.services.datastore import DataStore
from jsmonitor.services.formatter import format_for_storage


class MonitorRunner:

    def __init__(
        self,
        config: Optional[Config] = None,
        fetcher: Optional[AssetFetcher] = None,
        capturer: Optional[BaseCapturer] = None,
        datastore: Optional[DataStore] = None,
        silent_mode: bool = False
    ):
        self.config = config or get_default_config()
        self.silent_mode = silent_mode

        self.fetcher = fetcher or AssetFetcher(self.config, silent_mode=silent_mode)
        self.capturer = capturer or self._default_capturer()
        self.datastore = datastore or DataStore.from_config(self.config.storage)

        self.gate = ChangeGate()
        self.extractor = CheckKeyExtractor()
        self.scanner = StaticHeaderScanner(vendor_prefix=self.config.vendor_prefix)
        self.reconciler = HeaderReconciler(vendor_prefix=self.config.vendor_prefix)
        self.redactor = Redactor()

    def _default_capturer(self) -> BaseCapturer:
        if self.config.browser.enabled:
            return BrowserTrafficCapturer(self.config, silent_mode=self.silent_mode)
        return NullCapturer(self.config, silent_mode=self.silent_mode)

    def analyze_static(self, content: str) -> Tuple[List[CheckKeyFinding], List[HeaderFinding]]:
        return self.extractor.extract(content), self.scanner.scan(content)

    def redact_requests(self, requests: List[CapturedRequest]) -> List[CapturedRequest]:
        return [
            CapturedRequest(url=r.url, method=r.method, headers=self.redactor.redact(r.headers))
            for r in requests
        ]

    async def run(self) -> RunOutcome:
        asset = await self.fetcher.fetch()

        moment = datetime.now(timezone.utc)
        decision = self.gate.evaluate(
            asset.content,
            self.datastore.list_asset_identifiers(),
            moment=moment
        )

        if not decision.is_new:
            if not self.silent_mode:
                logger.info(f"No changes detected (hash {decision.short_id})")
            return RunOutcome(status=RunStatus.UNCHANGED, source_hash=decision.source_hash)

        if not self.silent_mode:
            logger.info(f"New version detected: {decision.version_id}")

        capture_task = asyncio.ensure_future(self.capturer.capture(self.config.auth_token))

        text = asset.text
        loop = asyncio.get_running_loop()
        try:
            check_keys, static_headers = await loop.run_in_executor(None, self.analyze_static, text)
        except Exception:
            capture_task.cancel()
            raise

        requests = await capture_task
        headers = self.reconciler.reconcile(static_headers, requests)

        record = VersionRecord(
            version_id=decision.version_id,
            captured_at=format_iso_timestamp(moment),
            source_hash=decision.source_hash,
            original_filename=asset.filename,
            check_keys=check_keys,
            headers=headers,
            requests=self.redact_requests(requests)
        )

        # the asset copy is what the gate checks, so it goes last
        metadata_path = self.datastore.save_metadata(record)
        self.datastore.save_latest(LatestSnapshot.from_record(record))
        asset_path = self.datastore.save_asset(
            record,
            format_for_storage(asset.content, self.config.prettify_js)
        )

        if not self.silent_mode:
            logger.info(f"Check keys found: {len(check_keys)}")
            for finding in check_keys:
                logger.info(f"  [{finding.pattern.value}] {finding.value}")
            logger.info(f"Headers found: {len(headers)}")
            logger.info(f"API requests captured: {len(requests)}")
            logger.info(f"JS file saved to: {asset_path}")
            logger.info(f"Metadata saved to: {metadata_path}")

        return RunOutcome(
            status=RunStatus.NEW_VERSION,
            source_hash=decision.source_hash,
            record=record,
            asset_path=asset_path,
            metadata_path=metadata_path
        )

    def run_sync(self) -> RunOutcome:
        return asyncio.run(self.run())
