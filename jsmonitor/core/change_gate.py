"""
Change detection by content hash.
A version is new unless a previously stored identifier already embeds its short hash.
"""

import hashlib
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from jsmonitor.models import GateDecision

SHORT_ID_LENGTH = 8


def compute_hash(content: Union[bytes, str]) -> str:
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def _as_utc(moment: Optional[datetime]) -> datetime:
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment


def format_iso_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2024-05-01T12:30:00.123Z."""
    moment = _as_utc(moment)
    return f"{moment.strftime('%Y-%m-%dT%H:%M:%S')}.{moment.microsecond // 1000:03d}Z"


def format_capture_timestamp(moment: Optional[datetime] = None) -> str:
    """The ISO form with ':' and '.' swapped for '-' so it is filename safe."""
    return format_iso_timestamp(moment).replace(':', '-').replace('.', '-')


class ChangeGate:

    def __init__(self, short_id_length: int = SHORT_ID_LENGTH):
        self.short_id_length = short_id_length

    def short_id(self, source_hash: str) -> str:
        return source_hash[:self.short_id_length]

    def is_known(self, short_id: str, known_identifiers: Iterable[str]) -> bool:
        return any(short_id in identifier for identifier in known_identifiers)

    def evaluate(
        self,
        content: Union[bytes, str],
        known_identifiers: Iterable[str],
        moment: Optional[datetime] = None
    ) -> GateDecision:
        source_hash = compute_hash(content)
        short_id = self.short_id(source_hash)

        if self.is_known(short_id, known_identifiers):
            return GateDecision(is_new=False, source_hash=source_hash, short_id=short_id)

        timestamp = format_capture_timestamp(moment)
        return GateDecision(
            is_new=True,
            source_hash=source_hash,
            short_id=short_id,
            version_id=f"{timestamp}_{short_id}"
        )
