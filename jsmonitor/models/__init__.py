"""
Data models for the monitoring pipeline.
Defines the findings produced from one asset version and the records persisted for it.
"""

from dataclasses import dataclass, field
from typing import List, Mapping, Optional
from enum import Enum
from types import MappingProxyType
from urllib.parse import urlparse


class CheckKeyPattern(Enum):
    ARRAY_REVERSE = "array_reverse"
    PUSH = "push"
    OTHER = "other"


class RunStatus(Enum):
    NEW_VERSION = "new_version"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class CheckKeyFinding:
    pattern: CheckKeyPattern
    value: str

    def to_dict(self) -> dict:
        return {
            "pattern": self.pattern.value,
            "value": self.value
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CheckKeyFinding":
        return cls(pattern=CheckKeyPattern(data["pattern"]), value=data["value"])


@dataclass(frozen=True)
class HeaderFinding:
    name: str
    description: str

    @property
    def key(self) -> str:
        return self.name.lower()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HeaderFinding":
        return cls(name=data["name"], description=data.get("description", ""))


@dataclass(frozen=True)
class CapturedRequest:
    url: str
    method: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # read-only copy, detached from the caller's mapping
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def path(self) -> str:
        return urlparse(self.url).path or "/"

    def get_header(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for header_name, value in self.headers.items():
            if header_name.lower() == wanted:
                return value
        return None

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "method": self.method,
            "headers": dict(self.headers)
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CapturedRequest":
        return cls(url=data["url"], method=data["method"], headers=data.get("headers", {}))


@dataclass(frozen=True)
class FetchedAsset:
    filename: str
    content: bytes
    url: str = ""

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class GateDecision:
    is_new: bool
    source_hash: str
    short_id: str
    version_id: Optional[str] = None


@dataclass(frozen=True)
class VersionRecord:
    version_id: str
    captured_at: str
    source_hash: str
    original_filename: str
    check_keys: List[CheckKeyFinding] = field(default_factory=list)
    headers: List[HeaderFinding] = field(default_factory=list)
    requests: List[CapturedRequest] = field(default_factory=list)

    @property
    def asset_filename(self) -> str:
        return f"{self.version_id}_{self.original_filename.replace('/', '_')}"

    @property
    def metadata_filename(self) -> str:
        return f"{self.version_id}_metadata.json"

    def to_dict(self) -> dict:
        return {
            "timestamp": self.captured_at,
            "version_id": self.version_id,
            "filename": self.original_filename,
            "hash": self.source_hash,
            "check_keys": [k.to_dict() for k in self.check_keys],
            "headers": [h.to_dict() for h in self.headers],
            "api_requests": [r.to_dict() for r in self.requests]
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VersionRecord":
        return cls(
            version_id=data["version_id"],
            captured_at=data["timestamp"],
            source_hash=data["hash"],
            original_filename=data["filename"],
            check_keys=[CheckKeyFinding.from_dict(k) for k in data.get("check_keys", [])],
            headers=[HeaderFinding.from_dict(h) for h in data.get("headers", [])],
            requests=[CapturedRequest.from_dict(r) for r in data.get("api_requests", [])]
        )


@dataclass(frozen=True)
class LatestSnapshot:
    captured_at: str
    js_file: str
    source_hash: str
    check_keys: List[CheckKeyFinding] = field(default_factory=list)
    header_names: List[str] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: VersionRecord) -> "LatestSnapshot":
        return cls(
            captured_at=record.captured_at,
            js_file=record.asset_filename,
            source_hash=record.source_hash,
            check_keys=list(record.check_keys),
            header_names=[h.name for h in record.headers]
        )

    def to_dict(self) -> dict:
        return {
            "timestamp": self.captured_at,
            "js_file": self.js_file,
            "hash": self.source_hash,
            "check_keys": [k.to_dict() for k in self.check_keys],
            "headers": list(self.header_names)
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LatestSnapshot":
        return cls(
            captured_at=data["timestamp"],
            js_file=data["js_file"],
            source_hash=data["hash"],
            check_keys=[CheckKeyFinding.from_dict(k) for k in data.get("check_keys", [])],
            header_names=list(data.get("headers", []))
        )


@dataclass
class RunOutcome:
    status: RunStatus
    source_hash: str
    record: Optional[VersionRecord] = None
    asset_path: Optional[str] = None
    metadata_path: Optional[str] = None

    @property
    def is_new_version(self) -> bool:
        return self.status == RunStatus.NEW_VERSION
