"""
DataStore service for persisting and loading monitor output.
Versioned asset copies and metadata records live in two sibling directories; the
rolling latest snapshot sits beside the metadata records.
"""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

from jsmonitor.core.config import StorageConfig
from jsmonitor.core.logger import logger
from jsmonitor.models import LatestSnapshot, VersionRecord


class DataStore:

    LATEST_FILE = "latest.json"
    METADATA_SUFFIX = "_metadata.json"

    def __init__(
        self,
        output_dir: str = "data",
        js_dir_name: str = "fansly-js",
        metadata_dir_name: str = "metadata"
    ):
        self.base_dir = Path(output_dir)
        self.js_dir = self.base_dir / js_dir_name
        self.metadata_dir = self.base_dir / metadata_dir_name

    @classmethod
    def from_config(cls, storage: StorageConfig) -> "DataStore":
        return cls(
            output_dir=storage.output_dir,
            js_dir_name=storage.js_dir_name,
            metadata_dir_name=storage.metadata_dir_name
        )

    @property
    def latest_path(self) -> Path:
        return self.metadata_dir / self.LATEST_FILE

    def _ensure_dirs(self):
        self.js_dir.mkdir(parents=True, exist_ok=True)
        self.metadata_dir.mkdir(parents=True, exist_ok=True)

    def _atomic_write(self, path: Path, data: bytes):
        self._ensure_dirs()

        fd, temp_path = tempfile.mkstemp(
            suffix='.tmp',
            prefix=f'.{path.name}_',
            dir=str(path.parent)
        )

        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)

            shutil.move(temp_path, str(path))
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    def _write_json(self, path: Path, data: dict):
        self._atomic_write(path, json.dumps(data, indent=2).encode('utf-8'))

    def _read_json(self, path: Path) -> Optional[dict]:
        if not path.exists():
            return None

        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {path}: {e}")
            return None

    def list_asset_identifiers(self) -> List[str]:
        if not self.js_dir.exists():
            return []
        return sorted(
            item.name for item in self.js_dir.iterdir()
            if item.is_file() and not item.name.startswith(".")
        )

    def save_asset(self, record: VersionRecord, content: bytes) -> str:
        filepath = self.js_dir / record.asset_filename
        self._atomic_write(filepath, content)
        return str(filepath)

    def save_metadata(self, record: VersionRecord) -> str:
        filepath = self.metadata_dir / record.metadata_filename
        self._write_json(filepath, record.to_dict())
        return str(filepath)

    def save_latest(self, snapshot: LatestSnapshot) -> str:
        self._write_json(self.latest_path, snapshot.to_dict())
        return str(self.latest_path)

    def load_latest(self) -> Optional[LatestSnapshot]:
        data = self._read_json(self.latest_path)
        if data is None:
            return None
        return LatestSnapshot.from_dict(data)

    def list_versions(self) -> List[str]:
        """Version ids with a metadata record, oldest first."""
        if not self.metadata_dir.exists():
            return []

        versions = []
        for item in self.metadata_dir.iterdir():
            if item.is_file() and item.name.endswith(self.METADATA_SUFFIX):
                versions.append(item.name[:-len(self.METADATA_SUFFIX)])
        return sorted(versions)

    def load_version(self, version_id: str) -> Optional[VersionRecord]:
        data = self._read_json(self.metadata_dir / f"{version_id}{self.METADATA_SUFFIX}")
        if data is None:
            return None
        return VersionRecord.from_dict(data)
