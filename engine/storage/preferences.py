"""
Durable key/value preferences.

A small string-to-string store with an explicit persist() step, used
for settings and for the seen-dialogue/checkpoint records. Values set
but not persisted are lost on restart.

Provides:
- MemoryPreferences: in-process store, persist() snapshots a durable copy
- JsonPreferences: JSON file with checksum validation and atomic writes
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class PreferencesError(OSError):
    """Raised when preferences cannot be written to durable storage."""


class Preferences(ABC):
    """
    Key/value storage contract.

    get() never fails: missing keys return the default.
    """

    def __init__(self):
        self._values: dict[str, str] = {}

    def get(self, key: str, default: str | None = "") -> str | None:
        """Get a stored value, or default if absent."""
        value = self._values.get(key)
        if value is None:
            return default
        return value

    def set(self, key: str, value: str) -> None:
        """Set a value in memory (call persist() to make it durable)."""
        self._values[key] = str(value)

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def has(self, key: str) -> bool:
        return key in self._values

    def keys(self) -> list[str]:
        return sorted(self._values)

    @abstractmethod
    def persist(self) -> None:
        """Write all values to durable storage."""
        pass


class MemoryPreferences(Preferences):
    """
    Preferences kept in process memory.

    persist() copies the working values into a durable snapshot;
    reopen() returns a fresh store seeded from that snapshot, which is
    how tests simulate a restart.
    """

    def __init__(self, durable: dict[str, str] | None = None):
        super().__init__()
        self._durable: dict[str, str] = dict(durable or {})
        self._values = dict(self._durable)
        self.persist_count = 0

    def persist(self) -> None:
        self._durable = dict(self._values)
        self.persist_count += 1

    @property
    def durable(self) -> dict[str, str]:
        return dict(self._durable)

    def reopen(self) -> MemoryPreferences:
        return MemoryPreferences(self._durable)


class JsonPreferences(Preferences):
    """
    Preferences stored in a JSON file.

    File layout:
        {"values": {...}, "checksum": "<base64 sha256 of values>"}

    A missing, unreadable or tampered file loads as empty. persist()
    writes a temporary file next to the target and renames it over the
    original, so the file on disk is always either the old or the new
    version.
    """

    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        self._values = self._load()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Preferences file unreadable, starting empty: {self.path} ({e})")
            return {}

        values = data.get('values') if isinstance(data, dict) else None
        if not isinstance(values, dict):
            logger.warning(f"Preferences file has no values table: {self.path}")
            return {}

        checksum = data.get('checksum')
        if checksum and checksum != self._calculate_checksum(values):
            logger.warning(f"Preferences checksum mismatch, starting empty: {self.path}")
            return {}

        return {str(k): str(v) for k, v in values.items() if v is not None}

    def persist(self) -> None:
        payload = {
            'values': self._values,
            'checksum': self._calculate_checksum(self._values),
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(payload, f, indent=2, sort_keys=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PreferencesError(f"Could not write preferences to {self.path}: {e}") from e

    def _calculate_checksum(self, values: dict) -> str:
        """Calculate checksum for stored values."""
        json_str = json.dumps(values, sort_keys=True, separators=(',', ':'))
        hash_bytes = hashlib.sha256(json_str.encode('utf-8')).digest()
        return base64.b64encode(hash_bytes).decode('ascii')
