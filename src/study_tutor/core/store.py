"""Flat key-value persistence backed by a single JSON document.

The document is read in full on every access and rewritten in full on every
mutation, so concurrent writers follow last-write-wins semantics.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping

__all__ = [
    "StoreError",
    "KeyValueStore",
    "API_KEY",
    "THEME",
    "STUDY_HISTORY",
    "THEMES",
]

API_KEY = "api_key"
THEME = "theme"
STUDY_HISTORY = "study_history"

THEMES = ("light", "dark", "system")

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the local store cannot be read or written."""


class KeyValueStore:
    """Read-modify-write access to ``path`` as a JSON object."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> bool:
        data = self._read()
        if key not in data:
            return False
        del data[key]
        self._write(data)
        return True

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of the whole document."""

        return dict(self._read())

    def _read(self) -> dict[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StoreError(
                f"Failed to parse store file: {self._path}"
            ) from exc
        if not isinstance(payload, dict):
            raise StoreError(
                f"Store file must contain a JSON object: {self._path}"
            )
        return payload

    def _write(self, payload: Mapping[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        handle = tempfile.NamedTemporaryFile(
            "w",
            delete=False,
            encoding="utf-8",
            dir=str(self._path.parent),
            suffix=".tmp",
        )
        try:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
            handle.flush()
            os.fsync(handle.fileno())
        finally:
            handle.close()
        os.replace(handle.name, self._path)
        try:
            self._path.chmod(0o600)
        except PermissionError:  # pragma: no cover - depends on filesystem
            pass
        logger.debug("store written", extra={"keys": sorted(payload)})
