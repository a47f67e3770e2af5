"""Local key-value storage for canvas layouts."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from grid_canvas.widget_model import Widget

_LOGGER = logging.getLogger("GridCanvas")

DEFAULT_LAYOUT_KEY = "gridWidgets"


class LayoutPersistenceError(Exception):
    """Base error for layout storage failures."""


class LayoutDecodeError(LayoutPersistenceError):
    """Raised when a stored layout snapshot cannot be decoded."""


class LayoutWriteError(LayoutPersistenceError):
    """Raised when the storage file cannot be written."""


class JsonKeyValueStore:
    """String key/value pairs kept in a single JSON object on disk.

    A missing file is an empty store. An unreadable or non-object file is logged
    and also treated as empty; the next write replaces it.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def get_item(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        if value is None:
            return None
        return str(value)

    def set_item(self, key: str, value: str) -> None:
        state = self._read()
        state[key] = value
        self._write(state)

    def remove_item(self, key: str) -> None:
        state = self._read()
        if key not in state:
            return
        del state[key]
        self._write(state)

    def keys(self) -> List[str]:
        return sorted(self._read().keys())

    def _read(self) -> Dict[str, str]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            _LOGGER.warning("Failed to read storage file %s: %s", self._path, exc)
            return {}
        if not isinstance(raw, dict):
            _LOGGER.warning("Ignoring storage file %s: expected a JSON object", self._path)
            return {}
        return {str(key): value for key, value in raw.items() if isinstance(value, str)}

    def _write(self, state: Dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(state, indent=2, sort_keys=True), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            _LOGGER.warning("Failed to write storage file %s: %s", self._path, exc)
            raise LayoutWriteError(f"could not write {self._path}: {exc}") from exc


class LocalLayoutPersistence:
    """Stores the whole layout as a JSON array under one fixed key."""

    def __init__(self, kv_store: JsonKeyValueStore, key: str = DEFAULT_LAYOUT_KEY) -> None:
        self._kv = kv_store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load_layout(self) -> Optional[List[Widget]]:
        raw = self._kv.get_item(self._key)
        if raw is None:
            return None
        try:
            records = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise LayoutDecodeError(f"layout under {self._key!r} is not valid JSON: {exc}") from exc
        if not isinstance(records, list):
            raise LayoutDecodeError(f"layout under {self._key!r} is not a list")
        try:
            widgets = [Widget.from_record(record) for record in records]
        except ValueError as exc:
            raise LayoutDecodeError(str(exc)) from exc
        seen = set()
        for widget in widgets:
            if widget.id in seen:
                raise LayoutDecodeError(f"layout under {self._key!r} repeats widget id {widget.id}")
            seen.add(widget.id)
        return widgets

    def save_layout(self, widgets: Sequence[Widget]) -> None:
        payload = json.dumps([widget.to_record() for widget in widgets])
        self._kv.set_item(self._key, payload)

    def clear_layout(self) -> None:
        self._kv.remove_item(self._key)

    def stored_count(self) -> int:
        raw = self._kv.get_item(self._key)
        if raw is None:
            return 0
        try:
            records = json.loads(raw)
        except json.JSONDecodeError:
            return 0
        return len(records) if isinstance(records, list) else 0
