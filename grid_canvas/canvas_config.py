"""Configuration helpers for the grid canvas."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from grid_canvas.geometry import Size, WidgetGeometry

SETTINGS_ENV_VAR = "GRID_CANVAS_SETTINGS"
STORAGE_ENV_VAR = "GRID_CANVAS_STORAGE_FILE"
SETTINGS_FILENAME = "grid_canvas_settings.json"
STORAGE_FILENAME = "storage.json"


@dataclass(frozen=True)
class CanvasSettings:
    """Values used to bootstrap the canvas window."""

    grid_size: int = 20
    min_width: int = 100
    min_height: int = 60
    default_x: int = 20
    default_y: int = 20
    default_width: int = 200
    default_height: int = 120
    canvas_height: int = 600
    storage_key: str = "gridWidgets"
    gesture_timeout_seconds: float = 10.0
    log_retention: int = 5
    debug: bool = False

    @property
    def min_size(self) -> Size:
        return Size(self.min_width, self.min_height)

    @property
    def default_geometry(self) -> WidgetGeometry:
        return WidgetGeometry(
            x=self.default_x,
            y=self.default_y,
            width=max(self.min_width, self.default_width),
            height=max(self.min_height, self.default_height),
        )


def _coerce_int(raw: Any, fallback: int, *, minimum: int) -> int:
    if raw is None or isinstance(raw, bool):
        return fallback
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return fallback
    return max(minimum, value)


def _coerce_float(raw: Any, fallback: float, *, minimum: float) -> float:
    if raw is None or isinstance(raw, bool):
        return fallback
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return fallback
    return max(minimum, value)


def load_canvas_settings(settings_path: Path) -> CanvasSettings:
    """Read canvas settings from JSON, falling back to defaults per field."""
    defaults = CanvasSettings()
    try:
        raw = settings_path.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return defaults

    try:
        data: Dict[str, Any] = json.loads(raw)
    except json.JSONDecodeError:
        return defaults
    if not isinstance(data, dict):
        return defaults

    storage_key = data.get("storage_key", defaults.storage_key)
    if not isinstance(storage_key, str) or not storage_key.strip():
        storage_key = defaults.storage_key

    return CanvasSettings(
        grid_size=_coerce_int(data.get("grid_size"), defaults.grid_size, minimum=1),
        min_width=_coerce_int(data.get("min_width"), defaults.min_width, minimum=1),
        min_height=_coerce_int(data.get("min_height"), defaults.min_height, minimum=1),
        default_x=_coerce_int(data.get("default_x"), defaults.default_x, minimum=0),
        default_y=_coerce_int(data.get("default_y"), defaults.default_y, minimum=0),
        default_width=_coerce_int(data.get("default_width"), defaults.default_width, minimum=1),
        default_height=_coerce_int(data.get("default_height"), defaults.default_height, minimum=1),
        canvas_height=_coerce_int(data.get("canvas_height"), defaults.canvas_height, minimum=1),
        storage_key=storage_key.strip(),
        gesture_timeout_seconds=_coerce_float(
            data.get("gesture_timeout_seconds"), defaults.gesture_timeout_seconds, minimum=0.5
        ),
        log_retention=_coerce_int(data.get("log_retention"), defaults.log_retention, minimum=1),
        debug=bool(data.get("debug", defaults.debug)),
    )


def resolve_settings_path(arg_path: Optional[str]) -> Path:
    if arg_path:
        return Path(arg_path).expanduser().resolve()
    env_override = os.getenv(SETTINGS_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser().resolve()
    return (Path(__file__).resolve().parent.parent / SETTINGS_FILENAME).resolve()


def resolve_storage_path(arg_path: Optional[str]) -> Path:
    if arg_path:
        return Path(arg_path).expanduser().resolve()
    env_override = os.getenv(STORAGE_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser().resolve()
    data_home = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    return data_home / "grid_canvas" / STORAGE_FILENAME
