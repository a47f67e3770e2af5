from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping

from grid_canvas.geometry import WidgetGeometry

WIDGET_FIELDS = ("id", "x", "y", "width", "height", "title")
MUTABLE_FIELDS = frozenset({"x", "y", "width", "height", "title"})


@dataclass
class Widget:
    """One rectangular panel on the canvas."""

    id: int
    x: int
    y: int
    width: int
    height: int
    title: str = ""

    @property
    def geometry(self) -> WidgetGeometry:
        return WidgetGeometry(x=self.x, y=self.y, width=self.width, height=self.height)

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Widget":
        """Build a widget from a persisted record; raises ValueError when the record is unusable."""
        if not isinstance(record, Mapping):
            raise ValueError(f"widget record must be an object, got {type(record).__name__}")
        missing = [name for name in WIDGET_FIELDS if name not in record]
        if missing:
            raise ValueError(f"widget record missing fields: {', '.join(missing)}")
        values: Dict[str, Any] = {}
        for name in ("id", "x", "y", "width", "height"):
            raw = record[name]
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise ValueError(f"widget field {name!r} must be numeric, got {raw!r}")
            if isinstance(raw, float) and not math.isfinite(raw):
                raise ValueError(f"widget field {name!r} must be finite, got {raw!r}")
            values[name] = int(raw)
        title = record["title"]
        values["title"] = "" if title is None else str(title)
        return cls(**values)
