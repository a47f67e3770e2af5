"""Map canvas points onto widget regions (corner handles, close button, body)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from grid_canvas.geometry import (
    HANDLE_NORTHEAST,
    HANDLE_NORTHWEST,
    HANDLE_SOUTHEAST,
    HANDLE_SOUTHWEST,
    Point,
    WidgetGeometry,
)
from grid_canvas.widget_model import Widget

REGION_BODY = "body"
REGION_CLOSE = "close"

HANDLE_SIZE = 12
HEADER_HEIGHT = 32
CLOSE_BUTTON_SIZE = 20
CLOSE_BUTTON_MARGIN = 8

Rect = Tuple[float, float, float, float]


@dataclass(frozen=True)
class HitResult:
    widget_id: int
    region: str

    @property
    def is_handle(self) -> bool:
        return self.region not in (REGION_BODY, REGION_CLOSE)


def _contains(rect: Rect, point: Point) -> bool:
    x, y, width, height = rect
    return x <= point.x < x + width and y <= point.y < y + height


def handle_rects(geometry: WidgetGeometry, handle_size: int = HANDLE_SIZE) -> Dict[str, Rect]:
    """Corner squares centred on each corner, overhanging the widget edge by half their size."""
    half = handle_size / 2
    left = geometry.x - half
    right = geometry.right - half
    top = geometry.y - half
    bottom = geometry.bottom - half
    return {
        HANDLE_NORTHWEST: (left, top, handle_size, handle_size),
        HANDLE_NORTHEAST: (right, top, handle_size, handle_size),
        HANDLE_SOUTHWEST: (left, bottom, handle_size, handle_size),
        HANDLE_SOUTHEAST: (right, bottom, handle_size, handle_size),
    }


def header_rect(geometry: WidgetGeometry) -> Rect:
    return (geometry.x, geometry.y, geometry.width, min(HEADER_HEIGHT, geometry.height))


def close_button_rect(geometry: WidgetGeometry) -> Rect:
    header_height = min(HEADER_HEIGHT, geometry.height)
    x = geometry.right - CLOSE_BUTTON_MARGIN - CLOSE_BUTTON_SIZE
    y = geometry.y + (header_height - CLOSE_BUTTON_SIZE) / 2
    return (x, y, CLOSE_BUTTON_SIZE, CLOSE_BUTTON_SIZE)


def hit_test(widgets: Sequence[Widget], point: Point, *, handle_size: int = HANDLE_SIZE) -> Optional[HitResult]:
    """Return the topmost widget region under ``point``; later widgets paint on top."""
    for widget in reversed(list(widgets)):
        geometry = widget.geometry
        for handle, rect in handle_rects(geometry, handle_size).items():
            if _contains(rect, point):
                return HitResult(widget.id, handle)
        if _contains(close_button_rect(geometry), point):
            return HitResult(widget.id, REGION_CLOSE)
        if _contains(geometry.as_tuple(), point):
            return HitResult(widget.id, REGION_BODY)
    return None
