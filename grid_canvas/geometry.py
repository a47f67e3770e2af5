"""Grid snapping, bounds clamping, and corner-resize helpers for canvas widgets.

Everything here is pure: callers pass the grid unit, the container size and the
minimum widget size explicitly, so the same helpers serve the interaction
controller, the store and the tests.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

HANDLE_NORTHWEST = "northwest"
HANDLE_NORTHEAST = "northeast"
HANDLE_SOUTHWEST = "southwest"
HANDLE_SOUTHEAST = "southeast"
HANDLES: Tuple[str, ...] = (HANDLE_NORTHWEST, HANDLE_NORTHEAST, HANDLE_SOUTHWEST, HANDLE_SOUTHEAST)

_HANDLE_ALIASES: Dict[str, str] = {
    "nw": HANDLE_NORTHWEST,
    "ne": HANDLE_NORTHEAST,
    "sw": HANDLE_SOUTHWEST,
    "se": HANDLE_SOUTHEAST,
}


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class Size:
    width: int
    height: int


@dataclass(frozen=True)
class WidgetGeometry:
    """Top-left position and size of a widget, in canvas pixels."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


def normalize_handle(name: str) -> str:
    """Return the canonical corner name for ``name`` (accepts ``nw``/``ne``/``sw``/``se``)."""
    token = str(name or "").strip().lower()
    token = _HANDLE_ALIASES.get(token, token)
    if token not in HANDLES:
        raise ValueError(f"unknown resize handle: {name!r}")
    return token


def snap_value(value: float, grid_size: int) -> int:
    """Round ``value`` to the nearest multiple of ``grid_size`` (halves round up)."""
    if grid_size <= 0:
        return int(math.floor(value + 0.5))
    return int(math.floor(value / grid_size + 0.5)) * grid_size


def floor_to_grid(value: float, grid_size: Optional[int]) -> float:
    if not grid_size or grid_size <= 0:
        return value
    return math.floor(value / grid_size) * grid_size


def snap_to_grid(x: float, y: float, grid_size: int) -> Tuple[int, int]:
    return snap_value(x, grid_size), snap_value(y, grid_size)


def clamp_to_container(
    geometry: WidgetGeometry,
    container: Size,
    min_size: Size,
    grid_size: Optional[int] = None,
) -> WidgetGeometry:
    """Fit ``geometry`` inside ``container`` without dropping below ``min_size``.

    The size is floored at the minimum first, then the position is clamped into
    ``[0, container - size]`` and finally the size is capped at whatever space
    remains from that position. With ``grid_size`` the upper bounds are rounded
    down to grid multiples so snapped input stays snapped. When the container is
    smaller than the minimum size, the minimum wins.
    """
    width = max(min_size.width, geometry.width)
    height = max(min_size.height, geometry.height)

    max_x = max(0, floor_to_grid(container.width - width, grid_size))
    max_y = max(0, floor_to_grid(container.height - height, grid_size))
    x = min(max_x, max(0, geometry.x))
    y = min(max_y, max(0, geometry.y))

    width = min(width, floor_to_grid(container.width - x, grid_size))
    height = min(height, floor_to_grid(container.height - y, grid_size))
    width = max(min_size.width, width)
    height = max(min_size.height, height)
    return WidgetGeometry(x=x, y=y, width=width, height=height)


def resize_from_handle(
    handle: str,
    start: WidgetGeometry,
    delta: Point,
    min_size: Size,
) -> WidgetGeometry:
    """Compute the geometry produced by dragging ``handle`` by ``delta``.

    The corner opposite the handle stays anchored. Sizes are floored at
    ``min_size`` before any snapping happens, and the shifted position is taken
    from that floored size so the anchored edge does not drift when the minimum
    kicks in.
    """
    corner = normalize_handle(handle)
    x = start.x
    y = start.y

    if corner in (HANDLE_SOUTHEAST, HANDLE_NORTHEAST):
        width = max(min_size.width, start.width + delta.x)
    else:
        width = max(min_size.width, start.width - delta.x)
        x = start.x + (start.width - width)

    if corner in (HANDLE_SOUTHEAST, HANDLE_SOUTHWEST):
        height = max(min_size.height, start.height + delta.y)
    else:
        height = max(min_size.height, start.height - delta.y)
        y = start.y + (start.height - height)

    return WidgetGeometry(x=x, y=y, width=width, height=height)
