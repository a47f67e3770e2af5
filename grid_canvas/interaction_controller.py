"""Pointer gesture state machine for moving and resizing canvas widgets.

This module stays free of Qt types; the canvas injects thin adapters for the
container size, pointer listener registration and the gesture timeout timer.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from grid_canvas.geometry import (
    Point,
    Size,
    WidgetGeometry,
    clamp_to_container,
    floor_to_grid,
    normalize_handle,
    resize_from_handle,
    snap_to_grid,
    snap_value,
)
from grid_canvas.layout_store import LayoutStore

_LOGGER = logging.getLogger("GridCanvas")

MODE_IDLE = "idle"
MODE_DRAGGING = "dragging"
MODE_RESIZING = "resizing"


@dataclass(frozen=True)
class IdleState:
    pass


@dataclass(frozen=True)
class DraggingState:
    widget_id: int
    pointer_offset: Point
    start_geometry: WidgetGeometry


@dataclass(frozen=True)
class ResizingState:
    widget_id: int
    handle: str
    start_geometry: WidgetGeometry
    start_pointer: Point


GestureState = Union[IdleState, DraggingState, ResizingState]

_IDLE = IdleState()


def _noop() -> None:
    return None


def _default_log(message: str, *args: object) -> None:
    _LOGGER.debug(message, *args)


class InteractionController:
    """Owns the single active gesture for the whole canvas."""

    def __init__(
        self,
        store: LayoutStore,
        *,
        container_size_fn: Callable[[], Tuple[int, int]],
        grid_size: int = 20,
        min_size: Size = Size(100, 60),
        acquire_listeners_fn: Callable[[], None] = _noop,
        release_listeners_fn: Callable[[], None] = _noop,
        gesture_timeout_seconds: float = 10.0,
        log_fn: Optional[Callable[..., None]] = None,
    ) -> None:
        self._store = store
        self._container_size = container_size_fn
        self._grid_size = max(1, int(grid_size))
        self._min_size = min_size
        self._acquire_listeners = acquire_listeners_fn
        self._release_listeners = release_listeners_fn
        self._gesture_timeout_seconds = max(0.5, float(gesture_timeout_seconds))
        self._log = log_fn or _default_log
        self._state: GestureState = _IDLE
        self._listeners_acquired = False
        self._arm_timeout: Optional[Callable[[float], None]] = None
        self._cancel_timeout: Optional[Callable[[], None]] = None

    @property
    def state(self) -> GestureState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return isinstance(self._state, IdleState)

    @property
    def active_widget_id(self) -> Optional[int]:
        if isinstance(self._state, (DraggingState, ResizingState)):
            return self._state.widget_id
        return None

    @property
    def gesture_timeout_seconds(self) -> float:
        return self._gesture_timeout_seconds

    def mode_for(self, widget_id: int) -> str:
        if self.active_widget_id != widget_id:
            return MODE_IDLE
        return MODE_DRAGGING if isinstance(self._state, DraggingState) else MODE_RESIZING

    def configure_timeout_hooks(
        self,
        *,
        arm_timeout: Callable[[float], None],
        cancel_timeout: Callable[[], None],
    ) -> None:
        self._arm_timeout = arm_timeout
        self._cancel_timeout = cancel_timeout

    # Gesture entry points -----------------------------------------------------

    def begin_drag(self, widget_id: int, pointer: Point) -> bool:
        widget = self._store.get(widget_id)
        if widget is None:
            self._log("Drag ignored: unknown widget id=%s", widget_id)
            return False
        self._cancel_active("superseded by drag")
        geometry = widget.geometry
        offset = Point(pointer.x - geometry.x, pointer.y - geometry.y)
        self._start(DraggingState(widget_id=widget_id, pointer_offset=offset, start_geometry=geometry))
        self._log("Drag started: id=%s pointer=%s offset=%s", widget_id, pointer, offset)
        return True

    def begin_resize(self, widget_id: int, handle: str, pointer: Point) -> bool:
        widget = self._store.get(widget_id)
        if widget is None:
            self._log("Resize ignored: unknown widget id=%s", widget_id)
            return False
        try:
            corner = normalize_handle(handle)
        except ValueError as exc:
            self._log("Resize ignored: %s", exc)
            return False
        self._cancel_active("superseded by resize")
        self._start(
            ResizingState(
                widget_id=widget_id,
                handle=corner,
                start_geometry=widget.geometry,
                start_pointer=pointer,
            )
        )
        self._log("Resize started: id=%s handle=%s pointer=%s", widget_id, corner, pointer)
        return True

    def pointer_move(self, pointer: Point) -> Optional[WidgetGeometry]:
        """Recompute and commit geometry for the active gesture; returns what was committed."""
        state = self._state
        if isinstance(state, IdleState):
            return None
        if self._store.get(state.widget_id) is None:
            self.cancel("widget removed during gesture")
            return None
        if isinstance(state, DraggingState):
            target = self._drag_geometry(state, pointer)
        else:
            target = self._resize_geometry(state, pointer)
        self._store.update(
            state.widget_id,
            x=target.x,
            y=target.y,
            width=target.width,
            height=target.height,
        )
        self._rearm_timeout()
        return target

    def pointer_up(self) -> None:
        if self.is_idle:
            return
        self._log("Gesture finished: id=%s", self.active_widget_id)
        self._finish()

    def cancel(self, reason: str = "cancelled") -> None:
        if self.is_idle:
            return
        self._log("Gesture cancelled: id=%s reason=%s", self.active_widget_id, reason)
        self._finish()

    def handle_gesture_timeout(self) -> None:
        if self.is_idle:
            return
        _LOGGER.info(
            "No pointer release within %.1fs; releasing widget id=%s",
            self._gesture_timeout_seconds,
            self.active_widget_id,
        )
        self._finish(timed_out=True)

    def teardown(self) -> None:
        self.cancel("teardown")
        if self._listeners_acquired:
            self._listeners_acquired = False
            self._release_listeners()

    # Geometry -----------------------------------------------------------------

    def _container(self) -> Size:
        width, height = self._container_size()
        return Size(int(width), int(height))

    def _drag_geometry(self, state: DraggingState, pointer: Point) -> WidgetGeometry:
        start = state.start_geometry
        raw_x = pointer.x - state.pointer_offset.x
        raw_y = pointer.y - state.pointer_offset.y
        snapped_x, snapped_y = snap_to_grid(raw_x, raw_y, self._grid_size)
        candidate = WidgetGeometry(x=snapped_x, y=snapped_y, width=start.width, height=start.height)
        return clamp_to_container(candidate, self._container(), self._min_size, self._grid_size)

    def _resize_geometry(self, state: ResizingState, pointer: Point) -> WidgetGeometry:
        container = self._container()
        grid = self._grid_size
        raw = resize_from_handle(state.handle, state.start_geometry, pointer - state.start_pointer, self._min_size)

        x, y, width, height = raw.x, raw.y, raw.width, raw.height
        # Trim overshoot past the left/top edge without moving the anchored edge.
        if x < 0:
            width += x
            x = 0
        if y < 0:
            height += y
            y = 0
        width = min(width, container.width - x)
        height = min(height, container.height - y)

        x, y = snap_to_grid(x, y, grid)
        width = min(snap_value(width, grid), floor_to_grid(container.width - x, grid))
        height = min(snap_value(height, grid), floor_to_grid(container.height - y, grid))
        bounded = WidgetGeometry(x=x, y=y, width=width, height=height)
        return clamp_to_container(bounded, container, self._min_size, grid)

    # Lifecycle ----------------------------------------------------------------

    def _start(self, state: GestureState) -> None:
        self._state = state
        if not self._listeners_acquired:
            self._acquire_listeners()
            self._listeners_acquired = True
        self._rearm_timeout()

    def _cancel_active(self, reason: str) -> None:
        if self.is_idle:
            return
        self._log("Gesture cancelled: id=%s reason=%s", self.active_widget_id, reason)
        # Keep listeners registered; the next gesture starts immediately.
        self._state = _IDLE
        self._disarm_timeout()

    def _finish(self, *, timed_out: bool = False) -> None:
        self._state = _IDLE
        try:
            if not timed_out:
                self._disarm_timeout()
        finally:
            if self._listeners_acquired:
                self._listeners_acquired = False
                self._release_listeners()

    def _rearm_timeout(self) -> None:
        if self._arm_timeout is None:
            return
        self._disarm_timeout()
        self._arm_timeout(self._gesture_timeout_seconds)

    def _disarm_timeout(self) -> None:
        if self._cancel_timeout is not None:
            self._cancel_timeout()
