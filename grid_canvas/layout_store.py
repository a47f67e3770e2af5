from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from grid_canvas.geometry import Size, WidgetGeometry, snap_value
from grid_canvas.layout_persistence import LayoutPersistenceError
from grid_canvas.widget_model import MUTABLE_FIELDS, Widget

_LOGGER = logging.getLogger("GridCanvas")

DEFAULT_GEOMETRY = WidgetGeometry(x=20, y=20, width=200, height=120)
DEFAULT_MIN_SIZE = Size(100, 60)

ChangeCallback = Callable[[List[Widget]], None]


class LayoutPersistence(Protocol):
    def load_layout(self) -> Optional[Sequence[Widget]]: ...

    def save_layout(self, widgets: Sequence[Widget]) -> None: ...


class LayoutStore:
    """Ordered widget collection with write-through persistence.

    Every mutating call writes the full snapshot before returning and then
    notifies subscribers so the canvas can repaint. Accessors hand out copies;
    widgets change only through ``update``.
    """

    def __init__(
        self,
        persistence: LayoutPersistence,
        *,
        default_geometry: WidgetGeometry = DEFAULT_GEOMETRY,
        min_size: Size = DEFAULT_MIN_SIZE,
        grid_size: int = 20,
    ) -> None:
        self._persistence = persistence
        self._default_geometry = default_geometry
        self._min_size = min_size
        self._grid_size = max(1, int(grid_size))
        self._widgets: List[Widget] = []
        self._next_id = 0
        self._subscribers: List[ChangeCallback] = []

    @property
    def next_id(self) -> int:
        return self._next_id

    def widgets(self) -> List[Widget]:
        return [dataclasses.replace(widget) for widget in self._widgets]

    def get(self, widget_id: int) -> Optional[Widget]:
        widget = self._find(widget_id)
        return dataclasses.replace(widget) if widget is not None else None

    def __len__(self) -> int:
        return len(self._widgets)

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def load(self) -> List[Widget]:
        """Replace the collection with the persisted layout.

        Missing or corrupt snapshots yield an empty layout; corruption is logged.
        Off-grid, negative or undersized geometry is pulled back onto the grid.
        """
        try:
            loaded = self._persistence.load_layout()
        except (LayoutPersistenceError, ValueError) as exc:
            _LOGGER.warning("Discarding unreadable saved layout: %s", exc)
            loaded = None
        widgets = [self._normalized(widget) for widget in loaded] if loaded else []
        self._widgets = widgets
        self._next_id = max((widget.id for widget in widgets), default=-1) + 1
        _LOGGER.debug("Loaded %d widget(s); next id=%d", len(widgets), self._next_id)
        self._notify()
        return self.widgets()

    def add(self, default_geometry: Optional[WidgetGeometry] = None, title: Optional[str] = None) -> Widget:
        geometry = default_geometry or self._default_geometry
        widget_id = self._next_id
        self._next_id += 1
        widget = Widget(
            id=widget_id,
            x=int(geometry.x),
            y=int(geometry.y),
            width=int(geometry.width),
            height=int(geometry.height),
            title=title if title is not None else f"Widget {widget_id}",
        )
        self._widgets.append(widget)
        _LOGGER.debug("Added widget id=%d geometry=%s", widget.id, widget.geometry.as_tuple())
        self._commit()
        return dataclasses.replace(widget)

    def update(self, widget_id: int, **fields: Any) -> None:
        widget = self._find(widget_id)
        if widget is None:
            _LOGGER.debug("Ignoring update for unknown widget id=%s", widget_id)
            return
        changes: Dict[str, Any] = {}
        for name, value in fields.items():
            if name not in MUTABLE_FIELDS:
                _LOGGER.debug("Ignoring unsupported widget field %r for id=%s", name, widget_id)
                continue
            value = str(value) if name == "title" else int(value)
            if getattr(widget, name) != value:
                changes[name] = value
        if not changes:
            return
        for name, value in changes.items():
            setattr(widget, name, value)
        self._commit()

    def remove(self, widget_id: int) -> None:
        remaining = [widget for widget in self._widgets if widget.id != widget_id]
        if len(remaining) == len(self._widgets):
            _LOGGER.debug("Ignoring remove for unknown widget id=%s", widget_id)
            return
        self._widgets = remaining
        _LOGGER.debug("Removed widget id=%s", widget_id)
        self._commit()

    def clear(self) -> None:
        self._widgets = []
        self._next_id = 0
        clear_fn = getattr(self._persistence, "clear_layout", None)
        try:
            if callable(clear_fn):
                clear_fn()
            else:
                self._persistence.save_layout([])
        except LayoutPersistenceError as exc:
            _LOGGER.warning("Layout cleared in memory but storage was not updated: %s", exc)
        _LOGGER.debug("Cleared layout")
        self._notify()

    def stored_widget_count(self) -> int:
        count_fn = getattr(self._persistence, "stored_count", None)
        if callable(count_fn):
            return int(count_fn())
        try:
            stored = self._persistence.load_layout()
        except (LayoutPersistenceError, ValueError):
            return 0
        return len(stored) if stored else 0

    def _find(self, widget_id: int) -> Optional[Widget]:
        for widget in self._widgets:
            if widget.id == widget_id:
                return widget
        return None

    def _normalized(self, widget: Widget) -> Widget:
        grid = self._grid_size
        min_width = snap_value(self._min_size.width, grid)
        min_height = snap_value(self._min_size.height, grid)
        return Widget(
            id=widget.id,
            x=max(0, snap_value(widget.x, grid)),
            y=max(0, snap_value(widget.y, grid)),
            width=max(self._min_size.width, min_width, snap_value(widget.width, grid)),
            height=max(self._min_size.height, min_height, snap_value(widget.height, grid)),
            title=widget.title,
        )

    def _commit(self) -> None:
        try:
            self._persistence.save_layout(self.widgets())
        except LayoutPersistenceError as exc:
            _LOGGER.warning("Layout change kept in memory but not saved: %s", exc)
        self._notify()

    def _notify(self) -> None:
        snapshot = self.widgets()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                _LOGGER.exception("Layout change subscriber failed")
