"""Qt surface that paints the widget grid and feeds pointer gestures to the controller."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from PyQt6.QtCore import QEvent, QObject, QPointF, QRectF, Qt, QTimer
from PyQt6.QtGui import QColor, QCursor, QPainter, QPen, QPixmap
from PyQt6.QtWidgets import QApplication, QWidget

from grid_canvas.canvas_config import CanvasSettings
from grid_canvas.geometry import (
    HANDLE_NORTHEAST,
    HANDLE_NORTHWEST,
    HANDLE_SOUTHEAST,
    HANDLE_SOUTHWEST,
    Point,
)
from grid_canvas.hit_testing import (
    REGION_BODY,
    REGION_CLOSE,
    close_button_rect,
    handle_rects,
    header_rect,
    hit_test,
)
from grid_canvas.interaction_controller import InteractionController
from grid_canvas.layout_store import LayoutStore
from grid_canvas.widget_model import Widget

_LOGGER = logging.getLogger("GridCanvas")

_ACCENT = QColor("#007bff")
_GRID_COLOR = QColor(224, 224, 224)
_CANVAS_BACKGROUND = QColor("#fafafa")
_CONTENT_COLOR = QColor("#666666")

_HANDLE_CURSORS = {
    HANDLE_NORTHWEST: Qt.CursorShape.SizeFDiagCursor,
    HANDLE_SOUTHEAST: Qt.CursorShape.SizeFDiagCursor,
    HANDLE_NORTHEAST: Qt.CursorShape.SizeBDiagCursor,
    HANDLE_SOUTHWEST: Qt.CursorShape.SizeBDiagCursor,
}


class _PointerEventFilter(QObject):
    """Application-wide mouse move/release listener, installed only while a gesture runs."""

    def __init__(self, surface: "CanvasSurface") -> None:
        super().__init__(surface)
        self._surface = surface

    def eventFilter(self, obj, event) -> bool:  # type: ignore[override]
        event_type = event.type()
        if event_type == QEvent.Type.MouseMove:
            self._surface.handle_pointer_move(self._surface.mapFromGlobal(event.globalPosition()))
            return True
        if event_type == QEvent.Type.MouseButtonRelease and event.button() == Qt.MouseButton.LeftButton:
            self._surface.handle_pointer_release()
            return True
        return False


class CanvasSurface(QWidget):
    """Paints widgets from the layout store and routes presses to gesture entry points."""

    def __init__(self, store: LayoutStore, settings: CanvasSettings, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._store = store
        self._settings = settings
        self._grid_pixmap: Optional[QPixmap] = None
        self._grid_pixmap_params: Optional[Tuple[int, int, int]] = None
        self._pointer_filter = _PointerEventFilter(self)
        self._filter_installed = False

        self._gesture_timer = QTimer(self)
        self._gesture_timer.setSingleShot(True)

        self._controller = InteractionController(
            store,
            container_size_fn=lambda: (self.width(), self.height()),
            grid_size=settings.grid_size,
            min_size=settings.min_size,
            acquire_listeners_fn=self._install_pointer_filter,
            release_listeners_fn=self._remove_pointer_filter,
            gesture_timeout_seconds=settings.gesture_timeout_seconds,
        )
        self._controller.configure_timeout_hooks(
            arm_timeout=lambda seconds: self._gesture_timer.start(int(seconds * 1000)),
            cancel_timeout=self._gesture_timer.stop,
        )
        self._gesture_timer.timeout.connect(self._on_gesture_timeout)

        self._unsubscribe = store.subscribe(lambda _widgets: self.update())
        app = QApplication.instance()
        if app is not None:
            app.applicationStateChanged.connect(self._on_application_state_changed)

        self.setMouseTracking(True)
        self.setMinimumSize(settings.min_width * 2, settings.canvas_height)
        self.setFixedHeight(settings.canvas_height)

    @property
    def controller(self) -> InteractionController:
        return self._controller

    @property
    def pointer_filter_installed(self) -> bool:
        return self._filter_installed

    # Listener lifecycle -------------------------------------------------------

    def _install_pointer_filter(self) -> None:
        app = QApplication.instance()
        if app is None or self._filter_installed:
            return
        app.installEventFilter(self._pointer_filter)
        self._filter_installed = True
        _LOGGER.debug("Pointer listeners installed")

    def _remove_pointer_filter(self) -> None:
        if not self._filter_installed:
            return
        app = QApplication.instance()
        if app is not None:
            app.removeEventFilter(self._pointer_filter)
        self._filter_installed = False
        _LOGGER.debug("Pointer listeners removed")

    def _on_gesture_timeout(self) -> None:
        self._controller.handle_gesture_timeout()
        self.unsetCursor()
        self.update()

    def _on_application_state_changed(self, state) -> None:
        if state != Qt.ApplicationState.ApplicationActive and not self._controller.is_idle:
            self._controller.cancel("application inactive")
            self.unsetCursor()
            self.update()

    def shutdown(self) -> None:
        self._controller.teardown()
        self._gesture_timer.stop()
        self._unsubscribe()

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.shutdown()
        super().closeEvent(event)

    # Pointer handling ---------------------------------------------------------

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() != Qt.MouseButton.LeftButton:
            QWidget.mousePressEvent(self, event)
            return
        position = event.position()
        pointer = Point(position.x(), position.y())
        hit = hit_test(self._store.widgets(), pointer)
        if hit is None:
            QWidget.mousePressEvent(self, event)
            return
        if hit.region == REGION_CLOSE:
            self._store.remove(hit.widget_id)
        elif hit.region == REGION_BODY:
            if self._controller.begin_drag(hit.widget_id, pointer):
                self.setCursor(Qt.CursorShape.ClosedHandCursor)
        else:
            self._controller.begin_resize(hit.widget_id, hit.region, pointer)
        event.accept()

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if self._controller.is_idle:
            position = event.position()
            self._update_hover_cursor(Point(position.x(), position.y()))
        QWidget.mouseMoveEvent(self, event)

    def handle_pointer_move(self, local_pos: QPointF) -> None:
        self._controller.pointer_move(Point(local_pos.x(), local_pos.y()))

    def handle_pointer_release(self) -> None:
        self._controller.pointer_up()
        self.unsetCursor()

    def _update_hover_cursor(self, pointer: Point) -> None:
        hit = hit_test(self._store.widgets(), pointer)
        if hit is None:
            self.unsetCursor()
        elif hit.region == REGION_CLOSE:
            self.setCursor(QCursor(Qt.CursorShape.PointingHandCursor))
        elif hit.region == REGION_BODY:
            self.setCursor(QCursor(Qt.CursorShape.OpenHandCursor))
        else:
            self.setCursor(QCursor(_HANDLE_CURSORS[hit.region]))

    # Painting -----------------------------------------------------------------

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), _CANVAS_BACKGROUND)
        grid_pixmap = self._grid_pixmap_for(self.width(), self.height(), self._settings.grid_size)
        if grid_pixmap is not None:
            painter.drawPixmap(0, 0, grid_pixmap)
        for widget in self._paint_order():
            self._paint_widget(painter, widget)
        painter.end()

    def _paint_order(self) -> List[Widget]:
        widgets = self._store.widgets()
        active_id = self._controller.active_widget_id
        if active_id is None:
            return widgets
        return [w for w in widgets if w.id != active_id] + [w for w in widgets if w.id == active_id]

    def _grid_pixmap_for(self, width: int, height: int, spacing: int) -> Optional[QPixmap]:
        if width <= 0 or height <= 0 or spacing <= 0:
            return None
        params = (width, height, spacing)
        if self._grid_pixmap is not None and self._grid_pixmap_params == params:
            return self._grid_pixmap

        pixmap = QPixmap(width, height)
        pixmap.fill(Qt.GlobalColor.transparent)
        painter = QPainter(pixmap)
        painter.setPen(QPen(_GRID_COLOR))
        for x in range(spacing, width, spacing):
            painter.drawLine(x, 0, x, height)
        for y in range(spacing, height, spacing):
            painter.drawLine(0, y, width, y)
        painter.end()

        self._grid_pixmap = pixmap
        self._grid_pixmap_params = params
        return pixmap

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        QWidget.resizeEvent(self, event)
        self._grid_pixmap = None
        self._grid_pixmap_params = None

    def _paint_widget(self, painter: QPainter, widget: Widget) -> None:
        geometry = widget.geometry
        body = QRectF(*geometry.as_tuple())
        painter.save()

        border = QPen(_ACCENT)
        border.setWidth(2)
        painter.setPen(border)
        painter.setBrush(QColor("white"))
        painter.drawRoundedRect(body, 8, 8)

        header = QRectF(*header_rect(geometry))
        painter.fillRect(header, _ACCENT)
        painter.setPen(QColor("white"))
        title_font = painter.font()
        title_font.setBold(True)
        painter.setFont(title_font)
        painter.drawText(
            header.adjusted(12, 0, -36, 0),
            Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft,
            widget.title,
        )
        painter.drawText(QRectF(*close_button_rect(geometry)), Qt.AlignmentFlag.AlignCenter, "×")

        title_font.setBold(False)
        painter.setFont(title_font)
        painter.setPen(_CONTENT_COLOR)
        content = QRectF(body.x(), header.bottom(), body.width(), max(0.0, body.bottom() - header.bottom()))
        painter.drawText(
            content,
            Qt.AlignmentFlag.AlignCenter,
            f"Widget Content\n({widget.width} × {widget.height})",
        )

        handle_pen = QPen(QColor("white"))
        painter.setPen(handle_pen)
        painter.setBrush(_ACCENT)
        for rect in handle_rects(geometry).values():
            painter.drawRoundedRect(QRectF(*rect), 2, 2)
        painter.restore()

