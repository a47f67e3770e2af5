from __future__ import annotations

import logging
from typing import List, Optional

from PyQt6.QtWidgets import QHBoxLayout, QLabel, QMessageBox, QPushButton, QVBoxLayout, QWidget

from grid_canvas.canvas_config import CanvasSettings
from grid_canvas.canvas_surface import CanvasSurface
from grid_canvas.layout_store import LayoutStore
from grid_canvas.widget_model import Widget

_LOGGER = logging.getLogger("GridCanvas")

STATUS_TEMPLATE = "Widgets: {count} | Drag to move, resize from corners"


class CanvasWindow(QWidget):
    """Top-level window: toolbar actions above the canvas surface."""

    def __init__(self, store: LayoutStore, settings: CanvasSettings, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._store = store
        self._settings = settings
        self.setWindowTitle("Customizable Grid Layout")

        self.add_button = QPushButton("Add Widget", self)
        self.clear_button = QPushButton("Clear All", self)
        self.debug_button = QPushButton("Debug Storage", self)
        self.status_label = QLabel(self)
        self.canvas = CanvasSurface(store, settings, self)

        self.add_button.clicked.connect(self.add_widget)
        self.clear_button.clicked.connect(self.clear_widgets)
        self.debug_button.clicked.connect(self.show_storage_debug)

        toolbar = QHBoxLayout()
        toolbar.addWidget(self.add_button)
        toolbar.addWidget(self.clear_button)
        toolbar.addWidget(self.debug_button)
        toolbar.addSpacing(20)
        toolbar.addWidget(self.status_label)
        toolbar.addStretch(1)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(20, 20, 20, 20)
        layout.addLayout(toolbar)
        layout.addWidget(self.canvas)

        self._unsubscribe = store.subscribe(self._refresh_status)
        self._refresh_status(store.widgets())

    def add_widget(self) -> Widget:
        return self._store.add(self._settings.default_geometry)

    def clear_widgets(self) -> None:
        self.canvas.controller.cancel("layout cleared")
        self._store.clear()

    def storage_summary(self) -> str:
        return f"Widgets in storage: {self._store.stored_widget_count()}"

    def show_storage_debug(self) -> None:
        summary = self.storage_summary()
        _LOGGER.info("Storage debug: %s (in memory: %d)", summary, len(self._store))
        QMessageBox.information(self, "Debug Storage", summary)

    def _refresh_status(self, widgets: List[Widget]) -> None:
        self.status_label.setText(STATUS_TEMPLATE.format(count=len(widgets)))

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.canvas.shutdown()
        self._unsubscribe()
        super().closeEvent(event)
