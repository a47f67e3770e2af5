from __future__ import annotations

import argparse
import os
import sys
from typing import Optional

from PyQt6.QtWidgets import QApplication

from grid_canvas.canvas_config import load_canvas_settings, resolve_settings_path, resolve_storage_path
from grid_canvas.canvas_window import CanvasWindow
from grid_canvas.layout_persistence import JsonKeyValueStore, LocalLayoutPersistence
from grid_canvas.layout_store import LayoutStore
from grid_canvas.logging_utils import configure_canvas_logger, resolve_logs_dir


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Grid canvas widget layout editor")
    parser.add_argument("--settings", help="Path to a canvas settings JSON file")
    parser.add_argument("--storage", help="Path to the layout storage file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    settings_path = resolve_settings_path(args.settings)
    settings = load_canvas_settings(settings_path)
    logger = configure_canvas_logger(settings, debug=args.debug, log_dir=resolve_logs_dir())

    storage_path = resolve_storage_path(args.storage)
    logger.info("Starting grid canvas (pid=%s)", os.getpid())
    logger.debug(
        "Loaded settings from %s: grid=%d min=%dx%d canvas_height=%d timeout=%.1fs",
        settings_path,
        settings.grid_size,
        settings.min_width,
        settings.min_height,
        settings.canvas_height,
        settings.gesture_timeout_seconds,
    )
    logger.debug("Layout storage file: %s (key=%s)", storage_path, settings.storage_key)

    persistence = LocalLayoutPersistence(JsonKeyValueStore(storage_path), key=settings.storage_key)
    store = LayoutStore(
        persistence,
        default_geometry=settings.default_geometry,
        min_size=settings.min_size,
        grid_size=settings.grid_size,
    )

    app = QApplication(sys.argv if argv is None else [sys.argv[0], *argv])
    window = CanvasWindow(store, settings)
    store.load()
    window.resize(1000, settings.canvas_height + 120)
    window.show()

    exit_code = app.exec()
    logger.info("Grid canvas exiting with code %s", exit_code)
    return int(exit_code)
