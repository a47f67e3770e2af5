from __future__ import annotations

import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from grid_canvas.canvas_config import CanvasSettings

LOGGER_NAME = "GridCanvas"
LOG_DIR_ENV_VAR = "GRID_CANVAS_LOG_DIR"
PROPAGATE_ENV_VAR = "GRID_CANVAS_PROPAGATE_LOGS"
LOG_FILENAME = "grid-canvas.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_MAX_BYTES = 512 * 1024
_TRUTHY = {"1", "true", "yes", "on"}


def resolve_logs_dir(log_dir_name: str = "GridCanvas") -> Path:
    """
    Resolve the directory to store canvas logs.

    Strategy:
    - Use GRID_CANVAS_LOG_DIR if set.
    - Fall back to XDG state/cache locations, then `cwd/logs/<log_dir_name>`.
    - Final fallback: tempdir/<log_dir_name>.
    """
    candidates = []

    env_override = os.environ.get(LOG_DIR_ENV_VAR)
    if env_override:
        candidates.append(Path(env_override).expanduser())

    state_home = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
    cache_home = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    candidates.append(state_home / "grid_canvas" / "logs")
    candidates.append(cache_home / "grid_canvas" / "logs")
    candidates.append(Path.cwd() / "logs")

    for base in candidates:
        try:
            target = base / log_dir_name
            target.mkdir(parents=True, exist_ok=True)
            return target
        except OSError:
            continue

    temp_fallback = Path(tempfile.gettempdir()) / "grid_canvas" / log_dir_name
    temp_fallback.mkdir(parents=True, exist_ok=True)
    return temp_fallback


def open_canvas_log(settings: CanvasSettings, log_dir: Path) -> RotatingFileHandler:
    """Rotating canvas log in ``log_dir``; ``log_retention`` counts the live file."""
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / LOG_FILENAME,
        maxBytes=LOG_MAX_BYTES,
        backupCount=max(0, settings.log_retention - 1),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.set_name(LOG_FILENAME)
    return handler


def configure_canvas_logger(
    settings: CanvasSettings,
    *,
    debug: bool = False,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Prepare the shared canvas logger from settings.

    Debug output is on when either the CLI flag or ``settings.debug`` asks for it.
    With ``log_dir`` the rotating log file is (re)attached; calling this twice
    replaces the earlier file handler instead of adding a second one.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug or settings.debug else logging.INFO)
    logger.propagate = os.environ.get(PROPAGATE_ENV_VAR, "").lower() in _TRUTHY
    if log_dir is None:
        return logger
    try:
        handler = open_canvas_log(settings, log_dir)
    except OSError as exc:
        logger.warning("File logging unavailable: %s", exc)
        return logger
    for existing in list(logger.handlers):
        if existing.get_name() == LOG_FILENAME:
            logger.removeHandler(existing)
            existing.close()
    logger.addHandler(handler)
    return logger
