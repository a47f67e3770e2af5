"""Grid-snapped widget canvas with persistent layout."""

__version__ = "0.1.0"
