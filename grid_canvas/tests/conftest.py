import copy
import os

import pytest

from grid_canvas.layout_store import LayoutStore


class MemoryPersistence:
    """Records every snapshot written by the store."""

    def __init__(self, initial=None):
        self.stored = copy.deepcopy(initial)
        self.saves = []
        self.clears = 0

    def load_layout(self):
        return copy.deepcopy(self.stored)

    def save_layout(self, widgets):
        snapshot = copy.deepcopy(list(widgets))
        self.stored = snapshot
        self.saves.append(snapshot)

    def clear_layout(self):
        self.stored = None
        self.clears += 1


@pytest.fixture
def persistence():
    return MemoryPersistence()


@pytest.fixture
def store(persistence):
    layout_store = LayoutStore(persistence)
    layout_store.load()
    return layout_store


def pytest_runtest_setup(item):
    if item.get_closest_marker("pyqt_required"):
        if not os.getenv("PYQT_TESTS"):
            pytest.skip("PYQT_TESTS not set; skipping PyQt-dependent test")
