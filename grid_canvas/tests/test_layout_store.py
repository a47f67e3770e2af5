from __future__ import annotations

import logging

from grid_canvas.geometry import Size, WidgetGeometry
from grid_canvas.layout_persistence import LayoutDecodeError, LayoutWriteError
from grid_canvas.layout_store import LayoutStore
from grid_canvas.widget_model import Widget


def test_add_uses_default_geometry_and_title(store, persistence):
    widget = store.add()
    assert widget == Widget(id=0, x=20, y=20, width=200, height=120, title="Widget 0")
    assert persistence.saves[-1] == [widget]


def test_ids_are_unique_and_monotonic(store):
    ids = [store.add().id for _ in range(5)]
    assert ids == [0, 1, 2, 3, 4]
    store.remove(4)
    assert store.add().id == 5


def test_add_accepts_custom_geometry_and_title(store):
    widget = store.add(WidgetGeometry(40, 60, 300, 200), title="Notes")
    assert widget.geometry == WidgetGeometry(40, 60, 300, 200)
    assert widget.title == "Notes"


def test_load_seeds_counter_from_max_id(persistence):
    persistence.stored = [
        Widget(id=3, x=0, y=0, width=100, height=60, title="a"),
        Widget(id=7, x=100, y=0, width=100, height=60, title="b"),
    ]
    store = LayoutStore(persistence)
    loaded = store.load()
    assert [w.id for w in loaded] == [3, 7]
    assert store.next_id == 8
    assert store.add().id == 8


def test_load_without_saved_layout_is_empty(persistence):
    store = LayoutStore(persistence)
    assert store.load() == []
    assert store.next_id == 0


def test_load_with_corrupt_snapshot_returns_empty_and_logs(caplog):
    class BrokenPersistence:
        def load_layout(self):
            raise LayoutDecodeError("not json")

        def save_layout(self, widgets):
            raise AssertionError("should not save while loading")

    store = LayoutStore(BrokenPersistence())
    logger = logging.getLogger("GridCanvas")
    previous = logger.propagate
    logger.propagate = True
    try:
        with caplog.at_level(logging.WARNING, logger="GridCanvas"):
            assert store.load() == []
    finally:
        logger.propagate = previous
    assert store.next_id == 0
    assert "unreadable saved layout" in caplog.text


def test_update_merges_fields_and_persists(store, persistence):
    widget = store.add()
    store.update(widget.id, x=60, y=80, title="Renamed")
    updated = store.get(widget.id)
    assert (updated.x, updated.y, updated.title) == (60, 80, "Renamed")
    assert persistence.saves[-1][0].x == 60


def test_update_unknown_id_is_noop(store, persistence):
    store.add()
    saves_before = len(persistence.saves)
    store.update(99, x=40)
    assert len(persistence.saves) == saves_before
    assert store.get(99) is None


def test_update_does_not_resurrect_removed_widget(store):
    widget = store.add()
    store.remove(widget.id)
    store.update(widget.id, x=100)
    assert store.widgets() == []


def test_update_without_change_skips_write(store, persistence):
    widget = store.add()
    saves_before = len(persistence.saves)
    store.update(widget.id, x=widget.x, y=widget.y)
    assert len(persistence.saves) == saves_before


def test_update_ignores_id_and_unknown_fields(store):
    widget = store.add()
    store.update(widget.id, id=42, colour="red", width=300)
    assert store.get(widget.id).width == 300
    assert store.get(42) is None


def test_remove_absent_id_is_noop(store, persistence):
    store.add()
    saves_before = len(persistence.saves)
    store.remove(123)
    assert len(persistence.saves) == saves_before
    assert len(store) == 1


def test_clear_resets_counter_and_removes_key(store, persistence):
    for _ in range(3):
        store.add()
    store.clear()
    assert persistence.clears == 1
    assert persistence.stored is None

    reloaded = LayoutStore(persistence)
    assert reloaded.load() == []
    assert reloaded.add().id == 0


def test_clear_falls_back_to_saving_empty_layout():
    saved = []

    class SaveOnlyPersistence:
        def load_layout(self):
            return None

        def save_layout(self, widgets):
            saved.append(list(widgets))

    store = LayoutStore(SaveOnlyPersistence())
    store.add()
    store.clear()
    assert saved[-1] == []


def test_round_trip_through_persistence(store, persistence):
    first = store.add()
    second = store.add(title="Second")
    store.update(first.id, x=200, width=140)
    expected = {w.id: w for w in store.widgets()}

    reloaded = LayoutStore(persistence)
    restored = {w.id: w for w in reloaded.load()}
    assert restored == expected
    assert restored[second.id].title == "Second"


def test_subscribers_receive_snapshot_and_survive_errors(store):
    seen = []

    def _broken(_widgets):
        raise RuntimeError("boom")

    store.subscribe(_broken)
    unsubscribe = store.subscribe(lambda widgets: seen.append(len(widgets)))
    store.add()
    store.add()
    unsubscribe()
    store.add()
    assert seen == [1, 2]
    assert len(store) == 3


def test_stored_widget_count_reads_persistence(store):
    store.add()
    store.add()
    assert store.stored_widget_count() == 2
    store.clear()
    assert store.stored_widget_count() == 0


def test_returned_widgets_are_detached_from_store(store, persistence):
    added = store.add()
    added.x = 999
    listed = store.widgets()[0]
    listed.width = 5
    fetched = store.get(added.id)
    fetched.title = "changed"
    assert store.get(added.id) == Widget(id=0, x=20, y=20, width=200, height=120, title="Widget 0")
    assert len(persistence.saves) == 1


def test_failed_save_keeps_memory_and_still_notifies(caplog):
    class ReadOnlyPersistence:
        def load_layout(self):
            return None

        def save_layout(self, widgets):
            raise LayoutWriteError("disk full")

        def clear_layout(self):
            raise LayoutWriteError("disk full")

    store = LayoutStore(ReadOnlyPersistence())
    store.load()
    seen = []
    store.subscribe(lambda widgets: seen.append([w.id for w in widgets]))
    logger = logging.getLogger("GridCanvas")
    previous = logger.propagate
    logger.propagate = True
    try:
        with caplog.at_level(logging.WARNING, logger="GridCanvas"):
            widget = store.add()
            store.update(widget.id, x=40)
            store.clear()
    finally:
        logger.propagate = previous
    assert seen == [[0], [0], []]
    assert len(store) == 0
    assert "not saved" in caplog.text


def test_load_pulls_stored_geometry_onto_grid(persistence):
    persistence.stored = [
        Widget(id=1, x=-35, y=7, width=10, height=5, title="tiny"),
        Widget(id=2, x=49, y=31, width=213, height=129, title="offgrid"),
    ]
    store = LayoutStore(persistence)
    loaded = store.load()
    assert [w.geometry.as_tuple() for w in loaded] == [(0, 0, 100, 60), (40, 40, 220, 120)]


def test_load_normalizes_with_configured_grid_and_minimum(persistence):
    persistence.stored = [Widget(id=0, x=13, y=0, width=30, height=30, title="w")]
    store = LayoutStore(persistence, min_size=Size(50, 50), grid_size=25)
    assert store.load()[0].geometry.as_tuple() == (25, 0, 50, 50)
