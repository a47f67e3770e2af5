from __future__ import annotations

import json

import pytest

from grid_canvas.layout_persistence import (
    DEFAULT_LAYOUT_KEY,
    JsonKeyValueStore,
    LayoutDecodeError,
    LayoutWriteError,
    LocalLayoutPersistence,
)
from grid_canvas.layout_store import LayoutStore
from grid_canvas.widget_model import Widget


@pytest.fixture
def storage_file(tmp_path):
    return tmp_path / "nested" / "storage.json"


def _persistence(path):
    return LocalLayoutPersistence(JsonKeyValueStore(path))


def test_missing_file_reads_as_absent_layout(storage_file):
    assert _persistence(storage_file).load_layout() is None
    assert JsonKeyValueStore(storage_file).keys() == []


def test_save_writes_whole_snapshot_under_fixed_key(storage_file):
    persistence = _persistence(storage_file)
    widgets = [
        Widget(id=0, x=20, y=20, width=200, height=120, title="Widget 0"),
        Widget(id=2, x=240, y=40, width=100, height=60, title="Widget 2"),
    ]
    persistence.save_layout(widgets)
    raw = json.loads(storage_file.read_text(encoding="utf-8"))
    assert list(raw) == [DEFAULT_LAYOUT_KEY]
    records = json.loads(raw[DEFAULT_LAYOUT_KEY])
    assert records[1] == {"id": 2, "x": 240, "y": 40, "width": 100, "height": 60, "title": "Widget 2"}
    assert persistence.load_layout() == widgets
    assert not storage_file.with_suffix(".json.tmp").exists()


def test_save_overwrites_previous_value(storage_file):
    persistence = _persistence(storage_file)
    persistence.save_layout([Widget(id=0, x=0, y=0, width=100, height=60, title="a")])
    persistence.save_layout([])
    assert persistence.load_layout() == []
    assert persistence.stored_count() == 0


def test_clear_removes_key_and_keeps_other_entries(storage_file):
    kv = JsonKeyValueStore(storage_file)
    kv.set_item("theme", "dark")
    persistence = LocalLayoutPersistence(kv)
    persistence.save_layout([Widget(id=0, x=0, y=0, width=100, height=60, title="a")])
    persistence.clear_layout()
    assert persistence.load_layout() is None
    assert kv.keys() == ["theme"]
    persistence.clear_layout()


@pytest.mark.parametrize(
    "payload",
    [
        "{not json",
        json.dumps({"id": 1}),
        json.dumps([{"id": 1, "x": 0}]),
        json.dumps([{"id": "one", "x": 0, "y": 0, "width": 100, "height": 60, "title": "t"}]),
        json.dumps([{"id": True, "x": 0, "y": 0, "width": 100, "height": 60, "title": "t"}]),
        '[{"id": 0, "x": 1e400, "y": 20, "width": 200, "height": 120, "title": "w"}]',
        '[{"id": 0, "x": 0, "y": 20, "width": Infinity, "height": 120, "title": "w"}]',
        '[{"id": 1, "x": 0, "y": 0, "width": 100, "height": 60, "title": "a"}, '
        '{"id": 1, "x": 100, "y": 0, "width": 100, "height": 60, "title": "b"}]',
    ],
)
def test_malformed_payload_raises_decode_error(storage_file, payload):
    kv = JsonKeyValueStore(storage_file)
    kv.set_item(DEFAULT_LAYOUT_KEY, payload)
    with pytest.raises(LayoutDecodeError):
        LocalLayoutPersistence(kv).load_layout()


def test_store_treats_malformed_payload_as_empty(storage_file):
    kv = JsonKeyValueStore(storage_file)
    kv.set_item(DEFAULT_LAYOUT_KEY, "[{broken")
    store = LayoutStore(LocalLayoutPersistence(kv))
    assert store.load() == []
    assert store.add().id == 0


def test_corrupt_storage_file_is_treated_as_empty(storage_file):
    storage_file.parent.mkdir(parents=True)
    storage_file.write_text("garbage", encoding="utf-8")
    persistence = _persistence(storage_file)
    assert persistence.load_layout() is None
    persistence.save_layout([Widget(id=5, x=0, y=0, width=100, height=60, title="x")])
    assert [w.id for w in persistence.load_layout()] == [5]


def test_custom_key_and_stored_count(storage_file):
    kv = JsonKeyValueStore(storage_file)
    persistence = LocalLayoutPersistence(kv, key="dashboard")
    persistence.save_layout([Widget(id=i, x=0, y=0, width=100, height=60, title=str(i)) for i in range(3)])
    assert persistence.key == "dashboard"
    assert persistence.stored_count() == 3
    assert kv.get_item(DEFAULT_LAYOUT_KEY) is None


def test_reload_after_restart_continues_ids(storage_file):
    store = LayoutStore(_persistence(storage_file))
    store.load()
    for _ in range(3):
        store.add()
    store.remove(1)

    restarted = LayoutStore(_persistence(storage_file))
    restored = restarted.load()
    assert sorted(w.id for w in restored) == [0, 2]
    assert restarted.add().id == 3


@pytest.mark.parametrize(
    "payload",
    [
        '[{"id": 0, "x": 1e400, "y": 20, "width": 200, "height": 120, "title": "w"}]',
        '[{"id": 0, "x": -Infinity, "y": 20, "width": 200, "height": 120, "title": "w"}]',
        '[{"id": 4, "x": 0, "y": 0, "width": 100, "height": 60, "title": "a"}, '
        '{"id": 4, "x": 100, "y": 0, "width": 100, "height": 60, "title": "b"}]',
    ],
)
def test_store_load_survives_unusable_records(storage_file, payload):
    kv = JsonKeyValueStore(storage_file)
    kv.set_item(DEFAULT_LAYOUT_KEY, payload)
    store = LayoutStore(LocalLayoutPersistence(kv))
    assert store.load() == []
    assert store.next_id == 0


def _blocked_storage(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    return blocker / "storage.json"


def test_write_into_unusable_directory_raises_write_error(tmp_path):
    kv = JsonKeyValueStore(_blocked_storage(tmp_path))
    with pytest.raises(LayoutWriteError):
        kv.set_item(DEFAULT_LAYOUT_KEY, "[]")


def test_store_keeps_working_when_storage_cannot_be_written(tmp_path):
    store = LayoutStore(_persistence(_blocked_storage(tmp_path)))
    store.load()
    notified = []
    store.subscribe(notified.append)

    widget = store.add()
    store.update(widget.id, x=60)
    store.remove(widget.id)
    store.add()

    assert len(store) == 1
    assert [len(snapshot) for snapshot in notified] == [1, 1, 0, 1]
    assert (tmp_path / "blocker").is_file()
