import json

import pytest

from qr_offers.errors import StartupCorruption
from qr_offers.storage import CodeStore


def test_load_missing_file_starts_empty(counts_file):
    store = CodeStore(counts_file)
    store.load()
    assert store.snapshot() == {}
    assert not counts_file.exists()


def test_get_unknown_does_not_create_entry(store, counts_file):
    assert store.get("5551234") == 0
    assert "5551234" not in store
    assert not counts_file.exists()


def test_ensure_is_idempotent(store):
    store.ensure("5551234")
    store.record_scan("5551234")
    store.ensure("5551234")
    assert store.get("5551234") == 1


def test_ensure_persists(store, counts_file):
    store.ensure("5551234")
    assert json.loads(counts_file.read_text()) == {"5551234": 0}


def test_ensure_many_flushes_once_for_batch(store, counts_file):
    store.ensure_many(["111", "222", "111"])
    assert json.loads(counts_file.read_text()) == {"111": 0, "222": 0}


def test_record_scan_increments_and_persists(store, counts_file):
    assert store.record_scan("abc") == 1
    assert store.record_scan("abc") == 2
    assert store.record_scan_with_previous("abc") == (2, 3)
    assert json.loads(counts_file.read_text()) == {"abc": 3}


def test_counts_never_decrease(store):
    seen = []
    for _ in range(5):
        store.ensure("abc")
        seen.append(store.record_scan("abc"))
    assert seen == sorted(seen)
    assert seen == [1, 2, 3, 4, 5]


def test_reload_reproduces_last_mapping(store, counts_file):
    store.ensure_many(["a", "b"])
    store.record_scan("a")
    store.record_scan("a")

    reloaded = CodeStore(counts_file)
    reloaded.load()
    assert reloaded.snapshot() == {"a": 2, "b": 0}


@pytest.mark.parametrize(
    "content",
    [
        "",
        "not json",
        "[1, 2]",
        '{"a": -1}',
        '{"a": "3"}',
        '{"a": true}',
        '{"a": 1.5}',
    ],
)
def test_load_rejects_corrupt_file(counts_file, content):
    counts_file.write_text(content)
    with pytest.raises(StartupCorruption):
        CodeStore(counts_file).load()


def _failing_save():
    raise OSError("disk full")


def test_failed_flush_rolls_back_new_scan(store, monkeypatch):
    monkeypatch.setattr(store, "save", _failing_save)
    with pytest.raises(OSError):
        store.record_scan("abc")
    assert "abc" not in store


def test_failed_flush_restores_previous_count(store, monkeypatch, counts_file):
    store.record_scan("abc")
    monkeypatch.setattr(store, "save", _failing_save)
    with pytest.raises(OSError):
        store.record_scan("abc")
    assert store.get("abc") == 1
    assert json.loads(counts_file.read_text()) == {"abc": 1}


def test_failed_flush_rolls_back_ensure(store, monkeypatch):
    store.ensure("kept")
    monkeypatch.setattr(store, "save", _failing_save)
    with pytest.raises(OSError):
        store.ensure("new")
    with pytest.raises(OSError):
        store.ensure_many(["kept", "a", "b"])
    assert store.snapshot() == {"kept": 0}
