from pathlib import Path

import pytest

from tabboard.models import default_tree
from tabboard.settings import DEFAULT_SETTINGS, WALLPAPERS
from tabboard.store import CsvTreeStore, MemoryTreeStore, StoreError, rows_to_tree, tree_to_rows


def test_missing_file_loads_default_tree(tmp_path: Path):
    store = CsvTreeStore(tmp_path / "bookmarks.csv")
    assert store.load() == default_tree()
    assert not (tmp_path / "bookmarks.csv").exists()


def test_save_then_load_is_idempotent(tmp_path: Path, tree):
    store = CsvTreeStore(tmp_path / "bookmarks.csv")
    store.save(tree)
    first = store.load()
    assert first == tree

    store.save(first)
    assert store.load() == first


def test_rows_point_at_parents(tree):
    rows = {r["id"]: r for r in tree_to_rows(tree)}
    assert rows["fav"]["rowtype"] == "section"
    assert rows["work"]["parent_id"] == "fav"
    assert rows["mail"]["parent_id"] == "work"
    assert rows["mail"]["order"] == "1"
    assert rows["sys"]["flags"] == "locked"
    assert rows["clear"]["flags"] == "system"
    assert rows["clear"]["action"] == "CLEAR_DATA"


def test_rows_out_of_order_rebuild_in_order(tree):
    rows = list(reversed(tree_to_rows(tree)))
    assert rows_to_tree(rows) == tree


def test_settings_live_beside_the_tree(tmp_path: Path, tree):
    store = CsvTreeStore(tmp_path / "bookmarks.csv")
    assert store.load_settings() == DEFAULT_SETTINGS

    store.save(tree)
    store.save_settings({"background_mode": "static", "background_url": WALLPAPERS[3]})
    store.save(tree)

    assert store.load_settings() == {"background_mode": "static", "background_url": WALLPAPERS[3]}
    assert store.load() == tree


def test_unreadable_file_raises_store_error(tmp_path: Path):
    path = tmp_path / "bookmarks.csv"
    path.write_bytes(b"\xff\xfe\x00garbage")
    with pytest.raises(StoreError):
        CsvTreeStore(path).load()


def test_unwritable_location_raises_store_error(tmp_path: Path, tree):
    store = CsvTreeStore(tmp_path / "missing-dir" / "bookmarks.csv")
    with pytest.raises(StoreError):
        store.save(tree)


def test_memory_store_copies(tree):
    store = MemoryTreeStore(tree)
    loaded = store.load()
    loaded[0]["items"].clear()
    assert store.load() == tree
    store.save(loaded)
    assert store.load()[0]["items"] == []
    assert store.saves == 1


def test_saved_empty_tree_stays_empty(tmp_path: Path):
    store = CsvTreeStore(tmp_path / "bookmarks.csv")
    store.save([])
    assert store.load() == []

    store.save_settings({"background_mode": "static"})
    assert store.load() == []
