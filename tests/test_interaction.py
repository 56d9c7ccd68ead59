import json

from tabboard.interaction import (
    ITEM, SECTION_REORDER, DragSession, Persister, encode_payload, parse_payload,
)
from tabboard.locator import find_section, locate
from tabboard.store import MemoryTreeStore, StoreError


class FailingStore(MemoryTreeStore):
    def save(self, tree):
        raise StoreError("disk full")


def ids(items):
    return [n["id"] for n in items]


def test_parse_payload_checks_type_tag():
    item = encode_payload(ITEM, itemId="google", sectionId="fav")
    section = encode_payload(SECTION_REORDER, index=0)
    assert parse_payload(item, ITEM)["itemId"] == "google"
    assert parse_payload(item, SECTION_REORDER) is None
    assert parse_payload(section, ITEM) is None
    assert parse_payload(section)["index"] == 0
    assert parse_payload("{not json") is None
    assert parse_payload(None) is None
    assert parse_payload(json.dumps({"itemId": "google"})) is None
    assert parse_payload(json.dumps({"type": SECTION_REORDER, "index": "0"})) is None


def test_system_link_drag_start_is_refused(tree):
    session = DragSession()
    assert session.start_item_drag(tree, "clear", "sys") is None
    assert session.payload is None
    assert session.dragging is False


def test_drag_start_on_unknown_or_moved_item(tree):
    session = DragSession()
    assert session.start_item_drag(tree, "nope") is None
    assert session.start_item_drag(tree, "google", "home") is None


def test_item_and_section_zones_do_not_mix(tree):
    session = DragSession()
    session.start_item_drag(tree, "google", "fav")
    assert session.drag_over("item", "youtube") is True
    assert session.hover_id == "youtube"
    assert session.drag_over("section_slot") is False

    session.start_section_drag(tree, 0)
    assert session.drag_over("section_slot") is True
    assert session.drag_over("item", "youtube") is False
    assert session.drag_over("nowhere") is False


def test_section_payload_dropped_on_item_does_nothing(tree):
    store = MemoryTreeStore(tree)
    session = DragSession(store)
    session.start_section_drag(tree, 0)
    assert session.drop_on_item(tree, "google", "fav") is tree
    session.persister.close()
    assert store.saves == 0


def test_drop_commits_once_and_persists(tree):
    store = MemoryTreeStore(tree)
    session = DragSession(store)
    session.start_item_drag(tree, "youtube", "fav")
    new_tree = session.drop_on_item(tree, "google", "fav")
    session.persister.flush()

    assert new_tree is not tree
    assert find_section(new_tree, "fav")["items"][0]["type"] == "folder"
    assert session.notice == "Folder Created"
    assert session.dragging is False
    assert session.payload is None
    assert store.saves == 1
    assert store.load() == new_tree
    session.persister.close()


def test_drop_with_explicit_payload(tree):
    session = DragSession()
    payload = encode_payload(ITEM, itemId="news", sectionId="home")
    new_tree = session.drop_on_section(tree, "fav", payload=payload)
    assert ids(find_section(new_tree, "fav")["items"])[-1] == "news"
    assert session.notice == "Moved to Section"


def test_malformed_drop_is_ignored(tree):
    session = DragSession()
    assert session.drop_on_item(tree, "google", "fav", payload="garbage") is tree
    assert session.drop_on_background(tree, payload=json.dumps({"type": "ITEM"})) is tree
    assert session.notice is None


def test_pruning_the_open_folder_closes_it(tree):
    session = DragSession()
    session.open_folder("solo")
    session.start_item_drag(tree, "wiki", "home")
    session.drag_leave_folder(inside=False)
    assert session.folder_dimmed is True

    new_tree = session.drop_on_background(tree)
    assert locate(new_tree, "solo") is None
    assert session.open_folder_id is None
    assert session.folder_dimmed is False
    assert session.notice == "Moved to Home"


def test_open_folder_survives_when_not_emptied(tree):
    session = DragSession()
    session.open_folder("work")
    session.start_item_drag(tree, "docs", "fav")
    session.drop_on_background(tree)
    assert session.open_folder_id == "work"


def test_folder_dim_only_while_dragging(tree):
    session = DragSession()
    session.open_folder("work")
    session.drag_leave_folder(inside=False)
    assert session.folder_dimmed is False

    session.start_item_drag(tree, "docs", "fav")
    session.drag_leave_folder(inside=False)
    session.drag_leave_folder(inside=True)
    assert session.folder_dimmed is False


def test_cancel_and_drag_end_reset_without_mutation(tree):
    store = MemoryTreeStore(tree)
    session = DragSession(store)
    session.start_item_drag(tree, "google", "fav")
    assert session.drop_on_cancel(tree) is tree
    assert session.to_dict()["dragging"] is False

    session.start_item_drag(tree, "google", "fav")
    session.drag_over("item", "youtube")
    session.cancel()
    assert session.hover_id is None
    session.persister.close()
    assert store.saves == 0


def test_remove_zone_deletes(tree):
    session = DragSession()
    session.start_item_drag(tree, "news", "home")
    new_tree = session.drop_on_remove(tree)
    assert locate(new_tree, "news") is None
    assert session.notice == "Deleted"


def test_section_reorder_drop(tree):
    session = DragSession()
    assert session.start_section_drag(tree, 2) is None
    session.start_section_drag(tree, 0)
    new_tree = session.drop_on_section_slot(tree, 1)
    assert ids(new_tree) == ["home", "fav", "sys"]


def test_failed_save_keeps_tree_and_sets_notice(tree):
    session = DragSession(FailingStore())
    session.start_item_drag(tree, "youtube", "fav")
    new_tree = session.drop_on_item(tree, "google", "fav")
    session.persister.flush()

    assert find_section(new_tree, "fav")["items"][0]["type"] == "folder"
    assert isinstance(session.persister.last_error, StoreError)
    # the worker only records the failure; the session picks it up when read
    assert session.notice == "Folder Created"
    assert session.to_dict()["notice"] == "Could not save changes"
    assert session.check_saves() is None
    session.persister.close()


def test_plain_reorder_clears_previous_notice(tree):
    session = DragSession()
    session.start_item_drag(tree, "youtube", "fav")
    tree = session.drop_on_item(tree, "google", "fav")
    assert session.notice == "Folder Created"

    session.start_item_drag(tree, "work", "fav")
    tree = session.drop_on_item(tree, "github", "fav")
    assert ids(find_section(tree, "fav")["items"])[1:] == ["work", "github"]
    assert session.notice is None

    session.start_section_drag(tree, 0)
    session.drop_on_section_slot(tree, 1)
    assert session.notice is None


def test_persister_reports_errors_to_callback():
    errors = []
    persister = Persister(FailingStore(), on_error=errors.append)
    persister.submit([])
    persister.close()
    assert len(errors) == 1


def test_persister_hands_each_failure_over_once():
    persister = Persister(FailingStore())
    persister.submit([])
    persister.flush()
    assert isinstance(persister.take_error(), StoreError)
    assert persister.take_error() is None
    persister.close()
