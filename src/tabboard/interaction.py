"""Drag lifecycle glue between raw drag events and the engine.

A ``DragSession`` is the whole transient UI state of one board: what is being
dragged, what is hovered, which folder is open and dimmed, and the last
notice to toast. Drops go through the engine exactly once and every committed
tree is handed to a ``Persister`` without waiting for the write.
"""

import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait

from . import engine
from .locator import locate
from .models import is_system
from .store import StoreError

log = logging.getLogger(__name__)

ITEM = "ITEM"
SECTION_REORDER = "SECTION_REORDER"

# drop zone -> payload type it accepts
ZONES = {
    "item": ITEM,
    "section": ITEM,
    "background": ITEM,
    "cancel": ITEM,
    "remove": ITEM,
    "section_slot": SECTION_REORDER,
}

NOTICES = {
    "folder_created": "Folder Created",
    "added_to_folder": "Added to Folder",
    "moved_to_section": "Moved to Section",
    "moved_home": "Moved to Home",
    "removed": "Deleted",
}


def encode_payload(kind, **fields):
    return json.dumps(dict(fields, type=kind))


def parse_payload(raw, kind=None):
    """Decode a drag payload, or None when it is not one we produced."""
    if isinstance(raw, dict):
        data = raw
    else:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            return None
    if not isinstance(data, dict):
        return None
    ptype = data.get("type")
    if kind is not None and ptype != kind:
        return None
    if ptype == ITEM:
        if not isinstance(data.get("itemId"), str) or not data["itemId"]:
            return None
        return data
    if ptype == SECTION_REORDER:
        if not isinstance(data.get("index"), int) or isinstance(data["index"], bool):
            return None
        return data
    return None


class Persister:
    """Saves trees on a background worker; the caller never waits.

    Failures are recorded for the owning thread to pick up with ``take_error``;
    ``on_error`` runs on the worker thread.
    """

    def __init__(self, store, on_error=None, executor=None):
        self.store = store
        self.on_error = on_error
        self.last_error = None
        self._unseen = None
        self._lock = threading.Lock()
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="tabboard-save")
        self._pending = []

    def submit(self, tree):
        fut = self._executor.submit(self._save, tree)
        self._pending = [f for f in self._pending if not f.done()] + [fut]
        return fut

    def _save(self, tree):
        try:
            self.store.save(tree)
        except Exception as e:
            # the in-memory tree stays authoritative; the next save supersedes this one
            with self._lock:
                self.last_error = self._unseen = e
            log.warning("saving the tree failed: %s", e, exc_info=not isinstance(e, StoreError))
            if self.on_error:
                self.on_error(e)
            return False
        with self._lock:
            self.last_error = None
        return True

    def take_error(self):
        """The last failure not yet reported, cleared on read."""
        with self._lock:
            exc, self._unseen = self._unseen, None
        return exc

    def flush(self, timeout=None):
        wait(self._pending, timeout=timeout)
        self._pending = [f for f in self._pending if not f.done()]

    def close(self):
        self.flush()
        self._executor.shutdown(wait=True)


class DragSession:

    def __init__(self, store=None, persister=None):
        if persister is None and store is not None:
            persister = Persister(store)
        self.persister = persister
        self.open_folder_id = None
        self.notice = None
        self._reset_drag()

    def _reset_drag(self):
        self.payload = None
        self.hover_id = None
        self.dragging = False
        self.folder_dimmed = False

    def check_saves(self):
        """Turn a background save failure into a notice; call from the UI thread."""
        exc = self.persister.take_error() if self.persister is not None else None
        if exc is None:
            return None
        if isinstance(exc, StoreError):
            self.notice = "Could not save changes"
        else:
            self.notice = "Could not save changes (unexpected error)"
        return exc

    def to_dict(self):
        self.check_saves()
        return {
            "payload": self.payload,
            "hover_id": self.hover_id,
            "dragging": self.dragging,
            "open_folder_id": self.open_folder_id,
            "folder_dimmed": self.folder_dimmed,
            "notice": self.notice,
        }

    # ---- folder modal ----
    def open_folder(self, folder_id):
        self.open_folder_id = folder_id
        self.folder_dimmed = False

    def close_folder(self):
        self.open_folder_id = None
        self.folder_dimmed = False

    def drag_leave_folder(self, inside):
        """Pointer left (or re-entered) the open folder while dragging."""
        if self.dragging and self.open_folder_id:
            self.folder_dimmed = not inside

    # ---- drag start / over / end ----
    def start_item_drag(self, tree, item_id, section_id=None):
        loc = locate(tree, item_id)
        if loc is None or is_system(loc.node):
            return None
        if section_id and loc.section["id"] != section_id:
            return None
        self._reset_drag()
        self.payload = encode_payload(ITEM, itemId=item_id, sectionId=loc.section["id"])
        self.dragging = True
        return self.payload

    def start_section_drag(self, tree, index):
        if not 0 <= index < len(tree) or tree[index].get("locked"):
            return None
        self._reset_drag()
        self.payload = encode_payload(SECTION_REORDER, index=index)
        self.dragging = True
        return self.payload

    def drag_over(self, zone, target_id=None, payload=None):
        """True when ``zone`` would accept the in-flight payload."""
        kind = ZONES.get(zone)
        if kind is None:
            return False
        data = parse_payload(payload if payload is not None else self.payload, kind)
        if data is None:
            return False
        self.hover_id = target_id
        return True

    def drag_end(self):
        self._reset_drag()

    cancel = drag_end

    # ---- drops ----
    def _item_payload(self, payload):
        data = parse_payload(payload if payload is not None else self.payload, ITEM)
        if data is None:
            log.debug("ignoring drop with malformed payload %r", payload)
            self._reset_drag()
        return data

    def _commit(self, tree, outcome):
        self._reset_drag()
        if outcome.action is None:
            return tree
        if self.open_folder_id and self.open_folder_id in outcome.pruned:
            self.close_folder()
        self.notice = NOTICES.get(outcome.action)
        if self.persister is not None:
            self.persister.submit(outcome.tree)
        return outcome.tree

    def drop_on_item(self, tree, target_id, target_section_id=None, payload=None):
        data = self._item_payload(payload)
        if data is None:
            return tree
        outcome = engine.apply_drop(tree, data["itemId"], data.get("sectionId"),
                                    target_id, target_section_id)
        return self._commit(tree, outcome)

    def drop_on_section(self, tree, section_id, payload=None):
        data = self._item_payload(payload)
        if data is None:
            return tree
        return self._commit(tree, engine.drop_on_section(tree, data["itemId"], section_id))

    def drop_on_background(self, tree, payload=None):
        data = self._item_payload(payload)
        if data is None or not data.get("sectionId"):
            self._reset_drag()
            return tree
        outcome = engine.drop_on_background(tree, data["itemId"], data["sectionId"])
        return self._commit(tree, outcome)

    def drop_on_remove(self, tree, payload=None):
        data = self._item_payload(payload)
        if data is None:
            return tree
        return self._commit(tree, engine.remove_node(tree, data["itemId"]))

    def drop_on_cancel(self, tree, payload=None):
        self._reset_drag()
        return tree

    def drop_on_section_slot(self, tree, drop_index, payload=None):
        data = parse_payload(payload if payload is not None else self.payload, SECTION_REORDER)
        if data is None:
            self._reset_drag()
            return tree
        return self._commit(tree, engine.reorder_sections(tree, data["index"], drop_index))
