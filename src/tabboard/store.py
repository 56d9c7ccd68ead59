"""Tree stores.

``CsvTreeStore`` keeps the tree as flat rows that point at their parent by id
(no nesting in the file). Settings live in the same file as ``setting`` rows.
"""

import copy
import csv
import logging
import os
import threading

from .models import FOLDER, LINK, default_tree, is_folder, make_folder, make_link, make_section
from .settings import DEFAULT_SETTINGS, normalize_settings

log = logging.getLogger(__name__)

# CSV schema:
# rowtype,id,parent_id,order,name,url,icon,flags,action
FIELDS = ["rowtype", "id", "parent_id", "order", "name", "url", "icon", "flags", "action"]
SECTION = "section"
SETTING = "setting"


class StoreError(Exception):
    """Loading or saving the tree failed."""


class AuthError(StoreError):
    """The remote store rejected our password."""


# ----------------------------
# Tree <-> rows
# ----------------------------
def _node_rows(node, parent_id, order):
    if is_folder(node):
        yield dict(rowtype=FOLDER, id=node["id"], parent_id=parent_id, order=str(order),
                   name=node.get("title", ""))
        for i, child in enumerate(node["children"]):
            yield from _node_rows(child, node["id"], i)
    else:
        yield dict(rowtype=LINK, id=node["id"], parent_id=parent_id, order=str(order),
                   name=node.get("title", ""), url=node.get("url", ""), icon=node.get("icon", ""),
                   flags="system" if node.get("system") else "", action=node.get("action") or "")


def tree_to_rows(tree):
    rows = []
    for i, section in enumerate(tree):
        rows.append(dict(rowtype=SECTION, id=section["id"], parent_id="", order=str(i),
                         name=section.get("title", ""),
                         flags="locked" if section.get("locked") else ""))
        for j, node in enumerate(section["items"]):
            rows.extend(_node_rows(node, section["id"], j))
    return rows


def _order(r):
    try:
        return int(r.get("order") or 0)
    except ValueError:
        return 0


def rows_to_tree(rows):
    children = {}
    for r in rows:
        if r.get("rowtype") in (FOLDER, LINK):
            children.setdefault(r.get("parent_id", ""), []).append(r)
    for lst in children.values():
        lst.sort(key=_order)

    def build(r, nested):
        if r["rowtype"] == FOLDER and not nested:
            kids = [build(c, True) for c in children.get(r["id"], []) if c["rowtype"] == LINK]
            return make_folder(r.get("name", ""), kids, node_id=r["id"])
        flags = r.get("flags", "")
        return make_link(r.get("name", ""), r.get("url", ""), icon=r.get("icon", ""), node_id=r["id"],
                         system="system" in flags, action=r.get("action") or None)

    sections = sorted((r for r in rows if r.get("rowtype") == SECTION), key=_order)
    tree = []
    for r in sections:
        items = [build(c, False) for c in children.get(r["id"], [])]
        tree.append(make_section(r.get("name", ""), items, locked="locked" in r.get("flags", ""),
                                 section_id=r["id"]))
    return tree


# ----------------------------
# Stores
# ----------------------------
class CsvTreeStore:

    def __init__(self, path):
        self.path = str(path)
        self.lock = threading.RLock()

    def _read_rows(self):
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, newline="", encoding="utf-8") as f:
                rows = list(csv.DictReader(f))
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            raise StoreError(f"cannot read {self.path}: {e}") from e
        for r in rows:
            for k in FIELDS:
                if r.get(k) is None:
                    r[k] = ""
        return rows

    def _write_rows(self, rows):
        tmp = self.path + ".tmp"
        try:
            with open(tmp, "w", newline="", encoding="utf-8") as f:
                w = csv.DictWriter(f, fieldnames=FIELDS)
                w.writeheader()
                for r in rows:
                    w.writerow({k: r.get(k, "") for k in FIELDS})
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreError(f"cannot write {self.path}: {e}") from e

    def load(self):
        with self.lock:
            rows = self._read_rows()
        if rows is None:
            log.info("no saved tree in %s, using the default one", self.path)
            return default_tree()
        return rows_to_tree(rows)

    def save(self, tree):
        with self.lock:
            settings = [r for r in (self._read_rows() or []) if r.get("rowtype") == SETTING]
            self._write_rows(tree_to_rows(tree) + settings)
        log.debug("saved %d sections to %s", len(tree), self.path)

    def load_settings(self):
        with self.lock:
            rows = self._read_rows() or []
        raw = {r["id"]: r.get("name", "") for r in rows if r.get("rowtype") == SETTING}
        if not raw:
            return dict(DEFAULT_SETTINGS)
        return normalize_settings(raw)

    def save_settings(self, settings):
        settings = normalize_settings(settings)
        with self.lock:
            rows = self._read_rows()
            if rows is None:
                rows = tree_to_rows(default_tree())
            rows = [r for r in rows if r.get("rowtype") != SETTING]
            rows.extend(dict(rowtype=SETTING, id=k, name=v) for k, v in sorted(settings.items()))
            self._write_rows(rows)
        return settings


class MemoryTreeStore:
    """Keeps a private copy of the tree in process; handy for embedding and tests."""

    def __init__(self, tree=None, settings=None):
        self._tree = copy.deepcopy(tree) if tree is not None else None
        self._settings = dict(settings) if settings else None
        self.saves = 0
        self.lock = threading.RLock()

    def load(self):
        with self.lock:
            if self._tree is None:
                return default_tree()
            return copy.deepcopy(self._tree)

    def save(self, tree):
        with self.lock:
            self._tree = copy.deepcopy(tree)
            self.saves += 1

    def load_settings(self):
        return dict(self._settings or DEFAULT_SETTINGS)

    def save_settings(self, settings):
        self._settings = normalize_settings(settings)
        return dict(self._settings)
