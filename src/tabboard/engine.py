"""Bookmark-tree mutations.

Every function here is pure: it deep-copies the tree, edits the copy and
returns an ``Outcome``. A missing id, a system link or a stale intent never
raises; it returns the input tree untouched with ``action=None``.
"""

import copy
import logging
from collections import namedtuple

from . import favicon
from .locator import find_container, find_section, index_of, locate
from .models import (
    IMPORTED_SECTION_TITLE, is_folder, is_link, is_system,
    make_folder, make_link, make_section,
)
from .urls import canonical_url, guess_title_from_url, is_importable, normalize_url

log = logging.getLogger(__name__)

Outcome = namedtuple("Outcome", "tree action pruned node", defaults=(None,))

FALLBACK_SECTION_TITLE = "Bookmarks"


def _noop(tree, why):
    log.debug("no-op: %s", why)
    return Outcome(tree, None, ())


def _done(tree, action, pruned=(), node=None):
    log.info("%s%s", action, f" (pruned {', '.join(pruned)})" if pruned else "")
    return Outcome(tree, action, tuple(pruned), node)


def _detach(loc):
    """Remove the located node; drop its folder from the section if now empty."""
    del loc.parent_list[loc.index]
    folder = loc.folder
    if folder is None or folder["children"]:
        return []
    items = loc.section["items"]
    idx = index_of(items, folder["id"])
    if idx == -1:
        return []
    del items[idx]
    return [folder["id"]]


def _stale(loc, section_id):
    return bool(section_id) and loc.section["id"] != section_id


# ----------------------------
# Drag & drop
# ----------------------------
def apply_drop(tree, source_id, source_section_id, target_id, target_section_id):
    """Drop ``source_id`` onto the node ``target_id``."""
    if not source_id or not target_id:
        return _noop(tree, "drop without source or target")
    if source_id == target_id:
        return _noop(tree, "self drop")

    work = copy.deepcopy(tree)
    src = locate(work, source_id)
    tgt = locate(work, target_id)
    if src is None or tgt is None:
        return _noop(tree, f"unknown id in drop {source_id} -> {target_id}")
    if _stale(src, source_section_id) or _stale(tgt, target_section_id):
        return _noop(tree, "stale section ids in drop")
    if is_system(src.node) or is_system(tgt.node):
        return _noop(tree, "system links do not move")
    if src.section is not tgt.section and tgt.section.get("locked"):
        return _noop(tree, "locked section accepts no items")

    source, target = src.node, tgt.node
    same_list = src.parent_list is tgt.parent_list

    if is_folder(source):
        # folders only ever live at a section root
        if not tgt.at_root:
            return _noop(tree, "folder cannot go inside a folder")
        _detach(src)
        items = tgt.parent_list
        items.insert(index_of(items, target_id), source)
        return _done(work, "reordered" if same_list else "moved", node=source)

    if same_list and tgt.at_root and is_link(target):
        pruned = _detach(src)
        items = tgt.parent_list
        folder = make_folder(children=[target, source])
        items[index_of(items, target_id)] = folder
        return _done(work, "folder_created", pruned, folder)

    if is_folder(target):
        if src.folder is target:
            return _noop(tree, "already inside the folder")
        pruned = _detach(src)
        target["children"].insert(0, source)
        return _done(work, "added_to_folder", pruned, source)

    if same_list:
        _detach(src)
        items = tgt.parent_list
        items.insert(index_of(items, target_id), source)
        return _done(work, "reordered", node=source)

    pruned = _detach(src)
    if not tgt.at_root:
        items = tgt.parent_list
        items.insert(index_of(items, target_id), source)
        return _done(work, "moved", pruned, source)

    # Wrapping at root keeps nesting capped at one level.
    items = tgt.section["items"]
    folder = make_folder(children=[target, source])
    items[index_of(items, target_id)] = folder
    return _done(work, "folder_created", pruned, folder)


def _append_to_section(tree, source_id, section_id, action):
    work = copy.deepcopy(tree)
    src = locate(work, source_id)
    if src is None:
        return _noop(tree, f"unknown source {source_id}")
    section = find_section(work, section_id or src.section["id"])
    if section is None:
        return _noop(tree, f"unknown section {section_id}")
    if is_system(src.node):
        return _noop(tree, "system links do not move")
    if section.get("locked") and section is not src.section:
        return _noop(tree, "locked section accepts no items")
    pruned = _detach(src)
    section["items"].append(src.node)
    return _done(work, action, pruned, src.node)


def drop_on_section(tree, source_id, section_id):
    """Dropped on a section's background: append to that section's root."""
    return _append_to_section(tree, source_id, section_id, "moved_to_section")


def drop_on_background(tree, source_id, origin_section_id=None):
    """Dropped outside every container: back to the root of its own section."""
    return _append_to_section(tree, source_id, origin_section_id, "moved_home")


def reorder_item(tree, source_id, target_id):
    """Move ``source_id`` right before ``target_id`` within their shared list."""
    if source_id == target_id:
        return _noop(tree, "self drop")
    work = copy.deepcopy(tree)
    src = locate(work, source_id)
    tgt = locate(work, target_id)
    if src is None or tgt is None or src.parent_list is not tgt.parent_list:
        return _noop(tree, "reorder needs two siblings")
    if is_system(src.node):
        return _noop(tree, "system links do not move")
    items = src.parent_list
    del items[src.index]
    items.insert(index_of(items, target_id), src.node)
    return _done(work, "reordered", node=src.node)


def move_item(tree, source_id, container_id, index=None):
    """Move a node into a section root or a folder, at ``index`` or the end."""
    work = copy.deepcopy(tree)
    src = locate(work, source_id)
    dest = find_container(work, container_id)
    if src is None or dest is None:
        return _noop(tree, f"unknown id in move {source_id} -> {container_id}")
    items, section, folder = dest
    if is_system(src.node):
        return _noop(tree, "system links do not move")
    if folder is not None and is_folder(src.node):
        return _noop(tree, "folder cannot go inside a folder")
    if section.get("locked") and section is not src.section:
        return _noop(tree, "locked section accepts no items")

    if src.parent_list is items:
        del items[src.index]
        pruned = []
    else:
        pruned = _detach(src)
    if index is None or index >= len(items):
        items.append(src.node)
    else:
        items.insert(max(0, index), src.node)
    return _done(work, "moved", pruned, src.node)


def reorder_sections(tree, drag_index, drop_index):
    n = len(tree)
    if not (0 <= drag_index < n and 0 <= drop_index < n):
        return _noop(tree, f"section index out of range {drag_index} -> {drop_index}")
    if drag_index == drop_index:
        return _noop(tree, "section dropped on itself")
    if tree[drag_index].get("locked"):
        return _noop(tree, "locked sections stay put")
    work = copy.deepcopy(tree)
    section = work.pop(drag_index)
    work.insert(drop_index, section)
    return _done(work, "sections_reordered", node=section)


# ----------------------------
# Explicit edits
# ----------------------------
def remove_node(tree, node_id):
    work = copy.deepcopy(tree)
    loc = locate(work, node_id)
    if loc is None:
        return _noop(tree, f"unknown node {node_id}")
    if is_system(loc.node):
        return _noop(tree, "system links cannot be deleted")
    pruned = _detach(loc)
    return _done(work, "removed", pruned, loc.node)


def remove_section(tree, section_id):
    idx = index_of(tree, section_id)
    if idx == -1:
        return _noop(tree, f"unknown section {section_id}")
    if tree[idx].get("locked"):
        return _noop(tree, "locked sections cannot be deleted")
    work = copy.deepcopy(tree)
    section = work.pop(idx)
    return _done(work, "section_removed", node=section)


def add_section(tree, title):
    title = (title or "").strip()
    if not title:
        return _noop(tree, "section title required")
    work = copy.deepcopy(tree)
    section = make_section(title)
    work.append(section)
    return _done(work, "section_added", node=section)


def _default_section(work):
    for section in work:
        if not section.get("locked"):
            return section
    section = make_section(FALLBACK_SECTION_TITLE)
    work.append(section)
    return section


def add_link(tree, section_id, title, url, folder_id=None, icon=None):
    """Append a new link to a section (first unlocked one when ``section_id`` is None)."""
    url = normalize_url(url)
    if not url:
        return _noop(tree, "link url required")
    if not is_importable(url):
        return _noop(tree, f"unsupported link scheme in {url[:40]}")
    work = copy.deepcopy(tree)
    section = find_section(work, section_id) if section_id else _default_section(work)
    if section is None:
        return _noop(tree, f"unknown section {section_id}")
    if section.get("locked"):
        return _noop(tree, "locked section accepts no items")
    items = section["items"]
    if folder_id:
        idx = index_of(items, folder_id)
        if idx == -1 or not is_folder(items[idx]):
            return _noop(tree, f"unknown folder {folder_id}")
        items = items[idx]["children"]
    link = make_link((title or "").strip() or guess_title_from_url(url), url,
                     icon=icon or favicon.icon_url(url) or "")
    items.append(link)
    return _done(work, "link_added", node=link)


def rename(tree, node_id, title):
    title = (title or "").strip()
    if not title:
        return _noop(tree, "title required")
    work = copy.deepcopy(tree)
    section = find_section(work, node_id)
    if section is not None:
        if section.get("locked"):
            return _noop(tree, "locked sections keep their title")
        section["title"] = title
        return _done(work, "renamed", node=section)
    loc = locate(work, node_id)
    if loc is None:
        return _noop(tree, f"unknown node {node_id}")
    if is_system(loc.node):
        return _noop(tree, "system links cannot be renamed")
    loc.node["title"] = title
    return _done(work, "renamed", node=loc.node)


def import_links(tree, links, title=IMPORTED_SECTION_TITLE):
    """Add a section holding ``links`` (``{title, url}`` dicts), duplicates dropped."""
    seen = set()
    items = []
    for raw in links:
        url = normalize_url(raw.get("url", ""))
        if not url:
            continue
        key = canonical_url(url)
        if key in seen:
            continue
        seen.add(key)
        name = (raw.get("title") or "").strip() or guess_title_from_url(url)
        items.append(make_link(name, url, icon=favicon.icon_url(url) or ""))
    if not items:
        return _noop(tree, "nothing to import")
    work = copy.deepcopy(tree)
    section = make_section(title, items)
    work.append(section)
    return _done(work, "imported", node=section)
