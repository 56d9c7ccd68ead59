"""Tree shapes shared by the engine, the stores and the REST surface.

A tree is a list of sections; each section holds an ordered list of links and
folders; folders hold links only. Everything is plain dicts and lists so a
tree is its own JSON document.
"""

import time
import uuid

DEFAULT_FOLDER_TITLE = "New Folder"
IMPORTED_SECTION_TITLE = "Imported Bookmarks"

LINK = "link"
FOLDER = "folder"


class MalformedTree(ValueError):
    """Raised when untrusted data does not describe a valid tree."""


def new_id(kind="node"):
    ms = int(time.time() * 1000)
    return f"{kind}_{ms}_{uuid.uuid4().hex[:12]}"


def make_link(title, url, icon="", node_id=None, system=False, action=None):
    link = {
        "id": node_id or new_id("link"),
        "type": LINK,
        "title": title,
        "url": url,
        "icon": icon or "",
    }
    if system:
        link["system"] = True
        if action:
            link["action"] = action
    return link


def make_folder(title=DEFAULT_FOLDER_TITLE, children=None, node_id=None):
    return {
        "id": node_id or new_id("folder"),
        "type": FOLDER,
        "title": title,
        "children": list(children or []),
    }


def make_section(title, items=None, locked=False, section_id=None):
    return {
        "id": section_id or new_id("sec"),
        "title": title,
        "locked": bool(locked),
        "items": list(items or []),
    }


def is_folder(node):
    return node.get("type") == FOLDER


def is_link(node):
    return node.get("type", LINK) == LINK


def is_system(node):
    return bool(node.get("system"))


def default_tree():
    """Seed tree used when nothing has been persisted yet."""
    return [
        make_section("Favorites", section_id="favorites", items=[
            make_link("Google", "https://google.com", node_id="l_1"),
            make_link("YouTube", "https://youtube.com", node_id="l_2"),
            make_link("GitHub", "https://github.com", node_id="l_3"),
            make_link("Twitter", "https://twitter.com", node_id="l_4"),
        ]),
        make_section("System Tools", section_id="system_tools", locked=True, items=[
            make_link("Clear Data", "#", node_id="sys_1", system=True, action="CLEAR_DATA"),
        ]),
    ]


# ----------------------------
# Validation of untrusted input
# ----------------------------
def _text(value, what):
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedTree(f"{what} must be a string")
    return value


def _node_id(raw, seen):
    nid = raw.get("id")
    if not isinstance(nid, str) or not nid.strip():
        raise MalformedTree("every node needs a non-empty string id")
    if nid in seen:
        raise MalformedTree(f"duplicate id: {nid}")
    seen.add(nid)
    return nid


def _normalize_link(raw, seen):
    nid = _node_id(raw, seen)
    # The dashboard variant stores the icon as "favicon" and the title as "name".
    title = _text(raw.get("title", raw.get("name")), "title")
    icon = _text(raw.get("icon", raw.get("favicon")), "icon")
    return make_link(title, _text(raw.get("url"), "url"), icon=icon, node_id=nid,
                     system=bool(raw.get("system", raw.get("isSystem"))),
                     action=_text(raw.get("action"), "action") or None)


def _normalize_node(raw, seen, nested):
    if not isinstance(raw, dict):
        raise MalformedTree("nodes must be objects")
    kind = raw.get("type") or (FOLDER if "children" in raw else LINK)
    if kind == LINK:
        return _normalize_link(raw, seen)
    if kind != FOLDER:
        raise MalformedTree(f"unknown node type: {kind!r}")
    if nested:
        raise MalformedTree("folders cannot contain folders")
    nid = _node_id(raw, seen)
    children = raw.get("children", raw.get("items")) or []
    if not isinstance(children, list):
        raise MalformedTree("folder children must be a list")
    title = _text(raw.get("title", raw.get("name")), "title") or DEFAULT_FOLDER_TITLE
    return make_folder(title, [_normalize_node(c, seen, True) for c in children], node_id=nid)


def normalize_tree(data):
    """Validate ``data`` and return a canonical deep copy of it.

    Accepts the keys used by older clients (``name``, ``favicon``,
    ``isLocked``, ``isSystem``). Raises MalformedTree on anything that would
    break the two-level layout or id uniqueness.
    """
    if not isinstance(data, list):
        raise MalformedTree("tree must be a list of sections")
    seen = set()
    tree = []
    for raw in data:
        if not isinstance(raw, dict):
            raise MalformedTree("sections must be objects")
        sid = _node_id(raw, seen)
        items = raw.get("items") or []
        if not isinstance(items, list):
            raise MalformedTree("section items must be a list")
        tree.append(make_section(
            _text(raw.get("title"), "title"),
            [_normalize_node(n, seen, False) for n in items],
            locked=raw.get("locked", raw.get("isLocked", False)),
            section_id=sid,
        ))
    return tree
