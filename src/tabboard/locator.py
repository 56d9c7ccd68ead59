"""Lookups over a bookmark tree.

Nothing here mutates. Every structural change in the engine goes through
``locate`` so the two-level search order lives in one place.
"""

from collections import namedtuple

from .models import is_folder


class Location(namedtuple("Location", "node parent_list section folder index")):
    __slots__ = ()

    @property
    def container_id(self):
        """Id of the folder holding the node, or of its section when at root."""
        if self.folder is not None:
            return self.folder["id"]
        return self.section["id"]

    @property
    def at_root(self):
        return self.folder is None


def index_of(items, node_id):
    for i, node in enumerate(items):
        if node.get("id") == node_id:
            return i
    return -1


def locate(tree, node_id):
    """Find ``node_id`` in a section root list or one level into its folders."""
    if not node_id:
        return None
    for section in tree:
        items = section["items"]
        idx = index_of(items, node_id)
        if idx != -1:
            return Location(items[idx], items, section, None, idx)
        for folder in items:
            if not is_folder(folder):
                continue
            children = folder["children"]
            idx = index_of(children, node_id)
            if idx != -1:
                return Location(children[idx], children, section, folder, idx)
    return None


def find_section(tree, section_id):
    for section in tree:
        if section["id"] == section_id:
            return section
    return None


def section_index(tree, section_id):
    return index_of(tree, section_id)


def find_container(tree, container_id):
    """Return ``(items, section, folder)`` for a section or a root-level folder id."""
    section = find_section(tree, container_id)
    if section is not None:
        return section["items"], section, None
    loc = locate(tree, container_id)
    if loc is None or not is_folder(loc.node) or not loc.at_root:
        return None
    return loc.node["children"], loc.section, loc.node


def iter_nodes(tree):
    """Yield ``(node, section, folder)`` for every node, depth first."""
    for section in tree:
        for node in section["items"]:
            yield node, section, None
            if is_folder(node):
                for child in node["children"]:
                    yield child, section, node
