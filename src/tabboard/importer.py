"""Browser bookmark import.

Both readers flatten whatever folder structure the browser had into a list
of ``{"title", "url"}`` dicts; the engine decides where they end up.
"""

import json
import logging
import os
import sys
from html.parser import HTMLParser
from pathlib import Path

from .urls import guess_title_from_url, is_importable

log = logging.getLogger(__name__)


class NetscapeBookmarksParser(HTMLParser):
    """Collects links from a Netscape ``bookmarks.html`` export."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.links = []
        self.folders = []
        self.in_h3 = False
        self.h3_text = []
        self.in_a = False
        self.a_text = []
        self.a_href = ""

    def handle_starttag(self, tag, attrs):
        tl = tag.lower()
        if tl == "h3":
            self.in_h3 = True
            self.h3_text = []
        elif tl == "a":
            self.in_a = True
            self.a_text = []
            self.a_href = ""
            for k, v in attrs:
                if k.lower() == "href":
                    self.a_href = v or ""

    def handle_endtag(self, tag):
        tl = tag.lower()
        if tl == "h3":
            self.in_h3 = False
            self.folders.append("".join(self.h3_text).strip())
        elif tl == "a":
            self.in_a = False
            self._add("".join(self.a_text), self.a_href)

    def handle_data(self, data):
        if self.in_h3: self.h3_text.append(data)
        if self.in_a:  self.a_text.append(data)

    def _add(self, title, href):
        href = (href or "").strip()
        if not is_importable(href):
            return
        self.links.append({"title": title.strip() or guess_title_from_url(href), "url": href})


def parse_bookmarks_html(data: bytes) -> list:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        text = data.decode("latin-1", errors="ignore")
    parser = NetscapeBookmarksParser()
    parser.feed(text)
    parser.close()
    log.debug("bookmarks.html: %d links in %d folders", len(parser.links), len(parser.folders))
    return parser.links


def _walk_chrome(node, out):
    kind = node.get("type")
    if kind == "url":
        url = (node.get("url") or "").strip()
        if is_importable(url):
            out.append({"title": (node.get("name") or "").strip() or guess_title_from_url(url), "url": url})
    elif kind == "folder":
        for child in node.get("children", []):
            _walk_chrome(child, out)


def parse_chrome_bookmarks(data: dict) -> list:
    """Links from a Chrome profile ``Bookmarks`` document (bar, other, synced)."""
    out = []
    for root in (data.get("roots") or {}).values():
        if isinstance(root, dict):
            _walk_chrome(root, out)
    return out


def parse_bookmarks_bytes(data: bytes) -> list:
    """Sniff between a Chrome ``Bookmarks`` JSON document and bookmarks.html."""
    if data.lstrip()[:1] == b"{":
        try:
            doc = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise ValueError(f"not a valid Chrome bookmarks file: {e}") from e
        if not isinstance(doc, dict):
            raise ValueError("not a valid Chrome bookmarks file")
        return parse_chrome_bookmarks(doc)
    return parse_bookmarks_html(data)


def read_bookmarks_file(path) -> list:
    return parse_bookmarks_bytes(Path(path).read_bytes())


def chrome_bookmarks_path(profile: str = "Default") -> Path:
    home = Path.home()
    if os.name == "nt":
        return home / "AppData" / "Local" / "Google" / "Chrome" / "User Data" / profile / "Bookmarks"
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / "Google" / "Chrome" / profile / "Bookmarks"
    path = home / ".config" / "google-chrome" / profile / "Bookmarks"
    if not path.exists():
        path = home / ".config" / "chromium" / profile / "Bookmarks"
    return path
