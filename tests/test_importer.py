import json
from pathlib import Path

import pytest

from tabboard.importer import (
    parse_bookmarks_bytes, parse_bookmarks_html, parse_chrome_bookmarks, read_bookmarks_file,
)

BOOKMARKS_HTML = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<TITLE>Bookmarks</TITLE>
<DL><p>
  <DT><H3 ADD_DATE="1">Bookmarks bar</H3>
  <DL><p>
    <DT><A HREF="https://python.org/">Python &amp; Friends</A>
    <DT><H3>Nested</H3>
    <DL><p>
      <DT><A HREF="https://flask.palletsprojects.com">Flask</A>
    </DL><p>
    <DT><A HREF="javascript:alert(1)">Bookmarklet</A>
    <DT><A HREF="https://example.org/page"></A>
  </DL><p>
</DL><p>
"""


def test_html_links_are_flattened():
    links = parse_bookmarks_html(BOOKMARKS_HTML.encode("utf-8"))
    assert links == [
        {"title": "Python & Friends", "url": "https://python.org/"},
        {"title": "Flask", "url": "https://flask.palletsprojects.com"},
        {"title": "example.org", "url": "https://example.org/page"},
    ]


def test_html_falls_back_to_latin1():
    data = '<DL><DT><A HREF="https://cafe.example">Caf\xe9</A></DL>'.encode("latin-1")
    assert parse_bookmarks_html(data) == [{"title": "Caf\xe9", "url": "https://cafe.example"}]


CHROME = {
    "version": 1,
    "roots": {
        "bookmark_bar": {"type": "folder", "name": "Bookmarks bar", "children": [
            {"type": "url", "name": "GitHub", "url": "https://github.com"},
            {"type": "folder", "name": "Dev", "children": [
                {"type": "url", "name": "", "url": "https://pypi.org/project/flask/"},
                {"type": "url", "name": "Settings", "url": "chrome://settings"},
            ]},
        ]},
        "other": {"type": "folder", "name": "Other", "children": [
            {"type": "url", "name": "Docs", "url": "https://docs.python.org"},
        ]},
        "sync_transaction_version": "1",
    },
}


def test_chrome_roots_are_walked():
    assert parse_chrome_bookmarks(CHROME) == [
        {"title": "GitHub", "url": "https://github.com"},
        {"title": "pypi.org", "url": "https://pypi.org/project/flask/"},
        {"title": "Docs", "url": "https://docs.python.org"},
    ]


def test_bytes_are_sniffed():
    assert len(parse_bookmarks_bytes(json.dumps(CHROME).encode("utf-8"))) == 3
    assert len(parse_bookmarks_bytes(BOOKMARKS_HTML.encode("utf-8"))) == 3
    assert parse_bookmarks_bytes(b"plain text, no links") == []


@pytest.mark.parametrize("data", [b"{not json", b"  {\xff}"])
def test_broken_chrome_file_raises(data):
    with pytest.raises(ValueError):
        parse_bookmarks_bytes(data)


def test_read_from_disk(tmp_path: Path):
    path = tmp_path / "Bookmarks"
    path.write_text(json.dumps(CHROME), encoding="utf-8")
    assert read_bookmarks_file(path)[0]["title"] == "GitHub"
