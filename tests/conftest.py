import sys
from pathlib import Path

import pytest

# Ensure src/ is on sys.path so tests run without an editable install.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
src_dir_str = str(SRC_DIR)
if src_dir_str not in sys.path:
    sys.path.insert(0, src_dir_str)

from tabboard.models import make_folder, make_link, make_section  # noqa: E402


@pytest.fixture
def tree():
    """Two editable sections, one folder, and the locked system section."""
    return [
        make_section("Favorites", section_id="fav", items=[
            make_link("Google", "https://google.com", node_id="google"),
            make_link("YouTube", "https://youtube.com", node_id="youtube"),
            make_link("GitHub", "https://github.com", node_id="github"),
            make_folder("Work", node_id="work", children=[
                make_link("Docs", "https://docs.example.com", node_id="docs"),
                make_link("Mail", "https://mail.example.com", node_id="mail"),
            ]),
        ]),
        make_section("Home", section_id="home", items=[
            make_link("News", "https://news.example.com", node_id="news"),
            make_folder("Solo", node_id="solo", children=[
                make_link("Wiki", "https://wiki.example.com", node_id="wiki"),
            ]),
        ]),
        make_section("System Tools", section_id="sys", locked=True, items=[
            make_link("Clear Data", "#", node_id="clear", system=True, action="CLEAR_DATA"),
        ]),
    ]
