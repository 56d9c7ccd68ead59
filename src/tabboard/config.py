import logging
import os

DATA_FILE = os.environ.get("TABBOARD_DATA", "bookmarks.csv")
SITE_PASSWORD = os.environ.get("SITE_PASSWORD", "password")

HOST = os.environ.get("TABBOARD_HOST", "127.0.0.1")
PORT = int(os.environ.get("TABBOARD_PORT", "5000"))
LOG_LEVEL = os.environ.get("TABBOARD_LOG_LEVEL", "INFO")

REMOTE_URL = os.environ.get("TABBOARD_REMOTE_URL", "")
REMOTE_TIMEOUT = float(os.environ.get("TABBOARD_REMOTE_TIMEOUT", "10"))


def setup_logging(level=LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )
