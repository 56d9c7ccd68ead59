"""Client for a remote tabboard dashboard (what the browser popup talks to)."""

import json
import logging
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from . import config
from .models import normalize_tree, MalformedTree
from .store import AuthError, StoreError

log = logging.getLogger(__name__)

API_PATH = "/api/bookmarks"
PASSWORD_HEADER = "x-site-password"


class RemoteTreeStore:

    def __init__(self, base_url, password, timeout=None):
        self.base_url = base_url.rstrip("/")
        self.password = password
        self.timeout = config.REMOTE_TIMEOUT if timeout is None else timeout

    def _request(self, method, query="", payload=None):
        body = None
        headers = {PASSWORD_HEADER: self.password, "Accept": "application/json"}
        if payload is not None:
            body = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = Request(self.base_url + API_PATH + query, data=body, headers=headers, method=method)
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except HTTPError as e:
            if e.code == 401:
                raise AuthError("dashboard rejected the password") from e
            raise StoreError(f"{method} {API_PATH} failed with HTTP {e.code}") from e
        except (URLError, OSError) as e:
            raise StoreError(f"dashboard unreachable: {e}") from e
        try:
            return json.loads(raw.decode("utf-8")) if raw else None
        except (UnicodeDecodeError, ValueError) as e:
            raise StoreError(f"dashboard sent invalid JSON: {e}") from e

    def load(self):
        try:
            return normalize_tree(self._request("GET"))
        except MalformedTree as e:
            raise StoreError(f"dashboard sent a malformed tree: {e}") from e

    def save(self, tree):
        self._request("PUT", payload=tree)
        log.debug("pushed %d sections to %s", len(tree), self.base_url)

    def add_bookmark(self, title, url, icon=None, section_id=None):
        payload = {"title": title, "url": url}
        if icon:
            payload["icon"] = icon
        if section_id:
            payload["section_id"] = section_id
        return self._request("POST", payload=payload)

    def delete(self, node_id):
        return self._request("DELETE", query="?id=" + quote(node_id, safe=""))
