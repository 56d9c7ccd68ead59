# app.py: the dashboard's REST surface
# - GET/POST/PUT/DELETE /api/bookmarks (full tree, add one link, overwrite, delete by id)
# - /api/drop and /api/sections/reorder run the drag & drop engine server side
# - /api/import takes a bookmarks.html or Chrome "Bookmarks" upload
# - /api/settings holds the background choice
#
# Auth: every /api route needs the shared secret in the x-site-password header.
# Storage: one CSV file (see store.py), path from TABBOARD_DATA.

import hmac
import logging
from functools import wraps

from flask import Flask, jsonify, request

from . import config, engine, favicon
from .importer import parse_bookmarks_bytes
from .locator import find_section, locate
from .models import MalformedTree, is_system, normalize_tree
from .settings import normalize_settings, resolve_background
from .store import CsvTreeStore, StoreError

log = logging.getLogger(__name__)

app = Flask(__name__)
app.config.update(
    DATA_FILE=config.DATA_FILE,
    SITE_PASSWORD=config.SITE_PASSWORD,
)

PASSWORD_HEADER = "x-site-password"
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, PUT, OPTIONS",
    "Access-Control-Allow-Headers": f"Content-Type, {PASSWORD_HEADER}",
}


class ApiError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


@app.errorhandler(ApiError)
def handle_api_error(e):
    return jsonify({"error": e.message}), e.status


@app.errorhandler(StoreError)
def handle_store_error(e):
    log.warning("store failure: %s", e)
    return jsonify({"error": "Storage unavailable"}), 500


@app.after_request
def add_cors_headers(resp):
    if request.path.startswith("/api/"):
        resp.headers.update(CORS_HEADERS)
    return resp


# ----------------------------
# Helpers
# ----------------------------
def get_store():
    stores = app.extensions.setdefault("tabboard_stores", {})
    path = app.config["DATA_FILE"]
    if path not in stores:
        stores[path] = CsvTreeStore(path)
    return stores[path]


def password_required(fn):
    @wraps(fn)
    def wrapper(*a, **kw):
        expected = app.config.get("SITE_PASSWORD") or ""
        given = request.headers.get(PASSWORD_HEADER) or ""
        if not given or not hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8")):
            raise ApiError(401, "Unauthorized")
        return fn(*a, **kw)
    return wrapper


def json_body(kind=dict):
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, kind):
        raise ApiError(400, "Invalid JSON body")
    return data


def commit(mutate):
    """Load the tree, apply ``mutate`` and save when something changed."""
    store = get_store()
    with store.lock:
        outcome = mutate(store.load())
        if outcome.action is not None:
            store.save(outcome.tree)
    return outcome


def outcome_json(outcome):
    return jsonify({"action": outcome.action, "pruned": list(outcome.pruned), "tree": outcome.tree})


# ----------------------------
# Routes
# ----------------------------
@app.route("/api/bookmarks", methods=["GET"])
@password_required
def get_bookmarks():
    return jsonify(get_store().load())


@app.route("/api/bookmarks", methods=["POST"])
@password_required
def add_bookmark():
    body = json_body()
    title, url = body.get("title"), body.get("url")
    if not isinstance(title, str) or not isinstance(url, str) or not title.strip() or not url.strip():
        raise ApiError(400, "Missing title or url")
    section_id = body.get("section_id")
    icon = body.get("icon") or body.get("favicon")

    outcome = commit(lambda tree: engine.add_link(tree, section_id, title, url, icon=icon))
    if outcome.action is None:
        section = find_section(get_store().load(), section_id) if section_id else None
        if section_id and section is None:
            raise ApiError(404, "Unknown section")
        if section is not None and section.get("locked"):
            raise ApiError(403, "Section is locked")
        raise ApiError(400, "Invalid bookmark")
    return jsonify(outcome.node), 201


@app.route("/api/bookmarks", methods=["PUT"])
@password_required
def put_bookmarks():
    try:
        tree = normalize_tree(json_body(list))
    except MalformedTree as e:
        raise ApiError(400, str(e)) from e
    store = get_store()
    with store.lock:
        store.save(tree)
    return jsonify({"success": True})


@app.route("/api/bookmarks", methods=["DELETE"])
@password_required
def delete_bookmark():
    node_id = request.args.get("id")
    if not node_id:
        raise ApiError(400, "Missing id")
    tree = get_store().load()
    section = find_section(tree, node_id)
    if section is not None:
        if section.get("locked"):
            raise ApiError(403, "Section is locked")
        commit(lambda t: engine.remove_section(t, node_id))
        return jsonify({"success": True})
    loc = locate(tree, node_id)
    if loc is None:
        raise ApiError(404, "Not found")
    if is_system(loc.node):
        raise ApiError(403, "System links cannot be deleted")
    commit(lambda t: engine.remove_node(t, node_id))
    return jsonify({"success": True})


# ---- Drag & drop ----
@app.route("/api/drop", methods=["POST"])
@password_required
def drop():
    body = json_body()
    source_id = body.get("source_id")
    zone = body.get("zone", "item")
    if not isinstance(source_id, str) or not source_id:
        raise ApiError(400, "Missing source_id")
    if zone == "item":
        outcome = commit(lambda t: engine.apply_drop(
            t, source_id, body.get("source_section_id"),
            body.get("target_id"), body.get("target_section_id")))
    elif zone == "section":
        outcome = commit(lambda t: engine.drop_on_section(t, source_id, body.get("target_section_id")))
    elif zone == "background":
        outcome = commit(lambda t: engine.drop_on_background(t, source_id, body.get("source_section_id")))
    else:
        raise ApiError(400, f"Unknown drop zone: {zone}")
    return outcome_json(outcome)


@app.route("/api/sections/reorder", methods=["POST"])
@password_required
def reorder_sections():
    body = json_body()
    try:
        src, dst = int(body.get("from")), int(body.get("to"))
    except (TypeError, ValueError) as e:
        raise ApiError(400, "from and to must be integers") from e
    return outcome_json(commit(lambda t: engine.reorder_sections(t, src, dst)))


# ---- Import ----
@app.route("/api/import", methods=["POST"])
@password_required
def import_bookmarks():
    f = request.files.get("file")
    if not f or not f.filename:
        raise ApiError(400, "Please upload a bookmarks file")
    try:
        links = parse_bookmarks_bytes(f.read())
    except ValueError as e:
        raise ApiError(400, str(e)) from e
    title = (request.form.get("title") or "").strip()
    if title:
        outcome = commit(lambda t: engine.import_links(t, links, title))
    else:
        outcome = commit(lambda t: engine.import_links(t, links))
    imported = len(outcome.node["items"]) if outcome.node else 0
    return jsonify({"imported": imported, "tree": outcome.tree})


# ---- Settings & favicons ----
@app.route("/api/settings", methods=["GET"])
@password_required
def get_settings():
    settings = get_store().load_settings()
    return jsonify({"settings": settings, "background_url": resolve_background(settings)["background_url"]})


@app.route("/api/settings", methods=["PUT"])
@password_required
def put_settings():
    try:
        settings = normalize_settings(json_body())
    except ValueError as e:
        raise ApiError(400, str(e)) from e
    return jsonify({"settings": get_store().save_settings(settings)})


@app.route("/api/favicon", methods=["GET"])
@password_required
def get_favicon():
    url = request.args.get("url", "")
    try:
        attempt = int(request.args.get("attempt", "0"))
    except ValueError as e:
        raise ApiError(400, "attempt must be an integer") from e
    return jsonify({"icon": favicon.icon_url(url, attempt)})
