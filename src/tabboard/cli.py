import argparse
import sys

from . import config, engine
from .importer import chrome_bookmarks_path, read_bookmarks_file
from .models import is_folder
from .remote import RemoteTreeStore
from .settings import MODES
from .store import CsvTreeStore, StoreError


def build_parser():
    parser = argparse.ArgumentParser(prog="tabboard", description="Manage a tabboard bookmark tree / run the dashboard")
    parser.add_argument("--data", default=None, help=f"CSV file (default: {config.DATA_FILE})")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    sub = parser.add_subparsers(dest="cmd")

    srv = sub.add_parser("serve", help="Run the dashboard API")
    srv.add_argument("--host", default=config.HOST)
    srv.add_argument("--port", type=int, default=config.PORT)
    srv.add_argument("--debug", action="store_true")

    sub.add_parser("list", help="Print the tree")

    adds = sub.add_parser("add-section", help="Add a section")
    adds.add_argument("--title", required=True)

    addl = sub.add_parser("add-link", help="Add a link to a section (or a folder in it)")
    addl.add_argument("--section", default=None, help="Section ID (default: first unlocked)")
    addl.add_argument("--folder", default=None)
    addl.add_argument("--url", required=True)
    addl.add_argument("--title", default="")

    ren = sub.add_parser("rename", help="Rename a section, folder or link")
    ren.add_argument("--id", required=True)
    ren.add_argument("--title", required=True)

    dele = sub.add_parser("delete", help="Delete a link or folder")
    dele.add_argument("--id", required=True)

    dels = sub.add_parser("delete-section", help="Delete a section and everything in it")
    dels.add_argument("--id", required=True)

    drop = sub.add_parser("drop", help="Drop one node onto another, a section, or the background")
    drop.add_argument("--source", required=True)
    where = drop.add_mutually_exclusive_group(required=True)
    where.add_argument("--target", help="Node ID to drop onto")
    where.add_argument("--section", help="Section ID to drop into")
    where.add_argument("--background", action="store_true", help="Pop back to the root of its section")

    movs = sub.add_parser("move-section", help="Move a section to another position")
    movs.add_argument("--from", dest="src", type=int, required=True)
    movs.add_argument("--to", dest="dst", type=int, required=True)

    imp = sub.add_parser("import", help="Import bookmarks.html or a Chrome Bookmarks file")
    imp.add_argument("--file", default=None, help="Defaults to the local Chrome profile")
    imp.add_argument("--title", default=None, help="Section title")

    bg = sub.add_parser("background", help="Show or change the background")
    bg.add_argument("--mode", choices=MODES)
    bg.add_argument("--url", default=None)

    push = sub.add_parser("push", help="Send one link to a remote dashboard")
    push.add_argument("--remote", default=config.REMOTE_URL, help="Dashboard base URL")
    push.add_argument("--password", default=config.SITE_PASSWORD)
    push.add_argument("--url", required=True)
    push.add_argument("--title", default="")

    return parser


def print_tree(tree, out=None):
    out = out or sys.stdout
    for section in tree:
        lock = " [locked]" if section.get("locked") else ""
        print(f"{section['id']}\t{section['title']}{lock}", file=out)
        for node in section["items"]:
            if is_folder(node):
                print(f"  {node['id']}\t[{node['title']}]", file=out)
                for child in node["children"]:
                    print(f"    {child['id']}\t{child['title']}\t{child['url']}", file=out)
            else:
                print(f"  {node['id']}\t{node['title']}\t{node['url']}", file=out)


def _apply(store, outcome, failure):
    if outcome.action is None:
        print(failure, file=sys.stderr)
        return 1
    store.save(outcome.tree)
    print(outcome.action + (f" pruned={','.join(outcome.pruned)}" if outcome.pruned else ""))
    return 0


def run(args, store):
    if args.cmd == "serve":
        from .app import app
        app.config["DATA_FILE"] = store.path
        app.run(debug=args.debug, host=args.host, port=args.port)
        return 0

    if args.cmd == "push":
        if not args.remote:
            print("No remote dashboard URL (use --remote or TABBOARD_REMOTE_URL)", file=sys.stderr); return 1
        node = RemoteTreeStore(args.remote, args.password).add_bookmark(args.title or args.url, args.url)
        print(f"link={node.get('id', '')}")
        return 0

    if args.cmd == "background":
        if args.mode or args.url:
            settings = store.load_settings()
            if args.mode: settings["background_mode"] = args.mode
            if args.url: settings["background_url"] = args.url
            store.save_settings(settings)
        settings = store.load_settings()
        print(f"{settings['background_mode']}\t{settings['background_url']}")
        return 0

    tree = store.load()

    if args.cmd == "list":
        print_tree(tree)
        return 0

    if args.cmd == "add-section":
        return _apply(store, engine.add_section(tree, args.title), "Section title required")

    if args.cmd == "add-link":
        outcome = engine.add_link(tree, args.section, args.title, args.url, folder_id=args.folder)
        return _apply(store, outcome, "Section/folder not found, locked, or URL empty or unsupported")

    if args.cmd == "rename":
        return _apply(store, engine.rename(tree, args.id, args.title), "Not found or not renamable")

    if args.cmd == "delete":
        return _apply(store, engine.remove_node(tree, args.id), "Not found or not deletable")

    if args.cmd == "delete-section":
        return _apply(store, engine.remove_section(tree, args.id), "Section not found or locked")

    if args.cmd == "drop":
        if args.target:
            outcome = engine.apply_drop(tree, args.source, None, args.target, None)
        elif args.section:
            outcome = engine.drop_on_section(tree, args.source, args.section)
        else:
            outcome = engine.drop_on_background(tree, args.source)
        return _apply(store, outcome, "Nothing to do for that drop")

    if args.cmd == "move-section":
        return _apply(store, engine.reorder_sections(tree, args.src, args.dst), "Cannot move that section")

    if args.cmd == "import":
        path = args.file or chrome_bookmarks_path()
        try:
            links = read_bookmarks_file(path)
        except (OSError, ValueError) as e:
            print(f"Failed to read {path}: {e}", file=sys.stderr); return 1
        if args.title:
            outcome = engine.import_links(tree, links, args.title)
        else:
            outcome = engine.import_links(tree, links)
        if outcome.action is None:
            print("No bookmarks found to import.")
            return 0
        store.save(outcome.tree)
        print(f"Imported section={outcome.node['id']} links={len(outcome.node['items'])}")
        return 0

    return None


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    config.setup_logging(args.log_level)
    if not args.cmd:
        parser.print_help()
        return 0
    store = CsvTreeStore(args.data or config.DATA_FILE)
    try:
        return run(args, store)
    except StoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
