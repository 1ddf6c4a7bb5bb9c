# ==============================================
# CLI — Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Inspect and maintain the metadata store from a shell, and give
#   external schedulers (cron, systemd timers) a way to run the
#   expiry cleanup.
#
# COMMANDS:
# ---------
#   metastore init                        → create table / directory
#   metastore sets                        → list set names
#   metastore list idp                    → dump every entry of a set
#   metastore get idp https://idp.example → print one entry
#   metastore put idp https://idp.example '{"expire": 1000}'
#   metastore delete idp https://idp.example
#   metastore cleanup [--now TIMESTAMP]   → purge expired entries
#
#   Global options (--backend, --sqlite-path, --dir, --log-level)
#   override the environment / .env configuration.
#
# EXIT CODES:
# -----------
#   0 → success
#   1 → not found, or the operation failed
#   2 → bad arguments / invalid JSON
#
# ==============================================

import argparse
import dataclasses
import json
import sys
from typing import List, Optional

from metastore import __version__
from metastore.config import BACKENDS, get_config
from metastore.errors import MetastoreError
from metastore.logger import get_logger
from metastore.sources import create_source


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metastore",
        description="Namespaced key-value store for metadata documents",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--backend", choices=BACKENDS, help="Override METASTORE_BACKEND")
    parser.add_argument("--sqlite-path", help="Override SQLITE_PATH")
    parser.add_argument("--dir", dest="directory", help="Override METASTORE_FILE_DIR")
    parser.add_argument("--log-level", help="Override METASTORE_LOG_LEVEL")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create the metadata table or directory")
    sub.add_parser("sets", help="List set names")

    p_list = sub.add_parser("list", help="Dump all entries of a set")
    p_list.add_argument("set_name")

    p_get = sub.add_parser("get", help="Print one entry")
    p_get.add_argument("set_name")
    p_get.add_argument("entity")

    p_put = sub.add_parser("put", help="Create or replace one entry")
    p_put.add_argument("set_name")
    p_put.add_argument("entity")
    p_put.add_argument("value", help="JSON object, or - to read it from stdin")

    p_delete = sub.add_parser("delete", help="Delete one entry")
    p_delete.add_argument("set_name")
    p_delete.add_argument("entity")

    p_cleanup = sub.add_parser("cleanup", help="Delete entries whose expire time has passed")
    p_cleanup.add_argument("--now", type=float, help="Reference Unix time (default: current time)")

    return parser


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False))


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = get_config()
        overrides = {}
        if args.backend:
            overrides["backend"] = args.backend
        if args.log_level:
            overrides["log_level"] = args.log_level
        if args.sqlite_path:
            overrides["sqlite"] = dataclasses.replace(config.sqlite, path=args.sqlite_path)
        if args.directory:
            overrides["files"] = dataclasses.replace(config.files, directory=args.directory)
        if overrides:
            config = dataclasses.replace(config, **overrides)
    except MetastoreError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logger = get_logger("metastore", config.log_level)
    try:
        source = create_source(config, logger=logger)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        if args.command == "init":
            source.initialize()
            return 0

        if args.command == "sets":
            for name in sorted(source.list_sets()):
                print(name)
            return 0

        if args.command == "list":
            _print_json(source.list_entries(args.set_name))
            return 0

        if args.command == "get":
            document = source.get_entry(args.set_name, args.entity)
            if document is None:
                print(f"Not found: {args.set_name} / {args.entity}", file=sys.stderr)
                return 1
            _print_json(document)
            return 0

        if args.command == "put":
            raw = sys.stdin.read() if args.value == "-" else args.value
            try:
                document = json.loads(raw)
            except ValueError as e:
                print(f"Invalid JSON: {e}", file=sys.stderr)
                return 2
            if not isinstance(document, dict):
                print("Invalid JSON: value must be an object", file=sys.stderr)
                return 2
            return 0 if source.upsert_entry(args.set_name, args.entity, document) else 1

        if args.command == "delete":
            return 0 if source.delete_entry(args.set_name, args.entity) else 1

        if args.command == "cleanup":
            report = source.cleanup_expired(now=args.now)
            print(f"checked={report.checked} removed={len(report.removed)} failed={len(report.failed)}")
            return 0 if report.ok else 1

    except MetastoreError as e:
        logger.error("%s failed: %s", args.command, e)
        return 1

    parser.error(f"unknown command {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
