"""Arbor administrative CLI.

Usage examples:
  arbor init --project-root .
  arbor init --reset
  arbor status --json
  arbor call arbor_search '{"query": "authentication", "mode": "features"}'
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from arbor import __version__
from arbor.core.config import (
    ARBOR_DIR,
    ArborConfig,
    ensure_arbor_dir,
    get_settings,
    load_project_config,
)
from arbor.core.exceptions import ArborError
from arbor.core.logging_config import setup_logging
from arbor.storage.graph_db import GraphStore
from arbor.tools import TOOLS, call_tool

logger = logging.getLogger(__name__)

PROJECT_ROOT_HELP = "Project directory (default: ARBOR_PROJECT_ROOT or cwd)"
LOG_LEVEL_HELP = "DEBUG, INFO, WARNING or ERROR (default: LOG_LEVEL or INFO)"


def _project_root(args: argparse.Namespace) -> Path:
    if args.project_root:
        return Path(args.project_root).resolve()
    return get_settings().project_root.resolve()


def _db_path(project_root: Path) -> Path:
    return load_project_config(project_root).resolve_db_path(project_root)


def cmd_init(args: argparse.Namespace) -> int:
    project_root = _project_root(args)
    db_path = _db_path(project_root)

    if db_path.exists() and not args.reset:
        print(f"{db_path} already exists. Use --reset to recreate.")
        return 1

    if args.reset:
        for path in (db_path, Path(f"{db_path}-wal"), Path(f"{db_path}-shm")):
            if path.exists():
                path.unlink()
        logger.info(f"[CLI] Removed existing database {db_path}")

    arbor_dir = ensure_arbor_dir(project_root)
    with GraphStore(db_path) as store:
        with store.transaction():
            store.set_meta("project_root", str(project_root))
    # Environment overrides are not persisted
    ArborConfig.load(project_root).save(project_root)

    print(f"Initialized Arbor in {arbor_dir}")
    print(f"  Database: {db_path}")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    project_root = _project_root(args)
    db_path = _db_path(project_root)

    if not db_path.exists():
        print(f"{db_path} not found. Run 'arbor init' first.")
        return 1

    with GraphStore(db_path) as store:
        stats = store.get_stats()

    if args.json:
        print(json.dumps(stats, indent=2, ensure_ascii=False))
        return 0

    print(f"arbor v{__version__}  {stats['db_path']}")
    print(f"  project_root={stats['project_root'] or '-'} schema_version={stats['schema_version']}")
    print(f"  nodes={stats['node_count']} edges={stats['edge_count']}")
    print(f"  unplaced={stats['unplaced_count']} stale={stats['stale_count']}")
    for node_type, count in stats["node_types"].items():
        print(f"  [{node_type}] {count}")
    for category, count in stats["edge_categories"].items():
        print(f"  <{category}> {count}")
    return 0


def cmd_call(args: argparse.Namespace) -> int:
    project_root = _project_root(args)
    db_path = _db_path(project_root)

    if not db_path.exists():
        print(f"{db_path} not found. Run 'arbor init' first.")
        return 1

    try:
        payload = json.loads(args.payload)
    except json.JSONDecodeError as e:
        print(f"Invalid JSON payload: {e}")
        return 1

    if not isinstance(payload, dict):
        print(f"Invalid JSON payload: expected an object, got {type(payload).__name__}")
        return 1

    with GraphStore(db_path) as store:
        try:
            result = call_tool(store, args.tool, payload)
        except (ArborError, ValidationError) as e:
            print(f"{args.tool} failed: {e}")
            return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="arbor", description="A tree that remembers your codebase.")
    parser.add_argument("--version", action="version", version=f"arbor {__version__}")
    parser.add_argument("--project-root", help=PROJECT_ROOT_HELP)
    parser.add_argument("--log-level", help=LOG_LEVEL_HELP)

    # Also accepted after the subcommand; SUPPRESS keeps a top-level value
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--project-root", default=argparse.SUPPRESS, help=PROJECT_ROOT_HELP)
    common.add_argument("--log-level", default=argparse.SUPPRESS, help=LOG_LEVEL_HELP)

    sub = parser.add_subparsers(dest="command")

    init_parser = sub.add_parser("init", parents=[common], help="Initialize .arbor/ and the graph database")
    init_parser.add_argument("--reset", action="store_true", help="Delete an existing database and recreate it")
    init_parser.set_defaults(func=cmd_init)

    status_parser = sub.add_parser("status", parents=[common], help="Show graph statistics")
    status_parser.add_argument("--json", action="store_true")
    status_parser.set_defaults(func=cmd_status)

    call_parser = sub.add_parser("call", parents=[common], help="Run a tool with a JSON payload")
    call_parser.add_argument("tool", choices=sorted(TOOLS))
    call_parser.add_argument("payload", help="Request payload as a JSON object")
    call_parser.set_defaults(func=cmd_call)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    settings = get_settings()
    setup_logging(
        level=args.log_level or settings.log_level,
        log_to_file=settings.log_to_file,
        log_dir=_project_root(args) / ARBOR_DIR / "logs",
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
