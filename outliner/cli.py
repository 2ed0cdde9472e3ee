"""
Command line interface.

    outliner import --db outline.db notes.txt
    outliner pull --db outline.db --root __ROOT__ --max-thoughts 50
    outliner pull --db outline.db --format tree

--db falls back to OUTLINER_DB, or to the SQLite provider in config.json.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from .config import OutlinerConfig, PullConfig, setup_logging
from .descendants import PullStats
from .outline import import_outline
from .providers import ProviderType, SQLiteProvider
from .pull import pull
from .rich_output import PullConsole
from .state import StateStore
from .types import HOME_TOKEN, ThoughtId, ThoughtIndices


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="outliner", description="Hierarchical outliner tools")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    import_parser = sub.add_parser("import", help="Import an indented text outline")
    import_parser.add_argument("--db", default=None, help="SQLite database path")
    import_parser.add_argument("--parent", default=HOME_TOKEN, help="Parent thought id")
    import_parser.add_argument("file", type=Path, help="Outline text file, or - for stdin")

    pull_parser = sub.add_parser("pull", help="Pull descendants and print a summary")
    pull_parser.add_argument("--db", default=None, help="SQLite database path")
    pull_parser.add_argument("--root", action="append", default=None, help="Thought id to pull")
    pull_parser.add_argument("--max-depth", type=int, default=None)
    pull_parser.add_argument("--max-thoughts", type=int, default=None)
    pull_parser.add_argument(
        "--expand",
        action="append",
        default=[],
        help="Expanded path, thought ids joined by '/'",
    )
    pull_parser.add_argument("--cursor", default=None, help="Cursor path, thought ids joined by '/'")
    pull_parser.add_argument(
        "--format",
        choices=["json", "tree"],
        default="json",
        help="JSON summary or a tree of the pulled outline",
    )
    return parser


def _resolve_db(args: argparse.Namespace, config: OutlinerConfig) -> str:
    if args.db:
        return args.db
    if config.provider.provider_type == ProviderType.SQLITE and config.provider.connection_string:
        return config.provider.connection_string
    raise SystemExit("outliner: --db is required (or set OUTLINER_DB)")


async def _run_import(args: argparse.Namespace, db: str) -> dict[str, Any]:
    text = sys.stdin.read() if str(args.file) == "-" else args.file.read_text()
    provider = SQLiteProvider(db)
    try:
        ids = await import_outline(provider, text, parent_id=args.parent)
    finally:
        provider.close()
    return {"imported": len(ids), "parent": args.parent}


async def _run_pull(
    args: argparse.Namespace,
    db: str,
    config: PullConfig,
    console: PullConsole | None = None,
) -> dict[str, Any]:
    store = StateStore()
    for path in args.expand:
        store.expand(tuple(path.split("/")))
    if args.cursor:
        store.set_cursor(tuple(args.cursor.split("/")))

    roots = args.root or [HOME_TOKEN]
    levels: list[dict[str, Any]] = []

    def on_level(root: ThoughtId, delta: ThoughtIndices) -> None:
        levels.append(
            {
                "root": root,
                "thoughts": len(delta.thought_index),
                "lexemes": len(delta.lexeme_index),
            }
        )
        if console is not None:
            console.emit_level(root, delta)

    def on_complete(root: ThoughtId, stats: PullStats) -> None:
        if console is not None:
            console.emit_budget(stats.enqueued, config.max_thoughts, stats.levels, config.max_depth)

    if console is not None:
        console.emit_start(roots)

    provider = SQLiteProvider(db)
    try:
        pulled = await pull(
            store, provider, roots, config, on_level=on_level, on_complete=on_complete
        )
    except Exception as e:
        if console is not None:
            console.emit_error(e)
        raise
    finally:
        provider.close()

    pending = sorted(t.id for t in pulled.thought_index.values() if t.pending)
    if console is not None:
        thought_index = store.get_state().thoughts.thought_index
        for root in dict.fromkeys(roots):
            console.emit_tree(thought_index, root)
        console.emit_done(len(pulled.thought_index), len(pending))

    return {
        "levels": levels,
        "thoughts": len(pulled.thought_index),
        "lexemes": len(pulled.lexeme_index),
        "pending": pending,
    }


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = OutlinerConfig.from_env(args.config)
    if args.verbose:
        config.logging.level = "DEBUG"
    setup_logging(config.logging)

    db = _resolve_db(args, config)

    if args.command == "import":
        result = asyncio.run(_run_import(args, db))
    else:
        pull_config = PullConfig(
            max_depth=args.max_depth if args.max_depth is not None else config.pull.max_depth,
            max_thoughts=(
                args.max_thoughts if args.max_thoughts is not None else config.pull.max_thoughts
            ),
            prevent_loading_ancestors=config.pull.prevent_loading_ancestors,
        )
        if args.format == "tree":
            asyncio.run(_run_pull(args, db, pull_config, PullConsole()))
            return 0
        result = asyncio.run(_run_pull(args, db, pull_config))

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
