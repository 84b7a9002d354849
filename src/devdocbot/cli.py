"""DevDocBot CLI: main entry point.

Commands:
  init      Create a devdocbot config file and output directory
  generate  Chunk, embed and store the project's sources and docs
  search    Find the stored snippets most similar to a question
  clear     Delete the vector store collection
  config    Show the merged project settings
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="devdocbot",
        description="DevDocBot: local vector search over your codebase",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # init
    init_parser = subparsers.add_parser("init", help="Create a devdocbot config file")
    init_parser.add_argument("path", nargs="?", default=".", help="Project directory")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing config")

    # generate
    generate_parser = subparsers.add_parser("generate", help="Index sources and docs into the vector store")
    generate_parser.add_argument(
        "--rebuild", action="store_true",
        help="Delete the existing snapshot before indexing, even if it cannot be loaded",
    )

    # search
    search_parser = subparsers.add_parser("search", help="Search the vector store")
    search_parser.add_argument("question", help="Natural language question")
    search_parser.add_argument("--limit", type=int, default=5, help="Maximum results (default: 5)")
    search_parser.add_argument("--json", action="store_true", help="Print results as JSON")
    search_parser.add_argument(
        "--context", action="store_true", help="Print results formatted as prompt context"
    )

    # clear
    subparsers.add_parser("clear", help="Delete the vector store collection")

    # config
    config_parser = subparsers.add_parser("config", help="Show project settings")
    config_parser.add_argument("action", choices=["show", "validate"], help="Action to perform")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == "init":
            return cmd_init(args)
        elif args.command == "generate":
            return cmd_generate(args)
        elif args.command == "search":
            return cmd_search(args)
        elif args.command == "clear":
            return cmd_clear(args)
        elif args.command == "config":
            return cmd_config(args)
        else:
            parser.print_help()
            return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _require_project() -> Path | None:
    from devdocbot.utils.paths import find_project_root

    project_root = find_project_root()
    if project_root is None:
        print("No DevDocBot project found. Run 'devdocbot init' first.", file=sys.stderr)
    return project_root


def cmd_init(args: argparse.Namespace) -> int:
    """Create a config file from the template."""
    from devdocbot.config import (
        DevDocBotSettings,
        TEMPLATE_STRUCTURE,
        default_config_path,
        save_settings,
    )
    from devdocbot.utils.paths import find_config_file, get_output_dir

    project_dir = Path(args.path).resolve()
    project_dir.mkdir(parents=True, exist_ok=True)

    existing = find_config_file(project_dir)
    if existing is not None and not args.force:
        print(f"Config already exists at {existing} (use --force to overwrite)", file=sys.stderr)
        return 1

    settings = DevDocBotSettings.from_dict({"structure": TEMPLATE_STRUCTURE})
    config_path = existing or default_config_path(project_dir)
    save_settings(settings, config_path)
    get_output_dir(project_dir, settings.output_dir).mkdir(parents=True, exist_ok=True)

    print(f"Created {config_path}")
    print("Edit structure roots and module patterns to match your project, then run 'devdocbot generate'.")
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    """Index the project into the vector store."""
    from devdocbot.config import load_settings
    from devdocbot.generator import generate_vector_docs, open_store

    project_root = _require_project()
    if project_root is None:
        return 1

    settings = load_settings(project_root)
    if not settings.options.use_vector_store:
        print("Vector store disabled (options.useVectorStore is false); nothing to do.")
        return 0

    store = open_store(project_root, settings, rebuild=args.rebuild)
    print(f"Indexing project {'(rebuild)' if args.rebuild else '(merge)'}...")
    report = generate_vector_docs(settings, project_root, store, rebuild=args.rebuild)

    for failure in report.failures:
        print(f"Warning: skipped {failure.path}: {failure.error}", file=sys.stderr)
    print(
        f"Indexed {report.files_indexed} inputs, "
        f"{report.chunks_created} chunks created "
        f"({report.documents_total} documents in {store.snapshot_path})"
    )
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Print the stored snippets most similar to the question."""
    from devdocbot.config import load_settings
    from devdocbot.generator import format_context, open_store

    project_root = _require_project()
    if project_root is None:
        return 1

    store = open_store(project_root, load_settings(project_root))
    results = store.search(args.question, limit=args.limit)

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
        return 0
    if args.context:
        print(format_context(results))
        return 0
    if not results:
        print("No results. Run 'devdocbot generate' to index the project.")
        return 0

    for i, result in enumerate(results, 1):
        meta = result.metadata
        location = meta.source_path
        if meta.start_line is not None:
            location += f":{meta.start_line}-{meta.end_line}"
        print(f"{i}. {location} [{meta.kind.value}] similarity={result.similarity:.4f}")
        snippet = result.content.strip().splitlines()
        for line in snippet[:5]:
            print(f"     {line}")
        if len(snippet) > 5:
            print("     ...")
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    """Delete the collection and its snapshot."""
    from devdocbot.config import load_settings
    from devdocbot.utils.paths import get_snapshot_path
    from devdocbot.vectorstore.store import VectorStore

    project_root = _require_project()
    if project_root is None:
        return 1

    settings = load_settings(project_root)
    # Clearing needs no embedding model, so the store is not initialized.
    store = VectorStore(settings.vector_store, get_snapshot_path(project_root, settings.output_dir))
    store.delete_collection()
    print(f"Deleted vector store at {store.snapshot_path}")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Show or validate project settings."""
    from devdocbot.config import load_settings, validate_settings

    project_root = _require_project()
    if project_root is None:
        return 1

    settings = load_settings(project_root)
    if args.action == "show":
        print(json.dumps(settings.to_dict(), indent=2))
        return 0

    errors = validate_settings(settings)
    for err in errors:
        print(f"Validation error: {err}", file=sys.stderr)
    if errors:
        return 1
    print("Settings are valid.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
