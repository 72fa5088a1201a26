"""CLI entrypoints for hookindex commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

from .config import ConfigurationError, HookIndexConfig, load_config
from .constants import CONTENT_TYPES, DOC_TYPES, SOURCE_TYPES
from .indexer import Indexer
from .logging import configure_logging
from .models import IndexStats, Source
from .presets import get_preset, preset_names
from .stores import VALID, IndexStore, SearchService, StorageError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_json_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON instead of text.",
    )


def _add_limit_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of results.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hookindex",
        description="Index and search hook, block and API declarations plus handbook docs.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.yml or its directory (defaults to $HOOKINDEX_HOME).",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add_parser = subparsers.add_parser("source-add", help="Register a source to index.")
    _add_verbose_option(add_parser, suppress_default=True)
    add_parser.add_argument("--name", help="Unique source name.")
    add_parser.add_argument("--type", choices=SOURCE_TYPES, default=None, help="Source type.")
    add_parser.add_argument("--repo", help="Repository URL for github sources.")
    add_parser.add_argument("--subfolder", help="Only index this subfolder.")
    add_parser.add_argument("--path", help="Directory for local-folder sources.")
    add_parser.add_argument("--token-env", help="Environment variable holding an access token.")
    add_parser.add_argument("--branch", default=None, help="Branch to fetch (default main).")
    add_parser.add_argument("--content-type", choices=CONTENT_TYPES, default=None)
    add_parser.add_argument(
        "--preset", choices=preset_names(), help="Register a well-known source by name."
    )
    add_parser.add_argument(
        "--no-index", action="store_true", help="Register only; do not index immediately."
    )

    list_parser = subparsers.add_parser("source-list", help="List registered sources.")
    _add_verbose_option(list_parser, suppress_default=True)
    _add_json_option(list_parser)

    remove_parser = subparsers.add_parser("source-remove", help="Remove a source and its records.")
    _add_verbose_option(remove_parser, suppress_default=True)
    remove_parser.add_argument("name")

    index_parser = subparsers.add_parser("index", help="Index enabled sources incrementally.")
    _add_verbose_option(index_parser, suppress_default=True)
    _add_json_option(index_parser)
    index_parser.add_argument("--source", help="Only index this source.")
    index_parser.add_argument(
        "--force", action="store_true", help="Ignore the file cache and rescan every file."
    )

    search_parser = subparsers.add_parser("search", help="Search hooks.")
    _add_verbose_option(search_parser, suppress_default=True)
    _add_json_option(search_parser)
    _add_limit_option(search_parser)
    search_parser.add_argument("query")
    search_parser.add_argument("--type", help="Hook kind, e.g. action or js_filter.")
    search_parser.add_argument("--source", help="Only hooks from this source.")
    search_parser.add_argument(
        "--include-removed", action="store_true", help="Also return removed hooks."
    )
    search_parser.add_argument(
        "--dynamic", action="store_true", default=None, help="Only hooks with dynamic names."
    )

    blocks_parser = subparsers.add_parser("search-blocks", help="Search block registrations and API usages.")
    _add_verbose_option(blocks_parser, suppress_default=True)
    _add_json_option(blocks_parser)
    _add_limit_option(blocks_parser)
    blocks_parser.add_argument("query")

    docs_parser = subparsers.add_parser("search-docs", help="Search documentation pages.")
    _add_verbose_option(docs_parser, suppress_default=True)
    _add_json_option(docs_parser)
    _add_limit_option(docs_parser)
    docs_parser.add_argument("query")
    docs_parser.add_argument("--type", choices=DOC_TYPES, help="Doc type filter.")
    docs_parser.add_argument("--category", help="Category filter.")
    docs_parser.add_argument("--source", help="Only pages from this source.")

    validate_parser = subparsers.add_parser(
        "validate", help="Check that a hook name exists (exit code 0 when valid)."
    )
    _add_verbose_option(validate_parser, suppress_default=True)
    _add_json_option(validate_parser)
    validate_parser.add_argument("name")

    context_parser = subparsers.add_parser("context", help="Show one hook with its code context.")
    _add_verbose_option(context_parser, suppress_default=True)
    _add_json_option(context_parser)
    context_parser.add_argument("id_or_name")

    stats_parser = subparsers.add_parser("stats", help="Show index statistics.")
    _add_verbose_option(stats_parser, suppress_default=True)
    _add_json_option(stats_parser)

    rebuild_parser = subparsers.add_parser(
        "rebuild-index", help="Rebuild every full-text shadow table from its primary table."
    )
    _add_verbose_option(rebuild_parser, suppress_default=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP tool service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for hookindex commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(args.config)
    except ConfigurationError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, config=config)
        return

    try:
        store = IndexStore(config.database)
    except StorageError as exc:
        parser.exit(1, f"{exc}\n")

    try:
        code = _dispatch(args, config, store)
    except ConfigurationError as exc:
        parser.exit(1, f"{exc}\n")
    except StorageError as exc:
        parser.exit(1, f"hookindex {args.command} failed: {exc}\nRun with --verbose for more details.\n")
    finally:
        store.close()
    if code:
        sys.exit(code)


def _dispatch(args: argparse.Namespace, config: HookIndexConfig, store: IndexStore) -> int:
    search = SearchService(store, config.search)
    as_json = bool(getattr(args, "json", False))

    if args.command == "source-add":
        source = store.add_source(_source_from_args(args))
        print(f"Added source {source.name} ({source.type}, {source.content_type})")
        if not args.no_index:
            stats = Indexer(store, config=config).index_sources(source.name)
            _print_stats(stats, as_json=False)
            return 1 if stats.errors else 0
        return 0

    if args.command == "source-list":
        sources = store.list_sources()
        if as_json:
            _print_json([_source_dict(source) for source in sources])
        elif not sources:
            print("No sources registered.")
        else:
            for source in sources:
                origin = source.repo_url or source.local_path or ""
                state = "enabled" if source.enabled else "disabled"
                indexed = source.last_indexed_at or "never"
                print(f"{source.name}\t{source.type}\t{source.content_type}\t{state}\t{indexed}\t{origin}")
        return 0

    if args.command == "source-remove":
        if store.remove_source(args.name) is None:
            raise ConfigurationError(f"Source not found: {args.name}")
        print(f"Removed source {args.name}")
        return 0

    if args.command == "index":
        stats = Indexer(store, config=config).index_sources(args.source, force=args.force)
        _print_stats(stats, as_json=as_json)
        return 1 if stats.errors else 0

    if args.command == "search":
        rows = search.search_hooks(
            args.query,
            type=args.type,
            source=args.source,
            is_dynamic=args.dynamic,
            include_removed=args.include_removed,
            limit=args.limit,
        )
        if as_json:
            _print_json(rows)
        else:
            _print_hooks(rows)
        return 0

    if args.command == "search-blocks":
        result = search.search_block_apis(args.query, limit=args.limit)
        if as_json:
            _print_json(result)
        else:
            for row in result["blocks"]:
                print(f"block\t{row['block_name']}\t{row['registration_type']}\t{row['file_path']}:{row['line_number']}")
            for row in result["apis"]:
                print(f"api\t{row['api_call']}\t{row['file_path']}:{row['line_number']}")
            if not result["blocks"] and not result["apis"]:
                print("No results.")
        return 0

    if args.command == "search-docs":
        rows = search.search_docs(
            args.query,
            doc_type=args.type,
            category=args.category,
            source=args.source,
            limit=args.limit,
        )
        if as_json:
            _print_json(rows)
        elif not rows:
            print("No results.")
        else:
            for row in rows:
                print(f"[{row['id']}] {row['title']} ({row['doc_type']}, {row['category'] or '-'})\t{row['slug']}")
        return 0

    if args.command == "validate":
        result = search.validate_hook(args.name)
        if as_json:
            _print_json(result.to_dict())
        else:
            print(f"{result.status}: {result.name}")
            for row in result.hooks:
                print(f"  {row['source_name']}:{row['file_path']}:{row['line_number']} ({row['type']})")
            if result.removed_at:
                print(f"  removed at {result.removed_at}")
            if result.similar:
                print("  similar:")
                for row in result.similar:
                    print(f"    {row['name']} ({row['type']})")
        return 0 if result.status == VALID else 1

    if args.command == "context":
        row = search.get_hook_context(args.id_or_name)
        if row is None:
            print(f"Hook not found: {args.id_or_name}", file=sys.stderr)
            return 1
        if as_json:
            _print_json(row)
        else:
            _print_context(row)
        return 0

    if args.command == "stats":
        data = store.get_stats()
        if as_json:
            _print_json(data)
        else:
            for key, value in data["totals"].items():
                print(f"{key}: {value}")
            for row in data["per_source"]:
                print(
                    f"  {row['name']} ({row['content_type']}): {row['hooks']} hooks, "
                    f"{row['removed_hooks']} removed, {row['blocks']} blocks, {row['apis']} apis, "
                    f"{row['docs']} docs, {row['files']} files"
                )
        return 0

    if args.command == "rebuild-index":
        counts = store.rebuild_search_index()
        for table, total in counts.items():
            print(f"{table}: {total}")
        return 0

    raise ConfigurationError(f"Unknown command: {args.command}")  # pragma: no cover


def _source_from_args(args: argparse.Namespace) -> Source:
    if args.preset:
        source = get_preset(args.preset)
        assert source is not None  # argparse restricts choices
        if args.name:
            source.name = args.name
        if args.branch:
            source.branch = args.branch
        return source

    if not args.name:
        raise ConfigurationError("--name is required unless --preset is given")
    source_type = args.type or ("local-folder" if args.path else "github-public")
    if source_type == "local-folder" and not args.path:
        raise ConfigurationError("--path is required for local-folder sources")
    if source_type != "local-folder" and not args.repo:
        raise ConfigurationError(f"--repo is required for {source_type} sources")
    if source_type == "github-private" and not args.token_env:
        raise ConfigurationError("--token-env is required for github-private sources")

    local_path = str(Path(args.path).expanduser().resolve()) if args.path else None
    return Source(
        name=args.name,
        type=source_type,
        repo_url=args.repo,
        subfolder=args.subfolder,
        local_path=local_path,
        token_env_var=args.token_env,
        branch=args.branch or "main",
        content_type=args.content_type or "source",
    )


def _source_dict(source: Source) -> Dict[str, Any]:
    return {
        "id": source.id,
        "name": source.name,
        "type": source.type,
        "repo_url": source.repo_url,
        "subfolder": source.subfolder,
        "local_path": source.local_path,
        "branch": source.branch,
        "content_type": source.content_type,
        "enabled": source.enabled,
        "last_indexed_at": source.last_indexed_at,
    }


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _print_stats(stats: IndexStats, *, as_json: bool) -> None:
    if as_json:
        _print_json(stats.to_dict())
        return
    if stats.message:
        print(stats.message)
        return
    print(
        f"Sources: {stats.sources_processed}, files processed: {stats.files_processed}, "
        f"skipped: {stats.files_skipped}"
    )
    print(
        f"Hooks: +{stats.hooks_inserted} ~{stats.hooks_updated} ={stats.hooks_unchanged} "
        f"-{stats.hooks_removed}"
    )
    print(
        f"Blocks: {stats.blocks_indexed} (-{stats.blocks_removed}), "
        f"APIs: {stats.apis_indexed} (-{stats.apis_removed})"
    )
    print(
        f"Docs: +{stats.docs_inserted} ~{stats.docs_updated} ={stats.docs_unchanged} "
        f"-{stats.docs_removed}"
    )
    for error in stats.errors:
        print(f"error: {error}", file=sys.stderr)


def _print_hooks(rows: List[Dict[str, Any]]) -> None:
    if not rows:
        print("No results.")
        return
    for row in rows:
        marker = " [removed]" if row["status"] != "active" else ""
        print(f"[{row['id']}] {row['name']} ({row['type']}){marker}")
        print(f"    {row['source_name']}:{row['file_path']}:{row['line_number']}")


def _print_context(row: Dict[str, Any]) -> None:
    print(f"{row['name']} ({row['type']}, {row['status']})")
    print(f"{row['source_name']}:{row['file_path']}:{row['line_number']}")
    if row.get("inferred_description"):
        print(row["inferred_description"])
    if row.get("docblock"):
        print()
        print(row["docblock"])
    print()
    for part in (row.get("code_before"), row.get("hook_line"), row.get("code_after")):
        if part:
            print(part)


if __name__ == "__main__":
    main(sys.argv[1:])
