"""CLI entrypoints for intentlayer commands."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import List

from .analysis import analyze_repository
from .config import ConfigError, IntentLayerConfig, load_config
from .coverage import covered_files_for_forest
from .hierarchy import build_forest
from .ignore import load_intentlayer_ignore
from .logging import configure_logging, get_logger
from .report import ReportRenderer, result_to_dict
from .scanner import DEFAULT_MAX_BYTES, RepoScanner

_LOGGER = get_logger("cli")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )


def _add_kind_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--kind",
        choices=("agents", "claude", "both"),
        default=None,
        help="Anchor family to inspect (defaults to the configured 'files' value).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intentlayer",
        description="Inspect AGENTS.md / CLAUDE.md coverage, token budgets and split suggestions.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    tree_parser = subparsers.add_parser("tree", help="Print the anchor hierarchy.")
    _add_verbose_option(tree_parser, suppress_default=True)
    _add_path_argument(tree_parser)
    _add_kind_option(tree_parser)

    coverage_parser = subparsers.add_parser(
        "coverage", help="List the files each anchor is responsible for."
    )
    _add_verbose_option(coverage_parser, suppress_default=True)
    _add_path_argument(coverage_parser)
    _add_kind_option(coverage_parser)

    analyze_parser = subparsers.add_parser(
        "analyze", help="Compute token budgets and propose anchor splits."
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_path_argument(analyze_parser)
    _add_kind_option(analyze_parser)
    analyze_parser.add_argument(
        "--changed",
        nargs="+",
        default=None,
        metavar="FILE",
        help="Changed file paths to map onto their covering anchors.",
    )
    analyze_parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Override the token budget percentage from .intentlayer.yml.",
    )
    analyze_parser.add_argument(
        "--no-split",
        action="store_true",
        help="Skip split suggestions for over-budget anchors.",
    )
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON instead of a Markdown report.",
    )
    analyze_parser.add_argument(
        "--max-bytes",
        type=int,
        default=DEFAULT_MAX_BYTES,
        help="Leave files larger than this many bytes out of token counts (0 reads every file).",
    )

    return parser


def _load(args: argparse.Namespace) -> IntentLayerConfig:
    root = Path(args.path).expanduser()
    if not root.exists():
        raise FileNotFoundError(f"Repository path not found: {args.path}")
    config = load_config(root)
    if getattr(args, "kind", None):
        config = replace(config, files=args.kind)
    return config


def _run_tree(args: argparse.Namespace) -> None:
    config = _load(args)
    snapshot = RepoScanner(config.anchor_file_names).scan(args.path)
    for kind in config.kinds():
        forest = build_forest(snapshot.anchors_for(kind), kind)  # type: ignore[arg-type]
        print(f"{config.anchor_file_names[kind]} ({len(forest)} anchors)")
        for node in forest:
            marker = f" -> {node.file.symlink_target}" if node.file.is_symlink else ""
            print(f"{'  ' * (node.depth + 1)}{node.path}{marker}")


def _run_coverage(args: argparse.Namespace) -> None:
    config = _load(args)
    snapshot = RepoScanner(config.anchor_file_names).scan(args.path)
    ignore = load_intentlayer_ignore(Path(snapshot.root), config.exclude_paths)
    names = tuple(config.anchor_file_names.values())
    for kind in config.kinds():
        forest = build_forest(snapshot.anchors_for(kind), kind)  # type: ignore[arg-type]
        coverage = covered_files_for_forest(forest, snapshot.files, ignore, names)
        for node in forest:
            entry = coverage[node.path]
            print(f"{node.path}: {len(entry.covered)} covered, {len(entry.ignored)} ignored")
            for path in entry.covered:
                print(f"  {path}")
            for path in entry.ignored:
                print(f"  {path} (ignored)")


def _run_analyze(args: argparse.Namespace) -> None:
    config = _load(args)
    if args.threshold is not None:
        config = replace(config, token_budget_percent=args.threshold)
    if args.no_split:
        config = replace(config, split_large_nodes=False)

    max_bytes = args.max_bytes if args.max_bytes > 0 else None
    result = analyze_repository(args.path, config, args.changed, max_bytes=max_bytes)
    if args.json:
        print(json.dumps(result_to_dict(result), indent=2, sort_keys=True))
    else:
        sys.stdout.write(ReportRenderer().render(result))


def main(argv: List[str] | None = None) -> None:
    """CLI entrypoint for intentlayer commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "json", False)),
        log_file=args.log_file,
    )

    handlers = {
        "tree": _run_tree,
        "coverage": _run_coverage,
        "analyze": _run_analyze,
    }
    handler = handlers.get(args.command)
    if handler is None:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")

    try:
        handler(args)
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")
    except Exception as exc:  # pragma: no cover - unexpected failure
        _LOGGER.debug("intentlayer %s failed", args.command, exc_info=True)
        parser.exit(
            1, f"intentlayer {args.command} failed: {exc}\nRun with --verbose for more details.\n"
        )


if __name__ == "__main__":
    main(sys.argv[1:])
