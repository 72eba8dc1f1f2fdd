"""CLI entry point for redis-view: I/O boundary only."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path
from typing import TextIO

from redisview import RedisViewError, __version__
from redisview.color import ansi, color_enabled
from redisview.formatter.tree import RenderOptions, iter_lines
from redisview.lookup import (
    DEFAULT_URL,
    Lookup,
    LookupOptions,
    RedisLookup,
    build_tree,
)

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = ["*"]


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser.

    Returns:
        argparse.ArgumentParser: Configured parser for the ``redis-view`` command.
    """
    parser = argparse.ArgumentParser(
        prog="redis-view",
        description="display a Redis key namespace as a tree",
        epilog="example: redis-view 'tasks:*' 'metrics:*'",
    )
    parser.add_argument(
        "patterns",
        nargs="*",
        metavar="PATTERN",
        help="Glob pattern selecting keys (default: *)",
    )
    parser.add_argument(
        "--url",
        default=DEFAULT_URL,
        help=f"Redis server URL (default: {DEFAULT_URL})",
    )
    parser.add_argument(
        "--sep",
        default=":",
        dest="separator",
        help="Key segment separator (default: ':')",
    )
    parser.add_argument(
        "--only-keys",
        action="store_true",
        dest="only_keys",
        help="Show type and TTL but do not fetch values",
    )
    parser.add_argument(
        "--nowrap",
        action="store_false",
        dest="wrap",
        help="Print composite values on a single line",
    )
    parser.add_argument(
        "--charset",
        choices=["unicode", "ascii"],
        default="unicode",
        help="Character set for tree drawing (default: unicode)",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Colorize labels, types and TTLs (default: auto)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        dest="output_file",
        help="Write output to a file instead of stdout",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log skipped patterns and failed lookups to stderr",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=__version__,
    )
    return parser


def _validate_args(args: argparse.Namespace) -> None:
    """Reject option values that cannot produce a tree.

    Args:
        args: Parsed CLI namespace.

    Raises:
        RedisViewError: If the separator is empty.
    """
    if not args.separator:
        raise RedisViewError("--sep must not be empty")


def _render_options(args: argparse.Namespace, color: bool) -> RenderOptions:
    options = RenderOptions(
        separator=args.separator,
        charset=args.charset,
        only_keys=args.only_keys,
        wrap=args.wrap,
    )
    if color:
        options = replace(options, colorize=ansi)
    return options


def _iter_output(
    args: argparse.Namespace, lookup: Lookup, color: bool
) -> Iterator[str]:
    """Build the namespace tree from *lookup* and yield rendered lines.

    Args:
        args: Parsed CLI namespace.
        lookup: Store to query.
        color: Whether to colorize labels, types and TTLs.

    Yields:
        str: Rendered lines.
    """
    patterns = args.patterns or DEFAULT_PATTERNS
    tree = build_tree(lookup, patterns, args.separator)
    logger.debug("Built tree with %d top-level segments", len(tree.children))
    yield from iter_lines(tree, lookup, _render_options(args, color))


def run_redis_view(
    argv: list[str] | None = None, lookup: Lookup | None = None
) -> str:
    """Run redis-view with provided CLI args and return formatted output.

    This is the primary test target for CLI behavior. Color is only
    applied with ``--color always``.

    Args:
        argv: Command-line argument list without program name.
        lookup: Store to query. When ``None``, a :class:`RedisLookup` is
            opened from ``--url`` and closed before returning.

    Returns:
        str: Rendered tree.

    Raises:
        RedisViewError: On any user-facing validation or connection error.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _validate_args(args)
    color = args.color == "always"

    if lookup is not None:
        return "\n".join(_iter_output(args, lookup, color))

    with RedisLookup(LookupOptions(url=args.url)) as redis_lookup:
        return "\n".join(_iter_output(args, redis_lookup, color))


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(name)s: %(levelname)s: %(message)s",
        )


def _write_output(args: argparse.Namespace, out: TextIO) -> None:
    """Connect, render and stream lines to *out*.

    Raises:
        RedisViewError: If the server cannot be reached.
    """
    color = color_enabled(args.color, out)
    with RedisLookup(LookupOptions(url=args.url)) as lookup:
        for line in _iter_output(args, lookup, color):
            out.write(line + "\n")


def main() -> None:
    """Run the CLI entry point with process arguments.

    Parses args exactly once and streams output to stdout or ``-o`` file.
    Exits with code 1 on user-facing errors.
    """
    parser = build_parser()
    args = parser.parse_args()  # single parse
    _configure_logging(args.verbose)

    try:
        _validate_args(args)
        if args.output_file:
            try:
                with Path(args.output_file).open(
                    "w", encoding="utf-8", newline=""
                ) as out:
                    _write_output(args, out)
            except OSError as exc:
                raise RedisViewError(
                    f"cannot write to '{args.output_file}': {exc}"
                ) from exc
        else:
            _write_output(args, sys.stdout)
    except RedisViewError as exc:
        sys.stderr.write(f"redis-view: {exc}\n")
        sys.exit(1)
