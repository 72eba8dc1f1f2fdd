"""Box-drawing tree renderer with per-leaf type, TTL and value annotations."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Literal

from redisview.formatter.value import format_value
from redisview.lookup import BLANK_RESULT, Lookup, LookupFailed, LookupResult
from redisview.trie import TrieNode, sorted_children

logger = logging.getLogger(__name__)

Colorizer = Callable[[str, str], str]


@dataclass(frozen=True, slots=True)
class Glyphs:
    """Box-drawing character set for tree rendering."""

    branch: str  # ├──
    last_branch: str  # └──
    vertical: str  # │
    space: str  # (indent)


UNICODE_GLYPHS = Glyphs(
    branch="├── ",
    last_branch="└── ",
    vertical="│   ",
    space="    ",
)

ASCII_GLYPHS = Glyphs(
    branch="|-- ",
    last_branch="\\-- ",
    vertical="|   ",
    space="    ",
)


def _plain(text: str, style: str) -> str:
    return text


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Options for the tree renderer.

    Attributes:
        separator: Separator used to rebuild keys from label paths.
        charset: Output charset, ``unicode`` or ``ascii``.
        only_keys: Skip value fetches; type and TTL are still queried.
        wrap: Indent composite values with several elements.
        leading: Prefix written before every top-level line.
        colorize: ``(text, style) -> str`` hook for labels, types and TTLs.
    """

    separator: str = ":"
    charset: Literal["unicode", "ascii"] = "unicode"
    only_keys: bool = False
    wrap: bool = True
    leading: str = ""
    colorize: Colorizer = _plain


def _fetch(lookup: Lookup, key: str, include_value: bool) -> LookupResult:
    try:
        return lookup.fetch(key, include_value=include_value)
    except LookupFailed as exc:
        logger.debug("Rendering %r without data: %s", key, exc)
        return BLANK_RESULT


def _annotation(result: LookupResult, prefix: str, opts: RenderOptions) -> str:
    """Build the ``# <type> <ttl> <value>`` suffix of a leaf line.

    Args:
        result: Lookup result for the leaf.
        prefix: Rail under the leaf, used for wrapped value lines.
        opts: Render options.

    Returns:
        str: Annotation text. Missing fields are left blank.
    """
    key_type = result.key_type.value if result.key_type is not None else ""
    ttl = str(result.ttl) if result.ttl is not None else ""
    value = format_value(result.value, prefix, opts.wrap)
    return "# {} {} {}".format(
        opts.colorize(key_type, "yellow"),
        opts.colorize(ttl, "red"),
        value,
    )


def iter_lines(
    tree: TrieNode,
    lookup: Lookup,
    options: RenderOptions | None = None,
) -> Iterator[str]:
    """Yield rendered lines for *tree* in depth-first, label-sorted order.

    Each leaf is looked up when its line is produced, so lines can be
    written while the walk is still running.

    Args:
        tree: Root of the namespace trie. The root itself is not printed.
        lookup: Store queried for every leaf.
        options: Render options.

    Yields:
        str: One entry per node. Wrapped leaf values span several lines.
    """
    opts = options or RenderOptions()
    glyphs = ASCII_GLYPHS if opts.charset == "ascii" else UNICODE_GLYPHS

    # Stack items: (node, label_path, prefix, is_last_sibling)
    # Push children in reverse order so that the first child is popped first.
    stack: list[tuple[TrieNode, tuple[str, ...], str, bool]] = []

    def push_children(node: TrieNode, path: tuple[str, ...], prefix: str) -> None:
        children = sorted_children(node)
        for i in range(len(children) - 1, -1, -1):
            child = children[i]
            stack.append(
                (child, (*path, child.label), prefix, i == len(children) - 1)
            )

    push_children(tree, (), opts.leading)

    while stack:
        node, path, prefix, is_last = stack.pop()
        connector = glyphs.last_branch if is_last else glyphs.branch
        next_prefix = prefix + (glyphs.space if is_last else glyphs.vertical)
        label = opts.colorize(node.label, "blue")

        if node.is_leaf:
            key = node.key if node.key is not None else opts.separator.join(path)
            result = _fetch(lookup, key, include_value=not opts.only_keys)
            annotation = _annotation(result, next_prefix, opts)
            yield f"{prefix}{connector}{label} {annotation}"
        else:
            yield f"{prefix}{connector}{label}"
            push_children(node, path, next_prefix)


def render(
    tree: TrieNode,
    lookup: Lookup,
    options: RenderOptions | None = None,
) -> str:
    """Render *tree* as a single string (see :func:`iter_lines`)."""
    return "\n".join(iter_lines(tree, lookup, options))
