"""Namespace trie built from separator-delimited key names."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Final

ROOT_LABEL: Final[str] = "/"


@dataclass(slots=True)
class TrieNode:
    """One namespace segment.

    Attributes:
        label: Segment text, or ``/`` for the root.
        children: Child nodes keyed by their label.
        key: Fully-qualified key looked up for this node. When several keys
            split to the same path, the one spelled exactly as the joined
            labels wins, else the byte-wise smallest. Not part of equality,
            two trees compare equal when their labels match.
    """

    label: str
    children: dict[str, TrieNode] = field(default_factory=dict)
    key: str | None = field(default=None, compare=False)

    @property
    def is_leaf(self) -> bool:
        return not self.children


def new_tree() -> TrieNode:
    """Return an empty root node."""
    return TrieNode(label=ROOT_LABEL)


def split_key(key: str, separator: str) -> list[str]:
    """Split *key* on *separator*, dropping empty segments.

    Raises:
        ValueError: If *separator* is empty.
    """
    if not separator:
        raise ValueError("separator must not be empty")
    return [part for part in key.split(separator) if part]


def ingest(tree: TrieNode, keys: Iterable[str], separator: str) -> TrieNode:
    """Add every key in *keys* to *tree*.

    Missing nodes are created on the way down, existing ones are reused,
    so ingesting the same key twice leaves the tree unchanged.

    Args:
        tree: Root node to extend in place.
        keys: Key names in the order the server returned them.
        separator: Segment separator, e.g. ``:``.

    Returns:
        TrieNode: The same *tree*, for chaining.
    """
    for key in keys:
        parts = split_key(key, separator)
        if not parts:
            continue
        node = tree
        for part in parts:
            child = node.children.get(part)
            if child is None:
                child = TrieNode(label=part)
                node.children[part] = child
            node = child
        rank = _key_rank(key, parts, separator)
        if node.key is None or rank < _key_rank(node.key, parts, separator):
            node.key = key
    return tree


def label_bytes(label: str) -> bytes:
    """Encode *label* back to the raw bytes it was decoded from."""
    return label.encode("utf-8", errors="surrogateescape")


def _key_rank(key: str, parts: list[str], separator: str) -> tuple[bool, bytes]:
    # Keys collapsing onto one leaf (`a::b`, `a:b`, `a:b:`): the canonical
    # spelling wins, otherwise the byte-wise smallest key.
    return key != separator.join(parts), label_bytes(key)


def sorted_children(node: TrieNode) -> list[TrieNode]:
    """Return children of *node* in ascending byte order of their labels."""
    labels = sorted(node.children, key=label_bytes)
    return [node.children[label] for label in labels]

