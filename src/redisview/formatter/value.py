"""Value preview formatter: compact or wrapped JSON, bit-strings for binary."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Final

# Share of non-text bytes at which a scalar is treated as binary.
BINARY_THRESHOLD: Final[float] = 0.30

# Control bytes that still count as text: \n \t \r \f \b.
TEXT_CONTROL_BYTES: Final[frozenset[int]] = frozenset(b"\n\t\r\f\b")

INDENT_UNIT: Final[int] = 3


@dataclass(frozen=True, slots=True)
class ScalarValue:
    """Raw bytes of a string key."""

    data: bytes


@dataclass(frozen=True, slots=True)
class ListValue:
    """Ordered sequence of elements."""

    items: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SetValue:
    """Unordered members, stored sorted."""

    members: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class FieldMapValue:
    """Ordered field to value pairs (hash fields, sorted-set scores)."""

    fields: tuple[tuple[str, str], ...]


@dataclass(frozen=True, slots=True)
class EmptyValue:
    """No value: unknown type, missing key or only-keys mode."""


FetchedValue = ScalarValue | ListValue | SetValue | FieldMapValue | EmptyValue

EMPTY: Final[EmptyValue] = EmptyValue()


def is_binary(data: bytes, threshold: float = BINARY_THRESHOLD) -> bool:
    """Guess whether *data* is binary rather than text.

    Counts bytes outside printable ASCII and :data:`TEXT_CONTROL_BYTES`.
    This is a heuristic: short or mixed-encoding payloads may be
    misclassified.

    Args:
        data: Raw bytes.
        threshold: Invisible-byte ratio at which data counts as binary.

    Returns:
        bool: ``True`` when the invisible ratio reaches *threshold*.
    """
    if not data:
        return False
    invisible = sum(
        1 for b in data if not (0x20 <= b < 0x7F or b in TEXT_CONTROL_BYTES)
    )
    return invisible / len(data) >= threshold


def bitset(data: bytes) -> bytes:
    """Render each byte as eight ASCII ``0``/``1`` characters, MSB first."""
    return "".join(format(b, "08b") for b in data).encode("ascii")


def _dump_json(obj: object, prefix: str, wrap: bool) -> str:
    if not wrap:
        return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
    lines = json.dumps(obj, ensure_ascii=False, indent=INDENT_UNIT).split("\n")
    return "\n".join([lines[0], *(prefix + line for line in lines[1:])])


def format_value(value: FetchedValue, prefix: str = "", wrap: bool = True) -> str:
    """Format a fetched value for display after a tree leaf.

    Args:
        value: Value to format.
        prefix: Tree rail written before every continuation line so that
            wrapped output stays aligned under the leaf's branch.
        wrap: Whether composite values with several elements are indented.

    Returns:
        str: Formatted preview, possibly spanning several lines.
    """
    if isinstance(value, ScalarValue):
        if is_binary(value.data):
            return bitset(value.data).decode("ascii")
        return value.data.decode("utf-8", errors="replace")

    if isinstance(value, FieldMapValue):
        obj: object = dict(value.fields)
        size = len(value.fields)
    elif isinstance(value, ListValue):
        obj, size = list(value.items), len(value.items)
    elif isinstance(value, SetValue):
        obj, size = list(value.members), len(value.members)
    else:
        return ""

    return _dump_json(obj, prefix, wrap and size > 1)
