"""ANSI styling for labels, types and TTLs via rich."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, TextIO

from rich.color import ColorSystem
from rich.style import Style

ColorMode = Literal["auto", "always", "never"]


@lru_cache(maxsize=None)
def _style(name: str) -> Style:
    return Style.parse(name)


def ansi(text: str, style: str) -> str:
    """Wrap *text* in ANSI escapes for *style* (e.g. ``"yellow"``).

    Empty text stays empty so blank fields do not emit escape codes.
    """
    if not text:
        return text
    return _style(style).render(text, color_system=ColorSystem.STANDARD)


def color_enabled(mode: ColorMode, stream: TextIO) -> bool:
    """Decide whether to colorize output written to *stream*.

    Args:
        mode: ``always``, ``never`` or ``auto`` (color when *stream* is a tty).
        stream: Destination stream.

    Returns:
        bool: Whether to colorize.
    """
    if mode == "always":
        return True
    if mode == "never":
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())
