"""Terminal display width of text, in columns."""

from __future__ import annotations

from wcwidth import wcswidth, wcwidth

ELLIPSIS = "…"


def char_width(ch: str) -> int:
    """Columns taken by a single code point: 0, 1 or 2."""
    return max(wcwidth(ch), 0)


def display_width(text: str) -> int:
    """Columns taken by *text*, honoring emoji ZWJ and VS16 sequences."""
    width = wcswidth(text)
    if width < 0:
        # control characters make wcswidth give up; count them as zero
        return sum(char_width(ch) for ch in text)
    return width


def pad(text: str, width: int) -> str:
    """Left-align *text* in *width* columns. Longer text is returned as is."""
    return text + " " * max(0, width - display_width(text))


def truncate(text: str, width: int) -> str:
    """Longest prefix of *text* that fits in *width* columns."""
    for end in range(1, len(text) + 1):
        if display_width(text[:end]) > width:
            return text[: end - 1]
    return text
