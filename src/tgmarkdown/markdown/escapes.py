"""Escaping vocabulary shared by the sanitizer and the cropper."""

from __future__ import annotations

from collections.abc import Container

# Characters Telegram MarkdownV2 reserves outside of entities
RESERVED = frozenset("_*[]()~`>#+-=|{}.!")

# A backslash may only precede one of these to form an escape pair
ESCAPABLE = RESERVED | {"\\"}

# Paired formatting markers whose unescaped count must stay even
MARKERS = ("*", "_", "~", "|", "`")

# Markers allowed before a block quote `>` on the same line
QUOTE_PREFIX = frozenset("*_~|")

ELLIPSIS = "\\.\\.\\."


def escaped_positions(text: str, escapable: Container[str] | None = None) -> bytearray:
    """Mark every rune that is the second half of an escape pair.

    Pairs are found in one forward pass so that runs of backslashes resolve
    left to right. With ``escapable`` set, a backslash only pairs with a rune
    from that set; otherwise it pairs with whatever follows it.
    """
    mask = bytearray(len(text))
    i = 0
    n = len(text)
    while i < n:
        if text[i] == "\\" and i + 1 < n and (escapable is None or text[i + 1] in escapable):
            mask[i + 1] = 1
            i += 2
        else:
            i += 1
    return mask


def unescaped_counts(text: str, escaped: bytearray | None = None) -> dict[str, int]:
    """Count unescaped occurrences of each marker in ``text``."""
    if escaped is None:
        escaped = escaped_positions(text)
    counts = dict.fromkeys(MARKERS, 0)
    for i, ch in enumerate(text):
        if ch in counts and not escaped[i]:
            counts[ch] += 1
    return counts
