"""Length-bounded cropping of already sanitized MarkdownV2 text."""

from __future__ import annotations

import logging

from tgmarkdown.markdown.escapes import ELLIPSIS, MARKERS, escaped_positions

logger = logging.getLogger(__name__)


def _break_point(text: str, escaped: bytearray, limit: int) -> int:
    """Find where to cut ``text`` so that at most ``limit`` runes remain.

    Prefers the nearest unescaped space at or before ``limit``. Without one
    the cut is made at ``limit`` itself, stepping back one rune when that
    would separate a backslash from its escapee.
    """
    cut = min(limit, len(text))
    while cut > 0:
        if text[cut] == " " and not escaped[cut]:
            return cut
        cut -= 1
    return _atom_boundary(escaped, min(limit, len(text)))


def _atom_boundary(escaped: bytearray, cut: int) -> int:
    if 0 < cut < len(escaped) and escaped[cut]:
        return cut - 1
    return cut


def _repair(text: str, escaped: bytearray, end: int) -> str:
    """Return ``text[:end]`` with a backslash before each dangling marker."""
    counts = dict.fromkeys(MARKERS, 0)
    last: dict[str, int] = {}
    for i in range(end):
        ch = text[i]
        if ch in counts and not escaped[i]:
            counts[ch] += 1
            last[ch] = i

    dangling = sorted(last[m] for m in MARKERS if counts[m] % 2)
    pieces: list[str] = []
    prev = 0
    for idx in dangling:
        pieces.append(text[prev:idx])
        pieces.append("\\")
        prev = idx
    pieces.append(text[prev:end])
    return "".join(pieces)


def crop(text: str, max_length: int) -> tuple[str, bool]:
    """Crop sanitized MarkdownV2 ``text`` to at most ``max_length`` runes.

    Returns the (possibly) cropped text and whether anything changed. A
    cropped result ends with an escaped ellipsis, never splits an escape
    pair, and has an even number of unescaped occurrences of every
    formatting marker. It is not re-sanitized here; callers run the
    sanitizer again on a changed result.

    When ``max_length`` cannot even hold the ellipsis the result is empty.
    """
    if len(text) <= max_length:
        return text, False

    if max_length < len(ELLIPSIS):
        logger.debug("Budget %d cannot hold the ellipsis, dropping text", max_length)
        return "", True

    limit = max_length - len(ELLIPSIS)
    escaped = escaped_positions(text)
    end = _break_point(text, escaped, limit)

    cropped = _repair(text, escaped, end)
    while len(cropped) > limit:
        end = _atom_boundary(escaped, end - (len(cropped) - limit))
        cropped = _repair(text, escaped, end)

    result = cropped + ELLIPSIS
    logger.debug("Cropped MarkdownV2 text from %d to %d runes", len(text), len(result))
    return result, True
