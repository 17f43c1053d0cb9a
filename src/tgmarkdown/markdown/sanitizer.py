"""Telegram MarkdownV2 sanitizer.

Escapes arbitrary text so Telegram accepts it with ``parse_mode=MarkdownV2``
while keeping the entities the dialect supports: bold, italic, underline,
strikethrough, spoiler, inline and fenced code, block quotes, inline links,
user mentions and custom emoji. Anything that does not form a complete entity
is escaped as a literal, so the scan never fails.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Callable

from tgmarkdown.markdown.escapes import ESCAPABLE, QUOTE_PREFIX, RESERVED, escaped_positions

_URL_SPECIAL = frozenset("()\\")
_CODE_SPECIAL = frozenset("`\\")


def _first_at_or_after(positions: list[int], start: int, stop: int) -> int:
    """Return the first position in ``[start, stop)`` or -1."""
    k = bisect_left(positions, start)
    if k < len(positions) and positions[k] < stop:
        return positions[k]
    return -1


def _split_runs(text: str, escaped: bytearray, ch: str) -> tuple[list[int], list[int]]:
    """Split runs of ``ch`` greedily into two-rune units plus a trailing single."""
    singles: list[int] = []
    doubles: list[int] = []
    n = len(text)
    i = 0
    while i < n:
        if text[i] != ch or escaped[i]:
            i += 1
            continue
        j = i
        while j < n and text[j] == ch:
            j += 1
        doubles.extend(range(i, j - 1, 2))
        if (j - i) % 2:
            singles.append(j - 1)
        i = j
    return singles, doubles


class _Scan:
    """One sanitizing pass over a single input string.

    Everything the scanner needs to look ahead is indexed up front: escape
    pairs, occurrence lists for every marker, and matching brackets and
    parentheses. Handlers take an explicit cursor and slice end and return
    the next cursor together with the fragment they produced.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.escaped = escaped_positions(text, ESCAPABLE)

        self.singles: dict[str, list[int]] = {"*": [], "~": [], "`": []}
        self.fences: list[int] = []
        self.brackets: dict[int, int] = {}
        self.parens: dict[int, int] = {}

        open_brackets: list[int] = []
        open_parens: list[int] = []
        for i, ch in enumerate(text):
            if self.escaped[i] or ch == "\\":
                continue
            if ch in self.singles:
                self.singles[ch].append(i)
                if ch == "`" and text.startswith("```", i):
                    self.fences.append(i)
            elif ch == "[":
                open_brackets.append(i)
            elif ch == "]" and open_brackets:
                self.brackets[open_brackets.pop()] = i
            elif ch == "(":
                open_parens.append(i)
            elif ch == ")" and open_parens:
                self.parens[open_parens.pop()] = i

        self.singles["_"], underlines = _split_runs(text, self.escaped, "_")
        self.singles["|"], spoilers = _split_runs(text, self.escaped, "|")
        self.doubles: dict[str, list[int]] = {"_": underlines, "|": spoilers}
        self.double_starts = set(underlines) | set(spoilers)
        self.fence_starts = set(self.fences)

        self._dispatch: dict[str, Callable[[int, int, bool], tuple[int, str]]] = {
            "\\": self._backslash,
            "`": self._code,
            "*": self._marker,
            "_": self._marker,
            "~": self._marker,
            "|": self._marker,
            "[": self._link,
            "!": self._emoji,
            ">": self._quote,
        }

    def run(self, start: int, end: int, links: bool = True) -> str:
        """Sanitize ``text[start:end]``."""
        text = self.text
        out: list[str] = []
        i = start
        while i < end:
            ch = text[i]
            handler = self._dispatch.get(ch)
            if handler is None:
                out.append("\\" + ch if ch in RESERVED else ch)
                i += 1
                continue
            i, fragment = handler(i, end, links)
            out.append(fragment)
        return "".join(out)

    def _backslash(self, i: int, end: int, links: bool) -> tuple[int, str]:
        if i + 1 < end and self.escaped[i + 1]:
            return i + 2, self.text[i : i + 2]
        return i + 1, "\\\\"

    def _code(self, i: int, end: int, links: bool) -> tuple[int, str]:
        if i in self.fence_starts and i + 3 <= end:
            close = _first_at_or_after(self.fences, i + 3, end - 2)
            if close < 0:
                return i + 3, "\\`\\`\\`"
            # the language tag has no backslash or backtick, so it survives as is
            return close + 3, "```" + self._code_body(i + 3, close) + "```"

        close = _first_at_or_after(self.singles["`"], i + 1, end)
        if close < 0:
            return i + 1, "\\`"
        return close + 1, "`" + self._code_body(i + 1, close) + "`"

    def _code_body(self, start: int, stop: int) -> str:
        text = self.text
        out: list[str] = []
        i = start
        while i < stop:
            ch = text[i]
            # pairs here are the same ones the closer index skipped
            if ch == "\\" and i + 1 < stop and text[i + 1] in ESCAPABLE:
                out.append(text[i : i + 2])
                i += 2
                continue
            out.append("\\" + ch if ch in _CODE_SPECIAL else ch)
            i += 1
        return "".join(out)

    def _marker(self, i: int, end: int, links: bool) -> tuple[int, str]:
        ch = self.text[i]
        if i in self.double_starts and i + 2 <= end:
            marker = ch * 2
            close = _first_at_or_after(self.doubles[ch], i + 2, end - 1)
        elif ch == "|":
            return i + 1, "\\|"
        else:
            marker = ch
            close = _first_at_or_after(self.singles[ch], i + 1, end)

        width = len(marker)
        if close < 0:
            return i + width, ("\\" + ch) * width
        inner = self.run(i + width, close, links)
        return close + width, marker + inner + marker

    def _parse_link(self, i: int, end: int) -> tuple[int, int] | None:
        """Locate ``](`` and the closing paren for a ``[`` at ``i``."""
        label_end = self.brackets.get(i, -1)
        if label_end < 0 or label_end + 1 >= end or self.text[label_end + 1] != "(":
            return None
        url_end = self.parens.get(label_end + 1, -1)
        if url_end < 0 or url_end >= end:
            return None
        return label_end, url_end

    def _link(self, i: int, end: int, links: bool) -> tuple[int, str]:
        parsed = self._parse_link(i, end) if links else None
        if parsed is None:
            return i + 1, "\\["
        label_end, url_end = parsed
        label = self.run(i + 1, label_end, links=False)
        url = self._url(label_end + 2, url_end)
        return url_end + 1, "[" + label + "](" + url + ")"

    def _url(self, start: int, stop: int) -> str:
        text = self.text
        out: list[str] = []
        i = start
        while i < stop:
            if text[i] == "\\" and i + 1 < stop and text[i + 1] in ESCAPABLE:
                out.append(text[i : i + 2])
                i += 2
                continue
            out.append(escape_url(text[i]))
            i += 1
        return "".join(out)

    def _emoji(self, i: int, end: int, links: bool) -> tuple[int, str]:
        if links and i + 1 < end and self.text[i + 1] == "[":
            parsed = self._parse_link(i + 1, end)
            if parsed is not None and self.text.startswith("tg://", parsed[0] + 2):
                nxt, fragment = self._link(i + 1, end, links)
                return nxt, "!" + fragment
        return i + 1, "\\!"

    def _quote(self, i: int, end: int, links: bool) -> tuple[int, str]:
        text = self.text
        escaped = self.escaped
        k = i - 1
        while k >= 0 and text[k] != "\n":
            if escaped[k] or escaped[k + 1] or text[k] in QUOTE_PREFIX:
                k -= 1
                continue
            return i + 1, "\\>"
        return i + 1, ">"


class MarkdownV2Sanitizer:
    """Escapes text for Telegram MarkdownV2 while keeping supported entities."""

    def sanitize(self, text: str, links: bool = True) -> str:
        """Sanitize ``text``; with ``links=False`` every ``[`` is a literal."""
        if not text:
            return ""
        return _Scan(text).run(0, len(text), links)

    def escape_url(self, url: str) -> str:
        return escape_url(url)


def escape_url(url: str) -> str:
    """Escape the characters MarkdownV2 requires inside a link URL.

    Only ``(``, ``)`` and ``\\`` are touched; the rest of the URL is kept
    verbatim.
    """
    return "".join("\\" + ch if ch in _URL_SPECIAL else ch for ch in url)


_default = MarkdownV2Sanitizer()


def sanitize(text: str, links: bool = True) -> str:
    """Sanitize ``text`` with the default :class:`MarkdownV2Sanitizer`."""
    return _default.sanitize(text, links)
