"""Telegram message formatting: sanitize, fit into the length limit, add a footer."""

from __future__ import annotations

import logging
from typing import Any

from telegram.constants import ParseMode

from tgmarkdown.config import get_settings
from tgmarkdown.exceptions import BudgetError
from tgmarkdown.markdown.cropper import crop
from tgmarkdown.markdown.sanitizer import escape_url, sanitize

logger = logging.getLogger(__name__)


def fit_to_budget(sanitized: str, budget: int) -> str:
    """Crop sanitized text to ``budget`` runes and make it legal again.

    Re-sanitizing a cropped text can escape markers the crop left behind and
    grow it, so the crop is repeated with a smaller budget until the final
    text fits.
    """
    target = budget
    cropped, changed = crop(sanitized, target)
    while changed:
        final = sanitize(cropped)
        overflow = len(final) - budget
        if overflow <= 0 or not final:
            return final
        target -= overflow
        logger.debug("Re-sanitized text overflows by %d runes, cropping to %d", overflow, target)
        cropped, changed = crop(sanitized, target)
    return cropped


def source_footer(url: str, label: str | None = None) -> str:
    """Build the ``[src](url)`` footer appended after a cropped body."""
    if label is None:
        label = get_settings().source_label
    return f"\n\n[{sanitize(label, links=False)}]({escape_url(url)})"


def format_response(text: str, max_length: int | None = None) -> str:
    """Prepare an LLM reply for Telegram MarkdownV2."""
    if max_length is None:
        max_length = get_settings().message_limit
    return fit_to_budget(sanitize(text), max_length)


def format_with_source(
    text: str,
    url: str,
    max_length: int | None = None,
    label: str | None = None,
) -> str:
    """Prepare a reply that ends with a link to its source.

    The footer is escaped on its own and never cropped; the body gets what
    is left of ``max_length``.
    """
    if max_length is None:
        max_length = get_settings().message_limit
    footer = source_footer(url, label)
    budget = max_length - len(footer)
    if budget < 0:
        logger.warning("Source footer of %d runes exceeds limit %d", len(footer), max_length)
        raise BudgetError(f"footer needs {len(footer)} characters, limit is {max_length}")
    return fit_to_budget(sanitize(text), budget) + footer


def reply_kwargs(text: str) -> dict[str, Any]:
    """Keyword arguments for ``Message.reply_text`` / ``Bot.send_message``."""
    return {"text": text, "parse_mode": ParseMode.MARKDOWN_V2}
