"""Tests for the Telegram delivery pipeline."""

from __future__ import annotations

import pytest
from telegram.constants import ParseMode

from tgmarkdown.exceptions import BudgetError
from tgmarkdown.gateway.formatters import (
    fit_to_budget,
    format_response,
    format_with_source,
    reply_kwargs,
    source_footer,
)
from tgmarkdown.markdown.escapes import ELLIPSIS


class TestFitToBudget:
    def test_fits_already(self):
        assert fit_to_budget("short \\.", 100) == "short \\."

    def test_recrops_when_resanitizing_grows(self):
        # cropping keeps an unclosed `||`, which the second pass escapes
        text = "||spoiler text here|| and the rest"
        result = fit_to_budget(text, 20)
        assert result == "\\|\\|spoiler" + ELLIPSIS
        assert len(result) <= 20

    def test_negative_budget(self):
        assert fit_to_budget("some text", -5) == ""


class TestFormatResponse:
    def test_sanitizes(self):
        assert format_response("Hello!", max_length=100) == "Hello\\!"

    def test_crops_long_text(self):
        result = format_response("word " * 2000, max_length=100)
        assert len(result) <= 100
        assert result.endswith(ELLIPSIS)

    def test_default_limit_from_settings(self, monkeypatch):
        monkeypatch.setenv("TGMARKDOWN_MESSAGE_LIMIT", "50")
        result = format_response("word " * 100)
        assert len(result) <= 50
        assert result.endswith(ELLIPSIS)


class TestSourceFooter:
    def test_url_escaped(self):
        assert source_footer("https://example.com/a_(b)", "src") == "\n\n[src](https://example.com/a_\\(b\\))"

    def test_label_from_settings(self, monkeypatch):
        monkeypatch.setenv("TGMARKDOWN_SOURCE_LABEL", "source")
        assert source_footer("https://x.org") == "\n\n[source](https://x.org)"

    def test_label_is_sanitized(self):
        assert source_footer("https://x.org", "v1.0") == "\n\n[v1\\.0](https://x.org)"

    def test_label_is_never_a_link(self):
        assert source_footer("https://x.org", "[x](y)") == "\n\n[\\[x\\]\\(y\\)](https://x.org)"


class TestFormatWithSource:
    def test_short_body(self):
        result = format_with_source("Summary.", "https://example.com/a_(b)", max_length=4000)
        assert result == "Summary\\.\n\n[src](https://example.com/a_\\(b\\))"

    def test_long_body_cropped_footer_kept(self):
        footer = "\n\n[src](https://example.com/article)"
        result = format_with_source("*" + "lorem ipsum " * 500, "https://example.com/article", max_length=300)
        assert len(result) <= 300
        assert result.endswith(ELLIPSIS + footer)

    def test_footer_too_long(self):
        with pytest.raises(BudgetError):
            format_with_source("x", "https://example.com/" + "a" * 100, max_length=50)

    def test_budget_error_is_value_error(self):
        with pytest.raises(ValueError, match="footer"):
            format_with_source("x", "https://example.com/" + "a" * 100, max_length=50)


class TestReplyKwargs:
    def test_parse_mode(self):
        kwargs = reply_kwargs("Hello\\!")
        assert kwargs == {"text": "Hello\\!", "parse_mode": ParseMode.MARKDOWN_V2}
        assert kwargs["parse_mode"] == "MarkdownV2"
