"""Entry point: python -m tgmarkdown"""

from __future__ import annotations

import argparse
import logging
import sys

from tgmarkdown.config import get_settings
from tgmarkdown.exceptions import TgMarkdownError
from tgmarkdown.gateway.formatters import format_response, format_with_source
from tgmarkdown.logging_config import setup_logging
from tgmarkdown.markdown.sanitizer import escape_url, sanitize

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tgmarkdown",
        description="Escape text for Telegram MarkdownV2 and fit it into a message.",
    )
    parser.add_argument("--text", help="text to format (default: read stdin)")
    parser.add_argument("--limit", type=int, help="maximum message length in characters")
    parser.add_argument("--source", metavar="URL", help="append a link to the source")
    parser.add_argument("--no-crop", action="store_true", help="sanitize only, never crop")
    parser.add_argument("--escape-url", metavar="URL", help="print URL escaped for a link target and exit")
    return parser


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.escape_url is not None:
        sys.stdout.write(escape_url(args.escape_url))
        return 0

    try:
        settings = get_settings()
        setup_logging(settings)
        text = args.text if args.text is not None else sys.stdin.read()
        if args.no_crop:
            result = sanitize(text)
        elif args.source:
            result = format_with_source(text, args.source, args.limit)
        else:
            result = format_response(text, args.limit)
    except TgMarkdownError as e:
        print(f"tgmarkdown: {e}", file=sys.stderr)
        return 2

    logger.debug("Formatted %d input characters into %d", len(text), len(result))
    sys.stdout.write(result)
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
