"""Custom exception hierarchy for tgmarkdown."""


class TgMarkdownError(Exception):
    """Base exception for all tgmarkdown errors."""


class ConfigError(TgMarkdownError):
    """Configuration is invalid or missing."""


class BudgetError(TgMarkdownError, ValueError):
    """A fixed suffix does not fit into the message length limit."""
