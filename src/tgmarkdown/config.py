"""Pydantic Settings: loads .env and provides typed configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tgmarkdown.exceptions import ConfigError
from tgmarkdown.markdown.escapes import ELLIPSIS

# Telegram allows 4096 characters per message; keep a margin below it
TELEGRAM_CHAR_LIMIT = 4000


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TGMARKDOWN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Delivery
    message_limit: int = TELEGRAM_CHAR_LIMIT
    source_label: str = "src"

    # Logging
    log_level: str = "INFO"
    log_dir: Path | None = None

    @field_validator("message_limit")
    @classmethod
    def check_message_limit(cls, v: int) -> int:
        if v < len(ELLIPSIS):
            raise ValueError(f"message_limit must be at least {len(ELLIPSIS)}")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v!r}")
        return level

    @property
    def log_file(self) -> Path | None:
        if self.log_dir is None:
            return None
        return self.log_dir / "tgmarkdown.log"


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        try:
            _settings = Settings()
        except ValidationError as e:
            raise ConfigError(str(e)) from e
    return _settings
