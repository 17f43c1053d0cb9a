"""Shared fixtures: isolated settings and logging state."""

from __future__ import annotations

import logging

import pytest

from tgmarkdown import config

ENV_VARS = (
    "TGMARKDOWN_MESSAGE_LIMIT",
    "TGMARKDOWN_SOURCE_LABEL",
    "TGMARKDOWN_LOG_LEVEL",
    "TGMARKDOWN_LOG_DIR",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    # keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config, "_settings", None)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
