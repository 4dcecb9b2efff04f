"""Tests for logging setup."""

import logging

from rich.logging import RichHandler

from litgraph.log import setup_logging


def test_setup_logging_installs_single_rich_handler():
    setup_logging("info")
    setup_logging("info")

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], RichHandler)
    assert root.level == logging.INFO


def test_env_var_used_when_no_level(monkeypatch):
    monkeypatch.setenv("LITGRAPH_LOG_LEVEL", "debug")
    setup_logging()
    assert logging.getLogger().level == logging.DEBUG


def test_unknown_level_falls_back_to_warning():
    setup_logging("chatty")
    assert logging.getLogger().level == logging.WARNING
