"""Tests for logging setup."""

from __future__ import annotations

import io
import logging

from rich.logging import RichHandler

from sizediff.log import WorkflowCommandHandler, configure_logging, escape_data


def _emit(level: int, message: str) -> str:
    stream = io.StringIO()
    handler = WorkflowCommandHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.emit(logging.LogRecord("sizediff.test", level, __file__, 1, message, None, None))
    return stream.getvalue()


def test_workflow_commands_per_level() -> None:
    assert _emit(logging.ERROR, "broken") == "::error::broken\n"
    assert _emit(logging.WARNING, "careful") == "::warning::careful\n"
    assert _emit(logging.INFO, "hello") == "hello\n"
    assert _emit(logging.DEBUG, "detail") == "::debug::detail\n"


def test_escape_data() -> None:
    assert escape_data("50%\nnext\r") == "50%25%0Anext%0D"
    assert _emit(logging.WARNING, "a\nb") == "::warning::a%0Ab\n"


def test_configure_logging_replaces_handlers() -> None:
    logger = configure_logging(verbose=True, github_actions=True)
    configure_logging(verbose=True, github_actions=True)
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], WorkflowCommandHandler)
    assert logger.level == logging.DEBUG

    logger = configure_logging(github_actions=False)
    assert isinstance(logger.handlers[0], RichHandler)
    assert logger.level == logging.INFO
