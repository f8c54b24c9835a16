"""Logging setup.

Inside GitHub Actions, warnings and errors become workflow-command
annotations (``::warning::``); elsewhere records go through rich.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "sizediff"


def escape_data(message: str) -> str:
    """Escape a message for a workflow command."""
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommandHandler(logging.Handler):
    """Emit records as GitHub Actions workflow commands."""

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            if record.levelno >= logging.ERROR:
                line = f"::error::{escape_data(message)}"
            elif record.levelno >= logging.WARNING:
                line = f"::warning::{escape_data(message)}"
            elif record.levelno >= logging.INFO:
                line = message
            else:
                line = f"::debug::{escape_data(message)}"
            stream = self.stream or sys.stdout
            stream.write(line + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)


def in_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def configure_logging(verbose: bool = False, github_actions: bool | None = None) -> logging.Logger:
    """Attach a single handler to the ``sizediff`` logger and return it."""
    if github_actions is None:
        github_actions = in_github_actions()

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler: logging.Handler
    if github_actions:
        handler = WorkflowCommandHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)

    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger
