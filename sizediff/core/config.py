"""Validated configuration surface for a size check."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from sizediff.core.errors import ConfigError

logger = logging.getLogger("sizediff.config")

COMMENT_MODES = ("always", "on-increase", "never")


def parse_optional_kb(value: Any, name: str) -> float | None:
    """Parse an optional non-negative KB figure.

    Empty input means "not configured".  Unparseable or non-finite input is
    a :class:`ConfigError`; negative input is warned about and ignored.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number (e.g., 10 or 0.5), got {value!r}") from exc
    if not math.isfinite(parsed):
        raise ConfigError(f"{name} must be a finite number, got {value!r}")
    if parsed < 0:
        logger.warning("%s is negative (%s); ignoring it", name, value)
        return None
    return parsed


def parse_positive_int(value: Any, name: str) -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a positive integer (e.g., 10), got {value!r}") from exc
    if parsed <= 0:
        raise ConfigError(f"{name} must be a positive integer (e.g., 10), got {value!r}")
    return parsed


def parse_branches(value: str | None) -> list[str]:
    """Split a comma-separated branch list, dropping blanks and duplicates."""
    if not value:
        return []
    branches: list[str] = []
    for part in value.split(","):
        b = part.strip()
        if b and b not in branches:
            branches.append(b)
    return branches


@dataclass(frozen=True)
class CheckSettings:
    """Everything a ``sizediff run`` is configured with.

    Attributes:
        dist_path: Build output directory; ``None`` triggers auto-detection.
        gzip: Measure gzip sizes.
        brotli: Measure brotli sizes.
        budget_max_increase_kb: Maximum aggregate growth in the compare metric.
        warn_above_kb: Per-file warn threshold for the worst changed file.
        fail_above_kb: Per-file fail threshold for the worst changed file.
        max_artifact_pages: Page ceiling for the repository-wide artifact scan.
        baseline_branches: Candidate branches, in priority order; empty means
            derive them from the run context.
        comment_mode: ``always``, ``on-increase`` or ``never``.
    """

    dist_path: str | None = None
    gzip: bool = True
    brotli: bool = True
    budget_max_increase_kb: float | None = None
    warn_above_kb: float | None = None
    fail_above_kb: float | None = None
    max_artifact_pages: int = 10
    baseline_branches: tuple[str, ...] = ()
    build_command: str = "npm run build"
    build_timeout_minutes: int = 15
    allow_unsafe_build: bool = False
    fail_on_stderr: bool = False
    skip_install: bool = False
    skip_build: bool = False
    comment_mode: str = "always"
    fail_on_comment_error: bool = False
    top_n: int = 5
    retention_days: int = 90

    def __post_init__(self) -> None:
        if self.comment_mode not in COMMENT_MODES:
            raise ConfigError(f"comment-mode must be one of: {', '.join(COMMENT_MODES)}")
        for name in ("max_artifact_pages", "build_timeout_minutes", "top_n", "retention_days"):
            if int(getattr(self, name)) <= 0:
                raise ConfigError(f"{name.replace('_', '-')} must be a positive integer")

    @property
    def build_timeout_s(self) -> float:
        return self.build_timeout_minutes * 60.0
