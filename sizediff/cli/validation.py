"""CLI input parsing and record file loading."""

from __future__ import annotations

from pathlib import Path

import click

from sizediff.baseline.extract import read_record
from sizediff.core.config import parse_optional_kb
from sizediff.core.errors import ConfigError, RecordFormatError
from sizediff.core.stats import MeasurementRecord


def load_record_file(filepath: str) -> MeasurementRecord:
    """Load and validate a ``bundle-stats.json`` file.

    Raises:
        click.ClickException: If the file is not a valid measurement record.
    """
    try:
        return read_record(Path(filepath))
    except RecordFormatError as exc:
        raise click.ClickException(f"Invalid record in {filepath}: {exc}") from exc


def kb_value(value: str | None, name: str) -> float | None:
    """Parse an optional KB option, turning config errors into usage errors."""
    try:
        return parse_optional_kb(value, name)
    except ConfigError as exc:
        raise click.BadParameter(str(exc), param_hint=f"--{name}") from exc
