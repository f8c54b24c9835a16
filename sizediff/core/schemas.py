"""JSON Schema for the persisted ``bundle-stats.json`` record."""

from __future__ import annotations

from typing import Any

import jsonschema

from sizediff.core.errors import RecordFormatError

_SIZE = {"type": "integer", "minimum": 0}

FILE_ENTRY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["path", "size"],
    "properties": {
        "path": {"type": "string", "minLength": 1},
        "name": {"type": "string"},
        "size": _SIZE,
        "gzip": _SIZE,
        "brotli": _SIZE,
    },
    "additionalProperties": True,
}

MEASUREMENT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "sizediff Measurement Record",
    "type": "object",
    "required": ["files"],
    "properties": {
        "files": {"type": "array", "items": FILE_ENTRY_SCHEMA},
        "totalSize": _SIZE,
        "totalGzip": _SIZE,
        "totalBrotli": _SIZE,
        "timestamp": {"type": "string"},
        "commit": {"type": "string"},
    },
    "additionalProperties": True,
}


def record_errors(data: Any) -> list[str]:
    """Validate *data* against the record schema. Returns error messages."""
    validator = jsonschema.Draft202012Validator(MEASUREMENT_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    msgs = []
    for err in errors[:5]:
        path = ".".join(str(p) for p in err.absolute_path) or "(root)"
        msgs.append(f"[{path}] {err.message}")
    return msgs


def validate_record(data: Any) -> None:
    """Raise :class:`RecordFormatError` if *data* is not a valid record."""
    errors = record_errors(data)
    if errors:
        raise RecordFormatError("Invalid measurement record: " + "; ".join(errors))
