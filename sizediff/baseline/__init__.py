"""Baseline subpackage: artifact lookup, safe extraction and publishing."""

from __future__ import annotations

__all__ = [
    "extract_archive",
    "fetch_baseline",
    "find_baseline",
    "load_baseline",
    "publish",
]

from sizediff.baseline.extract import extract_archive, load_baseline
from sizediff.baseline.lookup import fetch_baseline, find_baseline
from sizediff.baseline.publish import publish
