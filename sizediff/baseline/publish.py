"""Baseline publisher: uploads the current record as a new artifact."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

import requests

from sizediff import ARTIFACT_NAME, STATS_FILE
from sizediff.adapters.base import ArtifactBackend
from sizediff.core.errors import RemoteError
from sizediff.core.retry import RetryPolicy
from sizediff.core.stats import MeasurementRecord

logger = logging.getLogger("sizediff.publish")

DEFAULT_RETENTION_DAYS = 90


def write_record(record: MeasurementRecord, path: str | Path) -> Path:
    """Write *record* as indented JSON."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(record.to_dict(), indent=2) + "\n", encoding="utf-8")
    return p


def publish(
    backend: ArtifactBackend,
    record: MeasurementRecord,
    work_dir: str | Path,
    retry: RetryPolicy | None = None,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> int:
    """Upload *record* as a new ``bundle-stats`` artifact.

    Publishing is append-only: every call creates a new artifact, and the
    lookup decides which one is "the" baseline.

    Returns:
        The new artifact id.

    Raises:
        RemoteError: If the upload still fails after retries.
    """
    retry = retry or RetryPolicy()
    Path(work_dir).mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(dir=work_dir, prefix="baseline-upload-") as staging:
        root = Path(staging)
        stats_path = write_record(record, root / STATS_FILE)
        try:
            artifact_id = retry.call(
                lambda: backend.upload_artifact(ARTIFACT_NAME, [stats_path], root, retention_days),
                "uploadArtifact",
            )
        except requests.RequestException as exc:
            raise RemoteError(f"Failed to upload baseline: {exc}") from exc
    logger.info("Baseline stats uploaded as artifact %d (retention %d days)", artifact_id, retention_days)
    return artifact_id
