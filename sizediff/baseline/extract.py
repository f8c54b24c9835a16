"""Safe artifact archive extraction and record loading.

Archives come from a remote store we do not control, so extraction is
sandboxed: every member must resolve inside the extraction root
(ZipSlip protection) and the total decompressed volume is capped
(zip-bomb protection).
"""

from __future__ import annotations

import io
import json
import logging
import tempfile
import zipfile
import zlib
from pathlib import Path

from sizediff import STATS_FILE
from sizediff.adapters.base import ArtifactBackend, ArtifactRef
from sizediff.core.errors import ArtifactTooLargeError, RecordFormatError
from sizediff.core.retry import RetryPolicy
from sizediff.core.stats import MeasurementRecord
from sizediff.core.units import MB

logger = logging.getLogger("sizediff.extract")

MAX_ARTIFACT_BYTES = 50 * MB
MAX_UNZIPPED_BYTES = 200 * MB
_CHUNK = 64 * 1024

# Errors a damaged or hostile archive can raise while being read.
_ARCHIVE_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, RuntimeError, NotImplementedError, OSError)


def is_within(root: Path, target: Path) -> bool:
    """True if *target* lies strictly inside *root* (both resolved)."""
    return target != root and target.is_relative_to(root)


def extract_archive(
    data: bytes,
    dest: str | Path,
    max_unzipped_bytes: int = MAX_UNZIPPED_BYTES,
) -> bool:
    """Extract zip *data* into *dest*, one member at a time.

    Members that would land outside *dest* are skipped with a warning.
    Extraction stops (returning ``False``) once the decompressed total would
    pass *max_unzipped_bytes*; both the declared member size and the bytes
    actually produced are checked.

    Returns:
        ``True`` if the archive was fully extracted.
    """
    root = Path(dest).resolve()
    root.mkdir(parents=True, exist_ok=True)
    total = 0
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            for info in zf.infolist():
                target = (root / info.filename).resolve()
                if not is_within(root, target):
                    if target != root:
                        logger.warning("Skipping path traversal: %s", info.filename)
                    continue

                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue

                if total + info.file_size > max_unzipped_bytes:
                    logger.warning(
                        "Artifact unzipped size exceeds %d MB; aborting extraction.",
                        max_unzipped_bytes // MB,
                    )
                    return False

                target.parent.mkdir(parents=True, exist_ok=True)
                written = 0
                with zf.open(info) as src, target.open("wb") as dst:
                    while True:
                        chunk = src.read(_CHUNK)
                        if not chunk:
                            break
                        written += len(chunk)
                        if total + written > max_unzipped_bytes:
                            logger.warning(
                                "Artifact unzipped size exceeds %d MB; aborting extraction.",
                                max_unzipped_bytes // MB,
                            )
                            return False
                        dst.write(chunk)
                total += written
    except _ARCHIVE_ERRORS as exc:
        logger.warning("Failed to extract artifact zip: %s", exc)
        return False
    return True


def read_record(path: str | Path) -> MeasurementRecord:
    """Parse a ``bundle-stats.json`` file.

    Raises:
        RecordFormatError: If the content is not a valid measurement record.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise RecordFormatError(f"{Path(path).name} is not valid JSON: {exc}") from exc
    return MeasurementRecord.from_dict(data)


def load_baseline(
    backend: ArtifactBackend,
    ref: ArtifactRef,
    work_dir: str | Path,
    retry: RetryPolicy | None = None,
    max_download_bytes: int = MAX_ARTIFACT_BYTES,
    max_unzipped_bytes: int = MAX_UNZIPPED_BYTES,
) -> MeasurementRecord | None:
    """Download *ref* and load the measurement record it carries.

    Returns ``None`` for an empty download, an archive that cannot be
    extracted safely, or one without a record file.

    Raises:
        ArtifactTooLargeError: If the download passes *max_download_bytes*.
        RecordFormatError: If the record file is malformed.
    """
    retry = retry or RetryPolicy()
    data = retry.call(
        lambda: backend.download_artifact(ref.id, max_download_bytes),
        "downloadArtifact",
    )
    if not data:
        logger.warning("Downloaded artifact %d is empty", ref.id)
        return None
    if len(data) > max_download_bytes:
        raise ArtifactTooLargeError(len(data), max_download_bytes)

    Path(work_dir).mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(dir=work_dir, prefix="baseline-extracted-") as sandbox:
        if not extract_archive(data, sandbox, max_unzipped_bytes):
            return None
        stats_path = Path(sandbox) / STATS_FILE
        if not stats_path.is_file():
            logger.warning("%s not found in artifact %d", STATS_FILE, ref.id)
            return None
        record = read_record(stats_path)

    logger.info(
        "Baseline loaded (artifact %d): %d bytes gzip from commit %s",
        ref.id, record.total_gzip, record.commit[:7],
    )
    return record
