"""Measurement record data model.

A :class:`MeasurementRecord` is an immutable snapshot of a build's output
files.  Totals are always derived from ``files``; the serialized totals of a
stored record are informational and get recomputed on load.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

from sizediff.core.schemas import validate_record


@dataclass(frozen=True)
class FileEntry:
    """Sizes of a single output file."""

    path: str
    name: str
    size: int
    gzip: int = 0
    brotli: int = 0

    def metric(self, name: str) -> int:
        """Return the size in the ``size`` / ``gzip`` / ``brotli`` dimension."""
        if name == "brotli":
            return self.brotli
        if name == "gzip":
            return self.gzip
        return self.size

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "size": self.size,
            "gzip": self.gzip,
            "brotli": self.brotli,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FileEntry:
        path = str(d["path"])
        return cls(
            path=path,
            name=str(d.get("name") or path.rsplit("/", 1)[-1]),
            size=int(d["size"]),
            gzip=int(d.get("gzip", 0)),
            brotli=int(d.get("brotli", 0)),
        )


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class MeasurementRecord:
    """Snapshot of a build's compiled assets.

    Attributes:
        files: Per-file sizes; paths are unique.
        timestamp: ISO-8601 creation instant.
        commit: Revision the build was made from, ``"unknown"`` if not known.
    """

    files: tuple[FileEntry, ...] = ()
    timestamp: str = field(default_factory=_utc_now)
    commit: str = "unknown"

    def __post_init__(self) -> None:
        # Accept any iterable but store a tuple so the record stays hashable.
        object.__setattr__(self, "files", tuple(self.files))
        seen: set[str] = set()
        for entry in self.files:
            if entry.path in seen:
                raise ValueError(f"Duplicate file path in record: {entry.path!r}")
            seen.add(entry.path)

    @classmethod
    def from_files(
        cls,
        files: Iterable[FileEntry],
        commit: str = "unknown",
        timestamp: str | None = None,
    ) -> MeasurementRecord:
        return cls(files=tuple(files), timestamp=timestamp or _utc_now(), commit=commit or "unknown")

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)

    @property
    def total_gzip(self) -> int:
        return sum(f.gzip for f in self.files)

    @property
    def total_brotli(self) -> int:
        return sum(f.brotli for f in self.files)

    def total(self, metric: str) -> int:
        return sum(f.metric(metric) for f in self.files)

    def file_map(self) -> dict[str, FileEntry]:
        return {f.path: f for f in self.files}

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": [f.to_dict() for f in self.files],
            "totalSize": self.total_size,
            "totalGzip": self.total_gzip,
            "totalBrotli": self.total_brotli,
            "timestamp": self.timestamp,
            "commit": self.commit,
        }

    @classmethod
    def from_dict(cls, d: Any) -> MeasurementRecord:
        """Build a record from its JSON form.

        Raises:
            RecordFormatError: If *d* does not match the record schema or
                lists the same path twice.
        """
        from sizediff.core.errors import RecordFormatError

        validate_record(d)
        try:
            return cls(
                files=tuple(FileEntry.from_dict(f) for f in d["files"]),
                timestamp=str(d.get("timestamp") or ""),
                commit=str(d.get("commit") or "unknown"),
            )
        except ValueError as exc:
            raise RecordFormatError(str(exc)) from exc
