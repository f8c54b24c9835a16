"""Exception hierarchy for sizediff.

Hard failures abort the run; ``RemoteError`` is the one the retry policy
and the baseline lookup are allowed to absorb.
"""

from __future__ import annotations


class SizeDiffError(Exception):
    """Base exception for all sizediff errors."""


class ConfigError(SizeDiffError, ValueError):
    """Invalid configuration input."""


class RemoteError(SizeDiffError):
    """A call to the remote artifact/workflow API failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ArtifactTooLargeError(SizeDiffError):
    """Downloaded artifact exceeds the download ceiling."""

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"Artifact is too large ({size_bytes / (1024 * 1024):.0f} MB, "
            f"limit {limit_bytes // (1024 * 1024)} MB)"
        )


class RecordFormatError(SizeDiffError, ValueError):
    """Stored measurement record is malformed."""


class BuildError(SizeDiffError):
    """Install or build command failed."""
