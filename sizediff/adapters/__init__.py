"""Adapter subpackage: remote artifact store backends."""

from __future__ import annotations

__all__ = [
    "ArtifactBackend",
    "ArtifactPage",
    "ArtifactRef",
    "GitHubBackend",
    "parse_artifact_listing",
]

from sizediff.adapters.base import ArtifactBackend, ArtifactPage, ArtifactRef, parse_artifact_listing
from sizediff.adapters.github import GitHubBackend
