"""Sticky PR comment management."""

from __future__ import annotations

import logging

import requests

from sizediff.adapters.base import ArtifactBackend
from sizediff.core.context import RunContext
from sizediff.core.diff import DiffResult
from sizediff.core.errors import RemoteError
from sizediff.core.retry import RetryPolicy
from sizediff.report.markdown import COMMENT_MARKER, build_comment_markdown

logger = logging.getLogger("sizediff.report")

MAX_COMMENT_PAGES = 20


def find_existing_comment(
    backend: ArtifactBackend,
    issue_number: int,
    retry: RetryPolicy,
    max_pages: int = MAX_COMMENT_PAGES,
) -> int | None:
    """Id of the comment carrying our marker, or ``None``.

    Listing failures are logged and treated as "no comment yet".
    """
    page: int | None = 1
    pages = 0
    try:
        while page is not None and pages < max_pages:
            current_page = page
            result = retry.call(lambda: backend.list_comments(issue_number, page=current_page), "listComments")
            pages += 1
            for comment in result.items:
                if COMMENT_MARKER in comment.body:
                    return comment.id
            page = result.next_page
    except (RemoteError, requests.RequestException) as exc:
        logger.warning("Failed to list comments: %s", exc)
    return None


def update_pr_comment(
    backend: ArtifactBackend,
    context: RunContext,
    diff: DiffResult,
    mode: str = "always",
    fail_on_error: bool = False,
    retry: RetryPolicy | None = None,
) -> str:
    """Create or update the size report comment on the current PR.

    Returns:
        What happened: ``"skipped"``, ``"created"``, ``"updated"`` or
        ``"failed"``.

    Raises:
        RemoteError: If posting fails and *fail_on_error* is set.
    """
    if mode == "never":
        return "skipped"
    if mode == "on-increase" and diff.diff_metric <= 0:
        return "skipped"
    if context.pr_number is None:
        logger.info("Not a PR, skipping comment")
        return "skipped"

    retry = retry or RetryPolicy()
    body = build_comment_markdown(diff)
    existing = find_existing_comment(backend, context.pr_number, retry)
    try:
        if existing is not None:
            backend.update_comment(existing, body)
            logger.info("Updated existing comment")
            return "updated"
        backend.create_comment(context.pr_number, body)
        logger.info("Created new comment")
        return "created"
    except (RemoteError, requests.RequestException) as exc:
        if fail_on_error:
            raise
        logger.warning("Failed to post comment: %s", exc)
        return "failed"
