"""Bounded retry with exponential backoff for remote calls."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

import requests

from sizediff.core.errors import RemoteError

logger = logging.getLogger("sizediff.retry")

T = TypeVar("T")

#: Exceptions that are worth another attempt.
RETRYABLE: tuple[type[BaseException], ...] = (RemoteError, requests.RequestException)


def with_retry(
    operation: Callable[[], T],
    attempts: int = 3,
    base_delay: float = 1.0,
    description: str = "remote call",
    retry_on: tuple[type[BaseException], ...] = RETRYABLE,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call *operation* up to *attempts* times.

    The wait before attempt ``n + 1`` is ``base_delay * 2 ** (n - 1)``.
    Exceptions outside *retry_on* propagate immediately; the last retryable
    failure propagates once attempts are exhausted.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    for attempt in range(attempts):
        try:
            return operation()
        except retry_on as exc:
            if attempt == attempts - 1:
                raise
            wait = base_delay * (2 ** attempt)
            logger.warning(
                "%s failed, retrying in %.0fms (%d/%d): %s",
                description, wait * 1000, attempt + 1, attempts, exc,
            )
            sleep(wait)
    raise AssertionError("unreachable")


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-attempt exponential backoff shared by the remote operations."""

    attempts: int = 3
    base_delay: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False, repr=False)

    def call(self, operation: Callable[[], T], description: str = "remote call") -> T:
        return with_retry(
            operation,
            attempts=self.attempts,
            base_delay=self.base_delay,
            description=description,
            sleep=self.sleep,
        )
