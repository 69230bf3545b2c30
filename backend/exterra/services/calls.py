"""Guarded external calls: per-call deadlines with failure-as-value results.

Every fallback step wraps its external call in :func:`attempt`. A raised
exception or an exceeded deadline becomes ``Outcome.failed(reason)`` so the
caller can move on to the next strategy instead of unwinding the request.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or the reason no value was produced."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failed(cls, reason: str) -> Outcome[T]:
        return cls(error=reason)

    def unwrap(self) -> T:
        if self.error is not None:
            msg = f"Outcome failed: {self.error}"
            raise ValueError(msg)
        return self.value  # type: ignore[return-value]


def attempt(
    operation: str,
    func: Callable[[], T],
    *,
    timeout: float | None = None,
) -> Outcome[T]:
    """Run ``func`` and capture its result or failure.

    With ``timeout`` set, the call runs on a worker thread and is
    abandoned once the deadline passes; a late result is discarded.
    """
    if timeout is None:
        try:
            return Outcome.success(func())
        except Exception as exc:
            logger.warning("%s failed: %s", operation, exc)
            return Outcome.failed(f"{operation} failed: {exc}")

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="exterra-call")
    try:
        future = executor.submit(func)
        try:
            return Outcome.success(future.result(timeout=timeout))
        except FutureTimeoutError:
            logger.warning("%s timed out after %.1fs", operation, timeout)
            return Outcome.failed(f"{operation} timed out after {timeout:.1f}s")
        except Exception as exc:
            logger.warning("%s failed: %s", operation, exc)
            return Outcome.failed(f"{operation} failed: {exc}")
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
