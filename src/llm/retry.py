# src/llm/retry.py - v2
"""Agent-level retry policy with exponential backoff.

Retries are off by default: every agent call is a billed LLM request, so a
failed agent is recorded as failed rather than silently re-run. When enabled,
only transient error classes are retried.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass

TRANSIENT_ERROR_TYPES: frozenset[str] = frozenset({"rate_limit", "server_error", "timeout"})


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry configuration applied per agent."""

    max_retries: int = 0
    base_delay_s: float = 2.0
    backoff_factor: float = 2.0
    jitter: bool = True
    retry_on_timeout: bool = False

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay_s < 0:
            raise ValueError("base_delay_s must be >= 0")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        """Decide whether a failed attempt (1-based) may be retried."""
        if attempt > self.max_retries:
            return False
        cause = getattr(error, "cause", None)
        if cause is not None:
            error = cause
        if isinstance(error, asyncio.TimeoutError):
            return self.retry_on_timeout
        return classify_error(error) in TRANSIENT_ERROR_TYPES

    def compute_delay(self, attempt: int) -> float:
        """Delay before the next attempt, given the failed attempt (1-based)."""
        delay = self.base_delay_s * (self.backoff_factor ** (attempt - 1))
        if self.jitter:
            delay *= 0.5 + random.random()  # noqa: S311
        return delay


NO_RETRY = RetryPolicy()


def classify_error(error: BaseException) -> str:
    """Classify an exception into a retry error type."""
    msg = str(error).lower()
    name = type(error).__name__.lower()

    if "429" in msg or "rate" in msg or "resourceexhausted" in name:
        return "rate_limit"
    if "timeout" in name or "timeout" in msg or "timed out" in msg:
        return "timeout"
    if any(code in msg for code in ("500", "502", "503", "504", "server", "overloaded")):
        return "server_error"
    if "json" in msg or "parse" in msg or "decode" in msg or "validation" in msg:
        return "parse_error"
    if "token" in msg and ("limit" in msg or "exceed" in msg):
        return "token_limit"
    return "unknown"
