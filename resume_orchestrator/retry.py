"""Retry logic with exponential backoff for completion backend calls."""

from __future__ import annotations

import asyncio
import logging
import random
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

# Status codes must stand alone; "max_tokens must be <= 500" is not a 500.
_TRANSIENT_MESSAGE = re.compile(
    r"\b(?:408|429|5(?:00|02|03|04))\b"
    r"|\btime(?:d)? ?out\b"
    r"|\bconnection (?:reset|refused|aborted|error)\b"
    r"|\brate limit"
    r"|\bresource_exhausted\b"
    r"|\bservice unavailable\b"
    r"|\btemporarily unavailable\b"
    r"|\bunexpected eof\b"
    r"|\bbroken pipe\b",
    re.IGNORECASE,
)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter_factor: float = 0.2  # ±20% random variation

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RetryConfig":
        data = data or {}
        return cls(
            max_attempts=max(1, int(data.get("max_attempts", cls.max_attempts))),
            base_delay=float(data.get("base_delay_seconds", cls.base_delay)),
            max_delay=float(data.get("max_delay_seconds", cls.max_delay)),
            exponential_base=float(data.get("exponential_base", cls.exponential_base)),
            jitter_factor=float(data.get("jitter_factor", cls.jitter_factor)),
        )

    def delay_for(self, attempt: int) -> float:
        """Backoff delay before retrying after ``attempt`` (0-based) failed."""
        base = min(self.base_delay * (self.exponential_base**attempt), self.max_delay)
        jitter = base * self.jitter_factor * (2 * random.random() - 1)
        return max(0.0, base + jitter)


class TransientError(Exception):
    """Exception for transient errors that should be retried."""


def is_transient_error(error: BaseException) -> bool:
    """Return True when ``error`` looks like a retryable backend hiccup."""
    if isinstance(error, TransientError):
        return True
    if isinstance(error, (ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return True
    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(error, "code", None)
    if isinstance(status, int) and not isinstance(status, bool):
        return status in _TRANSIENT_STATUS_CODES
    return _TRANSIENT_MESSAGE.search(str(error)) is not None


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    config: RetryConfig,
) -> T:
    """Await ``func()`` and retry transient failures with exponential backoff.

    Non-transient errors and cancellation propagate immediately and unchanged.
    The last transient error is re-raised once all attempts are spent.
    """
    for attempt in range(config.max_attempts):
        try:
            result = await func()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not is_transient_error(e):
                raise
            if attempt == config.max_attempts - 1:
                logger.error("All %d attempts failed: %s", config.max_attempts, e)
                raise
            delay = config.delay_for(attempt)
            logger.warning(
                "Attempt %d/%d failed: %s. Retrying in %.2fs...",
                attempt + 1,
                config.max_attempts,
                e,
                delay,
            )
            await asyncio.sleep(delay)
        else:
            if attempt > 0:
                logger.info("Retry succeeded on attempt %d", attempt + 1)
            return result

    raise RuntimeError("retry_with_backoff called with max_attempts < 1")
