"""Bounded exponential-backoff retry around provider calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from repo_sitegen.domain.exceptions import TransientProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_MS = 2000


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
    retry_on: tuple[type[BaseException], ...] = (TransientProviderError,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``fn()`` up to *max_attempts* times.

    Only exceptions listed in *retry_on* trigger another attempt; anything
    else propagates immediately.  Before attempt ``k`` (``k >= 2``) the
    wrapper waits ``base_delay_ms * 2 ** (k - 2)`` milliseconds.  When all
    attempts fail the last exception is re-raised.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return await fn()
        except retry_on as exc:
            if attempt >= max_attempts:
                logger.warning("Giving up after %d attempt(s): %s", attempt, exc)
                raise
            delay_ms = base_delay_ms * 2 ** (attempt - 1)
            logger.info(
                "Attempt %d/%d failed (%s); retrying in %d ms",
                attempt,
                max_attempts,
                exc,
                delay_ms,
            )
            await sleep(delay_ms / 1000)

    raise AssertionError("unreachable")  # pragma: no cover
