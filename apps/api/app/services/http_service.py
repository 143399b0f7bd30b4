"""Retry/backoff for outbound calls (Resend emails, Identity Toolkit admin calls).

The async variant serves the email senders on the background dispatcher;
the sync variant serves the identity platform client, which runs inside
sync request handlers and the CLI.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

DEFAULT_RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


def retry_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    response: httpx.Response | None = None,
) -> float:
    """
    Seconds to wait before the next attempt.

    A numeric Retry-After header (Resend and Google send one on 429/503)
    wins over exponential backoff; both are capped at max_delay.
    """
    if response is not None:
        retry_after = response.headers.get("Retry-After", "").strip()
        if retry_after.isdigit():
            return min(max_delay, float(retry_after))
    delay = min(max_delay, base_delay * (2**attempt))
    if delay:
        delay += random.uniform(0, delay / 2)
    return delay


async def request_with_retries(
    request_fn: Callable[[], Awaitable[httpx.Response]],
    *,
    label: str = "HTTP request",
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    retry_statuses: frozenset[int] | set[int] | None = None,
) -> httpx.Response:
    """
    Await request_fn until it returns a non-retryable response.

    Transport errors are re-raised after the last attempt; a retryable status
    on the last attempt is returned as-is for the caller to handle.
    """
    statuses = retry_statuses or DEFAULT_RETRY_STATUSES
    for attempt in range(max_attempts):
        last = attempt >= max_attempts - 1
        try:
            response = await request_fn()
        except httpx.RequestError as exc:
            if last:
                raise
            logger.warning("%s failed (%s), retrying", label, type(exc).__name__)
            response = None
        else:
            if last or response.status_code not in statuses:
                return response
            logger.warning("%s returned %s, retrying", label, response.status_code)

        delay = retry_delay(attempt, base_delay, max_delay, response)
        if delay:
            await asyncio.sleep(delay)
    raise RuntimeError("max_attempts must be at least 1")


def request_with_retries_sync(
    request_fn: Callable[[], httpx.Response],
    *,
    label: str = "HTTP request",
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    retry_statuses: frozenset[int] | set[int] | None = None,
) -> httpx.Response:
    """Blocking twin of request_with_retries."""
    statuses = retry_statuses or DEFAULT_RETRY_STATUSES
    for attempt in range(max_attempts):
        last = attempt >= max_attempts - 1
        try:
            response = request_fn()
        except httpx.RequestError as exc:
            if last:
                raise
            logger.warning("%s failed (%s), retrying", label, type(exc).__name__)
            response = None
        else:
            if last or response.status_code not in statuses:
                return response
            logger.warning("%s returned %s, retrying", label, response.status_code)

        delay = retry_delay(attempt, base_delay, max_delay, response)
        if delay:
            time.sleep(delay)
    raise RuntimeError("max_attempts must be at least 1")
