# order_scout/client/fetcher.py
"""
Fetcher module: performs HTTP requests with a fixed-delay retry on 5xx and
transient network failures, and decodes JSON-or-text bodies.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from aiohttp import (
    ClientConnectionError,
    ClientError,
    ClientResponseError,
    ClientSession,
)

from order_scout.exceptions import TransportError
from order_scout.logger import get_logger

T = TypeVar("T")

logger = get_logger("fetcher")


def is_retryable(exc: BaseException) -> bool:
    """5xx responses, dropped/refused connections, DNS failures and timeouts."""
    if isinstance(exc, ClientResponseError):
        return 500 <= exc.status < 600
    return isinstance(exc, (ClientConnectionError, asyncio.TimeoutError))


async def retry_on_server_error(
    request_fn: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    delay: float = 1.0,
    label: str = "request",
) -> T:
    """
    Await ``request_fn()`` up to ``attempts`` times.

    Only errors accepted by :func:`is_retryable` trigger another attempt; any
    other error, or the last retryable one, is re-raised unchanged.
    """
    attempt = 1
    while True:
        try:
            return await request_fn()
        except (ClientError, asyncio.TimeoutError) as exc:
            if not is_retryable(exc) or attempt >= attempts:
                raise
            if isinstance(exc, ClientResponseError):
                kind = f"Server error ({exc.status})"
            else:
                kind = f"Network error ({type(exc).__name__})"
            logger.warning(
                "%s on %s, retrying in %.1fs (attempt %d/%d)", kind, label, delay, attempt, attempts
            )
            attempt += 1
            await asyncio.sleep(delay)


def _decode(text: str) -> Any:
    # JSON when it parses, raw text otherwise (the auth endpoint answers
    # with an HTML login page when the session has expired)
    try:
        return json.loads(text)
    except ValueError:
        return text


class Fetcher:
    """Issues single HTTP calls through a shared session with retry."""

    def __init__(self, session: ClientSession, *, attempts: int = 3, delay: float = 1.0) -> None:
        self.session = session
        self.attempts = attempts
        self.delay = delay

    async def _once(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]],
        payload: Any,
    ) -> Any:
        async with self.session.request(
            method, url, headers=headers, json=payload, raise_for_status=True
        ) as resp:
            text = await resp.text()
            logger.debug("%s %s -> HTTP %s, %d characters", method, url, resp.status, len(text))
            return _decode(text)

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        payload: Any = None,
    ) -> Any:
        """Perform the call; failures surface as :class:`TransportError`."""
        try:
            return await retry_on_server_error(
                lambda: self._once(method, url, headers, payload),
                attempts=self.attempts,
                delay=self.delay,
                label=f"{method} {url}",
            )
        except ClientResponseError as exc:
            raise TransportError(f"HTTP {exc.status} for {url}", url=url, status=exc.status) from exc
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Timed out requesting {url}", url=url) from exc
        except ClientError as exc:
            raise TransportError(f"Request to {url} failed: {exc}", url=url) from exc

    async def get(self, url: str, *, headers: Optional[Mapping[str, str]] = None) -> Any:
        return await self.request("GET", url, headers=headers)

    async def post(
        self, url: str, payload: Any, *, headers: Optional[Mapping[str, str]] = None
    ) -> Any:
        return await self.request("POST", url, headers=headers, payload=payload)
