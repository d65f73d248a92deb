"""Periodic keep-alive ping to a companion service.

Free-tier hosts spin services down when idle; a GET every couple of
minutes keeps the companion warm. Failures are logged and never raised.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

import httpx

from ledgerrelay.constants import KEEPALIVE_INTERVAL_SECS, KEEPALIVE_PATH, KEEPALIVE_TIMEOUT_SECS

logger = logging.getLogger(__name__)


class KeepAlivePinger:
    """Cancellable repeating ping task.

    - ``start()`` launches the loop (idempotent).
    - The loop sleeps ``interval_secs`` then calls ``ping_once()``.
    - ``stop()`` cancels the loop and closes the HTTP client.
    """

    def __init__(
        self,
        endpoint: str,
        path: str = KEEPALIVE_PATH,
        interval_secs: float = KEEPALIVE_INTERVAL_SECS,
        timeout_secs: float = KEEPALIVE_TIMEOUT_SECS,
    ) -> None:
        self._url = endpoint.rstrip("/") + path
        self._interval = interval_secs
        self._client = httpx.AsyncClient(timeout=timeout_secs)
        self._task: asyncio.Task[None] | None = None
        self._total_pings: int = 0
        self._failures: int = 0
        self._last_success_at: str | None = None

    @property
    def url(self) -> str:
        return self._url

    async def ping_once(self) -> bool:
        """Issue one GET. Returns True on a non-error response."""
        self._total_pings += 1
        try:
            response = await self._client.get(self._url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            self._failures += 1
            logger.warning("Failed to ping %s: %s", self._url, str(exc) or type(exc).__name__)
            return False

        self._last_success_at = datetime.now(timezone.utc).isoformat()
        logger.info("Pinged %s (status %d).", self._url, response.status_code)
        return True

    async def start(self) -> None:
        """Start the periodic ping task."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._ping_loop())

    async def _ping_loop(self) -> None:
        logger.info("Keep-alive started: GET %s every %ss.", self._url, self._interval)
        try:
            while True:
                await asyncio.sleep(self._interval)
                await self.ping_once()
        except asyncio.CancelledError:
            pass

    async def stop(self) -> None:
        """Cancel the ping task and release the HTTP client."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self._client.aclose()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def health(self) -> dict[str, object]:
        """Return ping counters for the health endpoint."""
        return {
            "target": self._url,
            "interval_secs": self._interval,
            "running": self.running,
            "total_pings": self._total_pings,
            "failures": self._failures,
            "last_success_at": self._last_success_at,
        }
