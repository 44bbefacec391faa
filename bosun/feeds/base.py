"""Abstract base feed: poll loop, callbacks, lifecycle management."""

from __future__ import annotations

import abc
import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import StrEnum
from types import TracebackType
from typing import Any

import structlog

logger = structlog.stdlib.get_logger()

# Type alias for feed callbacks; sync and async callables are both accepted
FeedCallback = Callable[[Any], Awaitable[Any] | Any]


class FeedStatus(StrEnum):
    """Health of a feed as seen by its consumers."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


StatusCallback = Callable[[FeedStatus], Awaitable[Any] | Any]


class BaseFeed(abc.ABC):
    """Abstract base class for polled data feeds.

    Subclasses implement ``connect()``, ``close()``, and ``poll()``;
    the base class handles the background loop, callback dispatch, and
    lifecycle.  Status callbacks hear about transitions only: CONNECTED
    after start, ERROR on the first failed poll, CONNECTED again on the
    next good one, DISCONNECTED after stop.

    Usage::

        feed = MyFeed(poll_interval_ms=500)
        feed.on_event(my_callback)
        async with feed:
            await asyncio.sleep(60)  # runs for 60 seconds
    """

    def __init__(self, name: str, poll_interval_ms: int = 1000) -> None:
        self._name = name
        self._poll_interval_ms = poll_interval_ms
        self._callbacks: list[FeedCallback] = []
        self._status_callbacks: list[StatusCallback] = []
        self._status = FeedStatus.DISCONNECTED
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._error_count = 0
        self._last_poll_time: float = 0.0

    @property
    def name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        return self._running

    @property
    def status(self) -> FeedStatus:
        return self._status

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def last_poll_time(self) -> float:
        return self._last_poll_time

    def on_event(self, callback: FeedCallback) -> None:
        """Register a callback for feed events."""
        self._callbacks.append(callback)

    def on_status(self, callback: StatusCallback) -> None:
        """Register a callback for status transitions."""
        self._status_callbacks.append(callback)

    async def _set_status(self, status: FeedStatus) -> None:
        if status == self._status:
            return
        previous, self._status = self._status, status
        logger.info("feed_status", feed=self._name, status=status.value, previous=previous.value)
        for cb in self._status_callbacks:
            try:
                result = cb(status)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("feed_status_callback_error", feed=self._name)

    async def _emit(self, event: Any) -> None:
        """Dispatch an event to all registered callbacks."""
        for cb in self._callbacks:
            try:
                result = cb(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("feed_callback_error", feed=self._name)

    @abc.abstractmethod
    async def connect(self) -> None:
        """Establish connection to the data source."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Close connection to the data source."""

    @abc.abstractmethod
    async def poll(self) -> list[Any]:
        """Poll the data source; returns the new events since the last poll."""

    async def start(self) -> None:
        """Start the background poll loop."""
        if self._running:
            return
        self._running = True
        await self.connect()
        await self._set_status(FeedStatus.CONNECTED)
        self._task = asyncio.create_task(self._poll_loop())
        logger.info("feed_started", feed=self._name, poll_interval_ms=self._poll_interval_ms)

    async def stop(self) -> None:
        """Stop the poll loop and close the connection."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.close()
        await self._set_status(FeedStatus.DISCONNECTED)
        logger.info("feed_stopped", feed=self._name)

    async def _poll_loop(self) -> None:
        interval_secs = self._poll_interval_ms / 1000.0
        while self._running:
            try:
                events = await self.poll()
                self._last_poll_time = time.time()
                await self._set_status(FeedStatus.CONNECTED)
                for event in events:
                    await self._emit(event)
            except asyncio.CancelledError:
                break
            except Exception:
                self._error_count += 1
                logger.exception(
                    "feed_poll_error", feed=self._name, error_count=self._error_count,
                )
                await self._set_status(FeedStatus.ERROR)

            try:
                await asyncio.sleep(interval_secs)
            except asyncio.CancelledError:
                break

    async def __aenter__(self) -> BaseFeed:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()
