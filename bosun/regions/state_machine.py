"""RegionAlertStateMachine: edge-triggered region entry alarms.

Per region::

    OUTSIDE --enter--> PENDING --raise ok--> INSIDE_ALERTED
       ^                 |  \\                    |
       |   raise failed  |   \\ exit: stale       | exit: clear
       +-----------------+    +--------> OUTSIDE <+

PENDING counts as alerted for edge detection, so a vessel lingering in a
region never raises twice.  An exit during PENDING bumps the region's
generation; when the in-flight raise resolves it sees the stale
generation and clears the alert it just created.  A failed raise drops
the region back to OUTSIDE; the next inside fix retries once an
exponential backoff has elapsed.  The system notification goes out once
per visit, however many raise attempts that visit takes.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Coroutine
from typing import Any

import structlog

from bosun.alarms.exceptions import AlarmApiError
from bosun.alarms.notifier import Notifier
from bosun.alarms.registry import AlarmRegistry
from bosun.core.types import Region, RegionAlertState, RegionPhase
from bosun.geofence.evaluator import evaluate
from bosun.regions.store import RegionStore

logger = structlog.stdlib.get_logger()

REGION_ALARM_TYPE = "region"


class RegionAlertStateMachine:
    """Tracks inside/outside per enabled region and raises/clears alarms.

    ``update_position`` is synchronous: every enabled region is evaluated
    before it returns.  Remote calls run as background tasks; ``drain()``
    waits for them.

    Usage::

        machine = RegionAlertStateMachine(store, registry)
        feed.on_position(machine.update_position)
        ...
        await machine.drain()
    """

    def __init__(
        self,
        store: RegionStore,
        registry: AlarmRegistry,
        notifier: Notifier | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        retry_backoff_secs: float = 1.0,
        max_retry_backoff_secs: float = 60.0,
    ) -> None:
        self._store = store
        self._registry = registry
        self._notifier = notifier
        self._clock = clock
        self._retry_backoff = retry_backoff_secs
        self._max_retry_backoff = max_retry_backoff_secs
        self._states: dict[str, RegionAlertState] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._suspect: set[str] = set()

    # ── Properties ──────────────────────────────────────────────

    @property
    def suspect_regions(self) -> frozenset[str]:
        """Regions that only matched with their coordinates transposed."""
        return frozenset(self._suspect)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def state(self, region_id: str) -> RegionAlertState | None:
        """Copy of one region's state, or None if never evaluated."""
        state = self._states.get(region_id)
        return state.model_copy() if state is not None else None

    def states(self) -> dict[str, RegionAlertState]:
        return {k: v.model_copy() for k, v in self._states.items()}

    # ── Evaluation ──────────────────────────────────────────────

    def update_position(self, position: Any) -> dict[str, bool]:
        """Evaluate *position* against every alert-enabled region.

        Returns region id → inside for the regions evaluated.  Must be
        called from a running event loop; raises RuntimeError otherwise,
        before any region state changes.
        """
        asyncio.get_running_loop()
        results: dict[str, bool] = {}
        for region in self._store.enabled():
            membership = evaluate(position, region.geometry, region.display_name)
            if membership.region_swapped and region.id not in self._suspect:
                self._suspect.add(region.id)
                logger.warning(
                    "region_coordinates_suspect",
                    region_id=region.id,
                    region=region.display_name,
                    detail="membership accepted only after swapping lat/lon",
                )
            self._transition(region, membership.inside)
            results[region.id] = membership.inside
        return results

    def _transition(self, region: Region, inside: bool) -> None:
        state = self._states.get(region.id)
        if state is None:
            state = RegionAlertState(region_id=region.id)
            self._states[region.id] = state

        if inside and not state.is_inside:
            if self._clock() < state.retry_at:
                # Still backing off; stay OUTSIDE so a later fix retries.
                return
            state.phase = RegionPhase.PENDING
            state.has_alerted = True
            state.generation += 1
            logger.info("region_entered", region_id=region.id, region=region.display_name)
            self._schedule(self._raise(region, state.generation))
        elif not inside and state.is_inside and state.has_alerted:
            if state.phase == RegionPhase.INSIDE_ALERTED and state.alert_path:
                self._schedule(self._clear(state.alert_path))
            logger.info("region_exited", region_id=region.id, phase=state.phase.value)
            state.phase = RegionPhase.OUTSIDE
            state.has_alerted = False
            state.alert_path = None
            state.generation += 1

        if not inside:
            state.notified = False
            state.failures = 0
            state.retry_at = 0.0
        state.is_inside = inside

    # ── Remote side effects ─────────────────────────────────────

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _raise(self, region: Region, generation: int) -> None:
        message = f"Entering region: {region.display_name}"
        state = self._states.get(region.id)
        if state is not None and state.generation == generation and not state.notified:
            state.notified = True
            await self._notify(message)

        try:
            alert = await self._registry.raise_alarm(
                REGION_ALARM_TYPE,
                message,
                level=region.alert_level,
                sound=region.alert_sound_enabled,
                debounce_key=region.id,
            )
        except AlarmApiError as exc:
            state = self._states.get(region.id)
            if state is None or state.generation != generation:
                logger.warning("region_alert_raise_failed", region_id=region.id, error=str(exc))
                return
            state.phase = RegionPhase.OUTSIDE
            state.is_inside = False
            state.has_alerted = False
            state.failures += 1
            delay = min(
                self._retry_backoff * 2 ** (state.failures - 1),
                self._max_retry_backoff,
            )
            state.retry_at = self._clock() + delay
            logger.warning(
                "region_alert_raise_failed",
                region_id=region.id,
                error=str(exc),
                failures=state.failures,
                retry_in_secs=delay,
            )
            return

        state = self._states.get(region.id)
        if state is None or state.generation != generation:
            logger.info("region_alert_stale", region_id=region.id, path=alert.path)
            await self._clear(alert.path)
            return

        state.phase = RegionPhase.INSIDE_ALERTED
        state.alert_path = alert.path
        state.failures = 0
        state.retry_at = 0.0

    async def _clear(self, path: str) -> None:
        try:
            await self._registry.clear(path)
        except AlarmApiError as exc:
            logger.warning("region_alert_clear_failed", path=path, error=str(exc))

    async def _notify(self, message: str) -> None:
        if self._notifier is None or not self._notifier.permitted:
            return
        try:
            await self._notifier.notify("Region Alert", message)
        except Exception:
            logger.exception("region_notification_error")

    async def drain(self) -> None:
        """Wait until every scheduled raise/clear has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Reset ───────────────────────────────────────────────────

    def clear_region(self, region_id: str) -> None:
        """Forget one region's state (e.g. after the region is deleted)."""
        self._states.pop(region_id, None)
        self._suspect.discard(region_id)

    def reset(self) -> None:
        """Forget every region's state (vessel or context change)."""
        self._states.clear()
        self._suspect.clear()
