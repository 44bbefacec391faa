"""Convenience factory for wiring the alerting stack."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from bosun.alarms.client import AlarmApiClient
from bosun.alarms.notifier import LogNotifier, Notifier
from bosun.alarms.registry import AlarmRegistry
from bosun.audio.dispatcher import AudioAlertDispatcher
from bosun.audio.sinks import AudioSink, CommandAudioSink
from bosun.core.config import Settings
from bosun.feeds.position import PositionFeed
from bosun.regions.state_machine import RegionAlertStateMachine
from bosun.regions.store import RegionStore, ResourceRegionLoader

logger = structlog.stdlib.get_logger()


@dataclass
class AlertingContext:
    """Every long-lived alerting component for one vessel."""

    client: AlarmApiClient
    audio: AudioAlertDispatcher
    registry: AlarmRegistry
    store: RegionStore
    loader: ResourceRegionLoader
    regions: RegionAlertStateMachine
    position: PositionFeed | None = None

    async def change_vessel(self) -> None:
        """Drop all per-vessel state: region phases and the alert table."""
        await self.regions.drain()
        self.regions.reset()
        await self.registry.reset()
        self.audio.clear_all_debounces()
        logger.info("alerting_context_reset")

    async def close(self) -> None:
        if self.position is not None and self.position.running:
            await self.position.stop()
        await self.regions.drain()
        await self.audio.stop()
        await self.loader.close()
        await self.client.close()


def create_alerting_stack(
    settings: Settings,
    sink: AudioSink | None = None,
    notifier: Notifier | None = None,
) -> AlertingContext:
    """Build client → audio → registry → regions from config.

    The position feed is built but not started, and is already wired to
    the region state machine.
    """
    client = AlarmApiClient(settings.signalk)
    audio = AudioAlertDispatcher(sink or CommandAudioSink(settings.audio), settings.audio)
    registry = AlarmRegistry(client, audio, settings.notifications)

    if notifier is None and settings.notifications.system:
        notifier = LogNotifier()

    store = RegionStore()
    loader = ResourceRegionLoader(settings.signalk, settings.regions)
    machine = RegionAlertStateMachine(store, registry, notifier)

    position: PositionFeed | None = None
    if settings.position.enabled:
        position = PositionFeed(settings.signalk, settings.position)
        position.on_event(machine.update_position)

    return AlertingContext(
        client=client,
        audio=audio,
        registry=registry,
        store=store,
        loader=loader,
        regions=machine,
        position=position,
    )
