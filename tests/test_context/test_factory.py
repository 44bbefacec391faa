"""Tests for bosun/context.py: wiring of the alerting stack."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

from bosun.alarms.notifier import LogNotifier
from bosun.audio.sinks import AudioSink, CommandAudioSink
from bosun.context import create_alerting_stack
from bosun.core.config import NotificationsConfig, PositionConfig, Settings
from bosun.core.types import Geometry, GeometryType, Region

SQUARE = [[[0, 0], [0, 1], [1, 1], [1, 0], [0, 0]]]


class SilentSink(AudioSink):
    def __init__(self) -> None:
        self.played: list[str] = []
        self.stops = 0

    async def play(self, source: str, volume: float, loop: bool = False) -> None:
        self.played.append(source)

    async def tone(self, frequency_hz: float, duration_secs: float, volume: float) -> None:
        pass

    async def vibrate(self, pattern_ms: list[int]) -> None:
        pass

    async def stop(self) -> None:
        self.stops += 1


class TestCreateAlertingStack:
    def test_defaults(self) -> None:
        ctx = create_alerting_stack(Settings())
        assert ctx.position is not None
        assert ctx.registry.sound_enabled
        assert isinstance(ctx.audio._sink, CommandAudioSink)

    def test_position_feed_optional(self) -> None:
        ctx = create_alerting_stack(Settings(position=PositionConfig(enabled=False)))
        assert ctx.position is None

    def test_sound_switch_follows_config(self) -> None:
        ctx = create_alerting_stack(Settings(notifications=NotificationsConfig(sound=False)))
        assert not ctx.registry.sound_enabled

    async def test_position_events_reach_regions(self) -> None:
        sink = SilentSink()
        notifier = LogNotifier()
        ctx = create_alerting_stack(Settings(), sink=sink, notifier=notifier)
        ctx.store.upsert(Region(
            id="harbour",
            name="Harbour",
            geometry=Geometry(type=GeometryType.POLYGON, coordinates=SQUARE),
            alert_enabled=True,
            alert_sound_enabled=True,
        ))
        assert ctx.position is not None

        with patch.object(ctx.client, "raise_alarm", new_callable=AsyncMock) as mock_raise:
            mock_raise.return_value = {"id": "r1"}
            await ctx.position._emit((0.5, 0.5))
            await ctx.regions.drain()

        mock_raise.assert_awaited_once_with("region", "Entering region: Harbour")
        assert list(notifier.sent) == [("Region Alert", "Entering region: Harbour")]
        assert ctx.regions.state("harbour").alert_path == "region.r1"  # type: ignore[union-attr]
        assert sink.played == ["assets/sounds/alert_medium.ogg"]
        await ctx.close()

    async def test_change_vessel_resets_everything(self) -> None:
        sink = SilentSink()
        ctx = create_alerting_stack(Settings(), sink=sink)
        ctx.regions.update_position((0.5, 0.5))
        await ctx.change_vessel()
        assert ctx.regions.states() == {}
        assert len(ctx.registry) == 0
        assert sink.stops == 1
        await ctx.close()
