"""Audio alert dispatcher: level-based sounds with per-key debounce."""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from bosun.audio.sinks import AudioSink
from bosun.core.config import AudioConfig
from bosun.core.types import AlertLevel

logger = structlog.stdlib.get_logger()

_SOUND_ASSETS: dict[AlertLevel, str] = {
    AlertLevel.LOW: "alert_small",
    AlertLevel.MEDIUM: "alert_medium",
    AlertLevel.HIGH: "alert_large",
}

_VOLUMES: dict[AlertLevel, float] = {
    AlertLevel.LOW: 0.4,
    AlertLevel.MEDIUM: 0.7,
    AlertLevel.HIGH: 1.0,
}

# Tone fallback pitch, Hz.
_TONE_FREQUENCIES: dict[AlertLevel, float] = {
    AlertLevel.LOW: 600.0,
    AlertLevel.MEDIUM: 1000.0,
    AlertLevel.HIGH: 2000.0,
}

# Vibration fallback, alternating on/off milliseconds.
_VIBRATION_PATTERNS: dict[AlertLevel, list[int]] = {
    AlertLevel.LOW: [100],
    AlertLevel.MEDIUM: [200, 100, 200],
    AlertLevel.HIGH: [300, 100, 300, 100, 300],
}


def volume_for(level: AlertLevel) -> float:
    return _VOLUMES[level]


def vibration_pattern_for(level: AlertLevel) -> list[int]:
    return list(_VIBRATION_PATTERNS[level])


class AudioAlertDispatcher:
    """Turns alert triggers into sound, never letting playback fail loudly.

    - Muted (globally or per call) → nothing is played.
    - A key that played within ``debounce_secs`` is suppressed; keys are
      independent of each other.
    - Playback failures walk a fallback chain: alternate file format,
      synthesized tone, vibration.  Each failure is logged and swallowed.
    """

    def __init__(
        self,
        sink: AudioSink,
        config: AudioConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sink = sink
        self._config = config or AudioConfig()
        self._clock = clock
        self._debounce_secs = self._config.debounce_secs
        # Tracks the last play time per debounce key.
        self._last_played: dict[str, float] = {}
        self._muted = False
        self._unlocked = False

    # ── Properties ──────────────────────────────────────────────

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def unlocked(self) -> bool:
        return self._unlocked

    def set_global_mute(self, muted: bool) -> None:
        self._muted = muted
        logger.info("audio_global_mute", muted=muted)

    def sound_source(self, level: AlertLevel, fmt: str | None = None) -> str:
        """Asset path for *level* in the primary (or given) format."""
        ext = fmt or self._config.primary_format
        return f"{self._config.asset_dir}/{_SOUND_ASSETS[level]}.{ext}"

    # ── Playback ────────────────────────────────────────────────

    async def play(
        self,
        level: AlertLevel,
        debounce_key: str,
        custom_sound: str | None = None,
        global_mute: bool = False,
    ) -> bool:
        """Play the alert sound for *level* unless muted or debounced.

        Returns True if playback was attempted.
        """
        if global_mute or self._muted:
            logger.debug("audio_muted", key=debounce_key)
            return False

        now = self._clock()
        last = self._last_played.get(debounce_key)
        if last is not None and now - last < self._debounce_secs:
            logger.debug(
                "audio_debounced",
                key=debounce_key,
                since_ms=int((now - last) * 1000),
            )
            return False

        self._last_played[debounce_key] = now

        source = custom_sound or self.sound_source(level)
        volume = _VOLUMES[level]
        logger.info("audio_play", level=level.value, key=debounce_key, volume=volume)
        await self._play_with_fallback(level, source, volume)
        return True

    async def _play_with_fallback(self, level: AlertLevel, source: str, volume: float) -> None:
        try:
            await self._sink.play(source, volume)
            return
        except Exception as exc:
            logger.warning("audio_play_failed", source=source, error=str(exc))

        alternate = self._alternate_source(source)
        if alternate is not None:
            try:
                await self._sink.play(alternate, volume)
                return
            except Exception as exc:
                logger.warning("audio_alternate_failed", source=alternate, error=str(exc))

        try:
            await self._sink.tone(
                _TONE_FREQUENCIES[level], self._config.tone_duration_secs, volume,
            )
            return
        except Exception as exc:
            logger.warning("audio_tone_failed", level=level.value, error=str(exc))

        try:
            await self._sink.vibrate(vibration_pattern_for(level))
        except Exception as exc:
            logger.warning("audio_vibrate_failed", level=level.value, error=str(exc))

    def _alternate_source(self, source: str) -> str | None:
        primary = f".{self._config.primary_format}"
        if source.endswith(primary):
            return source[: -len(primary)] + f".{self._config.fallback_format}"
        return None

    async def stop(self) -> None:
        """Stop any sound currently playing."""
        try:
            await self._sink.stop()
        except Exception:
            logger.exception("audio_stop_error")

    async def unlock(self) -> bool:
        """Prime the output with a muted trial play (first user interaction).

        Idempotent: after one successful attempt further calls do nothing.
        """
        if self._unlocked:
            return True
        try:
            await self._sink.play(self.sound_source(AlertLevel.MEDIUM), 0.0)
            await self._sink.stop()
        except Exception as exc:
            logger.info("audio_unlock_failed", error=str(exc))
            return False
        self._unlocked = True
        logger.info("audio_unlocked")
        return True

    # ── Debounce control ────────────────────────────────────────

    def clear_debounce(self, key: str) -> None:
        self._last_played.pop(key, None)

    def clear_all_debounces(self) -> None:
        self._last_played.clear()
