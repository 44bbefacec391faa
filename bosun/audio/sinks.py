"""Audio sinks: the playback back-ends the dispatcher drives."""

from __future__ import annotations

import abc
import asyncio

import structlog

from bosun.audio.exceptions import AudioPlaybackError, AudioUnsupportedError
from bosun.core.config import AudioConfig

logger = structlog.stdlib.get_logger()


class AudioSink(abc.ABC):
    """Base class for audio/haptic output devices."""

    @abc.abstractmethod
    async def play(self, source: str, volume: float, loop: bool = False) -> None:
        """Start playing *source* at *volume* (0..1).

        Raises:
            AudioPlaybackError: if playback could not start.
        """

    @abc.abstractmethod
    async def tone(self, frequency_hz: float, duration_secs: float, volume: float) -> None:
        """Emit a continuous synthesized tone."""

    @abc.abstractmethod
    async def vibrate(self, pattern_ms: list[int]) -> None:
        """Run an on/off vibration pattern (milliseconds)."""

    @abc.abstractmethod
    async def stop(self) -> None:
        """Stop whatever is currently sounding."""


class CommandAudioSink(AudioSink):
    """Plays sounds by spawning a command-line player (``paplay``, ``aplay``…).

    Tones are produced with a synthesizer command (sox ``play`` by
    default).  Vibration is not available on chart-plotter hardware.
    Looped playback re-runs the player each time it finishes cleanly,
    until ``stop()``.
    """

    def __init__(self, config: AudioConfig | None = None) -> None:
        self._config = config or AudioConfig()
        self._procs: list[asyncio.subprocess.Process] = []
        self._loops: set[asyncio.Task[None]] = set()

    async def play(self, source: str, volume: float, loop: bool = False) -> None:
        cmd = [*self._config.player_command, f"--volume={int(volume * 65536)}", source]
        proc = await self._spawn(cmd)
        # The player exits almost at once when the file is unreadable.
        try:
            code = await asyncio.wait_for(proc.wait(), timeout=0.25)
        except asyncio.TimeoutError:
            code = None
        if code is not None and code != 0:
            raise AudioPlaybackError(f"{cmd[0]} exited with {code} for {source}")
        if loop:
            task = asyncio.create_task(self._repeat(cmd, proc))
            self._loops.add(task)
            task.add_done_callback(self._loops.discard)

    async def tone(self, frequency_hz: float, duration_secs: float, volume: float) -> None:
        cmd = [
            *self._config.tone_command,
            f"{duration_secs}",
            "sine",
            f"{frequency_hz}",
            "vol",
            f"{volume}",
        ]
        await self._spawn(cmd)

    async def vibrate(self, pattern_ms: list[int]) -> None:
        raise AudioUnsupportedError("no vibration motor on this device")

    async def stop(self) -> None:
        loops = list(self._loops)
        for task in loops:
            task.cancel()
        if loops:
            await asyncio.gather(*loops, return_exceptions=True)
        procs, self._procs = self._procs, []
        for proc in procs:
            if proc.returncode is None:
                proc.terminate()

    async def _repeat(self, cmd: list[str], proc: asyncio.subprocess.Process) -> None:
        while True:
            code = await proc.wait()
            if code != 0:
                logger.debug("audio_loop_ended", cmd=cmd[0], code=code)
                return
            try:
                proc = await self._spawn(cmd)
            except AudioPlaybackError as exc:
                logger.warning("audio_loop_failed", cmd=cmd[0], error=str(exc))
                return

    async def _spawn(self, cmd: list[str]) -> asyncio.subprocess.Process:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            raise AudioPlaybackError(f"cannot run {cmd[0]}: {exc}") from exc
        self._procs = [p for p in self._procs if p.returncode is None]
        self._procs.append(proc)
        logger.debug("audio_process_started", cmd=cmd[0], pid=proc.pid)
        return proc
