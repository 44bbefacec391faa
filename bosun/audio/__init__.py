"""Audio alerting: level sounds, debounce, and playback fallbacks."""

from bosun.audio.colors import color_to_level, hue_of, parse_rgb
from bosun.audio.dispatcher import AudioAlertDispatcher, vibration_pattern_for, volume_for
from bosun.audio.exceptions import AudioError, AudioPlaybackError, AudioUnsupportedError
from bosun.audio.sinks import AudioSink, CommandAudioSink

__all__ = [
    "AudioAlertDispatcher",
    "AudioError",
    "AudioPlaybackError",
    "AudioSink",
    "AudioUnsupportedError",
    "CommandAudioSink",
    "color_to_level",
    "hue_of",
    "parse_rgb",
    "vibration_pattern_for",
    "volume_for",
]
