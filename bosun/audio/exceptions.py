"""Audio alert exceptions."""

from __future__ import annotations


class AudioError(Exception):
    """Base exception for audio alert errors."""


class AudioPlaybackError(AudioError):
    """The sink could not play (blocked, missing asset, no device)."""


class AudioUnsupportedError(AudioError):
    """The sink has no such capability (e.g. vibration on a desktop)."""
