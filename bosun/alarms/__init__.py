"""Alarm lifecycle: remote API client, registry and notifications."""

from bosun.alarms.client import AlarmApiClient
from bosun.alarms.exceptions import (
    AlarmApiError,
    AlarmApiUnavailableError,
    AlarmEndpointUnsupportedError,
)
from bosun.alarms.notifier import LogNotifier, Notifier
from bosun.alarms.registry import AlarmRegistry, AlertListener

__all__ = [
    "AlarmApiClient",
    "AlarmApiError",
    "AlarmApiUnavailableError",
    "AlarmEndpointUnsupportedError",
    "AlarmRegistry",
    "AlertListener",
    "LogNotifier",
    "Notifier",
]
