"""Exception hierarchy for the remote alarm API."""

from __future__ import annotations


class AlarmApiError(Exception):
    """Base exception for all alarm API errors."""


class AlarmEndpointUnsupportedError(AlarmApiError):
    """The server has no endpoint for this alarm type (HTTP 404).

    Recoverable: the registry falls back to a local-only alert.
    """


class AlarmApiUnavailableError(AlarmApiError):
    """Any other failure talking to the alarm API (transport or status)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
