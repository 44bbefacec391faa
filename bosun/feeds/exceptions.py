"""Exception hierarchy for data feeds."""

from __future__ import annotations


class FeedError(Exception):
    """Base exception for all feed errors."""


class FeedConnectionError(FeedError):
    """Failed to reach the data source."""


class FeedParseError(FeedError):
    """Failed to parse a response from the data source."""
