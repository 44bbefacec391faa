"""Region ingestion and lookup exceptions."""

from __future__ import annotations


class RegionError(Exception):
    """Base exception for region errors."""


class RegionPayloadError(RegionError):
    """A region resource could not be resolved to a supported shape."""


class RegionNotFoundError(RegionError):
    """No region with the given id is loaded."""


class RegionSourceError(RegionError):
    """Fetching region resources from the server failed."""
