"""Exception hierarchy for geofence evaluation.

These never escape ``evaluate`` / ``is_inside``; they carry the reason a
membership test degraded to "outside".
"""

from __future__ import annotations


class GeofenceError(Exception):
    """Base exception for geofence errors."""


class MalformedPositionError(GeofenceError):
    """Position is not a usable coordinate pair."""


class MalformedGeometryError(GeofenceError):
    """Region geometry cannot be interpreted as (Multi)Polygon rings."""
