"""Geofence membership evaluation."""

from bosun.geofence.evaluator import (
    evaluate,
    is_inside,
    normalize_position,
    point_in_ring,
    swap_coordinates,
)
from bosun.geofence.exceptions import (
    GeofenceError,
    MalformedGeometryError,
    MalformedPositionError,
)

__all__ = [
    "GeofenceError",
    "MalformedGeometryError",
    "MalformedPositionError",
    "evaluate",
    "is_inside",
    "normalize_position",
    "point_in_ring",
    "swap_coordinates",
]
