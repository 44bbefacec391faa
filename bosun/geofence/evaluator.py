"""Point-in-region membership with coordinate-order recovery.

Positions and vertices are expected as GeoJSON ``[lon, lat]`` pairs, but
both the position feed and stored regions are known to show up as
``[lat, lon]``.  Two heuristics compensate:

* a position whose first component can only be a latitude and whose
  second can only be a longitude is swapped before testing;
* when the test against the stored rings fails, it is retried once with
  every vertex transposed.

Either heuristic firing is logged as a warning and reported on the
returned :class:`Membership`.  Nothing in this module raises to callers.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from bosun.core.types import Geometry, GeometryType, Membership
from bosun.geofence.exceptions import (
    GeofenceError,
    MalformedGeometryError,
    MalformedPositionError,
)

logger = structlog.stdlib.get_logger()

Point = tuple[float, float]
Ring = list[Point]

_EPSILON = 1e-12


# ── Coordinate Helpers ─────────────────────────────────────────


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def _is_lat(value: float) -> bool:
    return -90.0 <= value <= 90.0


def _is_lon(value: float) -> bool:
    return -180.0 <= value <= 180.0


def _parse_position(position: Any) -> Point:
    if isinstance(position, (str, bytes)) or not isinstance(position, Sequence):
        raise MalformedPositionError(f"position is not a sequence: {position!r}")
    if len(position) < 2:
        raise MalformedPositionError(f"position needs 2 components: {position!r}")
    a = _to_float(position[0])
    b = _to_float(position[1])
    if a is None or b is None:
        raise MalformedPositionError(f"position is not numeric: {position!r}")
    return a, b


def normalize_position(position: Any) -> tuple[Point, bool]:
    """Return ``((lon, lat), swapped)`` for an axis-ambiguous pair.

    The pair is swapped only when the first component is valid solely as
    a latitude and the second solely as a longitude, i.e. when reading it
    as ``[lon, lat]`` would be impossible but ``[lat, lon]`` is not.

    Raises:
        MalformedPositionError: if the position is not a numeric pair.
    """
    a, b = _parse_position(position)
    a_is_lat, b_is_lon = _is_lat(a), _is_lon(b)
    a_is_lon, b_is_lat = _is_lon(a), _is_lat(b)

    if a_is_lat and b_is_lon and not (a_is_lon and b_is_lat):
        logger.warning("position_axis_order_swapped", original=[a, b], used=[b, a])
        return (b, a), True
    return (a, b), False


def swap_coordinates(coordinates: Any) -> Any:
    """Transpose every ``[x, y]`` vertex in a nested coordinate array."""
    if _is_vertex(coordinates):
        return [coordinates[1], coordinates[0], *coordinates[2:]]
    if isinstance(coordinates, list):
        return [swap_coordinates(c) for c in coordinates]
    raise MalformedGeometryError(f"unexpected coordinate node: {coordinates!r}")


def _is_vertex(node: Any) -> bool:
    return (
        isinstance(node, (list, tuple))
        and len(node) >= 2
        and not isinstance(node[0], (list, tuple))
    )


# ── Ring Parsing ───────────────────────────────────────────────


def _parse_ring(raw: Any) -> Ring:
    if not isinstance(raw, (list, tuple)):
        raise MalformedGeometryError(f"ring is not a list: {raw!r}")
    ring: Ring = []
    for vertex in raw:
        if not _is_vertex(vertex):
            raise MalformedGeometryError(f"bad vertex: {vertex!r}")
        x = _to_float(vertex[0])
        y = _to_float(vertex[1])
        if x is None or y is None:
            raise MalformedGeometryError(f"non-numeric vertex: {vertex!r}")
        ring.append((x, y))
    # Closing vertex is optional for the ray cast.
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring = ring[:-1]
    if len(ring) < 3:
        raise MalformedGeometryError("ring needs at least 3 distinct vertices")
    return ring


def _parse_polygon(raw: Any) -> list[Ring]:
    if not isinstance(raw, (list, tuple)) or not raw:
        raise MalformedGeometryError("polygon has no rings")
    return [_parse_ring(r) for r in raw]


def _coerce_geometry(geometry: Any) -> Geometry:
    if isinstance(geometry, Geometry):
        return geometry
    if isinstance(geometry, Mapping):
        try:
            return Geometry.model_validate(dict(geometry))
        except ValueError as exc:
            raise MalformedGeometryError(f"invalid geometry: {exc}") from exc
    raise MalformedGeometryError(f"unsupported geometry: {type(geometry).__name__}")


def _polygons(geometry: Geometry, coordinates: Any) -> list[list[Ring]]:
    if geometry.type == GeometryType.POLYGON:
        return [_parse_polygon(coordinates)]
    if not isinstance(coordinates, list) or not coordinates:
        raise MalformedGeometryError("multipolygon has no polygons")
    return [_parse_polygon(p) for p in coordinates]


# ── Point-in-Polygon ───────────────────────────────────────────


def _on_segment(x: float, y: float, a: Point, b: Point) -> bool:
    (ax, ay), (bx, by) = a, b
    cross = (bx - ax) * (y - ay) - (by - ay) * (x - ax)
    if abs(cross) > _EPSILON * max(1.0, abs(bx - ax) + abs(by - ay)):
        return False
    return min(ax, bx) - _EPSILON <= x <= max(ax, bx) + _EPSILON and (
        min(ay, by) - _EPSILON <= y <= max(ay, by) + _EPSILON
    )


def point_in_ring(point: Point, ring: Ring) -> bool:
    """Ray-casting test; points on an edge count as inside."""
    x, y = point
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if _on_segment(x, y, ring[j], ring[i]):
            return True
        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside
        j = i
    return inside


def _point_in_polygon(point: Point, rings: list[Ring]) -> bool:
    outer, holes = rings[0], rings[1:]
    if not point_in_ring(point, outer):
        return False
    for hole in holes:
        if point_in_ring(point, hole) and not _on_boundary(point, hole):
            return False
    return True


def _on_boundary(point: Point, ring: Ring) -> bool:
    x, y = point
    return any(
        _on_segment(x, y, ring[i - 1], ring[i]) for i in range(len(ring))
    )


def _test(point: Point, geometry: Geometry, coordinates: Any) -> bool:
    return any(_point_in_polygon(point, rings) for rings in _polygons(geometry, coordinates))


# ── Public API ─────────────────────────────────────────────────


def evaluate(position: Any, geometry: Any, region_name: str = "") -> Membership:
    """Evaluate membership and report which heuristics were needed.

    Never raises: any malformed input yields ``Membership(inside=False)``
    with ``error`` set.
    """
    try:
        point, position_swapped = normalize_position(position)
    except GeofenceError as exc:
        logger.warning("geofence_bad_position", region=region_name, error=str(exc))
        return Membership(error=str(exc))

    try:
        geom = _coerce_geometry(geometry)
        inside = _test(point, geom, geom.coordinates)
    except GeofenceError as exc:
        logger.warning("geofence_bad_geometry", region=region_name, error=str(exc))
        return Membership(position_swapped=position_swapped, error=str(exc))

    if inside:
        return Membership(inside=True, position_swapped=position_swapped)

    try:
        swapped_inside = _test(point, geom, swap_coordinates(geom.coordinates))
    except GeofenceError as exc:
        logger.debug("geofence_swap_retry_failed", region=region_name, error=str(exc))
        return Membership(position_swapped=position_swapped)

    if swapped_inside:
        logger.warning(
            "region_coordinate_order_mismatch",
            region=region_name,
            detail="inside only with lat/lon transposed; fix the stored coordinates",
        )
        return Membership(inside=True, position_swapped=position_swapped, region_swapped=True)

    return Membership(position_swapped=position_swapped)


def is_inside(position: Any, geometry: Any) -> bool:
    """Return True if *position* lies inside *geometry*; never raises."""
    return evaluate(position, geometry).inside
