"""Resolve region resources into :class:`Region` once, at ingestion.

Region resources reach us in four shapes:

``signalk_region``
    ``{"name": ..., "feature": <Feature | ResourceSet>}`` from
    ``resources/regions``.
``resource_set``
    ``{"type": "ResourceSet", "styles": {...}, "values":
    {"type": "FeatureCollection", "features": [<Feature>]}}`` as saved to
    ``resources/zones_alert``.
``feature``
    a bare GeoJSON Feature.
``geometry``
    a bare Polygon / MultiPolygon geometry.

Anything else raises :class:`RegionPayloadError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from bosun.audio.colors import color_to_level
from bosun.core.types import AlertLevel, Geometry, GeometryType, Region, RegionSource
from bosun.regions.exceptions import RegionPayloadError

logger = structlog.stdlib.get_logger()

_GEOMETRY_TYPES = {t.value for t in GeometryType}


def _mapping(node: Any) -> dict[str, Any]:
    return dict(node) if isinstance(node, Mapping) else {}


def _geometry(raw: Any) -> Geometry:
    node = _mapping(raw)
    geom_type = node.get("type")
    if geom_type not in _GEOMETRY_TYPES:
        raise RegionPayloadError(f"unsupported geometry type: {geom_type!r}")
    coords = node.get("coordinates")
    if not isinstance(coords, list) or not coords:
        raise RegionPayloadError("geometry has no coordinates")
    return Geometry(type=GeometryType(geom_type), coordinates=coords)


def _feature_color(props: dict[str, Any]) -> str:
    style = _mapping(props.get("style"))
    for value in (
        style.get("fill"),
        style.get("stroke"),
        props.get("color"),
        props.get("fillColor"),
        props.get("strokeColor"),
        props.get("fill"),
        props.get("stroke"),
    ):
        if isinstance(value, str) and value:
            return value
    return ""


def _resource_set_color(payload: dict[str, Any], props: dict[str, Any]) -> str:
    styles = _mapping(payload.get("styles"))
    style_ref = props.get("styleRef")
    candidates = [styles.get(style_ref)] if style_ref in styles else []
    candidates.extend(styles.values())
    for style in candidates:
        node = _mapping(style)
        value = node.get("stroke") or node.get("fill")
        if isinstance(value, str) and value:
            return value
    return ""


def _alert_level(props: dict[str, Any], color: str) -> AlertLevel:
    raw = props.get("alertLevel")
    if isinstance(raw, str):
        try:
            return AlertLevel(raw.lower())
        except ValueError:
            logger.warning("region_bad_alert_level", alert_level=raw)
    return color_to_level(color)


def _build(
    region_id: str,
    name: str,
    geometry: Geometry,
    props: dict[str, Any],
    color: str,
    source: RegionSource,
) -> Region:
    return Region(
        id=region_id,
        name=name,
        geometry=geometry,
        alert_enabled=bool(props.get("alertEnabled", False)),
        alert_sound_enabled=bool(props.get("alertSoundEnabled", False)),
        alert_level=_alert_level(props, color),
        color=color,
        source=source,
    )


def _from_resource_set(region_id: str, payload: dict[str, Any], name: str) -> Region:
    values = _mapping(payload.get("values"))
    features = values.get("features")
    if not isinstance(features, list) or not features:
        raise RegionPayloadError("resource set has no features")
    feature = _mapping(features[0])
    props = _mapping(feature.get("properties"))
    color = _resource_set_color(payload, props)
    return _build(
        region_id,
        name or str(payload.get("name") or ""),
        _geometry(feature.get("geometry")),
        props,
        color,
        RegionSource.RESOURCE_SET,
    )


def _from_feature(region_id: str, feature: dict[str, Any], name: str) -> Region:
    props = _mapping(feature.get("properties"))
    return _build(
        region_id,
        name or str(props.get("name") or props.get("title") or ""),
        _geometry(feature.get("geometry")),
        props,
        _feature_color(props),
        RegionSource.FEATURE,
    )


def parse_region(payload: Any, region_id: str) -> Region:
    """Resolve a single region resource.

    Raises:
        RegionPayloadError: if the payload matches none of the known shapes.
    """
    node = _mapping(payload)
    if not node:
        raise RegionPayloadError(f"region {region_id!r} is not an object")

    kind = node.get("type")
    if kind == "ResourceSet":
        return _from_resource_set(region_id, node, "")
    if kind == "Feature":
        return _from_feature(region_id, node, "")
    if kind in _GEOMETRY_TYPES:
        return _build(region_id, "", _geometry(node), {}, "", RegionSource.GEOMETRY)

    if "feature" in node:
        name = str(node.get("name") or node.get("title") or "")
        inner = _mapping(node.get("feature"))
        if inner.get("type") == "ResourceSet":
            region = _from_resource_set(region_id, inner, name)
        elif inner.get("type") == "Feature":
            region = _from_feature(region_id, inner, name)
        else:
            raise RegionPayloadError(f"region {region_id!r} feature has type {inner.get('type')!r}")
        return region.model_copy(update={"source": RegionSource.SIGNALK_REGION})

    raise RegionPayloadError(f"region {region_id!r} has unrecognised shape (type={kind!r})")


def _entry_id(entry: Any, index: int) -> tuple[str, Any]:
    # ``[id, resource, ...]`` tuples as handed out by resource caches.
    if isinstance(entry, (list, tuple)) and len(entry) >= 2 and isinstance(entry[0], str):
        return entry[0], entry[1]
    node = _mapping(entry)
    region_id = node.get("id") or node.get("name")
    return (str(region_id) if region_id else f"unknown-{index}"), entry


def parse_regions(payload: Any) -> list[Region]:
    """Resolve a batch of region resources, skipping the ones that fail.

    Accepts an id-keyed mapping (the resources API format) or a list.
    """
    if isinstance(payload, Mapping):
        entries = [(str(k), v) for k, v in payload.items()]
    elif isinstance(payload, list):
        entries = [_entry_id(e, i) for i, e in enumerate(payload)]
    else:
        logger.warning("region_batch_unexpected", payload_type=type(payload).__name__)
        return []

    regions: list[Region] = []
    for region_id, raw in entries:
        try:
            regions.append(parse_region(raw, region_id))
        except RegionPayloadError as exc:
            logger.warning("region_payload_skipped", region_id=region_id, error=str(exc))
    return regions
