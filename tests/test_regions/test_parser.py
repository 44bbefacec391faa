"""Tests for bosun/regions/parser.py: resolving region resource shapes."""

from __future__ import annotations

from typing import Any

import pytest

from bosun.core.types import AlertLevel, GeometryType, RegionSource
from bosun.regions.exceptions import RegionPayloadError
from bosun.regions.parser import parse_region, parse_regions

SQUARE = [[[0, 0], [0, 1], [1, 1], [1, 0], [0, 0]]]


def _feature(**props: Any) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "Polygon", "coordinates": SQUARE},
        "properties": props,
    }


def _resource_set(styles: dict[str, Any] | None = None, **props: Any) -> dict[str, Any]:
    return {
        "type": "ResourceSet",
        "name": "Anchorage",
        "styles": styles or {},
        "values": {"type": "FeatureCollection", "features": [_feature(**props)]},
    }


class TestShapes:
    def test_feature(self) -> None:
        region = parse_region(
            _feature(name="Harbour", alertEnabled=True, alertSoundEnabled=True, fillColor="#00ff00"),
            "r1",
        )
        assert region.id == "r1"
        assert region.name == "Harbour"
        assert region.alert_enabled
        assert region.alert_sound_enabled
        assert region.alert_level == AlertLevel.LOW
        assert region.color == "#00ff00"
        assert region.source == RegionSource.FEATURE
        assert region.geometry.type == GeometryType.POLYGON

    def test_bare_geometry(self) -> None:
        region = parse_region({"type": "MultiPolygon", "coordinates": [SQUARE]}, "g1")
        assert region.source == RegionSource.GEOMETRY
        assert region.geometry.type == GeometryType.MULTI_POLYGON
        assert not region.alert_enabled
        assert region.display_name == "region-g1"

    def test_resource_set_uses_style_ref(self) -> None:
        styles = {"default": {"stroke": "#00ff00"}, "danger": {"stroke": "#ff0000"}}
        region = parse_region(_resource_set(styles, styleRef="danger", alertEnabled=True), "z1")
        assert region.source == RegionSource.RESOURCE_SET
        assert region.name == "Anchorage"
        assert region.color == "#ff0000"
        assert region.alert_level == AlertLevel.HIGH

    def test_resource_set_falls_back_to_any_style(self) -> None:
        styles = {"default": {"fill": "orange"}}
        region = parse_region(_resource_set(styles, styleRef="missing"), "z1")
        assert region.color == "orange"
        assert region.alert_level == AlertLevel.MEDIUM

    def test_explicit_alert_level_wins_over_colour(self) -> None:
        region = parse_region(_feature(alertLevel="HIGH", fillColor="#00ff00"), "r1")
        assert region.alert_level == AlertLevel.HIGH

    def test_bad_alert_level_uses_colour(self) -> None:
        region = parse_region(_feature(alertLevel="extreme", color="red"), "r1")
        assert region.alert_level == AlertLevel.HIGH

    def test_signalk_region_with_feature(self) -> None:
        payload = {"name": "Channel", "feature": _feature(alertEnabled=True)}
        region = parse_region(payload, "sk1")
        assert region.source == RegionSource.SIGNALK_REGION
        assert region.name == "Channel"
        assert region.alert_enabled

    def test_signalk_region_wrapping_resource_set(self) -> None:
        payload = {"name": "Mooring", "feature": _resource_set(alertEnabled=True)}
        region = parse_region(payload, "sk2")
        assert region.source == RegionSource.SIGNALK_REGION
        assert region.name == "Mooring"

    def test_style_colour_on_feature(self) -> None:
        region = parse_region(_feature(style={"stroke": "#ff0000"}), "r1")
        assert region.color == "#ff0000"


class TestRejects:
    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            {"type": "Point", "coordinates": [0, 0]},
            {"type": "Polygon", "coordinates": []},
            {"type": "Feature", "geometry": None},
            {"type": "ResourceSet", "values": {"features": []}},
            {"name": "x", "feature": {"type": "LineString"}},
            {"something": "else"},
        ],
    )
    def test_unrecognised_payload(self, payload: Any) -> None:
        with pytest.raises(RegionPayloadError):
            parse_region(payload, "bad")


class TestBatch:
    def test_mapping_skips_bad_entries(self) -> None:
        payload = {
            "good": _feature(alertEnabled=True),
            "bad": {"type": "Point", "coordinates": [0, 0]},
            "also-good": {"type": "Polygon", "coordinates": SQUARE},
        }
        regions = parse_regions(payload)
        assert [r.id for r in regions] == ["good", "also-good"]

    def test_list_forms(self) -> None:
        payload = [
            ["tuple-id", _feature()],
            {"id": "with-id", "name": "Named", "feature": _feature()},
            {"type": "Polygon", "coordinates": SQUARE},
        ]
        regions = parse_regions(payload)
        assert [r.id for r in regions] == ["tuple-id", "with-id", "unknown-2"]

    def test_unexpected_batch_type(self) -> None:
        assert parse_regions("nope") == []
