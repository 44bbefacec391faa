"""Domain types for regions, alerts and geofence results."""

from __future__ import annotations

import time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds (the alarm API's unit)."""
    return int(time.time() * 1000)


# ── Alert Types ─────────────────────────────────────────────────


class AlertLevel(StrEnum):
    """Audible severity of a region alert."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AlertOrigin(StrEnum):
    """Where an alert lives: mirrored from the server or synthesized locally."""

    SERVER = "server"
    LOCAL = "local"


# Alarm types with full server-side lifecycle (raise / silence / cancel).
STANDARD_ALARM_TYPES: frozenset[str] = frozenset({
    "mob",
    "sinking",
    "fire",
    "piracy",
    "flooding",
    "collision",
    "grounding",
    "listing",
    "adrift",
    "abandon",
    "aground",
})


def is_standard_alarm(alarm_type: str) -> bool:
    return alarm_type in STANDARD_ALARM_TYPES


class Alert(BaseModel):
    """An active condition requiring operator attention."""

    path: str
    type: str
    priority: int = 2
    message: str = ""
    sound: bool = True
    visual: bool = True
    properties: dict[str, Any] = Field(default_factory=dict)
    icon: dict[str, Any] = Field(default_factory=lambda: {"svgIcon": "alarm"})
    acknowledged: bool = False
    silenced: bool = False
    can_acknowledge: bool = False
    can_cancel: bool = True
    created_at: int = Field(default_factory=now_ms)
    origin: AlertOrigin = AlertOrigin.SERVER
    remote_id: str = ""
    level: AlertLevel = AlertLevel.MEDIUM

    @model_validator(mode="after")
    def _local_alerts_cannot_cancel(self) -> Alert:
        if self.origin == AlertOrigin.LOCAL:
            self.can_cancel = False
        return self

    @property
    def is_local(self) -> bool:
        return self.origin == AlertOrigin.LOCAL

    @property
    def is_standard(self) -> bool:
        return is_standard_alarm(self.type)


AlertSnapshot = list[tuple[str, Alert]]


# ── Region Types ────────────────────────────────────────────────


class GeometryType(StrEnum):
    """Supported region geometry types."""

    POLYGON = "Polygon"
    MULTI_POLYGON = "MultiPolygon"


class Geometry(BaseModel):
    """GeoJSON-like geometry.

    ``coordinates`` is kept as delivered; the geofence evaluator validates
    it lazily so a bad vertex degrades to "outside" instead of rejecting
    the whole region at load time.
    """

    type: GeometryType
    coordinates: list[Any] = Field(default_factory=list)


class RegionSource(StrEnum):
    """Payload shape a region was ingested from."""

    SIGNALK_REGION = "signalk_region"
    FEATURE = "feature"
    RESOURCE_SET = "resource_set"
    GEOMETRY = "geometry"


class Region(BaseModel):
    """Operator-defined geographic area with optional entry alerting."""

    id: str
    name: str = ""
    geometry: Geometry
    alert_enabled: bool = False
    alert_sound_enabled: bool = False
    alert_level: AlertLevel = AlertLevel.MEDIUM
    color: str = ""
    source: RegionSource = RegionSource.SIGNALK_REGION

    @property
    def display_name(self) -> str:
        return self.name or f"region-{self.id}"


class RegionPhase(StrEnum):
    """Per-region alerting phase.

    PENDING is an INSIDE_ALERTED region whose raise has not resolved yet.
    """

    OUTSIDE = "outside"
    PENDING = "pending"
    INSIDE_ALERTED = "inside_alerted"


class RegionAlertState(BaseModel):
    """Ephemeral alerting state for one region."""

    region_id: str
    phase: RegionPhase = RegionPhase.OUTSIDE
    is_inside: bool = False
    has_alerted: bool = False
    alert_path: str | None = None
    generation: int = 0
    notified: bool = False
    failures: int = 0
    retry_at: float = 0.0


# ── Geofence Types ──────────────────────────────────────────────


class Membership(BaseModel):
    """Outcome of a geofence evaluation, including heuristics applied."""

    inside: bool = False
    position_swapped: bool = False
    region_swapped: bool = False
    error: str | None = None
