"""Core module: config, types, logging."""

from bosun.core.config import Settings, get_settings, load_settings, reset_settings
from bosun.core.logging import setup_logging
from bosun.core.types import (
    STANDARD_ALARM_TYPES,
    Alert,
    AlertLevel,
    AlertOrigin,
    AlertSnapshot,
    Geometry,
    GeometryType,
    Membership,
    Region,
    RegionAlertState,
    RegionPhase,
    RegionSource,
    is_standard_alarm,
)

__all__ = [
    "STANDARD_ALARM_TYPES",
    "Alert",
    "AlertLevel",
    "AlertOrigin",
    "AlertSnapshot",
    "Geometry",
    "GeometryType",
    "Membership",
    "Region",
    "RegionAlertState",
    "RegionPhase",
    "RegionSource",
    "Settings",
    "get_settings",
    "is_standard_alarm",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
