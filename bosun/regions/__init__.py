"""Region ingestion, storage and entry alerting."""

from bosun.regions.exceptions import (
    RegionError,
    RegionNotFoundError,
    RegionPayloadError,
    RegionSourceError,
)
from bosun.regions.parser import parse_region, parse_regions
from bosun.regions.state_machine import REGION_ALARM_TYPE, RegionAlertStateMachine
from bosun.regions.store import RegionStore, ResourceRegionLoader

__all__ = [
    "REGION_ALARM_TYPE",
    "RegionAlertStateMachine",
    "RegionError",
    "RegionNotFoundError",
    "RegionPayloadError",
    "RegionSourceError",
    "RegionStore",
    "ResourceRegionLoader",
    "parse_region",
    "parse_regions",
]
