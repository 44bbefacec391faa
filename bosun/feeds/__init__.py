"""Data feeds: polled sources that drive the alerting core."""

from bosun.feeds.base import BaseFeed, FeedCallback, FeedStatus, StatusCallback
from bosun.feeds.exceptions import FeedConnectionError, FeedError, FeedParseError
from bosun.feeds.position import PositionFeed, PositionFix, parse_position

__all__ = [
    "BaseFeed",
    "FeedCallback",
    "FeedConnectionError",
    "FeedError",
    "FeedParseError",
    "FeedStatus",
    "PositionFeed",
    "PositionFix",
    "StatusCallback",
    "parse_position",
]
