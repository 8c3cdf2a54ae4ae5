"""Functional Core - Pure functions and plain state.

This module contains the business logic of the poller:
- Earthquake feed parsing
- Query building
- Threshold evaluation
- Deduplication window
- Notification formatting
- Selection state

Nothing here performs network or file I/O.
"""

from quake_watch.core.earthquake import EarthquakeRecord, parse_earthquakes
from quake_watch.core.geo import BoundingBox
from quake_watch.core.query import FeedQuery, build_query_params
from quake_watch.core.rules import meets_threshold, filter_by_threshold
from quake_watch.core.dedup import NotifiedIdWindow, filter_already_notified
from quake_watch.core.formatter import format_notification, format_earthquake_summary
from quake_watch.core.selection import SelectionStore

__all__ = [
    # Earthquake
    "EarthquakeRecord",
    "parse_earthquakes",
    # Geo
    "BoundingBox",
    # Query
    "FeedQuery",
    "build_query_params",
    # Rules
    "meets_threshold",
    "filter_by_threshold",
    # Dedup
    "NotifiedIdWindow",
    "filter_already_notified",
    # Formatter
    "format_notification",
    "format_earthquake_summary",
    # Selection
    "SelectionStore",
]
