"""Feed query models - Pure functions.

Builds the USGS FDSN query parameters for a time window and bounding box.
The HTTP call itself lives in the shell layer.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from quake_watch.core.geo import BoundingBox, bounds_errors


# USGS accepts ISO-8601 without an offset and interprets it as UTC
QUERY_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


@dataclass(frozen=True)
class FeedQuery:
    """Parameters for one feed request.

    All fields are required; the client never fills in a default window.

    Attributes:
        start_time: Fetch events at or after this time
        end_time: Fetch events before this time
        bounds: Geographic bounding box
    """
    start_time: datetime
    end_time: datetime
    bounds: BoundingBox


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC, treating naive values as UTC.

    Pure function.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def query_errors(query: FeedQuery) -> list[str]:
    """Describe any problems with a query.

    Pure function.

    Returns:
        List of error messages (empty if valid)
    """
    errors = bounds_errors(query.bounds)

    if to_utc(query.start_time) >= to_utc(query.end_time):
        errors.append(
            f"start_time ({query.start_time.isoformat()}) must be before "
            f"end_time ({query.end_time.isoformat()})"
        )

    return errors


def build_query_params(query: FeedQuery) -> dict[str, str]:
    """Build URL query parameters for a USGS FDSN event request.

    Pure function.

    Args:
        query: Query to encode

    Returns:
        Dict of URL query parameters
    """
    return {
        "format": "geojson",
        "starttime": to_utc(query.start_time).strftime(QUERY_TIME_FORMAT),
        "endtime": to_utc(query.end_time).strftime(QUERY_TIME_FORMAT),
        "minlatitude": str(query.bounds.min_latitude),
        "maxlatitude": str(query.bounds.max_latitude),
        "minlongitude": str(query.bounds.min_longitude),
        "maxlongitude": str(query.bounds.max_longitude),
    }


def rolling_window(
    bounds: BoundingBox,
    lookback_hours: float,
    now: datetime,
) -> FeedQuery:
    """Build a query covering the last `lookback_hours` up to `now`.

    Pure function: the caller supplies the current time.
    """
    end = to_utc(now)
    return FeedQuery(
        start_time=end - timedelta(hours=lookback_hours),
        end_time=end,
        bounds=bounds,
    )
