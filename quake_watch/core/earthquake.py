"""Earthquake data models and parsing - Pure functions.

This module handles parsing USGS GeoJSON data into typed EarthquakeRecord
objects. All functions are pure with no side effects.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EarthquakeRecord:
    """Immutable earthquake record, one per feed entry.

    Attributes:
        id: Unique USGS event ID, stable across polls
        magnitude: Event magnitude, None when the feed omits it
        place: Human-readable location description
        occurred_at_ms: Event time in milliseconds since the epoch
        coordinates: (longitude, latitude, depth_km) as sent by the feed
        url: USGS event detail URL
    """
    id: str
    magnitude: float | None
    place: str
    occurred_at_ms: int
    coordinates: tuple[float, float, float]
    url: str = ""

    @property
    def time(self) -> datetime:
        """Event time as a UTC datetime."""
        return datetime.fromtimestamp(self.occurred_at_ms / 1000, tz=timezone.utc)

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]

    @property
    def depth_km(self) -> float:
        return self.coordinates[2]

    @property
    def has_magnitude(self) -> bool:
        """True if the feed reported a magnitude for this event."""
        return self.magnitude is not None

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-serializable dict of this record."""
        return {
            "id": self.id,
            "magnitude": self.magnitude,
            "place": self.place,
            "time": self.occurred_at_ms,
            "coordinates": list(self.coordinates),
            "url": self.url,
        }


class FeedParseError(ValueError):
    """Raised when a feed document is not a usable GeoJSON FeatureCollection."""


def parse_earthquake(feature: dict[str, Any]) -> EarthquakeRecord | None:
    """Parse a single GeoJSON feature into an EarthquakeRecord.

    Pure function: takes raw dict, returns a typed record or None if invalid.
    A missing or null magnitude is kept as None; it is never treated as zero.

    Args:
        feature: GeoJSON feature dict from USGS API

    Returns:
        EarthquakeRecord or None if the feature lacks an id, time or coordinates
    """
    try:
        props = feature.get("properties") or {}
        geometry = feature.get("geometry") or {}
        coords = geometry.get("coordinates") or []

        event_id = feature.get("id")
        if not event_id:
            return None

        if len(coords) < 3:
            return None

        # USGS uses milliseconds since epoch
        time_ms = props.get("time")
        if time_ms is None:
            return None

        magnitude = props.get("mag")

        return EarthquakeRecord(
            id=str(event_id),
            magnitude=float(magnitude) if magnitude is not None else None,
            place=props.get("place") or "Unknown location",
            occurred_at_ms=int(time_ms),
            coordinates=(float(coords[0]), float(coords[1]), float(coords[2])),
            url=props.get("url") or "",
        )
    except (AttributeError, TypeError, ValueError):
        return None


def parse_earthquakes(geojson: Any) -> list[EarthquakeRecord]:
    """Parse a USGS GeoJSON document into a list of records.

    Pure function. Upstream order is preserved. Invalid features are
    skipped, and a feature repeating an id already seen in the same
    document is dropped.

    Args:
        geojson: Decoded GeoJSON FeatureCollection from USGS API

    Returns:
        List of valid EarthquakeRecord objects in feed order

    Raises:
        FeedParseError: If the document itself is not a FeatureCollection
    """
    if not isinstance(geojson, dict):
        raise FeedParseError(
            f"Expected a JSON object, got {type(geojson).__name__}"
        )

    features = geojson.get("features")
    if not isinstance(features, list):
        raise FeedParseError("Document has no 'features' list")

    records: list[EarthquakeRecord] = []
    seen_ids: set[str] = set()

    for feature in features:
        if not isinstance(feature, dict):
            logger.debug("Skipping non-object feature: %r", feature)
            continue

        record = parse_earthquake(feature)
        if record is None:
            logger.debug("Skipping invalid feature %s", feature.get("id"))
            continue

        if record.id in seen_ids:
            logger.warning("Dropping duplicate feature id %s", record.id)
            continue

        seen_ids.add(record.id)
        records.append(record)

    return records
