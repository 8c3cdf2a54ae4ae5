"""Alert threshold evaluation - Pure functions.

This module decides which earthquakes are strong enough to notify about.
All functions are pure with no side effects.
"""

from quake_watch.core.earthquake import EarthquakeRecord


def meets_threshold(record: EarthquakeRecord, threshold: float) -> bool:
    """Check if a record's magnitude is at or above the threshold.

    Pure function. A record without a magnitude never qualifies, whatever
    the threshold.
    """
    if not record.has_magnitude:
        return False

    return record.magnitude >= threshold


def filter_by_threshold(
    records: list[EarthquakeRecord],
    threshold: float,
) -> list[EarthquakeRecord]:
    """Filter records to those meeting the magnitude threshold.

    Pure function. Input order is preserved.

    Args:
        records: Records to filter
        threshold: Minimum magnitude (inclusive)

    Returns:
        Records with a magnitude >= threshold
    """
    return [r for r in records if meets_threshold(r, threshold)]
