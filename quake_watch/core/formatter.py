"""Message formatting - Pure functions.

This module formats earthquake records into notification content and
human-readable summaries. All functions are pure with no side effects.
"""

from dataclasses import dataclass
from typing import Any

from quake_watch.core.earthquake import EarthquakeRecord


ALERT_TITLE = "Earthquake Alert!"

TEST_NOTIFICATION_TITLE = "Test Notification"
TEST_NOTIFICATION_BODY = "This is a test notification"

NO_RECORDS_MESSAGE = "No recent earthquakes detected."


@dataclass(frozen=True)
class NotificationContent:
    """Content of one notification.

    Attributes:
        title: Notification title
        body: Notification body text
        payload: Data delivered alongside the notification
    """
    title: str
    body: str
    payload: dict[str, Any]


def format_magnitude(magnitude: float | None) -> str:
    """Format a magnitude as reported by the feed, 'unknown' when absent.

    Pure function.
    """
    if magnitude is None:
        return "unknown"
    return f"{magnitude:g}"


def get_severity_label(magnitude: float | None) -> str:
    """Get a human-readable severity label.

    Pure function.
    """
    if magnitude is None:
        return "Unknown"
    elif magnitude >= 8.0:
        return "Great"
    elif magnitude >= 7.0:
        return "Major"
    elif magnitude >= 6.0:
        return "Strong"
    elif magnitude >= 5.0:
        return "Moderate"
    elif magnitude >= 4.0:
        return "Light"
    elif magnitude >= 3.0:
        return "Minor"
    else:
        return "Micro"


def format_display_time(record: EarthquakeRecord) -> str:
    """Format the event time like 'Wed, Jan 1, 2025 12:00 PM' (UTC).

    Pure function.
    """
    t = record.time
    hour = t.hour % 12 or 12
    am_pm = "AM" if t.hour < 12 else "PM"
    return f"{t:%a}, {t:%b} {t.day}, {t.year} {hour}:{t:%M} {am_pm}"


def format_notification(record: EarthquakeRecord) -> NotificationContent:
    """Format the alert notification for a record.

    Pure function.

    Args:
        record: Record that crossed the threshold

    Returns:
        NotificationContent with the record attached as payload
    """
    return NotificationContent(
        title=ALERT_TITLE,
        body=f"Magnitude: {format_magnitude(record.magnitude)} at {record.place}",
        payload={"quake": record.to_payload()},
    )


def format_test_notification() -> NotificationContent:
    """Format the one-off notification sent when push is first enabled.

    Pure function.
    """
    return NotificationContent(
        title=TEST_NOTIFICATION_TITLE,
        body=TEST_NOTIFICATION_BODY,
        payload={},
    )


def format_earthquake_summary(record: EarthquakeRecord) -> str:
    """Format a one-line summary of a record for list views.

    Pure function.
    """
    return (
        f"Magnitude: {format_magnitude(record.magnitude)} - "
        f"Location: {record.place} ({format_display_time(record)})"
    )


def format_record_details(record: EarthquakeRecord) -> list[str]:
    """Format the detail lines shown for a selected record.

    Pure function.

    Returns:
        Lines for magnitude, location, time and depth
    """
    return [
        f"Magnitude: {format_magnitude(record.magnitude)} "
        f"({get_severity_label(record.magnitude)})",
        f"Location: {record.place}",
        f"Time: {format_display_time(record)}",
        f"Depth: {record.depth_km:g} km",
    ]
