"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field
from datetime import datetime

from quake_watch.core.geo import BoundingBox, bounds_errors
from quake_watch.core.query import FeedQuery, query_errors, rolling_window, to_utc


# USGS FDSN Event Web Service base URL
USGS_API_BASE = "https://earthquake.usgs.gov/fdsnws/event/1/query"

# Expo push service endpoint
EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"


class ConfigError(ValueError):
    """Raised when configuration cannot be turned into a working poller."""


@dataclass
class FeedConfig:
    """Where and what to fetch.

    Either an absolute window (start_time and end_time) or a rolling
    window (lookback_hours ending at each poll) must be configured.

    Attributes:
        base_url: FDSN event query endpoint
        timeout_seconds: HTTP request timeout
        bounds: Geographic bounding box to query
        start_time: Absolute window start
        end_time: Absolute window end
        lookback_hours: Rolling window length
    """
    base_url: str = USGS_API_BASE
    timeout_seconds: float = 30
    bounds: BoundingBox | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    lookback_hours: float | None = None

    @property
    def is_rolling(self) -> bool:
        return self.lookback_hours is not None


@dataclass
class PollingConfig:
    """Polling cadence.

    Attributes:
        interval_seconds: Delay between the end of one poll and the next
    """
    interval_seconds: float = 60


@dataclass
class AlertConfig:
    """When to notify.

    Attributes:
        threshold: Minimum magnitude to notify on (inclusive)
        dedup_window_size: How many notified IDs to remember (0 = no dedup)
    """
    threshold: float = 5.0
    dedup_window_size: int = 500


@dataclass
class NotificationConfig:
    """Push notification settings.

    Attributes:
        enabled: Whether notification permission is granted
        push_token: Expo push token of the receiving device
        access_token: Expo access token for authenticated pushes (optional)
        push_url: Expo push endpoint
        timeout_seconds: HTTP request timeout
        send_test_notification: Send a test notification when first enabled
    """
    enabled: bool = True
    push_token: str | None = None
    access_token: str | None = None
    push_url: str = EXPO_PUSH_URL
    timeout_seconds: float = 10
    send_test_notification: bool = False


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.
    """
    feed: FeedConfig = field(default_factory=FeedConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def _is_unresolved(value: str | None) -> bool:
    return bool(value) and value.startswith("${")


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []
    feed = config.feed

    if feed.bounds is None:
        errors.append(ValidationError(
            field="feed.bounds",
            message="No bounding box configured",
        ))
    else:
        for message in bounds_errors(feed.bounds):
            errors.append(ValidationError(field="feed.bounds", message=message))

    has_absolute = feed.start_time is not None or feed.end_time is not None

    if has_absolute and feed.is_rolling:
        errors.append(ValidationError(
            field="feed",
            message="Configure either start_time/end_time or lookback_hours, not both",
        ))
    elif feed.is_rolling:
        if feed.lookback_hours <= 0:
            errors.append(ValidationError(
                field="feed.lookback_hours",
                message=f"lookback_hours must be positive, got {feed.lookback_hours}",
            ))
    elif feed.start_time is None or feed.end_time is None:
        errors.append(ValidationError(
            field="feed",
            message="No time window configured (start_time and end_time, or lookback_hours)",
        ))
    elif to_utc(feed.start_time) >= to_utc(feed.end_time):
        errors.append(ValidationError(
            field="feed.start_time",
            message=(
                f"start_time ({feed.start_time.isoformat()}) must be before "
                f"end_time ({feed.end_time.isoformat()})"
            ),
        ))

    if feed.timeout_seconds <= 0:
        errors.append(ValidationError(
            field="feed.timeout_seconds",
            message=f"Timeout must be positive, got {feed.timeout_seconds}",
        ))

    if config.polling.interval_seconds <= 0:
        errors.append(ValidationError(
            field="polling.interval_seconds",
            message=f"Interval must be positive, got {config.polling.interval_seconds}",
        ))

    if config.alerts.dedup_window_size < 0:
        errors.append(ValidationError(
            field="alerts.dedup_window_size",
            message=f"dedup_window_size must be >= 0, got {config.alerts.dedup_window_size}",
        ))

    notifications = config.notifications
    if notifications.enabled:
        if not notifications.push_token:
            errors.append(ValidationError(
                field="notifications.push_token",
                message="Notifications enabled but no push token configured",
                severity="warning",
            ))
        elif _is_unresolved(notifications.push_token):
            errors.append(ValidationError(
                field="notifications.push_token",
                message="Push token not resolved (still contains placeholder)",
                severity="warning",
            ))

        if _is_unresolved(notifications.access_token):
            errors.append(ValidationError(
                field="notifications.access_token",
                message="Access token not resolved (still contains placeholder)",
                severity="warning",
            ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )


def resolve_feed_query(feed: FeedConfig, now: datetime) -> FeedQuery:
    """Build the query for a poll happening at `now`.

    Pure function.

    Raises:
        ConfigError: If the feed has no bounds, no usable window, or the
            resulting query is invalid
    """
    if feed.bounds is None:
        raise ConfigError("feed.bounds is required")

    if feed.is_rolling:
        query = rolling_window(feed.bounds, feed.lookback_hours, now)
    elif feed.start_time is None or feed.end_time is None:
        raise ConfigError("feed needs start_time and end_time, or lookback_hours")
    else:
        query = FeedQuery(
            start_time=feed.start_time,
            end_time=feed.end_time,
            bounds=feed.bounds,
        )

    errors = query_errors(query)
    if errors:
        raise ConfigError("; ".join(errors))

    return query
