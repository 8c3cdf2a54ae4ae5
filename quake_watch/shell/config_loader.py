"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, FeedConfig, ...) are defined in quake_watch/core/config.py.
"""

import logging
import os
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from quake_watch.core.config import (
    AlertConfig,
    Config,
    ConfigError,
    FeedConfig,
    NotificationConfig,
    PollingConfig,
    EXPO_PUSH_URL,
    USGS_API_BASE,
)
from quake_watch.core.geo import BoundingBox
from quake_watch.shell.secret_manager_client import (
    SecretManagerClient,
    SecretManagerConfig,
    parse_placeholder,
)


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"


def _get_secret_manager_client() -> Optional[SecretManagerClient]:
    """Get a Secret Manager client.

    Returns None if GCP_PROJECT is not set (e.g., local development).
    """
    project_id = os.environ.get("GCP_PROJECT")
    if project_id:
        return SecretManagerClient(SecretManagerConfig(project_id=project_id))
    return None


def _resolve_value(value: Any, secret_client: Optional[SecretManagerClient] = None) -> Any:
    """Resolve a value that may contain secret or env var placeholders.

    Args:
        value: Value to resolve (may contain ${...} placeholders)
        secret_client: Client for resolving secrets

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if secret_client:
        return secret_client.resolve(value)

    # No secret client - only handle env vars
    reference = parse_placeholder(value)
    if reference is not None and not reference.startswith("secret:"):
        env_value = os.environ.get(reference)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", reference)

    return value


def _parse_datetime(value: Any, field_name: str) -> Optional[datetime]:
    """Parse a config timestamp; dates and naive times are taken as UTC."""
    if value is None:
        return None

    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            result = datetime.fromisoformat(text)
        except ValueError as e:
            raise ConfigError(f"{field_name}: invalid timestamp {value!r}") from e
    else:
        raise ConfigError(f"{field_name}: invalid timestamp {value!r}")

    if result.tzinfo is None:
        result = result.replace(tzinfo=timezone.utc)
    return result


def _parse_bounds(data: dict[str, Any]) -> BoundingBox:
    """Parse a bounding box from config data."""
    try:
        return BoundingBox(
            min_latitude=float(data["min_latitude"]),
            max_latitude=float(data["max_latitude"]),
            min_longitude=float(data["min_longitude"]),
            max_longitude=float(data["max_longitude"]),
        )
    except KeyError as e:
        raise ConfigError(f"bounds missing key: {e}") from e


def _parse_feed(data: dict[str, Any]) -> FeedConfig:
    """Parse the feed section from config data."""
    bounds = None
    if "bounds" in data:
        bounds = _parse_bounds(data["bounds"])

    lookback = data.get("lookback_hours")

    return FeedConfig(
        base_url=data.get("base_url", USGS_API_BASE),
        timeout_seconds=float(data.get("timeout_seconds", 30)),
        bounds=bounds,
        start_time=_parse_datetime(data.get("start_time"), "feed.start_time"),
        end_time=_parse_datetime(data.get("end_time"), "feed.end_time"),
        lookback_hours=float(lookback) if lookback is not None else None,
    )


def _parse_polling(data: dict[str, Any]) -> PollingConfig:
    """Parse the polling section from config data."""
    return PollingConfig(
        interval_seconds=float(data.get("interval_seconds", 60)),
    )


def _parse_alerts(data: dict[str, Any]) -> AlertConfig:
    """Parse the alerts section from config data."""
    return AlertConfig(
        threshold=float(data.get("threshold", 5.0)),
        dedup_window_size=int(data.get("dedup_window_size", 500)),
    )


def _parse_notifications(
    data: dict[str, Any],
    secret_client: Optional[SecretManagerClient] = None,
) -> NotificationConfig:
    """Parse the notifications section, resolving token placeholders."""
    push_token = data.get("push_token")
    access_token = data.get("access_token")

    return NotificationConfig(
        enabled=bool(data.get("enabled", True)),
        push_token=_resolve_value(push_token, secret_client) or None,
        access_token=_resolve_value(access_token, secret_client) or None,
        push_url=data.get("push_url", EXPO_PUSH_URL),
        timeout_seconds=float(data.get("timeout_seconds", 10)),
        send_test_notification=bool(data.get("send_test_notification", False)),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only placeholder expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object

    Raises:
        ConfigError: If a value cannot be parsed
    """
    secret_client = _get_secret_manager_client()

    try:
        return Config(
            feed=_parse_feed(data.get("feed") or {}),
            polling=_parse_polling(data.get("polling") or {}),
            alerts=_parse_alerts(data.get("alerts") or {}),
            notifications=_parse_notifications(
                data.get("notifications") or {},
                secret_client,
            ),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(str(e)) from e


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        ConfigError: If the file contents cannot be parsed
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: threshold M%.1f, interval %ss, dedup window %d",
        config.alerts.threshold,
        config.polling.interval_seconds,
        config.alerts.dedup_window_size,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        MONITORING_BOUNDS: Comma-separated bounds (min_lat,max_lat,min_lon,max_lon)
        ALERT_THRESHOLD: Minimum magnitude to notify on
        LOOKBACK_HOURS: Rolling window length
        POLL_INTERVAL_SECONDS: Delay between polls
        DEDUP_WINDOW_SIZE: Notified IDs to remember (0 disables dedup)
        EXPO_PUSH_TOKEN: Expo push token of the receiving device
        EXPO_ACCESS_TOKEN: Expo access token (optional)

    Returns:
        Config object from environment

    Raises:
        ConfigError: If a variable cannot be parsed
    """
    bounds = None
    bounds_str = os.environ.get("MONITORING_BOUNDS")
    if bounds_str:
        try:
            parts = [float(p.strip()) for p in bounds_str.split(",")]
        except ValueError as e:
            raise ConfigError(f"MONITORING_BOUNDS: {e}") from e
        if len(parts) != 4:
            raise ConfigError("MONITORING_BOUNDS needs min_lat,max_lat,min_lon,max_lon")
        bounds = BoundingBox(
            min_latitude=parts[0],
            max_latitude=parts[1],
            min_longitude=parts[2],
            max_longitude=parts[3],
        )

    try:
        threshold = float(os.environ.get("ALERT_THRESHOLD", "5.0"))
        lookback_hours = float(os.environ.get("LOOKBACK_HOURS", "24"))
        interval = float(os.environ.get("POLL_INTERVAL_SECONDS", "60"))
        dedup_window_size = int(os.environ.get("DEDUP_WINDOW_SIZE", "500"))
    except ValueError as e:
        raise ConfigError(str(e)) from e

    push_token = os.environ.get("EXPO_PUSH_TOKEN")

    return Config(
        feed=FeedConfig(bounds=bounds, lookback_hours=lookback_hours),
        polling=PollingConfig(interval_seconds=interval),
        alerts=AlertConfig(threshold=threshold, dedup_window_size=dedup_window_size),
        notifications=NotificationConfig(
            enabled=bool(push_token),
            push_token=push_token,
            access_token=os.environ.get("EXPO_ACCESS_TOKEN"),
        ),
    )
