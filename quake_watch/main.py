"""Command-line entry point.

Loads configuration, acquires push permission, and runs the poller either
once (`--once`) or until interrupted.
"""

import argparse
import logging
import os
import signal
import sys
import threading
from datetime import datetime, timezone

from quake_watch.core.config import Config, ConfigError, resolve_feed_query, validate_config
from quake_watch.core.formatter import NO_RECORDS_MESSAGE, format_earthquake_summary, format_record_details
from quake_watch.core.selection import SelectionStore
from quake_watch.notifier import NotificationSink, ThresholdNotifier
from quake_watch.permissions import PermissionGate, PermissionProvider, send_test_notification
from quake_watch.scheduler import FeedFetcher, PollScheduler
from quake_watch.shell.config_loader import load_config, load_config_from_env
from quake_watch.shell.expo_push_client import ExpoPushClient
from quake_watch.shell.feed_client import FeedClient
from quake_watch.shell.permission_provider import ConfiguredPermissionProvider


logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_POLL_FAILED = 1
EXIT_BAD_CONFIG = 2
EXIT_NOT_FOUND = 3


def configure_logging() -> None:
    """Configure root logging from the LOG_LEVEL environment variable."""
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _get_config(args: argparse.Namespace) -> Config:
    """Load configuration from file or environment, then apply CLI overrides."""
    if args.env:
        config = load_config_from_env()
    else:
        config = load_config(args.config)

    if args.threshold is not None:
        config.alerts.threshold = args.threshold
    if args.interval is not None:
        config.polling.interval_seconds = args.interval
    if args.dedup_window is not None:
        config.alerts.dedup_window_size = args.dedup_window

    return config


def setup_notifications(
    config: Config,
    provider: PermissionProvider | None = None,
) -> NotificationSink | None:
    """Acquire push permission and build the notification sink.

    Returns:
        An ExpoPushClient, or None if permission was not obtained
    """
    provider = provider or ConfiguredPermissionProvider(
        enabled=config.notifications.enabled,
        push_token=config.notifications.push_token,
    )
    gate = PermissionGate(provider)
    result = gate.acquire()

    if not result.granted:
        logger.warning("Push notifications unavailable (%s); polling without them", result.error)
        return None

    sink = ExpoPushClient(
        push_token=result.token,
        access_token=config.notifications.access_token,
        push_url=config.notifications.push_url,
        timeout=config.notifications.timeout_seconds,
    )

    if config.notifications.send_test_notification:
        send_test_notification(sink)

    return sink


def build_scheduler(
    config: Config,
    sink: NotificationSink | None = None,
    feed_client: FeedFetcher | None = None,
    selection: SelectionStore | None = None,
) -> PollScheduler:
    """Wire a PollScheduler from configuration."""
    feed = config.feed
    feed_client = feed_client or FeedClient(
        base_url=feed.base_url,
        timeout=feed.timeout_seconds,
    )

    def current_query():
        return resolve_feed_query(feed, datetime.now(timezone.utc))

    query = current_query if feed.is_rolling else current_query()

    notifier = None
    if sink is not None:
        notifier = ThresholdNotifier(
            sink,
            threshold=config.alerts.threshold,
            dedup_window_size=config.alerts.dedup_window_size,
        )

    return PollScheduler(
        feed_client,
        query,
        notifier=notifier,
        selection=selection,
        interval_seconds=config.polling.interval_seconds,
        join_timeout=feed.timeout_seconds + 5,
    )


def run_once(scheduler: PollScheduler, select_id: str | None = None) -> int:
    """Run a single poll and print the records.

    With `select_id`, the matching record is selected and its details are
    printed after the list.
    """
    result = scheduler.tick()

    if not result.success:
        print(f"Poll failed: {result.error or result.unexpected_error}", file=sys.stderr)
        return EXIT_POLL_FAILED

    records = scheduler.records
    if not records:
        print(NO_RECORDS_MESSAGE)
    for record in records:
        print(format_earthquake_summary(record))

    if result.notify_result is not None:
        print(result.notify_result.summary)

    if select_id is not None and scheduler.selection is not None:
        try:
            scheduler.selection.select(select_id)
        except KeyError:
            print(f"No earthquake with id {select_id}", file=sys.stderr)
            return EXIT_NOT_FOUND

        print()
        for line in format_record_details(scheduler.selection.current()):
            print(line)

    return EXIT_OK


def run_forever(scheduler: PollScheduler) -> int:
    """Poll until SIGINT or SIGTERM."""
    shutdown = threading.Event()

    def _handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down", signum)
        shutdown.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    scheduler.start()
    try:
        shutdown.wait()
    finally:
        scheduler.stop()

    return EXIT_OK


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="quake-watch",
        description="Poll the USGS earthquake feed and push alerts above a magnitude threshold.",
    )
    parser.add_argument("--config", help="Path to YAML config (default: $CONFIG_PATH or config/config.yaml)")
    parser.add_argument("--env", action="store_true", help="Load configuration from environment variables only")
    parser.add_argument("--once", action="store_true", help="Poll once, print results and exit")
    parser.add_argument("--select", metavar="EVENT_ID", help="With --once, also print details for this event")
    parser.add_argument("--threshold", type=float, help="Override alert magnitude threshold")
    parser.add_argument("--interval", type=float, help="Override poll interval in seconds")
    parser.add_argument("--dedup-window", type=int, help="Override dedup window size (0 disables dedup)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = parse_args(argv)

    try:
        config = _get_config(args)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_BAD_CONFIG

    validation = validate_config(config)
    for warning in validation.warnings:
        logger.warning("Config warning: %s - %s", warning.field, warning.message)
    if not validation.valid:
        for error in validation.critical_errors:
            logger.error("Config error: %s - %s", error.field, error.message)
        return EXIT_BAD_CONFIG

    sink = None if args.once else setup_notifications(config)
    feed_client = FeedClient(
        base_url=config.feed.base_url,
        timeout=config.feed.timeout_seconds,
    )
    scheduler = build_scheduler(
        config,
        sink=sink,
        feed_client=feed_client,
        selection=SelectionStore(),
    )

    try:
        if args.once:
            return run_once(scheduler, select_id=args.select)
        return run_forever(scheduler)
    finally:
        feed_client.close()


if __name__ == "__main__":
    sys.exit(main())
