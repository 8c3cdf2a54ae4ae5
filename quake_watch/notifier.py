"""Threshold Notifier - Wires threshold rules, dedup and a notification sink.

Decides which records need a notification and dispatches them through an
injected NotificationSink, so the logic can be exercised without a real
push service.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from quake_watch.core.dedup import NotifiedIdWindow, filter_already_notified
from quake_watch.core.earthquake import EarthquakeRecord
from quake_watch.core.errors import DispatchError, DispatchErrorKind, DispatchResult
from quake_watch.core.formatter import NotificationContent, format_notification
from quake_watch.core.rules import filter_by_threshold


logger = logging.getLogger(__name__)


DEFAULT_THRESHOLD = 5.0
DEFAULT_DEDUP_WINDOW_SIZE = 500


class NotificationSink(Protocol):
    """Anything that can deliver a notification."""

    def schedule(self, title: str, body: str, payload: dict[str, Any]) -> DispatchResult:
        ...


@dataclass
class DispatchOutcome:
    """Result of dispatching a notification for one record.

    Attributes:
        record: The record notified about
        result: What the sink reported
    """
    record: EarthquakeRecord
    result: DispatchResult

    @property
    def success(self) -> bool:
        return self.result.success


@dataclass
class NotifyResult:
    """Result of running the notifier over one batch of records.

    Attributes:
        evaluated: Number of records evaluated
        qualifying: Records that needed a notification
        dispatched: Successful dispatches
        failed: Failed dispatches
        cancelled: The pass stopped before every qualifying record was sent
    """
    evaluated: int = 0
    qualifying: list[EarthquakeRecord] = field(default_factory=list)
    dispatched: list[DispatchOutcome] = field(default_factory=list)
    failed: list[DispatchOutcome] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def summary(self) -> str:
        """Human-readable summary of the notify pass."""
        return (
            f"Evaluated {self.evaluated} earthquakes, "
            f"{len(self.qualifying)} over threshold, "
            f"{len(self.dispatched)} notifications sent, "
            f"{len(self.failed)} failed"
        )


class ThresholdNotifier:
    """Notifies about records at or above a magnitude threshold.

    Successfully notified IDs enter a bounded dedup window, so an unchanged
    feed re-polled every tick does not notify the same event twice. With
    `dedup_window_size=0` every qualifying record is notified on every call.
    Failed dispatches are not remembered and are retried on the next call.

    The window must hold at least as many IDs as records can qualify in one
    poll. A smaller window evicts IDs from the same batch, and those
    records are notified again on every poll.
    """

    def __init__(
        self,
        sink: NotificationSink,
        threshold: float = DEFAULT_THRESHOLD,
        dedup_window_size: int = DEFAULT_DEDUP_WINDOW_SIZE,
    ) -> None:
        """Initialize notifier.

        Args:
            sink: Where notifications are delivered
            threshold: Default minimum magnitude (inclusive)
            dedup_window_size: How many notified IDs to remember (0 = no dedup).
                Must be at least the qualifying records expected per poll.
        """
        self.sink = sink
        self.threshold = threshold
        self.notified = NotifiedIdWindow(dedup_window_size)
        self._lock = threading.Lock()

    def evaluate(
        self,
        records: list[EarthquakeRecord] | tuple[EarthquakeRecord, ...],
        threshold: float | None = None,
    ) -> list[EarthquakeRecord]:
        """Return the records that require a notification.

        A record qualifies if its magnitude is present, is >= threshold, and
        its ID is not in the dedup window. Input order is preserved.

        Args:
            records: Records from the latest poll
            threshold: Override for the configured threshold
        """
        if threshold is None:
            threshold = self.threshold

        over_threshold = filter_by_threshold(list(records), threshold)

        with self._lock:
            return filter_already_notified(over_threshold, self.notified)

    def dispatch(self, record: EarthquakeRecord) -> DispatchResult:
        """Send the notification for one record.

        Never raises: sink errors, including unexpected exceptions, come back
        as a failed DispatchResult.
        """
        content: NotificationContent = format_notification(record)

        try:
            result = self.sink.schedule(content.title, content.body, content.payload)
        except Exception as e:
            logger.exception("Notification sink raised for %s", record.id)
            result = DispatchResult(error=DispatchError(
                kind=DispatchErrorKind.SINK_UNAVAILABLE,
                detail=str(e),
            ))

        if result.success:
            with self._lock:
                self.notified.add(record.id)
            logger.info(
                "Sent notification for M%s %s (%s)",
                record.magnitude,
                record.place,
                result.notification_id,
            )
        else:
            logger.error(
                "Failed to send notification for M%s %s: %s",
                record.magnitude,
                record.place,
                result.error,
            )

        return result

    def notify(
        self,
        records: list[EarthquakeRecord] | tuple[EarthquakeRecord, ...],
        threshold: float | None = None,
        should_continue: Callable[[], bool] | None = None,
    ) -> NotifyResult:
        """Evaluate records and dispatch every qualifying one.

        A failed dispatch does not stop the remaining dispatches.

        Args:
            records: Records from the latest poll
            threshold: Override for the configured threshold
            should_continue: Checked before each dispatch; returning False
                ends the pass and marks the result cancelled
        """
        qualifying = self.evaluate(records, threshold)
        result = NotifyResult(evaluated=len(records), qualifying=qualifying)

        window = self.notified
        if window.enabled and len(qualifying) > window.max_size:
            logger.warning(
                "%d records qualify but the dedup window holds %d; "
                "some will be notified again next poll",
                len(qualifying),
                window.max_size,
            )

        for record in qualifying:
            if should_continue is not None and not should_continue():
                logger.info(
                    "Notification pass cancelled after %d of %d dispatches",
                    len(result.dispatched) + len(result.failed),
                    len(qualifying),
                )
                result.cancelled = True
                break

            outcome = DispatchOutcome(record=record, result=self.dispatch(record))
            if outcome.success:
                result.dispatched.append(outcome)
            else:
                result.failed.append(outcome)

        if qualifying:
            logger.info(result.summary)

        return result
