"""Poll Scheduler - Runs the fetch/notify cycle on a fixed interval.

This module coordinates the flow of data between the feed client, the
selection store and the threshold notifier. It owns the poll lifecycle
(IDLE -> RUNNING -> STOPPED) and the PollState the presentation layer reads.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Protocol, Union

from quake_watch.core.earthquake import EarthquakeRecord
from quake_watch.core.errors import FetchError, FetchResult
from quake_watch.core.query import FeedQuery
from quake_watch.core.selection import SelectionStore
from quake_watch.notifier import NotifyResult, ThresholdNotifier


logger = logging.getLogger(__name__)


DEFAULT_INTERVAL_SECONDS = 60.0

# Extra time stop() waits for an in-flight tick beyond the interval itself
JOIN_MARGIN_SECONDS = 5.0

QuerySource = Union[FeedQuery, Callable[[], FeedQuery]]


class FeedFetcher(Protocol):
    """Anything that can fetch a feed query."""

    def fetch(self, query: FeedQuery) -> FetchResult:
        ...


class SchedulerStatus(str, Enum):
    """Lifecycle of a PollScheduler."""
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class PollState:
    """Mutable poll state owned by the scheduler.

    Attributes:
        records: Records from the latest successful poll, in feed order
        last_poll_error: Error from the most recent failed poll, if any
        is_running: Whether the scheduler is polling
        last_success_at: Time of the latest successful poll
        poll_count: Number of completed polls
        failure_count: Number of failed polls
    """
    records: tuple[EarthquakeRecord, ...] = field(default_factory=tuple)
    last_poll_error: FetchError | None = None
    is_running: bool = False
    last_success_at: datetime | None = None
    poll_count: int = 0
    failure_count: int = 0


@dataclass
class TickResult:
    """Result of one poll cycle.

    Attributes:
        fetched: Records returned by the feed
        notify_result: Notifier outcome, None if no notifier or fetch failed
        error: Fetch error, if the fetch failed
        unexpected_error: Description of an unexpected exception in the tick
        skipped: Another tick was still running
        discarded: The scheduler was stopped before the result was fully applied
    """
    fetched: int = 0
    notify_result: NotifyResult | None = None
    error: FetchError | None = None
    unexpected_error: str | None = None
    skipped: bool = False
    discarded: bool = False

    @property
    def success(self) -> bool:
        return (
            self.error is None
            and self.unexpected_error is None
            and not self.skipped
            and not self.discarded
        )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PollScheduler:
    """Polls the feed on a fixed interval on a background thread.

    `start()` polls immediately and then waits `interval_seconds` after each
    poll finishes. Ticks never overlap. `stop()` cancels the pending wait and
    joins the worker. A fetch or dispatch already in flight when stop() is
    called runs to completion, but nothing after it is applied or sent.
    """

    def __init__(
        self,
        feed_client: FeedFetcher,
        query: QuerySource,
        notifier: ThresholdNotifier | None = None,
        selection: SelectionStore | None = None,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        join_timeout: float | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize scheduler.

        Args:
            feed_client: Fetches the feed
            query: Fixed query, or a callable building one per tick
            notifier: Threshold notifier (None to poll without notifications)
            selection: Selection store to keep in sync with the records
            interval_seconds: Delay between polls
            join_timeout: How long stop() waits for the worker
                (default: interval plus a margin)
            clock: Current-time source for PollState timestamps
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")

        self.feed_client = feed_client
        self.query = query
        self.notifier = notifier
        self.selection = selection
        self.interval_seconds = interval_seconds
        self.join_timeout = (
            join_timeout if join_timeout is not None
            else interval_seconds + JOIN_MARGIN_SECONDS
        )
        self.clock = clock

        self._status = SchedulerStatus.IDLE
        self._state = PollState()
        self._generation = 0
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

        self._lifecycle_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._tick_lock = threading.Lock()

    @property
    def status(self) -> SchedulerStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._status is SchedulerStatus.RUNNING

    @property
    def state(self) -> PollState:
        """Snapshot copy of the current PollState."""
        with self._state_lock:
            return replace(self._state)

    @property
    def records(self) -> tuple[EarthquakeRecord, ...]:
        with self._state_lock:
            return self._state.records

    @property
    def last_poll_error(self) -> FetchError | None:
        with self._state_lock:
            return self._state.last_poll_error

    def start(self) -> None:
        """Start polling. No-op if already running."""
        with self._lifecycle_lock:
            if self._status is SchedulerStatus.RUNNING:
                logger.debug("Scheduler already running")
                return

            stop_event = threading.Event()
            self._stop_event = stop_event

            with self._state_lock:
                self._generation += 1
                generation = self._generation
                self._state = PollState(is_running=True)

            self._status = SchedulerStatus.RUNNING
            self._thread = threading.Thread(
                target=self._run,
                args=(stop_event, generation),
                name="quake-poller",
                daemon=True,
            )
            self._thread.start()

        logger.info("Started polling every %ss", self.interval_seconds)

    def stop(self) -> None:
        """Stop polling. No-op if idle or already stopped.

        When this returns, no further poll will run or be applied.
        """
        with self._lifecycle_lock:
            if self._status is not SchedulerStatus.RUNNING:
                return

            self._status = SchedulerStatus.STOPPED
            self._stop_event.set()
            thread = self._thread
            self._thread = None

            with self._state_lock:
                # Invalidates any fetch still in flight
                self._generation += 1
                self._state.is_running = False

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.join_timeout)
            if thread.is_alive():
                logger.warning("Poll worker still busy after stop; it will exit after its current request")

        logger.info("Stopped polling")

    def tick(self) -> TickResult:
        """Run one poll cycle now, on the calling thread."""
        with self._state_lock:
            generation = self._generation
        return self._tick(generation)

    def _run(self, stop_event: threading.Event, generation: int) -> None:
        """Worker loop: poll, then wait for the interval or a stop."""
        while not stop_event.is_set():
            self._tick(generation)
            if stop_event.wait(self.interval_seconds):
                break

    def _resolve_query(self) -> FeedQuery:
        if callable(self.query):
            return self.query()
        return self.query

    def _tick(self, generation: int) -> TickResult:
        if not self._tick_lock.acquire(blocking=False):
            logger.info("Previous poll still running, skipping tick")
            return TickResult(skipped=True)

        try:
            return self._poll(generation)
        except Exception as e:
            # A tick must never kill the loop
            logger.exception("Unexpected error during poll")
            return TickResult(unexpected_error=str(e))
        finally:
            self._tick_lock.release()

    def _is_current(self, generation: int) -> bool:
        with self._state_lock:
            return generation == self._generation

    def _poll(self, generation: int) -> TickResult:
        if not self._is_current(generation):
            return TickResult(discarded=True)

        result = self.feed_client.fetch(self._resolve_query())

        with self._state_lock:
            if generation != self._generation:
                logger.info("Discarding poll result that arrived after stop")
                return TickResult(discarded=True)

            self._state.poll_count += 1

            if not result.success:
                self._state.last_poll_error = result.error
                self._state.failure_count += 1
                logger.warning(
                    "Poll failed, keeping %d previous records: %s",
                    len(self._state.records),
                    result.error,
                )
                return TickResult(error=result.error)

            self._state.records = result.records
            self._state.last_poll_error = None
            self._state.last_success_at = self.clock()

            # Records and selection change together, never after stop()
            if self.selection is not None:
                self.selection.replace_records(result.records)

        notify_result = None
        if self.notifier is not None:
            notify_result = self.notifier.notify(
                result.records,
                should_continue=lambda: self._is_current(generation),
            )

        return TickResult(
            fetched=len(result.records),
            notify_result=notify_result,
            discarded=notify_result is not None and notify_result.cancelled,
        )
