"""Selection state for the presentation layer.

Holds the latest record list and an optional selected record. The poller
thread replaces the list while the presentation layer reads and selects,
so every access goes through a lock.
"""

import logging
import threading

from quake_watch.core.earthquake import EarthquakeRecord


logger = logging.getLogger(__name__)


class SelectionStore:
    """Current records plus the record shown in detail, if any.

    When a new record list arrives and the selected ID is no longer in it,
    the selection is cleared. If the ID is still present, the selection is
    refreshed to the newer record.
    """

    def __init__(self, records: list[EarthquakeRecord] | None = None) -> None:
        self._lock = threading.Lock()
        self._records: tuple[EarthquakeRecord, ...] = tuple(records or ())
        self._selected: EarthquakeRecord | None = None

    @property
    def records(self) -> tuple[EarthquakeRecord, ...]:
        with self._lock:
            return self._records

    def select(self, record_id: str) -> None:
        """Select the record with the given ID.

        Raises:
            KeyError: If no current record has that ID
        """
        with self._lock:
            for record in self._records:
                if record.id == record_id:
                    self._selected = record
                    return

        raise KeyError(record_id)

    def clear(self) -> None:
        with self._lock:
            self._selected = None

    def current(self) -> EarthquakeRecord | None:
        """Return the selected record, or None."""
        with self._lock:
            return self._selected

    def replace_records(self, records: list[EarthquakeRecord] | tuple[EarthquakeRecord, ...]) -> None:
        """Replace the record list wholesale after a successful poll."""
        with self._lock:
            self._records = tuple(records)

            if self._selected is None:
                return

            selected_id = self._selected.id
            for record in self._records:
                if record.id == selected_id:
                    self._selected = record
                    return

            logger.info("Selected record %s left the feed, clearing selection", selected_id)
            self._selected = None
