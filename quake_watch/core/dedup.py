"""Deduplication logic.

This module decides which earthquakes have already been notified about.
The window of notified IDs is bounded and lives in memory only; a restart
starts with an empty window.
"""

from collections import OrderedDict

from quake_watch.core.earthquake import EarthquakeRecord


def filter_already_notified(
    records: list[EarthquakeRecord],
    notified_ids: "NotifiedIdWindow | set[str]",
) -> list[EarthquakeRecord]:
    """Filter out records that have already been notified.

    Pure function.

    Args:
        records: Records to filter
        notified_ids: IDs that have already been notified

    Returns:
        Records that haven't been notified yet, in input order
    """
    return [r for r in records if r.id not in notified_ids]


class NotifiedIdWindow:
    """Bounded, insertion-ordered set of notified record IDs.

    Holds at most `max_size` IDs; adding beyond that evicts the oldest.
    A `max_size` of 0 disables deduplication: nothing is remembered and
    membership checks are always False.
    """

    def __init__(self, max_size: int) -> None:
        if max_size < 0:
            raise ValueError(f"max_size must be >= 0, got {max_size}")
        self.max_size = max_size
        self._ids: OrderedDict[str, None] = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self.max_size > 0

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, record_id: str) -> None:
        """Remember an ID, evicting the oldest if the window is full.

        Re-adding an ID already in the window moves it to the newest slot.
        """
        if not self.enabled:
            return

        if record_id in self._ids:
            self._ids.move_to_end(record_id)
            return

        self._ids[record_id] = None
        while len(self._ids) > self.max_size:
            self._ids.popitem(last=False)
