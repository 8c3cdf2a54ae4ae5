"""Unit tests for threshold rules.

Pure function tests - no mocks needed.
"""

import pytest

from quake_watch.core.earthquake import EarthquakeRecord
from quake_watch.core.rules import filter_by_threshold, meets_threshold


def _record(record_id, magnitude):
    return EarthquakeRecord(
        id=record_id,
        magnitude=magnitude,
        place="Test Location",
        occurred_at_ms=1735732800000,
        coordinates=(40.0, 9.0, 10.0),
    )


class TestMeetsThreshold:
    """Tests for meets_threshold() function."""

    @pytest.mark.parametrize("magnitude,expected", [
        (4.9, False),
        (5.0, True),
        (5.1, True),
    ])
    def test_threshold_is_inclusive(self, magnitude, expected):
        """Magnitude equal to threshold qualifies."""
        assert meets_threshold(_record("eq", magnitude), 5.0) is expected

    def test_absent_magnitude_never_qualifies(self):
        """Even a threshold of 0.0 excludes an absent magnitude."""
        assert meets_threshold(_record("eq", None), 0.0) is False

    def test_negative_magnitude_with_low_threshold(self):
        """Small negative magnitudes are real values."""
        assert meets_threshold(_record("eq", -0.5), -1.0) is True


class TestFilterByThreshold:
    """Tests for filter_by_threshold() function."""

    def test_keeps_only_qualifying_records_in_order(self):
        records = [
            _record("a", 6.1),
            _record("b", 4.2),
            _record("c", None),
            _record("d", 5.0),
        ]

        result = filter_by_threshold(records, 5.0)

        assert [r.id for r in result] == ["a", "d"]

    def test_empty_input(self):
        assert filter_by_threshold([], 5.0) == []
