"""Tests for the ThresholdNotifier.

Uses a recording fake sink in place of a real push service.
"""

import logging
from unittest.mock import Mock

import pytest

from quake_watch.core.earthquake import EarthquakeRecord
from quake_watch.core.errors import DispatchError, DispatchErrorKind, DispatchResult
from quake_watch.notifier import ThresholdNotifier


class RecordingSink:
    """Sink that records every schedule() call."""

    def __init__(self, fail_titles_for=()):
        self.calls = []
        self.fail_for = set(fail_titles_for)

    def schedule(self, title, body, payload):
        self.calls.append((title, body, payload))
        record_id = payload.get("quake", {}).get("id")
        if record_id in self.fail_for:
            return DispatchResult(error=DispatchError(
                kind=DispatchErrorKind.SINK_UNAVAILABLE,
                detail="boom",
            ))
        return DispatchResult(notification_id=f"n-{len(self.calls)}")

    def dispatched_ids(self):
        return [payload["quake"]["id"] for _, _, payload in self.calls]


def _record(record_id, magnitude, place="Test Location"):
    return EarthquakeRecord(
        id=record_id,
        magnitude=magnitude,
        place=place,
        occurred_at_ms=1735732800000,
        coordinates=(40.0, 9.0, 10.0),
    )


@pytest.fixture
def sink():
    return RecordingSink()


class TestEvaluate:
    """Tests for ThresholdNotifier.evaluate()."""

    def test_includes_records_at_or_above_threshold(self, sink):
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=0)
        records = [_record("a", 4.9), _record("b", 5.0), _record("c", 7.2)]

        result = notifier.evaluate(records)

        assert [r.id for r in result] == ["b", "c"]

    def test_absent_magnitude_excluded_even_at_zero_threshold(self, sink):
        notifier = ThresholdNotifier(sink, threshold=0.0, dedup_window_size=0)

        result = notifier.evaluate([_record("a", None), _record("b", 0.0)])

        assert [r.id for r in result] == ["b"]

    def test_threshold_argument_overrides_default(self, sink):
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=0)

        result = notifier.evaluate([_record("a", 3.5)], threshold=3.0)

        assert [r.id for r in result] == ["a"]

    def test_evaluate_has_no_side_effects(self, sink):
        """Evaluating alone neither dispatches nor marks records notified."""
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=10)
        records = [_record("a", 6.0)]

        notifier.evaluate(records)

        assert sink.calls == []
        assert notifier.evaluate(records) == records


class TestDispatch:
    """Tests for ThresholdNotifier.dispatch()."""

    def test_formats_alert(self, sink):
        notifier = ThresholdNotifier(sink)

        result = notifier.dispatch(_record("eq1", 5.6, place="Near Asmara"))

        assert result.success is True
        title, body, payload = sink.calls[0]
        assert title == "Earthquake Alert!"
        assert body == "Magnitude: 5.6 at Near Asmara"
        assert payload["quake"]["id"] == "eq1"

    def test_sink_exception_becomes_failed_result(self):
        sink = Mock()
        sink.schedule.side_effect = RuntimeError("sink exploded")
        notifier = ThresholdNotifier(sink)

        result = notifier.dispatch(_record("eq1", 6.0))

        assert result.success is False
        assert result.error.kind is DispatchErrorKind.SINK_UNAVAILABLE
        assert "sink exploded" in result.error.detail


class TestNotify:
    """Tests for ThresholdNotifier.notify()."""

    def test_scenario_two_records_one_dispatch(self, sink):
        """Magnitudes 4.2 and 5.6 against 5.0: exactly one dispatch."""
        notifier = ThresholdNotifier(sink, threshold=5.0)
        records = [_record("eq1", 4.2), _record("eq2", 5.6)]

        assert [r.id for r in notifier.evaluate(records)] == ["eq2"]

        result = notifier.notify(records)

        assert sink.dispatched_ids() == ["eq2"]
        assert len(result.dispatched) == 1
        assert result.failed == []
        assert result.evaluated == 2

    def test_dedup_prevents_repeat_dispatch(self, sink):
        """With a window, the same id is dispatched once across calls."""
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=3)
        records = [_record("eq1", 6.0)]

        for _ in range(5):
            notifier.notify(records)

        assert sink.dispatched_ids() == ["eq1"]

    def test_revised_record_with_same_id_not_renotified(self, sink):
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=3)

        notifier.notify([_record("eq1", 5.1)])
        notifier.notify([_record("eq1", 6.3, place="Revised")])

        assert sink.dispatched_ids() == ["eq1"]

    def test_zero_window_renotifies_every_call(self, sink):
        """dedup_window_size=0 keeps the notify-every-poll behaviour."""
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=0)
        records = [_record("eq1", 6.0)]

        for _ in range(3):
            notifier.notify(records)

        assert sink.dispatched_ids() == ["eq1", "eq1", "eq1"]

    def test_evicted_id_can_notify_again(self, sink):
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=1)

        notifier.notify([_record("eq1", 6.0)])
        notifier.notify([_record("eq2", 6.0)])
        notifier.notify([_record("eq1", 6.0)])

        assert sink.dispatched_ids() == ["eq1", "eq2", "eq1"]

    def test_failed_dispatch_does_not_block_others(self):
        """One failing dispatch still lets the rest through."""
        sink = RecordingSink(fail_titles_for={"eq1"})
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=10)
        records = [_record("eq1", 6.0), _record("eq2", 6.5), _record("eq3", 7.0)]

        result = notifier.notify(records)

        assert sink.dispatched_ids() == ["eq1", "eq2", "eq3"]
        assert [o.record.id for o in result.failed] == ["eq1"]
        assert [o.record.id for o in result.dispatched] == ["eq2", "eq3"]
        assert result.success is False

    def test_failed_dispatch_is_retried_next_call(self):
        sink = RecordingSink(fail_titles_for={"eq1"})
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=10)

        notifier.notify([_record("eq1", 6.0)])
        sink.fail_for.clear()
        notifier.notify([_record("eq1", 6.0)])
        notifier.notify([_record("eq1", 6.0)])

        assert sink.dispatched_ids() == ["eq1", "eq1"]

    def test_summary(self, sink):
        notifier = ThresholdNotifier(sink, threshold=5.0)

        result = notifier.notify([_record("eq1", 4.0), _record("eq2", 5.5)])

        assert result.summary == (
            "Evaluated 2 earthquakes, 1 over threshold, "
            "1 notifications sent, 0 failed"
        )

    def test_should_continue_false_stops_dispatching(self, sink):
        """A pass ends before the next dispatch once it is told to stop."""
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=10)
        records = [_record("eq1", 6.0), _record("eq2", 6.5), _record("eq3", 7.0)]
        allowed = iter([True, False])

        result = notifier.notify(records, should_continue=lambda: next(allowed))

        assert sink.dispatched_ids() == ["eq1"]
        assert result.cancelled is True
        assert "eq2" not in notifier.notified

    def test_should_continue_true_sends_all(self, sink):
        notifier = ThresholdNotifier(sink, threshold=5.0)

        result = notifier.notify([_record("eq1", 6.0), _record("eq2", 6.5)], should_continue=lambda: True)

        assert result.cancelled is False
        assert len(result.dispatched) == 2

    def test_warns_when_window_smaller_than_batch(self, sink, caplog):
        """A window too small for one poll's alerts is reported."""
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=1)

        with caplog.at_level(logging.WARNING, logger="quake_watch.notifier"):
            notifier.notify([_record("eq1", 6.0), _record("eq2", 6.5)])

        assert "dedup window holds 1" in caplog.text

    def test_no_window_warning_when_dedup_disabled(self, sink, caplog):
        notifier = ThresholdNotifier(sink, threshold=5.0, dedup_window_size=0)

        with caplog.at_level(logging.WARNING, logger="quake_watch.notifier"):
            notifier.notify([_record("eq1", 6.0), _record("eq2", 6.5)])

        assert "dedup window" not in caplog.text
