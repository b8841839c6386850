"""Tests for the timing store."""

import logging

from agency_bench.metrics.timing import TimingStore


class TestTimers:
    """Test timer start/stop behaviour."""

    def test_stop_records_elapsed_time(self, fake_clock):
        """Should record elapsed milliseconds between start and stop."""
        store = TimingStore(clock=fake_clock)
        store.start_timer("t1")
        fake_clock.advance(90)

        measurement = store.stop_timer("t1")

        assert measurement is not None
        assert measurement.duration_ms == 90_000
        assert measurement.duration_sec == 90.0
        assert measurement.duration_min == 1.5
        assert measurement.phase == "total"

    def test_stop_without_start_returns_none_and_warns(self, caplog):
        """A missing timer is a logged warning, not an exception."""
        store = TimingStore()

        with caplog.at_level(logging.WARNING, logger="agency_bench.metrics.timing"):
            assert store.stop_timer("ghost", "agency") is None

        assert "ghost:agency" in caplog.text
        assert store.measurements == []

    def test_timer_is_removed_after_stop(self, fake_clock):
        """Stopping twice only records once."""
        store = TimingStore(clock=fake_clock)
        store.start_timer("t1")
        store.stop_timer("t1")

        assert store.stop_timer("t1") is None
        assert len(store.measurements) == 1

    def test_phases_are_independent(self, fake_clock):
        """Timers are keyed by task and phase."""
        store = TimingStore(clock=fake_clock)
        store.start_timer("t1", "total")
        store.start_timer("t1", "agency")
        fake_clock.advance(10)
        store.stop_timer("t1", "agency")
        fake_clock.advance(5)
        store.stop_timer("t1", "total")

        by_phase = {m.phase: m.duration_ms for m in store.get_task_measurements("t1")}
        assert by_phase == {"agency": 10_000, "total": 15_000}
        assert store.get_completion_time("t1").duration_ms == 15_000

    def test_discard_timers_drops_running_timers(self, fake_clock):
        store = TimingStore(clock=fake_clock)
        store.start_timer("t1", "total")
        store.start_timer("t1", "agency")
        store.start_timer("t2", "total")

        store.discard_timers("t1")

        assert not store.has_timer("t1", "total")
        assert not store.has_timer("t1", "agency")
        assert store.has_timer("t2", "total")


class TestTimingSummary:
    """Test completion-time statistics."""

    def test_summary_is_none_without_totals(self, fake_clock):
        """Only 'total' measurements count towards the summary."""
        store = TimingStore(clock=fake_clock)
        store.start_timer("t1", "agency")
        fake_clock.advance(1)
        store.stop_timer("t1", "agency")

        assert store.get_summary() is None

    def test_summary_statistics(self, fake_clock):
        """Should compute average, extremes and throughput."""
        store = TimingStore(clock=fake_clock)
        for task_id, minutes in (("a", 10), ("b", 20), ("c", 30)):
            store.start_timer(task_id)
            fake_clock.advance(minutes * 60)
            store.stop_timer(task_id)

        summary = store.get_summary()

        assert summary["total_tasks"] == 3
        assert summary["avg_completion_time_ms"] == 1_200_000
        assert summary["min_completion_time_ms"] == 600_000
        assert summary["max_completion_time_ms"] == 1_800_000
        assert summary["avg_completion_time_min"] == 20.0
        # 3 tasks in one hour of summed work
        assert summary["throughput_per_hour"] == 3.0

    def test_zero_duration_has_zero_throughput(self, fake_clock):
        store = TimingStore(clock=fake_clock)
        store.start_timer("a")
        store.stop_timer("a")

        assert store.get_summary()["throughput_per_hour"] == 0.0

    def test_summary_is_idempotent(self, fake_clock):
        store = TimingStore(clock=fake_clock)
        store.start_timer("a")
        fake_clock.advance(3)
        store.stop_timer("a")

        assert store.get_summary() == store.get_summary()

    def test_export_restore_and_reset(self, fake_clock):
        store = TimingStore(clock=fake_clock)
        store.start_timer("a")
        fake_clock.advance(2)
        store.stop_timer("a")
        exported = store.export()

        restored = TimingStore()
        restored.restore(exported)
        assert restored.get_summary() == store.get_summary()

        store.reset()
        assert store.measurements == []
        assert store.get_summary() is None
