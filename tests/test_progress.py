"""Tests for parse progress reporting."""
import logging
from datetime import datetime, timedelta

from obostream.storage.progress import (
    DEFAULT_PROGRESS_INTERVAL,
    LoggingProgressObserver,
    ParseProgress,
    ProgressObserver,
    ProgressRecorder,
    ProgressThrottle,
)


class FakeClock:
    def __init__(self, *times):
        self.times = list(times)

    def __call__(self):
        return self.times.pop(0)


# ========== ProgressThrottle Tests ==========

class TestProgressThrottle:
    def test_default_interval(self):
        assert DEFAULT_PROGRESS_INTERVAL == 0.25
        assert ProgressThrottle(None).interval_seconds == 0.25

    def test_disabled_without_observer(self):
        throttle = ProgressThrottle(None)
        assert not throttle.enabled
        assert throttle.maybe_update(10, 1) is False
        throttle.finish(10, 1)
        assert throttle.reports == 0

    def test_first_update_always_reported(self):
        recorder = ProgressRecorder()
        throttle = ProgressThrottle(recorder, 0.25, clock=FakeClock(100.0))
        assert throttle.maybe_update(5, 0) is True
        assert recorder.history == [(5, 0)]

    def test_updates_within_interval_dropped(self):
        recorder = ProgressRecorder()
        throttle = ProgressThrottle(recorder, 0.25, clock=FakeClock(0.0, 0.1, 0.25, 0.26))
        results = [throttle.maybe_update(i, i) for i in range(4)]
        assert results == [True, False, False, True]
        assert recorder.history == [(0, 0), (3, 3)]

    def test_due_starts_new_interval(self):
        recorder = ProgressRecorder()
        throttle = ProgressThrottle(recorder, 0.25, clock=FakeClock(0.0, 0.1, 0.3))
        assert [throttle.due(), throttle.due(), throttle.due()] == [True, False, True]
        assert recorder.history == []

    def test_finish_is_unthrottled(self):
        recorder = ProgressRecorder()
        throttle = ProgressThrottle(recorder, 10.0, clock=FakeClock(0.0))
        throttle.maybe_update(1, 0)
        throttle.finish(100, 4)
        assert recorder.history[-1] == (100, 4)
        assert throttle.reports == 2

    def test_init_forwarded(self):
        recorder = ProgressRecorder()
        ProgressThrottle(recorder).init(1234)
        assert recorder.init_calls == 1
        assert recorder.progress.total_bytes == 1234

    def test_observer_errors_swallowed(self):
        class Broken:
            def init(self, total_bytes):
                raise RuntimeError("init")

            def update(self, processed_bytes, terms):
                raise RuntimeError("update")

        throttle = ProgressThrottle(Broken(), 0.0, clock=FakeClock(0.0))
        throttle.init(1)
        assert throttle.maybe_update(1, 1) is True
        throttle.finish(1, 1)
        assert throttle.reports == 2


# ========== ParseProgress Tests ==========

class TestParseProgress:
    def test_byte_progress(self):
        progress = ParseProgress(total_bytes=200, processed_bytes=50)
        assert progress.byte_progress == 25.0

    def test_byte_progress_zero_total(self):
        assert ParseProgress().byte_progress == 0.0

    def test_elapsed(self):
        start = datetime(2024, 1, 1, 12, 0, 0)
        progress = ParseProgress(started_at=start, updated_at=start + timedelta(seconds=3))
        assert progress.elapsed_seconds == 3.0
        assert ParseProgress().elapsed_seconds == 0.0

    def test_to_dict(self):
        d = ParseProgress(total_bytes=10, processed_bytes=5, terms=2).to_dict()
        assert d["byte_progress"] == 50.0
        assert d["terms"] == 2
        assert d["started_at"] is None


# ========== Observer Tests ==========

class TestObservers:
    def test_recorder_is_observer(self):
        assert isinstance(ProgressRecorder(), ProgressObserver)
        assert isinstance(LoggingProgressObserver(), ProgressObserver)

    def test_recorder_tracks_latest(self):
        recorder = ProgressRecorder()
        recorder.init(100)
        recorder.update(40, 3)
        recorder.update(100, 9)
        assert recorder.progress.processed_bytes == 100
        assert recorder.progress.terms == 9
        assert recorder.progress.byte_progress == 100.0
        assert recorder.history == [(40, 3), (100, 9)]

    def test_recorder_init_resets(self):
        recorder = ProgressRecorder()
        recorder.init(10)
        recorder.update(5, 1)
        recorder.init(20)
        assert recorder.history == []
        assert recorder.progress.total_bytes == 20

    def test_logging_observer(self, caplog):
        observer = LoggingProgressObserver("go.obo")
        with caplog.at_level(logging.INFO, logger="obostream.storage.progress"):
            observer.init(200)
            observer.update(50, 12)
        assert "go.obo (200 bytes)" in caplog.text
        assert "25.0% read, 12 terms" in caplog.text

    def test_logging_observer_unknown_size(self, caplog):
        observer = LoggingProgressObserver()
        with caplog.at_level(logging.INFO, logger="obostream.storage.progress"):
            observer.init(0)
            observer.update(50, 1)
        assert "50 bytes read, 1 terms" in caplog.text
