"""Tests for the bounded-concurrency dispatcher."""
import threading
import time

import pytest

from colorsucker.services.dispatcher import ConcurrencyDispatcher


class OverlapCounter:
    """Records how many counted tasks run at the same time."""

    def __init__(self, hold: float = 0.02):
        self._lock = threading.Lock()
        self._hold = hold
        self.active = 0
        self.peak = 0

    def task(self, value):
        def run():
            with self._lock:
                self.active += 1
                self.peak = max(self.peak, self.active)
            time.sleep(self._hold)
            with self._lock:
                self.active -= 1
            return value
        return run


class TestConcurrencyDispatcher:
    """Tests for ConcurrencyDispatcher."""

    @pytest.mark.parametrize("workers", [1, 2, 5])
    def test_peak_never_exceeds_limit(self, workers):
        """Test at most N tasks run at once."""
        counter = OverlapCounter()
        dispatcher = ConcurrencyDispatcher(max_workers=workers)

        dispatcher.run([counter.task(i) for i in range(12)])

        assert 1 <= counter.peak <= workers
        assert dispatcher.stats.peak_active <= workers

    def test_results_in_submission_order(self):
        """Test results line up with submitted tasks."""
        dispatcher = ConcurrencyDispatcher(max_workers=3)

        results = dispatcher.run([OverlapCounter(hold=0.001 * (5 - i)).task(i) for i in range(5)])

        assert [r.index for r in results] == [0, 1, 2, 3, 4]
        assert [r.value for r in results] == [0, 1, 2, 3, 4]

    def test_exceptions_recorded(self):
        """Test a raising task is recorded, not dropped, and others still run."""
        def boom():
            raise ValueError("bad task")

        dispatcher = ConcurrencyDispatcher(max_workers=2)
        results = dispatcher.run([lambda: 1, boom, lambda: 3])

        assert len(results) == 3
        assert results[1].ok is False
        assert isinstance(results[1].error, ValueError)
        assert results[0].value == 1 and results[2].value == 3
        assert dispatcher.stats.failed == 1
        assert dispatcher.stats.completed == 3

    def test_on_complete_called_for_every_task(self):
        """Test the completion callback sees every task exactly once."""
        seen = []
        dispatcher = ConcurrencyDispatcher(max_workers=4)

        dispatcher.run([lambda i=i: i for i in range(10)], on_complete=lambda r: seen.append(r.index))

        assert sorted(seen) == list(range(10))

    def test_callback_error_does_not_stop_run(self):
        """Test a failing callback does not lose other results."""
        def callback(result):
            raise RuntimeError("callback broke")

        results = ConcurrencyDispatcher(max_workers=2).run([lambda: 1, lambda: 2], on_complete=callback)

        assert [r.value for r in results] == [1, 2]

    def test_empty(self):
        """Test an empty task list returns immediately."""
        dispatcher = ConcurrencyDispatcher()

        assert dispatcher.run([]) == []
        assert dispatcher.stats.submitted == 0

    def test_invalid_workers(self):
        with pytest.raises(ValueError):
            ConcurrencyDispatcher(max_workers=0)

    def test_reusable(self):
        """Test a dispatcher can run several batches."""
        dispatcher = ConcurrencyDispatcher(max_workers=2)

        assert len(dispatcher.run([lambda: 1])) == 1
        assert len(dispatcher.run([lambda: 1, lambda: 2])) == 2
        assert dispatcher.stats.submitted == 2
