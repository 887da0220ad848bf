"""
Unit tests for concurrency utilities.
"""

import pytest
import threading
import time

from registry.concurrency import ConcurrencyError, ReadWriteLock


class TestReadWriteLock:
    """Test read-write lock implementation."""

    @pytest.fixture
    def rw_lock(self):
        """Create ReadWriteLock instance."""
        return ReadWriteLock("test", timeout=1.0)

    def test_read_lock_basic(self, rw_lock):
        """Test basic read lock functionality."""
        with rw_lock.read_lock():
            assert rw_lock.get_metrics()["readers"] == 1

        assert rw_lock.get_metrics()["readers"] == 0

    def test_write_lock_basic(self, rw_lock):
        """Test basic write lock functionality."""
        with rw_lock.write_lock():
            assert rw_lock.get_metrics()["writers"] == 1

        assert rw_lock.get_metrics()["writers"] == 0

    def test_multiple_reader_threads(self, rw_lock):
        """Test multiple concurrent readers."""
        inside = []
        peak = []
        guard = threading.Lock()

        def reader():
            with rw_lock.read_lock():
                with guard:
                    inside.append(1)
                    peak.append(len(inside))
                time.sleep(0.1)
                with guard:
                    inside.pop()

        threads = [threading.Thread(target=reader) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(peak) == 5
        assert max(peak) > 1

    def test_writer_exclusivity_threads(self, rw_lock):
        """Test that writers never overlap."""
        results = []

        def writer(thread_id):
            with rw_lock.write_lock():
                results.append(f"writer_{thread_id}_start")
                time.sleep(0.05)
                results.append(f"writer_{thread_id}_end")

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 6
        for i in range(0, len(results), 2):
            assert results[i].endswith("_start")
            assert results[i + 1] == results[i].replace("_start", "_end")

    def test_write_timeout(self):
        """Test a blocked writer gives up after the timeout."""
        rw_lock = ReadWriteLock("timeout", timeout=0.1)
        holding = threading.Event()
        done = threading.Event()

        def reader():
            with rw_lock.read_lock():
                holding.set()
                done.wait(2.0)

        thread = threading.Thread(target=reader)
        thread.start()
        holding.wait(1.0)

        try:
            with pytest.raises(ConcurrencyError):
                with rw_lock.write_lock():
                    pass
        finally:
            done.set()
            thread.join()

        assert rw_lock.get_metrics()["timeout_count"] == 1

    def test_not_reentrant(self, rw_lock):
        """Test a writer may not take the lock again."""
        with rw_lock.write_lock():
            with pytest.raises(ConcurrencyError):
                rw_lock.acquire_read()
            with pytest.raises(ConcurrencyError):
                rw_lock.acquire_write()

    def test_release_without_hold(self, rw_lock):
        """Test releasing an unheld lock is an error."""
        with pytest.raises(ConcurrencyError):
            rw_lock.release_read()
        with pytest.raises(ConcurrencyError):
            rw_lock.release_write()

    def test_metrics(self, rw_lock):
        """Test acquisitions are counted."""
        with rw_lock.read_lock():
            pass
        with rw_lock.write_lock():
            pass

        metrics = rw_lock.get_metrics()
        assert metrics["name"] == "test"
        assert metrics["acquisition_count"] == 2
        assert metrics["read_acquisitions"] == 1
        assert metrics["write_acquisitions"] == 1
        assert metrics["active_locks"] == 0
