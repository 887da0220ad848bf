"""
Capped-Mint Collectible Registry - Concurrency Utilities

This module provides the read-write lock that serializes contract
invocations, together with lock contention metrics.
"""

import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from threading import RLock, Condition
from typing import Any, Dict, Set


class LockType(str, Enum):
    """Lock type enumeration."""
    READ = "read"
    WRITE = "write"


class ConcurrencyError(Exception):
    """General concurrency operation exception."""
    pass


class LockMetrics:
    """Lock performance metrics."""

    def __init__(self):
        self.acquisition_count = 0
        self.contention_count = 0
        self.timeout_count = 0
        self.total_wait_time = 0.0
        self.max_wait_time = 0.0
        self.active_locks = 0
        self.last_acquisition = None
        self.acquisitions_by_type = {LockType.READ: 0, LockType.WRITE: 0}

    def record_acquisition(self, lock_type: LockType, wait_time: float, contended: bool) -> None:
        """Record lock acquisition metrics."""
        self.acquisition_count += 1
        self.acquisitions_by_type[lock_type] += 1
        self.total_wait_time += wait_time
        self.max_wait_time = max(self.max_wait_time, wait_time)
        self.active_locks += 1
        self.last_acquisition = datetime.now(timezone.utc)

        if contended:
            self.contention_count += 1

    def record_release(self) -> None:
        self.active_locks = max(0, self.active_locks - 1)

    def get_contention_ratio(self) -> float:
        if self.acquisition_count == 0:
            return 0.0
        return self.contention_count / self.acquisition_count

    def get_average_wait_time(self) -> float:
        if self.acquisition_count == 0:
            return 0.0
        return self.total_wait_time / self.acquisition_count


class ReadWriteLock:
    """
    Writer-exclusive lock with metrics.

    Any number of readers may hold the lock together; a writer holds it
    alone. The lock is not re-entrant: a thread holding the write lock must
    not ask for the read lock.
    """

    def __init__(self, name: str = "unnamed", timeout: float = 30.0):
        self.name = name
        self.timeout = timeout
        self._lock = RLock()
        self._readers = 0
        self._writers = 0
        self._write_ready = Condition(self._lock)
        self._read_ready = Condition(self._lock)
        self._metrics = LockMetrics()
        self._lock_holders: Dict[int, LockType] = {}
        self._waiting_threads: Set[int] = set()

    @contextmanager
    def read_lock(self):
        """Acquire read lock with context manager."""
        if not self.acquire_read():
            raise ConcurrencyError(f"Timed out waiting for read lock on {self.name}")
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_lock(self):
        """Acquire write lock with context manager."""
        if not self.acquire_write():
            raise ConcurrencyError(f"Timed out waiting for write lock on {self.name}")
        try:
            yield
        finally:
            self.release_write()

    def acquire_read(self) -> bool:
        """Acquire read lock."""
        thread_id = threading.get_ident()
        start_time = time.time()
        contended = False

        with self._lock:
            if self._lock_holders.get(thread_id) == LockType.WRITE:
                raise ConcurrencyError("Thread already holds the write lock")

            self._waiting_threads.add(thread_id)

            try:
                while self._writers > 0:
                    contended = True
                    if not self._read_ready.wait(timeout=self.timeout):
                        self._metrics.timeout_count += 1
                        return False

                self._readers += 1
                self._lock_holders[thread_id] = LockType.READ

                wait_time = time.time() - start_time
                self._metrics.record_acquisition(LockType.READ, wait_time, contended)

                return True

            finally:
                self._waiting_threads.discard(thread_id)

    def release_read(self) -> None:
        """Release read lock."""
        thread_id = threading.get_ident()

        with self._lock:
            if self._lock_holders.get(thread_id) != LockType.READ:
                raise ConcurrencyError("Thread does not hold read lock")

            self._readers -= 1
            del self._lock_holders[thread_id]
            self._metrics.record_release()

            if self._readers == 0:
                self._write_ready.notify_all()

    def acquire_write(self) -> bool:
        """Acquire write lock."""
        thread_id = threading.get_ident()
        start_time = time.time()
        contended = False

        with self._lock:
            if thread_id in self._lock_holders:
                raise ConcurrencyError("Thread already holds this lock")

            self._waiting_threads.add(thread_id)

            try:
                while self._readers > 0 or self._writers > 0:
                    contended = True
                    if not self._write_ready.wait(timeout=self.timeout):
                        self._metrics.timeout_count += 1
                        return False

                self._writers += 1
                self._lock_holders[thread_id] = LockType.WRITE

                wait_time = time.time() - start_time
                self._metrics.record_acquisition(LockType.WRITE, wait_time, contended)

                return True

            finally:
                self._waiting_threads.discard(thread_id)

    def release_write(self) -> None:
        """Release write lock."""
        thread_id = threading.get_ident()

        with self._lock:
            if self._lock_holders.get(thread_id) != LockType.WRITE:
                raise ConcurrencyError("Thread does not hold write lock")

            self._writers -= 1
            del self._lock_holders[thread_id]
            self._metrics.record_release()

            self._read_ready.notify_all()
            self._write_ready.notify_all()

    def get_metrics(self) -> Dict[str, Any]:
        """Get lock performance metrics."""
        with self._lock:
            return {
                'name': self.name,
                'readers': self._readers,
                'writers': self._writers,
                'waiting_threads': len(self._waiting_threads),
                'acquisition_count': self._metrics.acquisition_count,
                'read_acquisitions': self._metrics.acquisitions_by_type[LockType.READ],
                'write_acquisitions': self._metrics.acquisitions_by_type[LockType.WRITE],
                'contention_count': self._metrics.contention_count,
                'timeout_count': self._metrics.timeout_count,
                'contention_ratio': self._metrics.get_contention_ratio(),
                'average_wait_time': self._metrics.get_average_wait_time(),
                'max_wait_time': self._metrics.max_wait_time,
                'active_locks': self._metrics.active_locks,
                'last_acquisition': self._metrics.last_acquisition
            }
