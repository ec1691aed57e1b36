"""
Commodity Asset Ledger - Concurrency Utilities

Registry-wide read/write lock with contention metrics. Every state transition
holds the write lock for its whole duration, reads share the read lock.
"""

import threading
import time
from collections import deque
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from threading import Condition, RLock
from typing import Any, Dict, Optional


class LockType(str, Enum):
    """Lock type enumeration."""
    READ = "read"
    WRITE = "write"


class ConcurrencyError(Exception):
    """General concurrency operation exception."""
    pass


class LockTimeoutError(ConcurrencyError):
    """Lock could not be acquired in time."""
    pass


class LockMetrics:
    """Lock performance metrics."""

    def __init__(self):
        self.acquisition_count = 0
        self.contention_count = 0
        self.total_wait_time = 0.0
        self.max_wait_time = 0.0
        self.last_acquisition: Optional[datetime] = None
        self.lock_history = deque(maxlen=100)

    def record_acquisition(self, lock_type: LockType, wait_time: float, contended: bool) -> None:
        self.acquisition_count += 1
        self.total_wait_time += wait_time
        self.max_wait_time = max(self.max_wait_time, wait_time)
        self.last_acquisition = datetime.utcnow()

        if contended:
            self.contention_count += 1

        self.lock_history.append({
            'timestamp': self.last_acquisition,
            'lock_type': lock_type.value,
            'wait_time': wait_time,
            'contended': contended,
            'thread_id': threading.get_ident()
        })

    def get_contention_ratio(self) -> float:
        if self.acquisition_count == 0:
            return 0.0
        return self.contention_count / self.acquisition_count

    def get_average_wait_time(self) -> float:
        if self.acquisition_count == 0:
            return 0.0
        return self.total_wait_time / self.acquisition_count


class ReadWriteLock:
    """Writer-exclusive read/write lock.

    The writing thread may re-enter the write lock and take read locks while
    holding it.
    """

    def __init__(self, name: str = "unnamed", timeout: float = 30.0):
        self.name = name
        self.timeout = timeout
        self._lock = RLock()
        self._ready = Condition(self._lock)
        self._readers = 0
        self._writer: Optional[int] = None
        self._write_depth = 0
        self._metrics = LockMetrics()

    @contextmanager
    def read_lock(self):
        """Acquire read lock with context manager."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_lock(self):
        """Acquire write lock with context manager."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    def _wait(self, predicate, lock_type: LockType) -> None:
        start_time = time.time()
        contended = False

        while not predicate():
            contended = True
            remaining = self.timeout - (time.time() - start_time)
            if remaining <= 0 or not self._ready.wait(timeout=remaining):
                if not predicate():
                    raise LockTimeoutError(
                        f"Timed out acquiring {lock_type.value} lock on {self.name}"
                    )

        self._metrics.record_acquisition(lock_type, time.time() - start_time, contended)

    def acquire_read(self) -> None:
        thread_id = threading.get_ident()

        with self._lock:
            if self._writer == thread_id:
                self._readers += 1
                return

            self._wait(lambda: self._writer is None, LockType.READ)
            self._readers += 1

    def release_read(self) -> None:
        with self._lock:
            if self._readers <= 0:
                raise ConcurrencyError("Read lock released without being held")

            self._readers -= 1
            if self._readers == 0:
                self._ready.notify_all()

    def acquire_write(self) -> None:
        thread_id = threading.get_ident()

        with self._lock:
            if self._writer == thread_id:
                self._write_depth += 1
                return

            self._wait(lambda: self._writer is None and self._readers == 0, LockType.WRITE)
            self._writer = thread_id
            self._write_depth = 1

    def release_write(self) -> None:
        with self._lock:
            if self._writer != threading.get_ident():
                raise ConcurrencyError("Thread does not hold write lock")

            self._write_depth -= 1
            if self._write_depth == 0:
                self._writer = None
                self._ready.notify_all()

    def get_metrics(self) -> Dict[str, Any]:
        """Get lock performance metrics."""
        with self._lock:
            return {
                'name': self.name,
                'readers': self._readers,
                'writer_active': self._writer is not None,
                'acquisition_count': self._metrics.acquisition_count,
                'contention_count': self._metrics.contention_count,
                'contention_ratio': self._metrics.get_contention_ratio(),
                'average_wait_time': self._metrics.get_average_wait_time(),
                'max_wait_time': self._metrics.max_wait_time,
                'last_acquisition': self._metrics.last_acquisition
            }
