"""Reader/writer locks and the two-level region locking scheme."""

import contextlib
import threading
from collections.abc import Iterator


class ReaderWriterLock:
    """Writer-preferring reader/writer lock built on ``threading.Condition``.

    Re-entrancy rules:

    * a thread that already holds a read lock may read again, even while a
      writer is waiting (otherwise it would deadlock against that writer);
    * the thread holding the write lock may acquire read or write again.

    Upgrading a read lock to a write lock is not supported and raises
    ``RuntimeError``.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers: dict[int, int] = {}
        self._writer: int | None = None
        self._write_depth = 0
        self._waiting_writers = 0

    @property
    def reader_count(self) -> int:
        with self._cond:
            return sum(self._readers.values())

    @property
    def is_write_locked(self) -> bool:
        with self._cond:
            return self._writer is not None

    def held_by_current_thread(self) -> bool:
        """Check whether the calling thread holds this lock in any mode."""
        me = threading.get_ident()
        with self._cond:
            return self._writer == me or me in self._readers

    def acquire_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me or me in self._readers:
                self._readers[me] = self._readers.get(me, 0) + 1
                return
            while self._writer is not None or self._waiting_writers:
                self._cond.wait()
            self._readers[me] = 1

    def release_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            count = self._readers.get(me)
            if not count:
                raise RuntimeError("release_read() called without a held read lock")
            if count == 1:
                del self._readers[me]
                if not self._readers:
                    self._cond.notify_all()
            else:
                self._readers[me] = count - 1

    def acquire_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
                return
            if me in self._readers:
                raise RuntimeError("Cannot upgrade a read lock to a write lock")
            self._waiting_writers += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = me
            self._write_depth = 1

    def release_write(self) -> None:
        with self._cond:
            if self._writer != threading.get_ident():
                raise RuntimeError("release_write() called by a thread not holding the lock")
            self._write_depth -= 1
            if self._write_depth == 0:
                self._writer = None
                self._cond.notify_all()

    @contextlib.contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextlib.contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class RegionLockManager:
    """Master lock plus one lazily created lock per region.

    Every region operation takes the master lock for reading first and the
    region lock second, whatever the region access mode. Whole-store
    operations take only the master lock for writing and never touch a region
    lock, so they cannot form a wait cycle with region operations, and they
    never run while a region read or write is in flight. Region operations on
    different regions do not block each other.
    """

    def __init__(self) -> None:
        self._master = ReaderWriterLock()
        self._region_locks: dict[str, ReaderWriterLock] = {}
        self._table_lock = threading.Lock()

    @property
    def master(self) -> ReaderWriterLock:
        return self._master

    @property
    def region_count(self) -> int:
        return len(self._region_locks)

    def regions(self) -> list[str]:
        """Names of every region that has been locked at least once."""
        with self._table_lock:
            return list(self._region_locks)

    def get_lock(self, region: str) -> ReaderWriterLock:
        """Return the lock for ``region``, creating it on first use."""
        lock = self._region_locks.get(region)
        if lock is not None:
            return lock
        with self._table_lock:
            # Insert-if-absent; another thread may have created it meanwhile
            return self._region_locks.setdefault(region, ReaderWriterLock())

    @contextlib.contextmanager
    def read(self, region: str) -> Iterator[None]:
        """Hold the master read lock and ``region``'s read lock."""
        region_lock = self.get_lock(region)
        with self._master.read_locked(), region_lock.read_locked():
            yield

    @contextlib.contextmanager
    def write(self, region: str) -> Iterator[None]:
        """Hold the master read lock and ``region``'s write lock."""
        region_lock = self.get_lock(region)
        with self._master.read_locked(), region_lock.write_locked():
            yield

    @contextlib.contextmanager
    def write_all(self) -> Iterator[None]:
        """Hold the master write lock, excluding every region operation."""
        with self._master.write_locked():
            yield
