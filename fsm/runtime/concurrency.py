# fsm/runtime/concurrency.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional


class ReadWriteLock:
    """
    Shared/exclusive lock guarding a machine's current state.

    Any number of threads may hold the shared side at once; the exclusive side
    is held by one thread and excludes all readers from other threads. The
    thread holding the exclusive side may re-acquire either side, so callbacks
    running inside a transition can query the machine or trigger further
    events. Waiting writers block new readers so transitions are not starved.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers: Dict[int, int] = {}
        self._writer: Optional[int] = None
        self._write_depth = 0
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me or me in self._readers:
                self._readers[me] = self._readers.get(me, 0) + 1
                return
            while self._writer is not None or self._writers_waiting:
                self._cond.wait()
            self._readers[me] = 1

    def release_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            depth = self._readers.get(me)
            if not depth:
                raise RuntimeError("Cannot release a read lock that is not held")
            if depth == 1:
                del self._readers[me]
                self._cond.notify_all()
            else:
                self._readers[me] = depth - 1

    def acquire_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
                return
            self._writers_waiting += 1
            try:
                while self._writer is not None or any(ident != me for ident in self._readers):
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = me
            self._write_depth = 1

    def release_write(self) -> None:
        with self._cond:
            if self._writer != threading.get_ident():
                raise RuntimeError("Cannot release a write lock owned by another thread")
            self._write_depth -= 1
            if self._write_depth == 0:
                self._writer = None
                self._cond.notify_all()

    @contextmanager
    def shared(self) -> Iterator[None]:
        """Hold the shared (read) side for the duration of the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the exclusive (write) side for the duration of the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    def write_locked(self) -> bool:
        with self._cond:
            return self._writer is not None

    def owns_write(self) -> bool:
        """True if the calling thread holds the exclusive side."""
        with self._cond:
            return self._writer == threading.get_ident()

    def reader_count(self) -> int:
        with self._cond:
            return len(self._readers)
