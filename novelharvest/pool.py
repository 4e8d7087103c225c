from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Sequence

from .collector import ResultChannel
from .models import ChapterLocator, ChapterResult


class PermitPool:
    """Counting permit pool with a fixed capacity.

    ``in_use`` and ``peak`` are tracked so callers can verify the bound.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("Permit pool capacity must be a positive integer.")
        self.capacity = capacity
        self._semaphore = threading.BoundedSemaphore(capacity)
        self._lock = threading.Lock()
        self._in_use = 0
        self._peak = 0

    @property
    def in_use(self) -> int:
        with self._lock:
            return self._in_use

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak

    def acquire(self) -> None:
        self._semaphore.acquire()
        with self._lock:
            self._in_use += 1
            self._peak = max(self._peak, self._in_use)

    def release(self) -> None:
        with self._lock:
            self._in_use -= 1
        self._semaphore.release()

    @contextmanager
    def held(self) -> Iterator[None]:
        self.acquire()
        try:
            yield
        finally:
            self.release()


def _run_unit(
    locator: ChapterLocator,
    work: Callable[[ChapterLocator], ChapterResult],
    channel: ResultChannel,
) -> None:
    try:
        channel.send(work(locator))
    finally:
        channel.producer_done()


def dispatch(
    locators: Sequence[ChapterLocator],
    work: Callable[[ChapterLocator], ChapterResult],
    channel: ResultChannel,
) -> list[threading.Thread]:
    """Start one daemon thread per locator; permits are taken inside ``work``."""
    threads: list[threading.Thread] = []
    for locator in locators:
        thread = threading.Thread(
            target=_run_unit,
            args=(locator, work, channel),
            name=f"chapter-{locator.index}",
            daemon=True,
        )
        thread.start()
        threads.append(thread)
    return threads
