from __future__ import annotations

import enum
import queue
import threading
from typing import TYPE_CHECKING, Optional, Union

from .models import ChapterResult, CollectionOutcome

if TYPE_CHECKING:
    from .ui import ConsoleUI


class ChannelSignal(enum.Enum):
    TIMED_OUT = "timed_out"
    CLOSED = "closed"


_CLOSE = object()


class ResultChannel:
    """Multi-producer, single-consumer queue that closes when every producer is done."""

    def __init__(self, producers: int) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._lock = threading.Lock()
        self._remaining = producers
        self._closed = False
        if producers <= 0:
            self._queue.put(_CLOSE)

    def send(self, item: ChapterResult) -> None:
        self._queue.put(item)

    def producer_done(self) -> None:
        with self._lock:
            self._remaining -= 1
            last = self._remaining == 0
        if last:
            self._queue.put(_CLOSE)

    def receive(self, timeout: float) -> Union[ChapterResult, ChannelSignal]:
        if self._closed:
            return ChannelSignal.CLOSED
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return ChannelSignal.TIMED_OUT
        if item is _CLOSE:
            self._closed = True
            return ChannelSignal.CLOSED
        return item  # type: ignore[return-value]


class StallPolicy:
    """Tracks cumulative wait time and decides when to stop waiting."""

    def __init__(self, receive_timeout: float = 30.0, stall_ceiling: float = 300.0) -> None:
        if receive_timeout <= 0 or stall_ceiling <= 0:
            raise ValueError("Receive timeout and stall ceiling must be positive.")
        self.receive_timeout = receive_timeout
        self.stall_ceiling = stall_ceiling
        self.received = 0
        self.stalled_for = 0.0

    def record_received(self) -> None:
        self.received += 1

    def record_timeout(self) -> bool:
        """Account for one timed-out receive. Returns True once the ceiling is exceeded."""
        self.stalled_for += self.receive_timeout
        return self.exhausted

    @property
    def exhausted(self) -> bool:
        return self.stalled_for > self.stall_ceiling


def collect(
    channel: ResultChannel,
    expected_count: int,
    policy: StallPolicy,
    *,
    ui: Optional["ConsoleUI"] = None,
) -> CollectionOutcome:
    results: list[ChapterResult] = []

    while len(results) < expected_count:
        item = channel.receive(policy.receive_timeout)

        if item is ChannelSignal.CLOSED:
            if ui:
                ui.log_event(
                    f"Result channel closed after {len(results)}/{expected_count} chapters.",
                    level="warning",
                )
            return CollectionOutcome(results=results, complete=False, reason="closed")

        if item is ChannelSignal.TIMED_OUT:
            gave_up = policy.record_timeout()
            if ui:
                ui.log_event(
                    f"Waiting for chapters: {len(results)}/{expected_count} received, "
                    f"stalled {policy.stalled_for:.0f}s of {policy.stall_ceiling:.0f}s.",
                    level="muted",
                )
            if gave_up:
                if ui:
                    ui.log_event(
                        f"Gave up waiting after {policy.stalled_for:.0f}s; "
                        f"{expected_count - len(results)} chapters still outstanding.",
                        level="warning",
                    )
                return CollectionOutcome(results=results, complete=False, reason="stalled")
            continue

        results.append(item)
        policy.record_received()
        if ui:
            _log_result(ui, item, len(results), expected_count)
            ui.update_progress(_progress_line(len(results), expected_count))

    if ui:
        ui.update_progress(None)
    return CollectionOutcome(results=results, complete=True, reason="complete")


def _log_result(ui: "ConsoleUI", result: ChapterResult, received: int, expected: int) -> None:
    position = f"[{received}/{expected}]"
    if result.success:
        ui.log_event(
            f"{position} Chapter {result.index}: {result.title} ({result.duration:.2f}s)",
            level="success",
        )
    else:
        ui.log_event(
            f"{position} Chapter {result.index} failed: {result.error} ({result.duration:.2f}s)",
            level="error",
        )


def _progress_line(received: int, expected: int, width: int = 24) -> str:
    fraction = received / expected if expected else 1.0
    filled = int(fraction * width)
    bar = "#" * filled + "-" * (width - filled)
    return f"[{bar}] {fraction * 100:6.2f}% ({received}/{expected})"
