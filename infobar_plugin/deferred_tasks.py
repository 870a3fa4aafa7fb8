"""Single-shot deferred callbacks drained from the host's frame callback."""
from __future__ import annotations

import heapq
import itertools
import logging
import time
from typing import Callable, List, Optional, Tuple

Clock = Callable[[], float]

_LOGGER = logging.getLogger("HighLite.ExtraInfoBar.Deferred")


def epoch_ms() -> float:
    return time.time() * 1000.0


class DeferredTaskQueue:
    """Runs callbacks once their delay has elapsed, in due order.

    Nothing runs on its own: the owner calls :meth:`run_due` from the host's
    per-frame callback, so every callback executes on the host thread.
    Callbacks sharing a due time run in scheduling order.
    """

    def __init__(self, clock: Clock = epoch_ms) -> None:
        self._clock = clock
        self._counter = itertools.count()
        self._heap: List[Tuple[float, int, Callable[[], None]]] = []
        self._cancelled: set[int] = set()

    def __len__(self) -> int:
        return len(self._heap) - len(self._cancelled)

    def after(self, delay_ms: float, callback: Callable[[], None]) -> int:
        handle = next(self._counter)
        due = self._clock() + max(0.0, float(delay_ms))
        heapq.heappush(self._heap, (due, handle, callback))
        return handle

    def cancel(self, handle: int) -> None:
        if any(entry[1] == handle for entry in self._heap):
            self._cancelled.add(handle)

    def clear(self) -> None:
        self._heap.clear()
        self._cancelled.clear()

    def next_due(self) -> Optional[float]:
        for due, handle, _callback in sorted(self._heap):
            if handle not in self._cancelled:
                return due
        return None

    def run_due(self, now: Optional[float] = None) -> int:
        """Run every callback due at ``now``; returns how many ran."""
        current = self._clock() if now is None else now
        ran = 0
        while self._heap and self._heap[0][0] <= current:
            _due, handle, callback = heapq.heappop(self._heap)
            if handle in self._cancelled:
                self._cancelled.discard(handle)
                continue
            try:
                callback()
            except Exception:
                _LOGGER.exception("Deferred task %d failed", handle)
            ran += 1
        return ran
