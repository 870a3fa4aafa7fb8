"""Phase tracking for the host's periodic stat restoration ticks."""
from __future__ import annotations

import logging
from typing import Optional

DEFAULT_RESTORE_CYCLE_MS = 60_000

_LOGGER = logging.getLogger("HighLite.ExtraInfoBar.RestoreCycle")


class PhaseUnknownError(RuntimeError):
    """Raised when an estimate needs the tick phase before any tick was seen."""


class RestoreCycleTracker:
    """Anchors the restore cycle on the most recent observed tick.

    The period is configured, never measured. Every tick replaces the anchor,
    so the latest tick is always treated as ground truth.
    """

    def __init__(self, period_ms: float = DEFAULT_RESTORE_CYCLE_MS) -> None:
        if period_ms <= 0:
            raise ValueError("Restore cycle period must be positive")
        self.period_ms = float(period_ms)
        self.last_tick_at: Optional[float] = None

    @property
    def is_anchored(self) -> bool:
        return self.last_tick_at is not None

    def on_restore_tick(self, now: float) -> None:
        previous = self.last_tick_at
        self.last_tick_at = float(now)
        if previous is None:
            _LOGGER.debug("Restore cycle anchored at %.0f", now)
        else:
            _LOGGER.debug("Restore cycle re-anchored at %.0f (%.0f ms since previous tick)", now, now - previous)

    def reset(self) -> None:
        self.last_tick_at = None

    def ms_until_next_tick(self, now: float) -> float:
        """Forward distance from ``now`` to the next tick boundary.

        Works whether ``now`` is before or after the anchor. A ``now`` sitting
        exactly on a boundary reports a full period.
        """
        if self.last_tick_at is None:
            raise PhaseUnknownError("No restore tick observed yet")
        period = self.period_ms
        ms_into_cycle = (now - self.last_tick_at + period) % period
        return period - ms_into_cycle

    def estimate_expiry(self, now: float, ticks_remaining: int) -> float:
        """Timestamp of the tick that removes the last of ``ticks_remaining`` units."""
        return now + self.ms_until_next_tick(now) + self.period_ms * (ticks_remaining - 1)
