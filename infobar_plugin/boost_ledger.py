"""Authoritative store of active skill boosts and their estimated expiry."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .restore_cycle import PhaseUnknownError, RestoreCycleTracker

_LOGGER = logging.getLogger("HighLite.ExtraInfoBar.Ledger")


@dataclass
class ActiveBoost:
    """One boost per skill.

    ``expires_at`` is ``None`` while the restore phase is unknown; once set it
    is an epoch timestamp in milliseconds.
    """

    skill_id: int
    magnitude: int
    source_item_id: int
    is_new_source: bool = True
    expires_at: Optional[float] = None

    def step_toward_zero(self) -> None:
        if self.magnitude > 0:
            self.magnitude -= 1
        elif self.magnitude < 0:
            self.magnitude += 1


@dataclass(frozen=True)
class BoostReading:
    skill_id: int
    boost: ActiveBoost
    seconds_remaining: Optional[int]

    @property
    def indeterminate(self) -> bool:
        return self.seconds_remaining is None


@dataclass
class ReconcileResult:
    active: List[BoostReading] = field(default_factory=list)
    retired: List[ActiveBoost] = field(default_factory=list)


class BoostLedger:
    """Owns every :class:`ActiveBoost`; reads, never mutates, the tracker."""

    def __init__(self, tracker: RestoreCycleTracker) -> None:
        self._tracker = tracker
        self._boosts: Dict[int, ActiveBoost] = {}

    def __len__(self) -> int:
        return len(self._boosts)

    def __contains__(self, skill_id: object) -> bool:
        return skill_id in self._boosts

    def get(self, skill_id: int) -> Optional[ActiveBoost]:
        return self._boosts.get(skill_id)

    def skill_ids(self) -> List[int]:
        return list(self._boosts)

    def clear(self) -> None:
        self._boosts.clear()

    # Mutation ------------------------------------------------------------

    def install(self, skill_id: int, magnitude: int, source_item_id: int, now: float) -> ActiveBoost:
        """Replace whatever boost ``skill_id`` had with a fresh one (last potion wins)."""
        magnitude = int(magnitude)
        if magnitude == 0:
            raise ValueError(f"Boost for skill {skill_id} must be non-zero")
        existing = self._boosts.get(skill_id)
        is_new_source = existing is None or existing.source_item_id != source_item_id
        boost = ActiveBoost(
            skill_id=skill_id,
            magnitude=magnitude,
            source_item_id=source_item_id,
            is_new_source=is_new_source,
            expires_at=self._estimate(now, abs(magnitude)),
        )
        self._boosts[skill_id] = boost
        _LOGGER.debug(
            "Installed boost skill=%d magnitude=%+d item=%d new_source=%s expires_at=%s",
            skill_id,
            magnitude,
            source_item_id,
            is_new_source,
            "unknown" if boost.expires_at is None else f"{boost.expires_at:.0f}",
        )
        return boost

    def decay_one_tick(self, now: float) -> None:
        """Apply one observed restore tick to every boost.

        Every expiry is re-estimated from the magnitude left after this tick's
        decrement, so unknown expiries become concrete and known ones follow
        the tick as the host actually delivered it.
        """
        for boost in self._boosts.values():
            boost.step_toward_zero()
            estimate = self._estimate(now, abs(boost.magnitude))
            if estimate is None or estimate == boost.expires_at:
                continue
            _LOGGER.debug(
                "%s expiry skill=%d magnitude=%+d expires_at=%.0f",
                "Resolved" if boost.expires_at is None else "Re-synced",
                boost.skill_id,
                boost.magnitude,
                estimate,
            )
            boost.expires_at = estimate

    def reconcile(self, now: float) -> ReconcileResult:
        result = ReconcileResult()
        for skill_id, boost in list(self._boosts.items()):
            if boost.expires_at is None:
                result.active.append(BoostReading(skill_id, boost, None))
                continue
            if now >= boost.expires_at:
                del self._boosts[skill_id]
                result.retired.append(boost)
                _LOGGER.debug("Boost expired skill=%d item=%d", skill_id, boost.source_item_id)
                continue
            seconds = max(0, math.ceil((boost.expires_at - now) / 1000.0))
            result.active.append(BoostReading(skill_id, boost, seconds))
        return result

    def _estimate(self, now: float, ticks_remaining: int) -> Optional[float]:
        try:
            return self._tracker.estimate_expiry(now, ticks_remaining)
        except PhaseUnknownError:
            return None
