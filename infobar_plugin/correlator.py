"""Links consumable-use events to the skill level changes they cause.

The host reports the item use and the resulting level changes as unrelated
notifications with no shared transaction id. The correlator remembers the
most recent consumable in a single slot and defers level-change handling by
one host tick so every change from one consumption is matched against that
slot together.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Optional, Tuple

from .boost_ledger import BoostLedger
from .deferred_tasks import Clock, DeferredTaskQueue
from .skills import SkillLevelSource

DEFAULT_DEBOUNCE_MS = 100

_LOGGER = logging.getLogger("HighLite.ExtraInfoBar.Correlator")


@dataclass(frozen=True)
class PendingPotionEffect:
    item_id: int
    impacted_skills: Tuple[int, ...]

    def affects(self, skill_id: int) -> bool:
        return skill_id in self.impacted_skills


@dataclass(frozen=True)
class PendingLevelChange:
    skill_id: int
    new_value: int
    succeeded: bool


class EventCorrelator:
    def __init__(
        self,
        ledger: BoostLedger,
        levels: SkillLevelSource,
        scheduler: DeferredTaskQueue,
        *,
        clock: Clock,
        debounce_ms: float = DEFAULT_DEBOUNCE_MS,
    ) -> None:
        self._ledger = ledger
        self._levels = levels
        self._scheduler = scheduler
        self._clock = clock
        self._debounce_ms = debounce_ms
        self._pending_effect: Optional[PendingPotionEffect] = None
        self._queue: Deque[PendingLevelChange] = deque()
        self._flush_handle: Optional[int] = None

    @property
    def pending_effect(self) -> Optional[PendingPotionEffect]:
        return self._pending_effect

    @property
    def queued_changes(self) -> Tuple[PendingLevelChange, ...]:
        return tuple(self._queue)

    def on_consumed(self, item_id: int, impacted_skills: Optional[Iterable[int]]) -> None:
        skills = tuple(int(skill) for skill in impacted_skills) if impacted_skills else ()
        if not skills:
            if self._pending_effect is not None:
                _LOGGER.debug("Item %s has no skill effects; clearing pending potion %d", item_id, self._pending_effect.item_id)
            self._pending_effect = None
            return
        self._pending_effect = PendingPotionEffect(item_id=int(item_id), impacted_skills=skills)
        _LOGGER.debug("Pending potion set: item=%d skills=%s", item_id, list(skills))

    def on_level_changed(self, skill_id: int, new_value: int, succeeded: bool) -> None:
        if not succeeded:
            return
        self._queue.append(PendingLevelChange(int(skill_id), int(new_value), True))
        if self._flush_handle is None:
            self._flush_handle = self._scheduler.after(self._debounce_ms, self.flush)

    def flush(self) -> None:
        """Resolve every queued change, oldest first, against the pending slot."""
        self._flush_handle = None
        while self._queue:
            change = self._queue.popleft()
            self._resolve(change)

    def reset(self) -> None:
        self._pending_effect = None
        self._queue.clear()
        if self._flush_handle is not None:
            self._scheduler.cancel(self._flush_handle)
            self._flush_handle = None

    def _resolve(self, change: PendingLevelChange) -> None:
        effect = self._pending_effect
        if effect is None or not effect.affects(change.skill_id):
            _LOGGER.debug("Level change skill=%d value=%d not attributed to a tracked potion", change.skill_id, change.new_value)
            return
        levels = self._levels.levels(change.skill_id)
        if levels is None:
            _LOGGER.debug("Skill %d unavailable from host; skipping boost", change.skill_id)
            return
        magnitude = levels.boost
        if magnitude == 0:
            return
        self._ledger.install(change.skill_id, magnitude, effect.item_id, self._clock())
