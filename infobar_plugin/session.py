"""Per-login ownership of the boost tracking state."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from .boost_ledger import BoostLedger, ReconcileResult
from .correlator import EventCorrelator
from .deferred_tasks import Clock, DeferredTaskQueue, epoch_ms
from .display import InfoBarDisplay
from .host import HostAdapter
from .preferences import Preferences
from .restore_cycle import RestoreCycleTracker
from .skills import SkillLevelSource
from .update_loop import UpdateLoop, ammo_reader_from_host

# Item actions with this code reach the host as item uses but never consume the item.
IGNORED_ACTION_CODES = frozenset({19})

_LOGGER = logging.getLogger("HighLite.ExtraInfoBar.Session")


class BoostSession:
    """Everything a logged-in player needs; discarded on logout."""

    def __init__(
        self,
        host: HostAdapter,
        preferences: Preferences,
        display: InfoBarDisplay,
        *,
        clock: Clock = epoch_ms,
    ) -> None:
        self._host = host
        self._clock = clock
        self.display = display
        self.scheduler = DeferredTaskQueue(clock)
        self.tracker = RestoreCycleTracker(preferences.restore_cycle_ms)
        self.ledger = BoostLedger(self.tracker)
        self.correlator = EventCorrelator(
            self.ledger,
            SkillLevelSource.from_host(host),
            self.scheduler,
            clock=clock,
            debounce_ms=preferences.level_change_debounce_ms,
        )
        self.update_loop = UpdateLoop(
            self.ledger,
            display,
            clock=clock,
            ammo_reader=ammo_reader_from_host(host),
            show_ammo=preferences.show_ammo,
            timer_format=preferences.timer_format,
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def apply_preferences(self, preferences: Preferences) -> None:
        # The restore cycle and debounce only take effect on the next login.
        self.update_loop.show_ammo = preferences.show_ammo
        self.update_loop.timer_format = preferences.timer_format

    # Host events ----------------------------------------------------------

    def handle_item_action(self, action_code: int, item_id: int, succeeded: bool) -> None:
        if self._closed or not succeeded or action_code in IGNORED_ACTION_CODES:
            return
        skills: Optional[Iterable[int]] = self._host.item_effect_skills(item_id)
        self.correlator.on_consumed(item_id, skills)

    def handle_level_change(self, skill_id: int, new_value: int, succeeded: bool) -> None:
        if self._closed:
            return
        self.correlator.on_level_changed(skill_id, new_value, succeeded)

    def handle_stats_restored(self) -> None:
        if self._closed:
            return
        now = self._clock()
        self.tracker.on_restore_tick(now)
        self.ledger.decay_one_tick(now)

    def frame(self, *, render: bool = True) -> Optional[ReconcileResult]:
        """Run due deferred work, then the display pass unless ``render`` is off.

        Deferred work runs regardless so level changes keep resolving against
        the potion that caused them while the bar is hidden.
        """
        if self._closed:
            return None
        now = self._clock()
        self.scheduler.run_due(now)
        if not render:
            return None
        return self.update_loop.run_pass(now)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.correlator.reset()
        self.scheduler.clear()
        self.ledger.clear()
        self.tracker.reset()
        self.display.clear()
        _LOGGER.debug("Boost session closed")
