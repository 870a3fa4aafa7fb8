"""Per-frame reconciliation of the ledger into info bar indicators."""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Tuple

from .boost_ledger import BoostLedger, ReconcileResult
from .deferred_tasks import Clock
from .display import InfoBarDisplay, timer_text

AMMO_SLOT_INDEX = 9
AMMO_SLOT = f"ammoslot-{AMMO_SLOT_INDEX}"
BOOST_SLOT_PREFIX = "boost-timer-"

AmmoReader = Callable[[], Optional[Tuple[int, int]]]

_LOGGER = logging.getLogger("HighLite.ExtraInfoBar.UpdateLoop")


def boost_slot(skill_id: int) -> str:
    return f"{BOOST_SLOT_PREFIX}{skill_id}"


def ammo_reader_from_host(host: Any) -> AmmoReader:
    def _read() -> Optional[Tuple[int, int]]:
        return host.equipped_item(AMMO_SLOT_INDEX)

    return _read


class UpdateLoop:
    def __init__(
        self,
        ledger: BoostLedger,
        display: InfoBarDisplay,
        *,
        clock: Clock,
        ammo_reader: Optional[AmmoReader] = None,
        show_ammo: bool = True,
        timer_format: str = "seconds",
    ) -> None:
        self._ledger = ledger
        self._display = display
        self._clock = clock
        self._ammo_reader = ammo_reader
        self.show_ammo = show_ammo
        self.timer_format = timer_format

    def run_pass(self, now: Optional[float] = None) -> ReconcileResult:
        current = self._clock() if now is None else now
        self._update_ammo()
        result = self._ledger.reconcile(current)
        for reading in result.active:
            boost = reading.boost
            self._display.upsert(
                boost_slot(reading.skill_id),
                boost.source_item_id,
                boost.magnitude,
                timer_text(reading.seconds_remaining, self.timer_format),
                refresh_icon=boost.is_new_source,
            )
        # Covers boosts retired this pass and removals the host refused earlier.
        live = {boost_slot(reading.skill_id) for reading in result.active}
        for slot in self._display.slots:
            if slot.startswith(BOOST_SLOT_PREFIX) and slot not in live:
                self._display.remove(slot)
        return result

    def _update_ammo(self) -> None:
        slot = self._ammo_reader() if (self.show_ammo and self._ammo_reader is not None) else None
        if not slot:
            if self._display.remove(AMMO_SLOT):
                _LOGGER.debug("Ammo slot emptied")
            return
        item_id, amount = slot
        self._display.upsert(AMMO_SLOT, item_id, amount, None, refresh_icon=True)
