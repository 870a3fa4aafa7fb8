"""Indicator model for the info bar: upsert/remove instructions keyed by slot."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

INDICATOR_EVENT = "InfoBarIndicator"
ELEMENT_PREFIX = "eib-item-"
UNKNOWN_TIMER = "?"
TIMER_FORMATS = {"seconds", "clock"}

Publisher = Callable[[Mapping[str, Any]], bool]
SpriteLookup = Callable[[int], Optional[str]]

_LOGGER = logging.getLogger("HighLite.ExtraInfoBar.Display")


def format_seconds(secs: int) -> str:
    minutes, seconds = divmod(max(0, int(secs)), 60)
    return f"{minutes}:{seconds:02d}"


def timer_text(seconds_remaining: Optional[int], timer_format: str = "seconds") -> str:
    if seconds_remaining is None:
        return UNKNOWN_TIMER
    if timer_format == "clock":
        return format_seconds(seconds_remaining)
    return str(max(0, int(seconds_remaining)))


@dataclass(frozen=True)
class IndicatorInstruction:
    op: str
    slot: str
    item_id: Optional[int] = None
    value: Optional[str] = None
    timer: Optional[str] = None
    sprite_position: Optional[str] = None
    refresh_icon: bool = False

    @property
    def element_id(self) -> str:
        return f"{ELEMENT_PREFIX}{self.slot}"

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"event": INDICATOR_EVENT, "op": self.op, "id": self.element_id}
        if self.op == "remove":
            return payload
        payload.update(
            {
                "item_id": self.item_id,
                "value": self.value,
                "timer": self.timer,
                "refresh_icon": self.refresh_icon,
            }
        )
        if self.sprite_position is not None:
            payload["sprite_position"] = self.sprite_position
        return payload


class InfoBarDisplay:
    """Tracks which indicators are shown and publishes only what changed."""

    def __init__(self, publish: Publisher, sprite_lookup: Optional[SpriteLookup] = None) -> None:
        self._publish = publish
        self._sprite_lookup = sprite_lookup
        self._shown: Dict[str, Tuple[Optional[int], Optional[str], Optional[str]]] = {}

    @property
    def slots(self) -> List[str]:
        return list(self._shown)

    def is_shown(self, slot: str) -> bool:
        return slot in self._shown

    def upsert(
        self,
        slot: str,
        item_id: int,
        value: Any,
        timer: Optional[str] = None,
        *,
        refresh_icon: bool = False,
    ) -> bool:
        text = "" if value is None else str(value)
        state = (item_id, text, timer)
        previous = self._shown.get(slot)
        is_new = previous is None
        # Only a different item needs a new sprite; repeated requests are no-ops.
        refresh_icon = refresh_icon and not is_new and previous[0] != item_id
        if previous == state and not refresh_icon:
            return False
        sprite_position = self._lookup_sprite(item_id) if (is_new or refresh_icon) else None
        instruction = IndicatorInstruction(
            op="upsert",
            slot=slot,
            item_id=item_id,
            value=text,
            timer=timer,
            sprite_position=sprite_position,
            refresh_icon=refresh_icon,
        )
        self._shown[slot] = state
        return self._send(instruction)

    def remove(self, slot: str) -> bool:
        """Remove ``slot``; it stays tracked until the host accepts the removal."""
        if slot not in self._shown:
            return False
        if not self._send(IndicatorInstruction(op="remove", slot=slot)):
            return False
        del self._shown[slot]
        return True

    def clear(self) -> None:
        for slot in list(self._shown):
            self.remove(slot)

    def _lookup_sprite(self, item_id: int) -> Optional[str]:
        if self._sprite_lookup is None:
            return None
        try:
            position = self._sprite_lookup(item_id)
        except Exception as exc:
            _LOGGER.warning("Error getting item sprite for ID %s: %s", item_id, exc)
            return None
        return position or None

    def _send(self, instruction: IndicatorInstruction) -> bool:
        delivered = self._publish(instruction.to_payload())
        if not delivered:
            _LOGGER.debug("Indicator %s for %s was not delivered", instruction.op, instruction.element_id)
        return delivered
