"""Capabilities the plugin expects from the host game client."""
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, Tuple

from .skills import SkillLike


class HostAdapter(Protocol):
    """Read-only view of the live game state plus the rendering surface.

    ``combat_skill`` and ``skill`` read the two separate skill tables;
    ``equipped_item`` returns ``(item_id, amount)`` for a loadout slot;
    ``sprite_position`` may raise when the sprite sheet has no entry.
    """

    def combat_skill(self, skill_id: int) -> Optional[SkillLike]: ...

    def skill(self, skill_id: int) -> Optional[SkillLike]: ...

    def equipped_item(self, slot_index: int) -> Optional[Tuple[int, int]]: ...

    def item_effect_skills(self, item_id: int) -> Optional[Sequence[int]]: ...

    def sprite_position(self, item_id: int) -> Optional[str]: ...

    def render_indicator(self, payload: Mapping[str, Any]) -> bool: ...
