from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pytest


@dataclass
class SkillStub:
    current_level: int
    base_level: int


class ManualClock:
    def __init__(self, value: float = 0.0) -> None:
        self.value = value

    def __call__(self) -> float:
        return self.value

    def advance(self, ms: float) -> float:
        self.value += ms
        return self.value


class FakeHost:
    """In-memory stand-in for the game client's live state and render surface."""

    def __init__(self) -> None:
        self.combat_skills: Dict[int, SkillStub] = {}
        self.skills: Dict[int, SkillStub] = {}
        self.loadout: Dict[int, Tuple[int, int]] = {}
        self.item_effects: Dict[int, Sequence[int]] = {}
        self.sprites: Dict[int, str] = {}
        self.rendered: List[Dict[str, Any]] = []
        self.sprite_error: Optional[Exception] = None
        self.accept_renders = True

    def set_level(self, skill_id: int, current: int, base: int) -> None:
        table = self.combat_skills if skill_id in {0, 1, 2, 3, 4, 15} else self.skills
        table[skill_id] = SkillStub(current, base)

    def combat_skill(self, skill_id: int) -> Optional[SkillStub]:
        return self.combat_skills.get(skill_id)

    def skill(self, skill_id: int) -> Optional[SkillStub]:
        return self.skills.get(skill_id)

    def equipped_item(self, slot_index: int) -> Optional[Tuple[int, int]]:
        return self.loadout.get(slot_index)

    def item_effect_skills(self, item_id: int) -> Optional[Sequence[int]]:
        return self.item_effects.get(item_id)

    def sprite_position(self, item_id: int) -> Optional[str]:
        if self.sprite_error is not None:
            raise self.sprite_error
        return self.sprites.get(item_id)

    def render_indicator(self, payload: Mapping[str, Any]) -> bool:
        self.rendered.append(dict(payload))
        return self.accept_renders

    def rendered_ids(self, op: str) -> List[str]:
        return [payload["id"] for payload in self.rendered if payload["op"] == op]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()
