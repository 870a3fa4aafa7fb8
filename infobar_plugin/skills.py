"""Skill id partition and live skill level lookups."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, FrozenSet, Optional, Protocol

if TYPE_CHECKING:
    from .host import HostAdapter

# The host keeps combat skills and non-combat skills in two separate tables.
COMBAT_SKILL_IDS: FrozenSet[int] = frozenset({0, 1, 2, 3, 4, 15})


class SkillLike(Protocol):
    current_level: int
    base_level: int


SkillLookup = Callable[[int], Optional[SkillLike]]


def is_combat_skill(skill_id: int) -> bool:
    return skill_id in COMBAT_SKILL_IDS


@dataclass(frozen=True)
class SkillLevels:
    skill_id: int
    current_level: int
    base_level: int

    @property
    def boost(self) -> int:
        """Signed modification currently applied on top of the base level."""
        return self.current_level - self.base_level


class SkillLevelSource:
    """Reads current/base levels through the lookup matching the skill's table."""

    def __init__(self, *, combat_lookup: SkillLookup, skill_lookup: SkillLookup) -> None:
        self._combat_lookup = combat_lookup
        self._skill_lookup = skill_lookup

    @classmethod
    def from_host(cls, host: "HostAdapter") -> "SkillLevelSource":
        return cls(combat_lookup=host.combat_skill, skill_lookup=host.skill)

    def levels(self, skill_id: int) -> Optional[SkillLevels]:
        lookup = self._combat_lookup if is_combat_skill(skill_id) else self._skill_lookup
        skill = lookup(skill_id)
        if skill is None:
            return None
        return SkillLevels(
            skill_id=skill_id,
            current_level=int(skill.current_level),
            base_level=int(skill.base_level),
        )
