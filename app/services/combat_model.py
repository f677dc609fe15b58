"""
Hit resolution for arena combat.

Turns a fire event plus the aim ray result into damage on one adversary:
- Surface lookup through an explicit surface -> adversary registry
- Headshot classification (head surface OR hit height above the head line)
- Damage scaling by difficulty, x3 on headshots
- Non-penetrating: only the first surface along the ray is considered
"""

import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from .adversary import HEAD_PART, Adversary
from .arena import RayHit
from .weapon_system import FireEvent


HEADSHOT_MULTIPLIER = 3
# Hits higher than this above the adversary's base count as headshots
HEAD_ZONE_HEIGHT = 1.8


class SurfaceRegistry:
    """Maps every hittable surface to the adversary that owns it.

    Populated when an adversary spawns and cleared when it is removed.
    Adversaries never share surfaces.
    """

    def __init__(self):
        self._owners: Dict[str, Tuple[str, str]] = {}  # surface -> (adversary, part)

    def register(self, adversary: Adversary):
        for surface_id, part in adversary.surfaces.items():
            self._owners[surface_id] = (adversary.adversary_id, part)

    def unregister(self, adversary_id: str):
        self._owners = {
            surface: owner for surface, owner in self._owners.items()
            if owner[0] != adversary_id
        }

    def lookup(self, surface_id: str) -> Optional[Tuple[str, str]]:
        """Get (adversary_id, body_part) for a surface, or None."""
        return self._owners.get(surface_id)

    def clear(self):
        self._owners.clear()

    def __len__(self) -> int:
        return len(self._owners)


@dataclass
class CombatTally:
    """Per-match shot statistics."""
    shots_fired: int = 0
    headshots: int = 0
    bodyshots: int = 0
    damage_dealt: int = 0  # floored per hit, player-facing

    @property
    def hits(self) -> int:
        return self.headshots + self.bodyshots

    @property
    def accuracy(self) -> Optional[float]:
        """Headshot share of registered hits in percent, None without hits."""
        if self.hits == 0:
            return None
        return round(self.headshots / self.hits * 100, 2)


@dataclass(frozen=True)
class ShotOutcome:
    """Result of resolving one shot."""
    hit: bool
    adversary_id: Optional[str] = None
    headshot: bool = False
    damage: float = 0.0
    killed: bool = False

    @classmethod
    def miss(cls) -> "ShotOutcome":
        return cls(hit=False)


def calculate_damage(weapon_damage: float, multiplier: float, headshot: bool) -> float:
    """Unrounded damage of one hit."""
    damage = weapon_damage * multiplier
    return damage * HEADSHOT_MULTIPLIER if headshot else damage


class CombatResolver:
    """Applies fire events to adversaries and keeps the match tally."""

    def __init__(self, registry: SurfaceRegistry, tally: Optional[CombatTally] = None):
        self.registry = registry
        self.tally = tally if tally is not None else CombatTally()

    def is_headshot(self, adversary: Adversary, part: str, ray_hit: RayHit) -> bool:
        # Surface identity OR height, so a partly hidden head still counts
        if part == HEAD_PART:
            return True
        height = ray_hit.height
        if height is None:
            return False
        return height - adversary.base_height > HEAD_ZONE_HEIGHT

    def resolve_shot(
        self,
        fire_event: FireEvent,
        ray_hit: Optional[RayHit],
        adversaries: Mapping[str, Adversary],
        multiplier: float = 1.0,
    ) -> ShotOutcome:
        """Resolve one shot against the first surface along the aim ray.

        Args:
            fire_event: The shot, from WeaponState.fire
            ray_hit: Nearest intersected surface, None if the ray hit nothing
            adversaries: Live adversaries by id
            multiplier: Current difficulty multiplier

        Returns:
            ShotOutcome; at most one adversary is damaged
        """
        self.tally.shots_fired += 1
        if ray_hit is None:
            return ShotOutcome.miss()
        if ray_hit.distance is not None and ray_hit.distance > fire_event.effective_range:
            return ShotOutcome.miss()

        owner = self.registry.lookup(ray_hit.surface_id)
        if owner is None:
            return ShotOutcome.miss()
        adversary_id, part = owner
        adversary = adversaries.get(adversary_id)
        if adversary is None or not adversary.alive:
            return ShotOutcome.miss()

        headshot = self.is_headshot(adversary, part, ray_hit)
        damage = calculate_damage(fire_event.damage, multiplier, headshot)
        if headshot:
            self.tally.headshots += 1
        else:
            self.tally.bodyshots += 1
        self.tally.damage_dealt += math.floor(damage)

        killed = adversary.take_damage(damage)
        return ShotOutcome(
            hit=True,
            adversary_id=adversary_id,
            headshot=headshot,
            damage=damage,
            killed=killed,
        )
