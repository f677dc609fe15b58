"""Adversary AI for the arena.

Each adversary is a melee attacker that notices the player inside its
detection range, shuffles toward them, and strikes when close enough.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .errors import InvariantViolation


class AIPhase(Enum):
    IDLE = "idle"
    PURSUING = "pursuing"
    ATTACKING = "attacking"


# Body parts every adversary is built from; the head takes headshots
BODY_PARTS = ("head", "torso", "left_arm", "right_arm", "left_leg", "right_leg")
HEAD_PART = "head"


@dataclass
class AdversaryAction:
    """What one adversary did during a tick."""
    dx: float = 0.0
    dz: float = 0.0
    damage: int = 0


@dataclass
class Adversary:
    """One hostile entity: health, position and its pursuit/attack state."""
    adversary_id: str
    x: float
    z: float
    base_speed: float = 0.02  # ground units per tick
    health: float = 100.0
    speed_multiplier: float = 1.0
    phase: AIPhase = AIPhase.IDLE
    last_attack_ms: Optional[int] = None
    wobble: float = 0.0

    # Ground plane only; the base sits at a fixed height
    base_height: float = 0.0

    DETECTION_RANGE: float = 30.0
    MELEE_RANGE: float = 2.5
    ATTACK_COOLDOWN_MS: int = 2000
    MELEE_DAMAGE: int = 10

    surfaces: Dict[str, str] = field(default_factory=dict)  # surface id -> body part

    def __post_init__(self):
        if not self.surfaces:
            self.surfaces = {
                f"{self.adversary_id}:{part}": part for part in BODY_PARTS
            }

    @property
    def effective_speed(self) -> float:
        return self.base_speed * self.speed_multiplier

    @property
    def alive(self) -> bool:
        return self.health > 0

    @property
    def head_surface(self) -> str:
        return f"{self.adversary_id}:{HEAD_PART}"

    def surface_ids(self) -> List[str]:
        return list(self.surfaces.keys())

    def apply_difficulty(self, multiplier: float):
        """Rescale effective speed after a difficulty change."""
        self.speed_multiplier = multiplier

    def distance_to(self, player: Tuple[float, float]) -> float:
        return math.hypot(player[0] - self.x, player[1] - self.z)

    def classify(self, distance: float) -> AIPhase:
        """Phase is a pure function of distance; no hysteresis."""
        if distance >= self.DETECTION_RANGE:
            return AIPhase.IDLE
        if distance <= self.MELEE_RANGE:
            return AIPhase.ATTACKING
        return AIPhase.PURSUING

    def update(self, now_ms: int, player: Tuple[float, float]) -> AdversaryAction:
        """Advance the AI by one tick.

        Args:
            now_ms: Match clock
            player: Player ground position (x, z)

        Returns:
            Movement applied this tick and melee damage dealt to the player
        """
        action = AdversaryAction()
        if not self.alive:
            return action

        self.wobble += 0.1
        distance = self.distance_to(player)
        self.phase = self.classify(distance)

        if self.phase == AIPhase.PURSUING:
            # Cosmetic shuffle, 0.6x..1.0x of effective speed
            step = self.effective_speed * (0.8 + math.sin(self.wobble * 2) * 0.2)
            action.dx = (player[0] - self.x) / distance * step
            action.dz = (player[1] - self.z) / distance * step
            self.x += action.dx
            self.z += action.dz
        elif self.phase == AIPhase.ATTACKING:
            action.damage = self.attack(now_ms, player)

        return action

    def attack(self, now_ms: int, player: Tuple[float, float]) -> int:
        """Strike if off cooldown and the player is still in melee range.

        The range is checked against the live position, not the distance that
        put this adversary into ATTACKING.
        """
        if (
            self.last_attack_ms is not None
            and now_ms - self.last_attack_ms <= self.ATTACK_COOLDOWN_MS
        ):
            return 0
        if self.distance_to(player) > self.MELEE_RANGE:
            return 0
        self.last_attack_ms = now_ms
        return self.MELEE_DAMAGE

    def take_damage(self, amount: float) -> bool:
        """Apply damage. Returns True if this hit killed the adversary."""
        if amount < 0:
            raise InvariantViolation(f"Negative damage {amount} on {self.adversary_id}")
        if not self.alive:
            return False
        self.health -= amount
        return not self.alive

    def to_dict(self) -> Dict:
        return {
            "adversary_id": self.adversary_id,
            "x": round(self.x, 3),
            "z": round(self.z, 3),
            "health": self.health,
            "phase": self.phase.value,
            "effective_speed": self.effective_speed,
            "head_surface": self.head_surface,
        }
