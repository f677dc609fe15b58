"""Difficulty scaling driven by the player's score.

Every 1000 points is a checkpoint. Crossing into a new checkpoint raises the
difficulty multiplier by one 10% step, which speeds up live adversaries and
shortens the spawn interval.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from .adversary import Adversary
from .errors import InvariantViolation

logger = logging.getLogger(__name__)


@dataclass
class DifficultyDirector:
    """Tracks score checkpoints and the resulting difficulty multiplier.

    One step per update: a single score change that skips several
    checkpoints (950 -> 2050) still adds only +0.10. The multiplier is held
    as a step count so it never accumulates float drift.
    """
    base_spawn_interval_ms: float = 3000.0
    steps: int = 0
    last_checkpoint: int = 0

    BASE_MULTIPLIER: float = 1.0
    STEP: float = 0.10
    CHECKPOINT_SCORE: int = 1000

    @property
    def multiplier(self) -> float:
        return round(self.BASE_MULTIPLIER + self.steps * self.STEP, 10)

    @property
    def spawn_interval_ms(self) -> float:
        """Spawn cadence, inversely proportional to difficulty; no floor."""
        return self.base_spawn_interval_ms / self.multiplier

    def on_score_changed(self, new_score: int, adversaries: Iterable[Adversary] = ()) -> bool:
        """Re-check difficulty after a score change.

        Args:
            new_score: The player's total score after the change
            adversaries: Live adversaries whose speed follows the multiplier

        Returns:
            True if the multiplier increased
        """
        checkpoint = new_score // self.CHECKPOINT_SCORE
        if checkpoint <= self.last_checkpoint:
            return False

        previous = self.multiplier
        self.steps += 1
        self.last_checkpoint = checkpoint
        if self.multiplier <= previous:
            raise InvariantViolation(
                f"Difficulty multiplier did not increase ({previous} -> {self.multiplier})"
            )

        for adversary in adversaries:
            adversary.apply_difficulty(self.multiplier)

        logger.info(
            f"Difficulty increased to {self.multiplier * 100:.0f}% at score {new_score}"
        )
        return True
