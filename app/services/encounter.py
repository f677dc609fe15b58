"""Encounter Simulation for the arena.

Orchestrates one match at a time:
- Fixed-tick update of every live adversary (pursuit and melee)
- Spawn cadence driven by the difficulty director, capped at 10 adversaries
- Player input: single shots, held trigger, reload, weapon switch, movement
- Kill bookkeeping and difficulty re-checks
- Match end on player death, producing exactly one MatchResult

All mutable match state lives in a MatchContext. Deferred effects run on the
logical match clock through the EffectScheduler, so nothing outlives the
match that scheduled it.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .adversary import Adversary
from .arena import ArenaBridge, HeadlessArena
from .combat_model import CombatResolver, CombatTally, ShotOutcome, SurfaceRegistry
from .difficulty import DifficultyDirector
from .errors import TransientPersistenceError
from .match_result import MatchResult
from .scheduler import EffectScheduler
from .weapon_system import FireEvent, WeaponDatabase, WeaponState

logger = logging.getLogger(__name__)


@dataclass
class EncounterConfig:
    """Tunables of the encounter loop."""
    tick_ms: int = 16  # ~60 Hz
    base_spawn_interval_ms: float = 3000.0
    max_adversaries: int = 10
    initial_adversaries: int = 3
    initial_spawn_stagger_ms: int = 1000
    spawn_inner_radius: float = 40.0
    spawn_outer_radius: float = 60.0
    map_name: str = "Training Grounds"
    default_weapon: str = WeaponDatabase.DEFAULT_WEAPON
    starting_health: int = 100
    kill_score: int = 100
    muzzle_flash_ms: int = 50

    @classmethod
    def from_settings(cls, settings) -> "EncounterConfig":
        return cls(
            tick_ms=settings.simulation_tick_ms,
            base_spawn_interval_ms=settings.base_spawn_interval_ms,
            max_adversaries=settings.max_adversaries,
            initial_adversaries=settings.initial_adversaries,
            initial_spawn_stagger_ms=settings.initial_spawn_stagger_ms,
            spawn_inner_radius=settings.spawn_inner_radius,
            spawn_outer_radius=settings.spawn_outer_radius,
            map_name=settings.default_map_name,
            default_weapon=settings.default_weapon,
        )


@dataclass
class MatchContext:
    """Everything that belongs to the match in progress."""
    player_name: str
    map_name: str
    age: Optional[int] = None
    country: Optional[str] = None
    health: int = 100
    score: int = 0
    kills: int = 0
    now_ms: int = 0
    spawn_accumulator_ms: float = 0.0
    running: bool = True
    muzzle_flash_visible: bool = False
    tally: CombatTally = field(default_factory=CombatTally)
    adversaries: Dict[str, Adversary] = field(default_factory=dict)
    result: Optional[MatchResult] = None
    # Owner of match-scoped scheduled effects (initial spawns, muzzle flash)
    token: object = field(default_factory=object)


class EncounterSimulation:
    """Runs matches against waves of adversaries.

    Example:
        sim = EncounterSimulation(arena=HeadlessArena())
        sim.start_match("alice")
        while sim.running:
            sim.tick()
    """

    def __init__(
        self,
        arena: Optional[ArenaBridge] = None,
        config: Optional[EncounterConfig] = None,
        on_match_end: Optional[Callable[[MatchResult], Any]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.arena = arena if arena is not None else HeadlessArena()
        self.config = config or EncounterConfig()
        self.on_match_end = on_match_end
        self.rng = rng or random.Random()

        self.scheduler = EffectScheduler()
        self.registry = SurfaceRegistry()
        self.difficulty = DifficultyDirector(self.config.base_spawn_interval_ms)
        self.context: Optional[MatchContext] = None
        self.weapon_state: Optional[WeaponState] = None
        self.resolver: Optional[CombatResolver] = None
        self.last_outcome: Optional[ShotOutcome] = None
        self._adversary_seq = 0

    @property
    def running(self) -> bool:
        return self.context is not None and self.context.running

    @property
    def now_ms(self) -> int:
        return self.context.now_ms if self.context else 0

    # ------------------------------------------------------------------
    # Match lifecycle
    # ------------------------------------------------------------------

    def start_match(
        self,
        player_name: str,
        age: Optional[int] = None,
        country: Optional[str] = None,
        map_name: Optional[str] = None,
    ) -> MatchContext:
        """Reset everything to initial values and start a new match."""
        self.shutdown()
        if self.context is not None:
            for adversary_id in list(self.context.adversaries):
                self.arena.remove_entity(adversary_id)
        self.registry.clear()
        self.arena.reset_player()

        self.context = MatchContext(
            player_name=player_name,
            map_name=map_name or self.config.map_name,
            age=age,
            country=country,
            health=self.config.starting_health,
        )
        self.weapon_state = WeaponState(self.scheduler, self.config.default_weapon)
        self.difficulty = DifficultyDirector(self.config.base_spawn_interval_ms)
        self.resolver = CombatResolver(self.registry, self.context.tally)
        self.last_outcome = None
        self._adversary_seq = 0

        for i in range(self.config.initial_adversaries):
            self.scheduler.call_later(
                0,
                i * self.config.initial_spawn_stagger_ms,
                lambda _due: self.spawn_adversary(),
                owner=self.context.token,
            )

        logger.info(f"Match started for {player_name} on {self.context.map_name}")
        return self.context

    def shutdown(self):
        """Cancel every deferred and repeating effect, freezing the match."""
        if self.weapon_state is not None:
            self.weapon_state.discard()
        self.scheduler.cancel_all()
        if self.context is not None:
            self.context.running = False
            self.context.muzzle_flash_visible = False

    def end_match(self) -> MatchResult:
        """Stop the match and hand its result to the sink (once)."""
        ctx = self._require_context()
        if ctx.result is not None:
            return ctx.result

        self.shutdown()
        ctx.result = MatchResult(
            player_name=ctx.player_name,
            age=ctx.age,
            country=ctx.country,
            final_score=ctx.score,
            kills=ctx.kills,
            deaths=1 if ctx.health <= 0 else 0,
            accuracy=ctx.tally.accuracy,
            rank=None,
            map_name=ctx.map_name,
        )
        logger.info(
            f"Match over for {ctx.player_name}: score {ctx.score}, kills {ctx.kills}"
        )

        if self.on_match_end is not None:
            try:
                self.on_match_end(ctx.result)
            except TransientPersistenceError as e:
                # Best effort: the result stays on the context
                logger.error(f"Could not report match result for {ctx.player_name}: {e}")
        return ctx.result

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, dt_ms: Optional[int] = None) -> bool:
        """Advance the match by one tick. Returns False once it has ended."""
        if not self.running:
            return False
        ctx = self.context
        dt = self.config.tick_ms if dt_ms is None else dt_ms
        ctx.now_ms += dt

        self.scheduler.advance(ctx.now_ms)

        player = self.arena.get_player_position()
        for adversary in list(ctx.adversaries.values()):
            action = adversary.update(ctx.now_ms, player)
            if action.dx or action.dz:
                self.arena.move_entity(adversary.adversary_id, action.dx, action.dz)
            if action.damage:
                self.damage_player(action.damage)
                if not ctx.running:
                    return False

        ctx.spawn_accumulator_ms += dt
        if ctx.spawn_accumulator_ms >= self.difficulty.spawn_interval_ms:
            self.spawn_adversary()
            ctx.spawn_accumulator_ms = 0
        return True

    def run(self, max_ticks: int) -> int:
        """Tick until the match ends or ``max_ticks`` pass. Returns ticks run."""
        ticks = 0
        while ticks < max_ticks and self.tick():
            ticks += 1
        return ticks

    # ------------------------------------------------------------------
    # Adversaries
    # ------------------------------------------------------------------

    def spawn_adversary(self) -> Optional[Adversary]:
        """Spawn on the ring around the origin unless the cap is reached."""
        if not self.running:
            return None
        ctx = self.context
        if len(ctx.adversaries) >= self.config.max_adversaries:
            logger.debug("Adversary cap reached, spawn skipped")
            return None

        angle = self.rng.uniform(0, 2 * math.pi)
        radius = self.rng.uniform(self.config.spawn_inner_radius, self.config.spawn_outer_radius)
        self._adversary_seq += 1
        adversary = Adversary(
            adversary_id=f"adversary-{self._adversary_seq}",
            x=math.cos(angle) * radius,
            z=math.sin(angle) * radius,
        )
        adversary.apply_difficulty(self.difficulty.multiplier)

        ctx.adversaries[adversary.adversary_id] = adversary
        self.registry.register(adversary)
        self.arena.add_entity(adversary.adversary_id, adversary.x, adversary.z, adversary.surface_ids())
        return adversary

    def _remove_adversary(self, adversary_id: str):
        self.context.adversaries.pop(adversary_id, None)
        self.registry.unregister(adversary_id)
        self.arena.remove_entity(adversary_id)

    def _on_adversary_killed(self, adversary_id: str):
        ctx = self.context
        self._remove_adversary(adversary_id)
        ctx.kills += 1
        ctx.score += self.config.kill_score
        self.difficulty.on_score_changed(ctx.score, ctx.adversaries.values())

    # ------------------------------------------------------------------
    # Player
    # ------------------------------------------------------------------

    def damage_player(self, amount: int):
        ctx = self._require_context()
        if not ctx.running:
            return
        ctx.health -= amount
        if ctx.health <= 0:
            ctx.health = 0
            self.end_match()

    def move_player(self, dx: float, dz: float) -> Optional[Tuple[float, float]]:
        if not self.running:
            return None
        return self.arena.move_player(dx, dz)

    def fire(self) -> Optional[ShotOutcome]:
        """Single trigger pull. None if the shot was blocked."""
        if not self.running:
            return None
        event = self.weapon_state.fire(self.context.now_ms)
        if event is None:
            return None
        return self._on_fire(event)

    def trigger_down(self) -> Optional[ShotOutcome]:
        """Press and hold the trigger; automatic weapons keep firing."""
        if not self.running:
            return None
        self.last_outcome = None
        self.weapon_state.start_sustained_fire(self.context.now_ms, self._on_fire)
        return self.last_outcome

    def trigger_up(self):
        if self.weapon_state is not None:
            self.weapon_state.stop_sustained_fire()

    def reload(self) -> bool:
        if not self.running:
            return False
        return self.weapon_state.reload(self.context.now_ms)

    def switch_weapon(self, weapon: Union[str, int]) -> bool:
        if not self.running:
            return False
        self.weapon_state.switch_to(weapon, self.context.now_ms)
        return True

    def _on_fire(self, event: FireEvent) -> ShotOutcome:
        ctx = self.context
        self.arena.apply_recoil(event.recoil_intensity)
        ctx.muzzle_flash_visible = True
        self.scheduler.call_later(
            event.fired_at_ms, self.config.muzzle_flash_ms, self._hide_muzzle_flash, owner=ctx.token
        )

        outcome = self.resolver.resolve_shot(
            event,
            self.arena.cast_aim_ray(),
            ctx.adversaries,
            self.difficulty.multiplier,
        )
        if outcome.killed:
            self._on_adversary_killed(outcome.adversary_id)
        self.last_outcome = outcome
        return outcome

    def _hide_muzzle_flash(self, _due_ms: int):
        if self.context is not None:
            self.context.muzzle_flash_visible = False

    def _require_context(self) -> MatchContext:
        if self.context is None:
            raise RuntimeError("No match has been started")
        return self.context

    def snapshot(self) -> Dict[str, Any]:
        """Serializable view of the match for HUDs and the API."""
        ctx = self._require_context()
        return {
            "player_name": ctx.player_name,
            "map_name": ctx.map_name,
            "running": ctx.running,
            "now_ms": ctx.now_ms,
            "health": ctx.health,
            "score": ctx.score,
            "kills": ctx.kills,
            "headshots": ctx.tally.headshots,
            "bodyshots": ctx.tally.bodyshots,
            "damage_dealt": ctx.tally.damage_dealt,
            "difficulty_multiplier": self.difficulty.multiplier,
            "spawn_interval_ms": self.difficulty.spawn_interval_ms,
            "muzzle_flash_visible": ctx.muzzle_flash_visible,
            "weapon": self.weapon_state.status(),
            "player_position": list(self.arena.get_player_position()),
            "adversaries": [a.to_dict() for a in ctx.adversaries.values()],
            "result": ctx.result.to_payload() if ctx.result else None,
        }
