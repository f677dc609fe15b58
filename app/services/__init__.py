# Core modules (no database dependencies)
from .errors import ArenaError, ValidationError, TransientPersistenceError, InvariantViolation, UnknownWeaponError
from .scheduler import EffectScheduler, ScheduledTask
from .weapon_system import WeaponDatabase, WeaponState, Weapon, WeaponCategory, FireEvent
from .arena import ArenaBridge, HeadlessArena, RayHit
from .adversary import Adversary, AIPhase
from .difficulty import DifficultyDirector
from .combat_model import CombatResolver, CombatTally, SurfaceRegistry, ShotOutcome
from .match_result import MatchResult
from .encounter import EncounterSimulation, EncounterConfig

__all__ = [
    "ArenaError",
    "ValidationError",
    "TransientPersistenceError",
    "InvariantViolation",
    "UnknownWeaponError",
    "EffectScheduler",
    "ScheduledTask",
    "WeaponDatabase",
    "WeaponState",
    "Weapon",
    "WeaponCategory",
    "FireEvent",
    "ArenaBridge",
    "HeadlessArena",
    "RayHit",
    "Adversary",
    "AIPhase",
    "DifficultyDirector",
    "CombatResolver",
    "CombatTally",
    "SurfaceRegistry",
    "ShotOutcome",
    "MatchResult",
    "EncounterSimulation",
    "EncounterConfig",
]

# Persistence layer (requires SQLAlchemy)
from .match_store import MatchRecordStore, BackgroundResultReporter, SubmissionReceipt  # noqa: E402

__all__.extend(["MatchRecordStore", "BackgroundResultReporter", "SubmissionReceipt"])
