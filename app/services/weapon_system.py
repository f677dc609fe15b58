"""Weapon System for arena combat.

Contains the weapon catalog and the per-weapon ammo/cooldown/reload state
machine that the encounter simulation drives.
"""

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from .errors import InvariantViolation, UnknownWeaponError
from .scheduler import EffectScheduler, ScheduledTask

logger = logging.getLogger(__name__)


class WeaponCategory(Enum):
    SIDEARM = "sidearm"
    SMG = "smg"
    SHOTGUN = "shotgun"
    RIFLE = "rifle"


@dataclass
class Weapon:
    """One weapon snapshot: static stats plus its current ammunition."""
    weapon_id: str
    name: str
    category: WeaponCategory
    damage: int
    fire_interval_ms: int
    magazine_capacity: int
    magazine: int
    reserve_ammo: int
    reload_ms: int
    effective_range: float
    recoil_intensity: float  # camera kick per shot, keyed by weapon
    automatic: bool = False  # holds fire while the trigger is down

    @property
    def magazine_full(self) -> bool:
        return self.magazine >= self.magazine_capacity


@dataclass(frozen=True)
class FireEvent:
    """A round left the barrel; handed to the combat resolver."""
    weapon_id: str
    damage: int
    effective_range: float
    recoil_intensity: float
    fired_at_ms: int


class WeaponDatabase:
    """Catalog of every weapon the player can carry, in slot order."""

    WEAPONS: Dict[str, Weapon] = {
        "pistol": Weapon(
            weapon_id="pistol",
            name="Pistol",
            category=WeaponCategory.SIDEARM,
            damage=25,
            fire_interval_ms=300,
            magazine_capacity=12,
            magazine=12,
            reserve_ammo=36,
            reload_ms=600,
            effective_range=50.0,
            recoil_intensity=0.03,
        ),
        "rifle": Weapon(
            weapon_id="rifle",
            name="Rifle",
            category=WeaponCategory.RIFLE,
            damage=80,
            fire_interval_ms=100,
            magazine_capacity=30,
            magazine=30,
            reserve_ammo=90,
            reload_ms=2000,
            effective_range=100.0,
            recoil_intensity=0.03,
        ),
        "shotgun": Weapon(
            weapon_id="shotgun",
            name="Shotgun",
            category=WeaponCategory.SHOTGUN,
            damage=60,
            fire_interval_ms=800,
            magazine_capacity=8,
            magazine=8,
            reserve_ammo=24,
            reload_ms=2500,
            effective_range=30.0,
            recoil_intensity=0.05,
        ),
        "smg": Weapon(
            weapon_id="smg",
            name="SMG",
            category=WeaponCategory.SMG,
            damage=30,
            fire_interval_ms=100,
            magazine_capacity=40,
            magazine=40,
            reserve_ammo=9999,
            reload_ms=200,
            effective_range=60.0,
            recoil_intensity=0.02,
            automatic=True,
        ),
    }

    DEFAULT_WEAPON = "smg"

    @classmethod
    def slots(cls) -> List[str]:
        """Weapon ids in number-key order (slot 1 first)."""
        return list(cls.WEAPONS.keys())

    @classmethod
    def resolve_id(cls, weapon: Union[str, int]) -> str:
        """Map a weapon id, display name, or 1-based slot number to an id."""
        if isinstance(weapon, int) or (isinstance(weapon, str) and weapon.isdigit()):
            slot = int(weapon)
            slots = cls.slots()
            if 1 <= slot <= len(slots):
                return slots[slot - 1]
            raise UnknownWeaponError(f"No weapon in slot {slot}")

        normalized = weapon.lower().replace(" ", "").replace("-", "")
        for weapon_id, stats in cls.WEAPONS.items():
            if weapon_id == normalized or stats.name.lower() == normalized:
                return weapon_id
        raise UnknownWeaponError(f"Unknown weapon: {weapon}")

    @classmethod
    def fresh_copy(cls, weapon: Union[str, int]) -> Weapon:
        """Get a fully loaded, independent copy of a catalog entry."""
        return copy.deepcopy(cls.WEAPONS[cls.resolve_id(weapon)])


class WeaponState:
    """Ammo, cooldown and reload state for the weapon in the player's hands.

    Holds exactly one ``Weapon`` snapshot. Switching replaces the snapshot with
    a fresh catalog copy; ammo is never carried over or merged back. Reload
    completion and sustained fire are scheduled on the match clock under the
    snapshot's token, so discarding the snapshot cancels both.
    """

    def __init__(
        self,
        scheduler: EffectScheduler,
        weapon_id: Union[str, int] = WeaponDatabase.DEFAULT_WEAPON,
    ):
        self.scheduler = scheduler
        self.weapon: Weapon = WeaponDatabase.fresh_copy(weapon_id)
        self.token = object()
        self.last_fire_ms: Optional[int] = None
        self.reloading = False
        self._reload_task: Optional[ScheduledTask] = None
        self._sustained_task: Optional[ScheduledTask] = None

    @property
    def sustained_fire_active(self) -> bool:
        return self._sustained_task is not None

    def switch_to(self, weapon_id: Union[str, int], now_ms: int) -> Weapon:
        """Discard the current snapshot and arm a fresh copy of ``weapon_id``.

        Always permitted; an in-flight reload is abandoned, not completed.
        """
        fresh = WeaponDatabase.fresh_copy(weapon_id)
        self.discard()
        self.weapon = fresh
        self.token = object()
        self.last_fire_ms = None
        logger.debug(f"Switched to {fresh.name} at {now_ms}ms")
        return fresh

    def discard(self):
        """Cancel everything scheduled for the current snapshot."""
        self.scheduler.cancel_owner(self.token)
        self._reload_task = None
        self._sustained_task = None
        self.reloading = False

    def fire(self, now_ms: int) -> Optional[FireEvent]:
        """Try to fire one round.

        Returns:
            FireEvent on success, None when blocked (reloading, empty magazine,
            or still inside the fire interval). An empty magazine with reserve
            left starts a reload.
        """
        if self.reloading:
            return None
        if self.weapon.magazine <= 0:
            if self.weapon.reserve_ammo > 0:
                self.reload(now_ms)
            return None
        if (
            self.last_fire_ms is not None
            and now_ms - self.last_fire_ms < self.weapon.fire_interval_ms
        ):
            return None

        self.weapon.magazine -= 1
        self.last_fire_ms = now_ms
        self._check_invariants()

        return FireEvent(
            weapon_id=self.weapon.weapon_id,
            damage=self.weapon.damage,
            effective_range=self.weapon.effective_range,
            recoil_intensity=self.weapon.recoil_intensity,
            fired_at_ms=now_ms,
        )

    def reload(self, now_ms: int) -> bool:
        """Start a reload. Returns False when there is nothing to do."""
        weapon = self.weapon
        if self.reloading or weapon.magazine_full or weapon.reserve_ammo == 0:
            return False

        self.stop_sustained_fire()
        self.reloading = True
        token = self.token
        self._reload_task = self.scheduler.call_later(
            now_ms,
            weapon.reload_ms,
            lambda _due: self._complete_reload(token),
            owner=token,
        )
        return True

    def _complete_reload(self, token: object):
        # A switch rotates the token; a stale completion must not touch the new snapshot
        if token is not self.token or not self.reloading:
            return
        weapon = self.weapon
        moved = min(weapon.magazine_capacity - weapon.magazine, weapon.reserve_ammo)
        weapon.magazine += moved
        weapon.reserve_ammo -= moved
        self.reloading = False
        self._reload_task = None
        self._check_invariants()

    def start_sustained_fire(
        self,
        now_ms: int,
        on_fire: Callable[[FireEvent], None],
    ) -> Optional[FireEvent]:
        """Fire now and keep firing every ``fire_interval_ms`` (held trigger).

        Non-automatic weapons fire the single shot only. The repeat stops
        itself on an empty magazine or a blocked shot, and is cancelled by
        reload, switch, discard and ``stop_sustained_fire``.
        """
        self.stop_sustained_fire()
        event = self.fire(now_ms)
        if event is not None:
            on_fire(event)
        if event is None or not self.weapon.automatic or self.weapon.magazine <= 0:
            return event

        token = self.token

        def repeat(due_ms: int):
            if token is not self.token:
                self.stop_sustained_fire()
                return
            shot = self.fire(due_ms)
            if shot is not None:
                on_fire(shot)
            if shot is None or self.weapon.magazine <= 0:
                self.stop_sustained_fire()

        self._sustained_task = self.scheduler.call_every(
            now_ms, self.weapon.fire_interval_ms, repeat, owner=token
        )
        return event

    def stop_sustained_fire(self):
        if self._sustained_task is not None:
            self.scheduler.cancel(self._sustained_task)
            self._sustained_task = None

    def _check_invariants(self):
        weapon = self.weapon
        if weapon.magazine < 0 or weapon.magazine > weapon.magazine_capacity:
            raise InvariantViolation(
                f"{weapon.name} magazine {weapon.magazine} outside 0..{weapon.magazine_capacity}"
            )
        if weapon.reserve_ammo < 0:
            raise InvariantViolation(f"{weapon.name} reserve ammo went negative")

    def status(self) -> Dict:
        """Player-facing snapshot of the active weapon."""
        weapon = self.weapon
        return {
            "weapon_id": weapon.weapon_id,
            "name": weapon.name,
            "category": weapon.category.value,
            "magazine": weapon.magazine,
            "magazine_capacity": weapon.magazine_capacity,
            "reserve_ammo": weapon.reserve_ammo,
            "reloading": self.reloading,
            "sustained_fire": self.sustained_fire_active,
        }
