"""Render/input boundary of the arena.

The simulation never builds a scene. It asks the arena bridge what the
crosshair is on and where the player stands, and tells it when entities
appear, move, or go away. ``HeadlessArena`` keeps all of that in memory so a
match can run without a renderer (tests, HTTP-driven sessions).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class RayHit:
    """Nearest surface under the aim point."""
    surface_id: str
    hit_point: Optional[Tuple[float, float, float]] = None
    hit_height: Optional[float] = None  # height above ground
    distance: Optional[float] = None  # from the eye, when known

    @property
    def height(self) -> Optional[float]:
        if self.hit_height is not None:
            return self.hit_height
        if self.hit_point is not None:
            return self.hit_point[1]
        return None


class ArenaBridge:
    """Interface the simulation consumes from the rendering side."""

    def cast_aim_ray(self) -> Optional[RayHit]:
        raise NotImplementedError

    def get_player_position(self) -> Tuple[float, float]:
        raise NotImplementedError

    def move_player(self, dx: float, dz: float) -> Tuple[float, float]:
        raise NotImplementedError

    def reset_player(self):
        """Put the player back at the spawn point for a new match."""
        raise NotImplementedError

    def add_entity(self, entity_id: str, x: float, z: float, surfaces: Sequence[str]):
        raise NotImplementedError

    def move_entity(self, entity_id: str, dx: float, dz: float):
        raise NotImplementedError

    def remove_entity(self, entity_id: str):
        raise NotImplementedError

    def apply_recoil(self, intensity: float):
        raise NotImplementedError


@dataclass
class HeadlessArena(ArenaBridge):
    """In-memory arena: tracks entity positions, player position and aim."""
    player_x: float = 0.0
    player_z: float = 0.0
    aim: Optional[RayHit] = None
    entities: Dict[str, Tuple[float, float]] = field(default_factory=dict)
    surfaces: Dict[str, str] = field(default_factory=dict)  # surface id -> entity id
    recoil_log: List[float] = field(default_factory=list)
    boundary: float = 45.0  # player stays within +-boundary on both axes

    def aim_at(self, hit: Optional[RayHit]):
        """Point the crosshair at a surface (None aims at nothing)."""
        self.aim = hit

    def move_player(self, dx: float, dz: float) -> Tuple[float, float]:
        self.player_x = max(-self.boundary, min(self.boundary, self.player_x + dx))
        self.player_z = max(-self.boundary, min(self.boundary, self.player_z + dz))
        return self.get_player_position()

    def reset_player(self):
        self.player_x = 0.0
        self.player_z = 0.0
        self.aim = None

    def cast_aim_ray(self) -> Optional[RayHit]:
        if self.aim is None or self.aim.surface_id not in self.surfaces:
            return None
        return self.aim

    def get_player_position(self) -> Tuple[float, float]:
        return (self.player_x, self.player_z)

    def add_entity(self, entity_id: str, x: float, z: float, surfaces: Sequence[str]):
        self.entities[entity_id] = (x, z)
        for surface_id in surfaces:
            self.surfaces[surface_id] = entity_id

    def move_entity(self, entity_id: str, dx: float, dz: float):
        if entity_id in self.entities:
            x, z = self.entities[entity_id]
            self.entities[entity_id] = (x + dx, z + dz)

    def remove_entity(self, entity_id: str):
        self.entities.pop(entity_id, None)
        self.surfaces = {s: e for s, e in self.surfaces.items() if e != entity_id}
        if self.aim is not None and self.aim.surface_id not in self.surfaces:
            self.aim = None

    def apply_recoil(self, intensity: float):
        self.recoil_log.append(intensity)
