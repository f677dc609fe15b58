from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


class MatchStart(BaseModel):
    player_name: str = Field(..., min_length=1, max_length=50)
    age: Optional[int] = Field(None, gt=0)
    country: Optional[str] = None
    map_name: Optional[str] = None


class AimTarget(BaseModel):
    """What the crosshair is on, as reported by the renderer."""
    surface_id: str
    hit_height: Optional[float] = None
    distance: Optional[float] = None


class ShotRequest(BaseModel):
    aim: Optional[AimTarget] = None  # keeps the current aim when omitted


class MoveRequest(BaseModel):
    dx: float = 0.0
    dz: float = 0.0


class WeaponStatus(BaseModel):
    weapon_id: str
    name: str
    category: str
    magazine: int
    magazine_capacity: int
    reserve_ammo: int
    reloading: bool = False
    sustained_fire: bool = False


class AdversaryStatus(BaseModel):
    adversary_id: str
    x: float
    z: float
    health: float
    phase: str  # 'idle', 'pursuing', 'attacking'
    effective_speed: float
    head_surface: str


class ShotResult(BaseModel):
    fired: bool
    hit: bool = False
    adversary_id: Optional[str] = None
    headshot: bool = False
    damage: float = 0.0
    killed: bool = False


class EncounterState(BaseModel):
    session_id: str
    player_name: str
    map_name: str
    running: bool
    now_ms: int
    health: int
    score: int
    kills: int
    headshots: int = 0
    bodyshots: int = 0
    damage_dealt: int = 0
    difficulty_multiplier: float = 1.0
    spawn_interval_ms: float
    muzzle_flash_visible: bool = False
    weapon: WeaponStatus
    player_position: List[float]
    adversaries: List[AdversaryStatus] = []
    result: Optional[Dict[str, Any]] = None  # same shape as a score submission
    last_shot: Optional[ShotResult] = None
