from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Dict, Optional
from uuid import uuid4
from dataclasses import dataclass

from ...config import get_settings
from ...database import get_match_store
from ...schemas.simulations import (
    MatchStart, ShotRequest, MoveRequest, EncounterState, ShotResult
)
from ...services.arena import HeadlessArena, RayHit
from ...services.combat_model import ShotOutcome
from ...services.encounter import EncounterConfig, EncounterSimulation
from ...services.errors import UnknownWeaponError
from ...services.match_store import BackgroundResultReporter, MatchRecordStore

router = APIRouter()
settings = get_settings()


@dataclass
class ArenaSession:
    """One headless match driven over HTTP."""
    id: str
    simulation: EncounterSimulation
    arena: HeadlessArena
    reporter: BackgroundResultReporter


# In-memory sessions; matches are transient, only results are persisted
_sessions: Dict[str, ArenaSession] = {}


def _get_session(session_id: str) -> ArenaSession:
    session = _sessions.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Simulation not found")
    return session


def _shot_result(outcome: Optional[ShotOutcome]) -> ShotResult:
    if outcome is None:
        return ShotResult(fired=False)
    return ShotResult(
        fired=True,
        hit=outcome.hit,
        adversary_id=outcome.adversary_id,
        headshot=outcome.headshot,
        damage=outcome.damage,
        killed=outcome.killed,
    )


def _state(session: ArenaSession, last_shot: Optional[ShotResult] = None) -> EncounterState:
    return EncounterState(
        session_id=session.id,
        last_shot=last_shot,
        **session.simulation.snapshot(),
    )


def _apply_aim(session: ArenaSession, request: Optional[ShotRequest]):
    if request is not None and request.aim is not None:
        session.arena.aim_at(RayHit(
            surface_id=request.aim.surface_id,
            hit_height=request.aim.hit_height,
            distance=request.aim.distance,
        ))


@router.post("/", response_model=EncounterState)
async def start_simulation(
    config: MatchStart,
    store: MatchRecordStore = Depends(get_match_store),
):
    """Start a new match in a headless arena."""
    arena = HeadlessArena()
    reporter = BackgroundResultReporter(store)
    simulation = EncounterSimulation(
        arena=arena,
        config=EncounterConfig.from_settings(settings),
        on_match_end=reporter,
    )
    simulation.start_match(
        config.player_name,
        age=config.age,
        country=config.country,
        map_name=config.map_name,
    )
    session = ArenaSession(id=str(uuid4()), simulation=simulation, arena=arena, reporter=reporter)
    _sessions[session.id] = session
    return _state(session)


@router.get("/{session_id}", response_model=EncounterState)
async def get_simulation(session_id: str):
    """Get the current state of a match."""
    return _state(_get_session(session_id))


@router.delete("/{session_id}")
async def delete_simulation(session_id: str):
    """Abandon a match without reporting a result."""
    session = _get_session(session_id)
    session.simulation.shutdown()
    del _sessions[session_id]
    return {"id": session_id, "status": "deleted"}


@router.post("/{session_id}/tick", response_model=EncounterState)
async def tick_simulation(
    session_id: str,
    ticks: int = Query(1, ge=1, le=10000),
    dt_ms: Optional[int] = Query(None, ge=1, le=1000, description="Override tick length"),
):
    """Advance the match by the given number of ticks."""
    session = _get_session(session_id)
    for _ in range(ticks):
        if not session.simulation.tick(dt_ms):
            break
    state = _state(session)
    if state.result is not None and not state.running:
        # Result already handed to the reporter; the session holds nothing more
        _sessions.pop(session_id, None)
    return state


@router.post("/{session_id}/aim", response_model=EncounterState)
async def aim(session_id: str, request: ShotRequest):
    """Point the crosshair at a surface (or at nothing)."""
    session = _get_session(session_id)
    if request.aim is None:
        session.arena.aim_at(None)
    else:
        _apply_aim(session, request)
    return _state(session)


@router.post("/{session_id}/fire", response_model=EncounterState)
async def fire(session_id: str, request: Optional[ShotRequest] = None):
    """Single trigger pull."""
    session = _get_session(session_id)
    _apply_aim(session, request)
    outcome = session.simulation.fire()
    return _state(session, _shot_result(outcome))


@router.post("/{session_id}/trigger/down", response_model=EncounterState)
async def trigger_down(session_id: str, request: Optional[ShotRequest] = None):
    """Hold the trigger; automatic weapons keep firing on subsequent ticks."""
    session = _get_session(session_id)
    _apply_aim(session, request)
    outcome = session.simulation.trigger_down()
    return _state(session, _shot_result(outcome))


@router.post("/{session_id}/trigger/up", response_model=EncounterState)
async def trigger_up(session_id: str):
    """Release the trigger."""
    session = _get_session(session_id)
    session.simulation.trigger_up()
    return _state(session)


@router.post("/{session_id}/reload", response_model=EncounterState)
async def reload(session_id: str):
    """Start a reload (ignored if full, empty reserve, or already reloading)."""
    session = _get_session(session_id)
    session.simulation.reload()
    return _state(session)


@router.post("/{session_id}/switch/{weapon}", response_model=EncounterState)
async def switch_weapon(session_id: str, weapon: str):
    """Switch weapon by id, name, or slot number (1-4)."""
    session = _get_session(session_id)
    try:
        session.simulation.switch_weapon(weapon)
    except UnknownWeaponError:
        raise HTTPException(status_code=404, detail=f"Weapon {weapon} not found")
    return _state(session)


@router.post("/{session_id}/move", response_model=EncounterState)
async def move(session_id: str, request: MoveRequest):
    """Move the player on the ground plane."""
    session = _get_session(session_id)
    session.simulation.move_player(request.dx, request.dz)
    return _state(session)
