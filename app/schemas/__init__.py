from .scores import ScoreSubmission, ScoreSubmitResponse, MatchScoreResponse, LeaderboardRowResponse
from .simulations import (
    MatchStart, AimTarget, ShotRequest, MoveRequest,
    WeaponStatus, AdversaryStatus, ShotResult, EncounterState
)

__all__ = [
    "ScoreSubmission", "ScoreSubmitResponse", "MatchScoreResponse", "LeaderboardRowResponse",
    "MatchStart", "AimTarget", "ShotRequest", "MoveRequest",
    "WeaponStatus", "AdversaryStatus", "ShotResult", "EncounterState",
]
