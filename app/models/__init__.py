from .players import Player, LeaderboardEntry
from .matches import Match, ScoreboardEntry

__all__ = [
    "Player",
    "LeaderboardEntry",
    "Match",
    "ScoreboardEntry",
]
