"""Final statistics of one match."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class MatchResult:
    """Immutable record produced exactly once when a match ends."""
    player_name: str
    final_score: int
    kills: int
    deaths: int
    map_name: str
    age: Optional[int] = None
    country: Optional[str] = None
    accuracy: Optional[float] = None  # headshot %, None without hits
    rank: Optional[int] = None
    match_timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> Dict[str, Any]:
        """Wire format accepted by ``POST /scores``."""
        return {
            "playerName": self.player_name,
            "age": self.age,
            "country": self.country,
            "score": self.final_score,
            "kills": self.kills,
            "deaths": self.deaths,
            "accuracy": self.accuracy,
            "rank": self.rank,
            "matchDate": self.match_timestamp.isoformat(),
            "mapName": self.map_name,
        }
