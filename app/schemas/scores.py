import math
from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Optional
from datetime import date, datetime, timezone

from ..services.errors import ValidationError
from ..services.match_result import MatchResult


def _to_number(value: Any) -> Optional[float]:
    """Loose numeric parse of client-reported values; None if not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


class ScoreSubmission(BaseModel):
    """Body of ``POST /scores``. Client-trusted, so fields are coerced, not rejected."""
    player_name: Optional[str] = None
    age: Optional[int] = None
    country: Optional[str] = None
    score: int = 0
    kills: int = 0
    deaths: int = 0
    accuracy: Optional[float] = None
    rank: Optional[int] = None
    match_date: Optional[str] = None  # ISO-8601
    map_name: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("score", "kills", "deaths", mode="before")
    @classmethod
    def _zero_if_not_numeric(cls, value):
        number = _to_number(value)
        return int(number) if number is not None else 0

    @field_validator("accuracy", mode="before")
    @classmethod
    def _none_if_not_numeric(cls, value):
        return _to_number(value)

    @field_validator("rank", "age", mode="before")
    @classmethod
    def _int_or_none(cls, value):
        number = _to_number(value)
        return int(number) if number is not None else None

    @field_validator("age")
    @classmethod
    def _positive_age(cls, value):
        return value if value is not None and value > 0 else None

    @field_validator("match_date", "country", "map_name", "player_name", mode="before")
    @classmethod
    def _text(cls, value):
        if value is None:
            return None
        return str(value)

    def to_match_result(self) -> MatchResult:
        """Build the domain result; raises ValidationError on bad required fields."""
        if not self.player_name:
            raise ValidationError("Missing required field: playerName")

        return MatchResult(
            player_name=self.player_name,
            age=self.age,
            country=self.country or None,
            final_score=self.score,
            kills=self.kills,
            deaths=self.deaths,
            accuracy=self.accuracy,
            rank=self.rank,
            match_timestamp=self._parse_match_date(),
            map_name=self.map_name or "Unknown",
        )

    def _parse_match_date(self) -> datetime:
        if not self.match_date:
            return datetime.now(timezone.utc)
        try:
            parsed = datetime.fromisoformat(self.match_date.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid matchDate: {self.match_date}")
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)


class ScoreSubmitResponse(BaseModel):
    message: str = "Score saved successfully"
    player_id: int
    match_id: int

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class MatchScoreResponse(BaseModel):
    player_name: str
    score: int
    kills: int
    deaths: int
    accuracy: Optional[float] = None
    rank: Optional[int] = None
    map_name: str
    match_date: date
    player_id: int
    match_id: int

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LeaderboardRowResponse(BaseModel):
    player_name: str
    games_played: int
    total_score: int
    average_accuracy: Optional[float] = None
    best_rank: Optional[int] = None
    total_kills: int = 0
    total_deaths: int = 0
    best_score: int = 0

    class Config:
        alias_generator = to_camel
        populate_by_name = True
