"""Match Record Store - durable match history and leaderboard aggregates.

Each submission writes, in one transaction:
1. The player row (found by exact name or created; age/country refreshed)
2. A match row and the player's scoreboard row for it
3. The player's leaderboard aggregate, recomputed from their full history

A full recompute rather than an incremental delta keeps the aggregate correct
no matter how submissions interleave, as long as each one is atomic.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import LeaderboardEntry, Match, Player, ScoreboardEntry
from .errors import TransientPersistenceError, ValidationError
from .match_result import MatchResult

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 50
DEFAULT_MAP_NAME = "Unknown"

# Strong references to in-flight submissions, which outlive their reporter
_background_tasks: Set[asyncio.Task] = set()


@dataclass(frozen=True)
class SubmissionReceipt:
    """Identifiers of the records a submission created or reused."""
    player_id: int
    match_id: int


class MatchRecordStore:
    """Persists match results and serves score listings.

    Submissions for the same player name are serialized by a per-name lock;
    submissions for different players proceed independently.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self._player_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, player_name: str) -> asyncio.Lock:
        lock = self._player_locks.get(player_name)
        if lock is None:
            lock = asyncio.Lock()
            self._player_locks[player_name] = lock
        return lock

    @staticmethod
    def validate(result: MatchResult):
        """Reject results that cannot be stored, before touching the database."""
        if not result.player_name or not result.player_name.strip():
            raise ValidationError("Missing required field: playerName")
        if len(result.player_name) > MAX_NAME_LENGTH:
            raise ValidationError(f"playerName longer than {MAX_NAME_LENGTH} characters")

    async def submit(self, result: MatchResult) -> SubmissionReceipt:
        """Store one match result and refresh the player's aggregate.

        Raises:
            ValidationError: The result is missing a player name
            TransientPersistenceError: The database failed; nothing was written
        """
        self.validate(result)
        lock = self._lock_for(result.player_name)
        async with lock:
            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        receipt = await self._write(session, result)
            except SQLAlchemyError as e:
                logger.error(f"Error saving score for {result.player_name}: {e}")
                raise TransientPersistenceError("Failed to save score") from e

        logger.info(
            f"Score saved: {result.player_name} - Score: {result.final_score}, "
            f"Kills: {result.kills}, Deaths: {result.deaths}"
        )
        return receipt

    async def _write(self, session: AsyncSession, result: MatchResult) -> SubmissionReceipt:
        player = await self._resolve_player(session, result)

        match = Match(
            match_date=result.match_timestamp.date(),
            map_name=result.map_name or DEFAULT_MAP_NAME,
        )
        session.add(match)
        await session.flush()

        session.add(ScoreboardEntry(
            player_id=player.id,
            match_id=match.id,
            kills=result.kills,
            deaths=result.deaths,
            accuracy=result.accuracy,
            score=result.final_score,
            rank=result.rank,
        ))
        await session.flush()

        await self._recompute_aggregate(session, player.id)
        return SubmissionReceipt(player_id=player.id, match_id=match.id)

    async def _find_player(self, session: AsyncSession, name: str) -> Optional[Player]:
        result = await session.execute(select(Player).where(Player.username == name))
        return result.scalar_one_or_none()

    async def _resolve_player(self, session: AsyncSession, result: MatchResult) -> Player:
        age = result.age if result.age is not None and result.age > 0 else None
        country = result.country or None

        player = await self._find_player(session, result.player_name)
        if player is None:
            try:
                async with session.begin_nested():
                    player = Player(username=result.player_name, age=age, country=country)
                    session.add(player)
                return player
            except IntegrityError:
                # Another writer created the same name first
                player = await self._find_player(session, result.player_name)
                if player is None:
                    raise

        if age is not None:
            player.age = age
        if country:
            player.country = country
        return player

    async def _recompute_aggregate(self, session: AsyncSession, player_id: int) -> LeaderboardEntry:
        stats = (await session.execute(
            select(
                func.count(ScoreboardEntry.match_id),
                func.coalesce(func.sum(ScoreboardEntry.score), 0),
                func.avg(ScoreboardEntry.accuracy),
                func.min(ScoreboardEntry.rank),
            ).where(ScoreboardEntry.player_id == player_id)
        )).one()
        matches_played, total_score, average_accuracy, best_rank = stats

        entry = await session.get(LeaderboardEntry, player_id)
        if entry is None:
            entry = LeaderboardEntry(player_id=player_id)
            session.add(entry)
        entry.total_matches_played = int(matches_played or 0)
        entry.total_score = int(total_score or 0)
        entry.average_accuracy = (
            round(float(average_accuracy), 2) if average_accuracy is not None else None
        )
        entry.best_rank = int(best_rank) if best_rank is not None else None
        await session.flush()
        return entry

    def _score_rows(self):
        return (
            select(
                Player.username.label("player_name"),
                ScoreboardEntry.score.label("score"),
                ScoreboardEntry.kills.label("kills"),
                ScoreboardEntry.deaths.label("deaths"),
                ScoreboardEntry.accuracy.label("accuracy"),
                ScoreboardEntry.rank.label("rank"),
                Match.map_name.label("map_name"),
                Match.match_date.label("match_date"),
                ScoreboardEntry.player_id.label("player_id"),
                ScoreboardEntry.match_id.label("match_id"),
            )
            .select_from(ScoreboardEntry)
            .join(Player, ScoreboardEntry.player_id == Player.id)
            .join(Match, ScoreboardEntry.match_id == Match.id)
        )

    async def list_top_scores(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Individual match rows, best score first, newer first on ties."""
        query = self._score_rows().order_by(
            ScoreboardEntry.score.desc(),
            Match.match_date.desc(),
            Match.id.desc(),
        ).limit(limit)
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [dict(row) for row in result.mappings().all()]

    async def list_player_scores(self, player_name: str) -> List[Dict[str, Any]]:
        """All match rows of one player, newest first."""
        query = self._score_rows().where(Player.username == player_name).order_by(
            Match.match_date.desc(),
            ScoreboardEntry.score.desc(),
            Match.id.desc(),
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [dict(row) for row in result.mappings().all()]

    async def list_leaderboard(self, limit: int = 100) -> List[Dict[str, Any]]:
        """One row per player: total score desc, best rank asc (nulls last), name."""
        totals = (
            select(
                ScoreboardEntry.player_id.label("player_id"),
                func.sum(ScoreboardEntry.kills).label("total_kills"),
                func.sum(ScoreboardEntry.deaths).label("total_deaths"),
                func.max(ScoreboardEntry.score).label("best_score"),
            )
            .group_by(ScoreboardEntry.player_id)
            .subquery()
        )
        query = (
            select(
                Player.username.label("player_name"),
                LeaderboardEntry.total_matches_played.label("games_played"),
                LeaderboardEntry.total_score.label("total_score"),
                LeaderboardEntry.average_accuracy.label("average_accuracy"),
                LeaderboardEntry.best_rank.label("best_rank"),
                func.coalesce(totals.c.total_kills, 0).label("total_kills"),
                func.coalesce(totals.c.total_deaths, 0).label("total_deaths"),
                func.coalesce(totals.c.best_score, 0).label("best_score"),
            )
            .select_from(LeaderboardEntry)
            .join(Player, LeaderboardEntry.player_id == Player.id)
            .outerjoin(totals, totals.c.player_id == LeaderboardEntry.player_id)
            .order_by(
                LeaderboardEntry.total_score.desc(),
                case((LeaderboardEntry.best_rank.is_(None), 1), else_=0),
                LeaderboardEntry.best_rank.asc(),
                Player.username.asc(),
            )
            .limit(limit)
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [dict(row) for row in result.mappings().all()]


class BackgroundResultReporter:
    """Fire-and-forget bridge from the simulation to the store.

    Called synchronously from EncounterSimulation.end_match. The submission
    runs as an asyncio task; failures are logged and the result is kept in
    ``unsent`` without retrying.
    """

    def __init__(self, store: MatchRecordStore):
        self.store = store
        self.unsent: List[MatchResult] = []
        self.receipts: List[SubmissionReceipt] = []
        self._pending: Set[asyncio.Task] = set()

    def __call__(self, result: MatchResult):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No event loop to report match of {result.player_name}; kept in memory")
            self.unsent.append(result)
            return
        task = loop.create_task(self._submit(result))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

    async def _submit(self, result: MatchResult):
        try:
            self.receipts.append(await self.store.submit(result))
        except (TransientPersistenceError, ValidationError) as e:
            logger.error(f"Match result for {result.player_name} not persisted: {e}")
            self.unsent.append(result)
        except Exception as e:
            logger.exception(f"Unexpected error reporting match of {result.player_name}: {e}")
            self.unsent.append(result)

    async def drain(self):
        """Wait for every in-flight submission."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
