from sqlalchemy import Column, String, Integer, Numeric, ForeignKey, CheckConstraint, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Player(Base):
    __tablename__ = "players"
    __table_args__ = (CheckConstraint("age > 0", name="ck_players_age_positive"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True)  # exact, case-sensitive
    age = Column(Integer)
    country = Column(String(50))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    scores = relationship("ScoreboardEntry", back_populates="player", cascade="all, delete-orphan")
    leaderboard = relationship(
        "LeaderboardEntry", back_populates="player", uselist=False, cascade="all, delete-orphan"
    )


class LeaderboardEntry(Base):
    """Per-player aggregate, recomputed from the scoreboard on every submission."""
    __tablename__ = "leaderboard"

    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), primary_key=True)
    total_matches_played = Column(Integer, nullable=False, default=0)
    total_score = Column(Integer, nullable=False, default=0)
    average_accuracy = Column(Numeric(5, 2, asdecimal=False))
    best_rank = Column(Integer)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    player = relationship("Player", back_populates="leaderboard")
