from sqlalchemy import Column, String, Integer, Numeric, Date, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Match(Base):
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_date = Column(Date, nullable=False)
    map_name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    scores = relationship("ScoreboardEntry", back_populates="match", cascade="all, delete-orphan")


class ScoreboardEntry(Base):
    """One player's line in one match. Immutable once written."""
    __tablename__ = "scoreboard"

    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), primary_key=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), primary_key=True)
    kills = Column(Integer, nullable=False, default=0)
    deaths = Column(Integer, nullable=False, default=0)
    accuracy = Column(Numeric(5, 2, asdecimal=False))
    score = Column(Integer, nullable=False, default=0)
    rank = Column(Integer)

    # Relationships
    player = relationship("Player", back_populates="scores")
    match = relationship("Match", back_populates="scores")
