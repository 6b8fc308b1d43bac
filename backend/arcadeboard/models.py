from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from arcadeboard.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Login account. Independent of gameplay data."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Run(Base):
    """
    One completed game attempt.

    Runs are append-only: they are never updated or deleted, and they are the
    source of truth for per-game rankings and for rebuilding player records.
    A time of 0 means the client did not record one.
    """
    __tablename__ = "runs"

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(String(100), nullable=False, index=True)
    name = Column(Text, nullable=False, default="")
    score = Column(Float, nullable=False)
    time = Column(Float, nullable=False)
    level = Column(Float, nullable=False)
    game = Column(String(32), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    __table_args__ = (
        Index('idx_runs_game_score_time', game, score.desc(), time, created_at),
        Index('idx_runs_player_created', player_id, created_at),
    )


class Player(Base):
    """
    Best-record summary for one player, folded from their runs.

    best_score is the maximum over the per-game slots in game_bests; a game
    with no row counts as 0. best_time is 0 until a positive time arrives.
    """
    __tablename__ = "players"

    player_id = Column(String(100), primary_key=True)
    name = Column(Text, nullable=False, default="")
    best_score = Column(Float, nullable=False, default=0)
    best_time = Column(Float, nullable=False, default=0)
    last_level = Column(Float, nullable=False, default=1)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    game_bests = relationship(
        "PlayerGameBest",
        back_populates="player",
        cascade="all, delete-orphan",
        order_by="PlayerGameBest.game",
    )

    __table_args__ = (
        Index('idx_players_best_score_time', best_score.desc(), best_time),
    )

    def best_scores(self, games: list[str]) -> dict[str, float]:
        """Per-game best scores with a 0 slot for every configured game."""
        scores = {game: 0.0 for game in games}
        for slot in self.game_bests:
            scores[slot.game] = slot.best_score
        return scores


class PlayerGameBest(Base):
    """Best score of one player in one game."""
    __tablename__ = "player_game_bests"

    player_id = Column(
        String(100),
        ForeignKey("players.player_id", ondelete="CASCADE"),
        primary_key=True,
    )
    game = Column(String(32), primary_key=True)
    best_score = Column(Float, nullable=False, default=0)

    player = relationship("Player", back_populates="game_bests")
