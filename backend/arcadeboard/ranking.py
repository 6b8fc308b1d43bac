"""
Leaderboard queries.

The global board reads player records directly. A per-game board is derived
from run history instead, because a player's per-game slot keeps only the
best score and not the time achieved in that same run.
"""
import logging
import re
from typing import Any, Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from arcadeboard.config import get_settings
from arcadeboard.exceptions import PlayerNotFoundError
from arcadeboard.models import Player, Run
from arcadeboard.monitoring import monitor_transaction
from arcadeboard.schemas import LeaderboardEntry, PlayerSummary

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_limit(raw: Any) -> int:
    """
    Clamp a requested row count into [1, leaderboard_max_limit].

    Only a leading integer is read ("15abc" -> 15, "7.9" -> 7); absent or
    unparsable values give the default limit.
    """
    settings = get_settings()
    limit = settings.leaderboard_default_limit
    if isinstance(raw, int) and not isinstance(raw, bool):
        limit = raw
    elif isinstance(raw, str):
        match = _LEADING_INT.match(raw)
        if match:
            limit = int(match.group(1))
    return max(1, min(settings.leaderboard_max_limit, limit))


@monitor_transaction("Leaderboard/global")
def global_leaderboard(db: Session, limit: int) -> list[LeaderboardEntry]:
    """
    Players ordered by best score (desc), then best time (asc).

    A best time of 0 means no time on record, so those players come after
    every player with a positive time on an equal score.
    """
    no_time_last = case((Player.best_time > 0, 0), else_=1)
    players = db.query(Player)\
        .order_by(
            Player.best_score.desc(),
            no_time_last,
            Player.best_time.asc(),
            Player.player_id.asc(),
        )\
        .limit(limit)\
        .all()

    return [
        LeaderboardEntry(
            rank=idx + 1,
            player_id=player.player_id,
            name=player.name,
            best_score=player.best_score,
            best_time=player.best_time,
            updated_at=player.updated_at,
        )
        for idx, player in enumerate(players)
    ]


@monitor_transaction("Leaderboard/by-game")
def game_leaderboard(db: Session, game: str, limit: int) -> list[LeaderboardEntry]:
    """
    Each player's best run in one game, best players first.

    Runs are ranked by score desc, time asc, then earliest first, so the
    first player to reach a given score and time keeps the spot. Only the
    top-ranked run of each player is kept.
    """
    run_order = (Run.score.desc(), Run.time.asc(), Run.created_at.asc(), Run.id.asc())
    ranked = select(
        Run.id,
        Run.player_id,
        Run.name,
        Run.score,
        Run.time,
        Run.created_at,
        func.row_number().over(partition_by=Run.player_id, order_by=run_order).label("position"),
    ).where(Run.game == game).subquery()

    stmt = select(ranked)\
        .where(ranked.c.position == 1)\
        .order_by(
            ranked.c.score.desc(),
            ranked.c.time.asc(),
            ranked.c.created_at.asc(),
            ranked.c.id.asc(),
        )\
        .limit(limit)

    rows = db.execute(stmt).all()
    return [
        LeaderboardEntry(
            rank=idx + 1,
            player_id=row.player_id,
            name=row.name,
            best_score=row.score,
            best_time=row.time,
            updated_at=row.created_at,
            game=game,
        )
        for idx, row in enumerate(rows)
    ]


def get_player(db: Session, player_id: str) -> Player:
    player = db.query(Player).filter(Player.player_id == player_id).one_or_none()
    if player is None:
        raise PlayerNotFoundError(player_id)
    return player


def player_summary(player: Player, games: Optional[list[str]] = None) -> PlayerSummary:
    """Project a player record, listing every supported game's best score."""
    return PlayerSummary(
        player_id=player.player_id,
        name=player.name,
        best_score=player.best_score,
        best_scores=player.best_scores(games or get_settings().supported_games),
        best_time=player.best_time,
        last_level=player.last_level,
        updated_at=player.updated_at,
    )
