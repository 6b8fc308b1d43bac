"""
Leaderboard and player summary endpoints.

Both are read-only and cached in Redis; a run submission invalidates the
cached copies it affects.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional

from arcadeboard.cache import cache, leaderboard_key, player_key
from arcadeboard.config import get_settings
from arcadeboard.database import get_db
from arcadeboard.exceptions import PlayerNotFoundError
from arcadeboard.games import match_game
from arcadeboard.ranking import (
    game_leaderboard, get_player, global_leaderboard, parse_limit, player_summary
)
from arcadeboard.schemas import LeaderboardResponse, PlayerResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["leaderboard"])
settings = get_settings()


@router.get(
    "/leaderboard",
    response_model=LeaderboardResponse,
    response_model_exclude_none=True,
    status_code=200,
    responses={
        200: {
            "description": "Leaderboard retrieved successfully",
            "content": {
                "application/json": {
                    "example": {
                        "ok": True,
                        "leaderboard": [
                            {
                                "rank": 1,
                                "playerId": "p1",
                                "name": "Ana",
                                "bestScore": 50,
                                "bestTime": 12.0,
                                "updatedAt": "2026-10-19T10:30:00"
                            }
                        ],
                        "scope": "global"
                    }
                }
            }
        },
        500: {"model": ErrorResponse, "description": "Internal server error"}
    },
    summary="Get the leaderboard",
    description="""
    Without a recognized `game`, rank every player by best score (desc) and
    best time (asc, players with no recorded time last).

    With a recognized `game`, rank each player's best run in that game by
    score (desc), time (asc) and submission time (earliest first).

    `limit` is clamped to 1-100 and defaults to 10.
    """
)
async def get_leaderboard(
    limit: Optional[str] = Query(default=None, description="Number of rows (1-100, default 10)"),
    game: Optional[str] = Query(default=None, description="Game tag for a per-game ranking"),
    db: Session = Depends(get_db),
):
    row_limit = parse_limit(limit)
    game_tag = match_game(game)
    cache_key = leaderboard_key(game_tag, row_limit)

    cached_data = cache.get(cache_key)
    if cached_data:
        logger.debug(f"Cache hit for leaderboard: {cache_key}")
        return LeaderboardResponse(**cached_data)

    try:
        if game_tag:
            entries = game_leaderboard(db, game_tag, row_limit)
            response = LeaderboardResponse(leaderboard=entries, scope="by-game", game=game_tag)
        else:
            entries = global_leaderboard(db, row_limit)
            response = LeaderboardResponse(leaderboard=entries, scope="global")
    except Exception as e:
        logger.error(f"Failed to retrieve leaderboard: game={game_tag}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error")

    cache.set(
        cache_key,
        response.model_dump(mode="json", by_alias=True, exclude_none=True),
        settings.cache_ttl_leaderboard
    )
    logger.info(f"Retrieved {response.scope} leaderboard: game={game_tag}, rows={len(entries)}")
    return response


@router.get(
    "/player/{player_id}",
    response_model=PlayerResponse,
    status_code=200,
    responses={
        404: {"model": ErrorResponse, "description": "Player not found"},
        500: {"model": ErrorResponse, "description": "Internal server error"}
    },
    summary="Get a player's best record",
)
async def get_player_summary(player_id: str, db: Session = Depends(get_db)):
    """Best score overall and per game, best time and last level of one player."""
    cache_key = player_key(player_id)
    cached_data = cache.get(cache_key)
    if cached_data:
        logger.debug(f"Cache hit for player: player_id={player_id}")
        return PlayerResponse(**cached_data)

    try:
        summary = player_summary(get_player(db, player_id))
    except PlayerNotFoundError as e:
        logger.warning(str(e))
        raise HTTPException(status_code=404, detail="Player not found")
    except Exception as e:
        logger.error(f"Failed to retrieve player: player_id={player_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error")

    response = PlayerResponse(player=summary)
    cache.set(cache_key, response.model_dump(mode="json", by_alias=True), settings.cache_ttl_player)
    return response
