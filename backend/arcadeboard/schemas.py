from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Any, Optional

from arcadeboard.games import resolve_game


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while keeping snake_case attributes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RunSubmission(CamelModel):
    """
    Schema for a run submission.

    Numeric fields accept numbers or numeric strings but must be finite;
    they are never defaulted. The game tag is normalized and unknown tags
    fall back to the default game.

    Example:
        {
            "playerId": "p1",
            "name": "Ana",
            "score": 50,
            "time": 12.5,
            "level": 3,
            "game": "snake"
        }
    """
    player_id: str = Field(..., max_length=100, description="Client-generated player identifier", examples=["p1"])
    name: str = Field(default="", description="Display name, may change between runs", examples=["Ana"])
    score: float = Field(..., allow_inf_nan=False, description="Run score, higher is better", examples=[50])
    time: float = Field(..., allow_inf_nan=False, description="Run time in seconds, 0 when not recorded", examples=[12.5])
    level: float = Field(..., allow_inf_nan=False, description="Last level reached", examples=[3])
    game: str = Field(default="", validate_default=True, description="Game tag; unknown values use the default game", examples=["snake"])

    @field_validator('player_id', mode='before')
    @classmethod
    def validate_player_id(cls, v: Any) -> Any:
        """Accept numeric ids from older clients, reject blank ones."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError('playerId must not be empty')
        return v

    @field_validator('name', mode='before')
    @classmethod
    def validate_name(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator('game', mode='before')
    @classmethod
    def validate_game(cls, v: Any) -> str:
        return resolve_game(v)


class PlayerSummary(CamelModel):
    """
    Schema for a player's best record.

    Example:
        {
            "playerId": "p1",
            "name": "Ana",
            "bestScore": 50,
            "bestScores": {"disparando": 0, "snake": 50, "crush": 0},
            "bestTime": 12.0,
            "lastLevel": 3,
            "updatedAt": "2026-10-19T10:30:00"
        }
    """
    player_id: str
    name: str
    best_score: float = Field(..., description="Best score across all games")
    best_scores: dict[str, float] = Field(..., description="Best score per supported game")
    best_time: float = Field(..., description="Lowest positive time, 0 when none recorded")
    last_level: float = Field(..., description="Level reached in the latest run")
    updated_at: datetime


class RunResponse(BaseModel):
    ok: bool = True
    player: PlayerSummary


class PlayerResponse(BaseModel):
    ok: bool = True
    player: PlayerSummary


class LeaderboardEntry(CamelModel):
    """
    Schema for a single leaderboard row.

    Global rows come from player records; per-game rows come from the
    player's best run in that game and carry the game tag.
    """
    rank: int = Field(..., description="1-based position in this leaderboard", examples=[1])
    player_id: str
    name: str
    best_score: float
    best_time: float
    updated_at: datetime
    game: Optional[str] = None


class LeaderboardResponse(BaseModel):
    """
    Schema for leaderboard queries.

    Example:
        {
            "ok": true,
            "leaderboard": [
                {"rank": 1, "playerId": "p1", "name": "Ana", "bestScore": 50,
                 "bestTime": 12.0, "updatedAt": "2026-10-19T10:30:00", "game": "snake"}
            ],
            "scope": "by-game",
            "game": "snake"
        }
    """
    ok: bool = True
    leaderboard: list[LeaderboardEntry]
    scope: str = Field(..., description="'global' or 'by-game'")
    game: Optional[str] = None


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=72)

    @field_validator('username', mode='before')
    @classmethod
    def strip_username(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class LoginRequest(BaseModel):
    """Missing fields are not a validation error: they fail as bad credentials."""
    username: str = ""
    password: str = ""

    @field_validator('username', 'password', mode='before')
    @classmethod
    def non_string_is_empty(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""


class RegisterResponse(BaseModel):
    ok: bool = True
    msg: str = "User registered"


class LoginResponse(BaseModel):
    ok: bool = True
    token: str
    username: str


class ErrorResponse(BaseModel):
    """
    Schema for error responses.

    Example:
        {
            "ok": false,
            "error": "Player 'p9' not found"
        }
    """
    ok: bool = False
    error: str = Field(..., description="Error message", examples=["Player 'p9' not found"])
    detail: Optional[list[dict[str, Any]]] = Field(None, description="Field errors for invalid input")
