from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Database
    database_url: str = "sqlite:///./arcadeboard.db"
    db_pool_size: int = 20
    db_max_overflow: int = 40

    # Redis
    redis_url: str = "redis://localhost:6379"
    cache_enabled: bool = True
    cache_ttl_leaderboard: int = 30  # seconds
    cache_ttl_player: int = 60  # seconds

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://localhost:5500",  # Live Server
        "http://127.0.0.1:5500",
    ]
    # Any port on localhost, for front ends served by dev tools
    cors_origin_regex: str = r"http://localhost:\d+|http://127\.0\.0\.1:\d+"

    # Games. Bump games_version whenever the list changes.
    supported_games: list[str] = ["disparando", "snake", "crush"]
    default_game: str = "disparando"
    games_version: int = 3

    # Leaderboard
    leaderboard_default_limit: int = 10
    leaderboard_max_limit: int = 100

    # Auth
    jwt_secret: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    token_expire_days: int = 7
    runs_require_auth: bool = False

    # New Relic
    new_relic_license_key: str = ""
    new_relic_app_name: str = "ArcadeBoard"

    # Logging
    log_level: str = "INFO"
    log_file: str = ""

    @field_validator("supported_games")
    @classmethod
    def normalize_games(cls, v: list[str]) -> list[str]:
        """Game tags are matched lower-cased, so store them that way."""
        games = [g.strip().lower() for g in v if g and g.strip()]
        if not games:
            raise ValueError("supported_games must list at least one game")
        return games

    @model_validator(mode="after")
    def check_default_game(self):
        self.default_game = self.default_game.strip().lower()
        if self.default_game not in self.supported_games:
            raise ValueError(
                f"default_game '{self.default_game}' is not one of {self.supported_games}"
            )
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
