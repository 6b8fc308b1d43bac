"""
Game tag matching against the configured list of supported games.
"""
from typing import Any, Optional

from arcadeboard.config import get_settings


def match_game(value: Any) -> Optional[str]:
    """Return the supported tag for value, or None when it is not one."""
    if not isinstance(value, str):
        return None
    tag = value.strip().lower()
    return tag if tag in get_settings().supported_games else None


def resolve_game(value: Any) -> str:
    """
    Tag to store for a submitted run.

    Unknown or missing tags fall back to the default game instead of being
    rejected, so older clients keep working when new games are added.
    """
    return match_game(value) or get_settings().default_game
