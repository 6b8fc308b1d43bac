"""
Domain exceptions raised by the service layer.

Routes translate these into HTTP responses; nothing here knows about HTTP.
"""


class ArcadeBoardError(Exception):
    """Base class for all ArcadeBoard errors."""


class RunPersistenceError(ArcadeBoardError):
    """The run could not be stored, so the player record was left untouched."""


class PlayerNotFoundError(ArcadeBoardError):
    def __init__(self, player_id: str):
        super().__init__(f"Player '{player_id}' not found")
        self.player_id = player_id


class DuplicateUsernameError(ArcadeBoardError):
    def __init__(self, username: str):
        super().__init__(f"Username '{username}' is already registered")
        self.username = username


class InvalidCredentialsError(ArcadeBoardError):
    """Unknown user or wrong password. Callers must not tell them apart."""
