"""
Errors raised across layers.

The rules engine never raises for a well-formed board: it answers False instead.
These errors are raised by the orchestrating layers (Game, Service, Repository) when a request cannot be honoured.
"""


class GameError(Exception):
    """Base class for anything the service layer should report back to the caller."""


class GameStateError(GameError):
    """Request does not fit the state the game is in (game over, awaiting promotion, corrupt snapshot...)"""


class IllegalMoveError(GameError):
    """The requested move is not legal in the current position."""


class NotYourTurnError(GameError):
    """A side tried to act while it is the other side's turn."""


class AbilityNotAvailableError(GameError):
    """Special ability used outside crazy mode, by the wrong side, or with none left."""


class InvalidRequestError(GameError):
    """Malformed request data. Raised from pydantic validators, it reaches the caller unwrapped."""


class RepositoryError(GameError):
    """Persistence layer could not find / store the requested game."""
