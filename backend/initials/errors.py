"""Domain errors raised by services and rendered by the games blueprint."""


class GameError(Exception):
    status_code = 400

    def __init__(self, message=None):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__

    def to_dict(self):
        return {'error': self.message}


class InvalidRequest(GameError):
    """Malformed request"""


class InvalidGameState(GameError):
    """Action not allowed in the current game state"""


class GameNotFound(GameError):
    """Game not found"""
    status_code = 404


class GameAlreadyStarted(GameError):
    """This game has already started or finished"""
    status_code = 403


class MissingPlayerIdentity(GameError):
    """A known player_id is required for this action"""
    status_code = 403


class NotInitiator(GameError):
    """Only the game initiator may do this"""
    status_code = 403


class CellConflict(GameError):
    """Cell was changed by a teammate"""
    status_code = 409


class DuplicateGameCode(GameError):
    """Could not allocate a unique game code"""
    status_code = 503


class ValidationLookupFailure(Exception):
    """The title lookup could not be completed (transport error, timeout, bad payload)."""
