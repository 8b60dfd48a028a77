"""Error taxonomy for game operations.

Every error carries a machine readable ``code`` and the HTTP ``status`` the
API answers with, so routes can simply let them propagate.
"""

NOT_FOUND = 'NOT_FOUND'
INVALID_PHASE = 'INVALID_PHASE'
ALREADY_STARTED = 'ALREADY_STARTED'
NOT_ENOUGH_PLAYERS = 'NOT_ENOUGH_PLAYERS'
NOT_HOST = 'NOT_HOST'
INVALID_ACTION = 'INVALID_ACTION'
STORE_UNAVAILABLE = 'STORE_UNAVAILABLE'
WRITE_CONFLICT = 'WRITE_CONFLICT'
MALFORMED_STATE = 'MALFORMED_STATE'


class GameError(Exception):
    """Base exception for game-related errors."""
    code = INVALID_ACTION
    status = 400
    default_message = 'Invalid action'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(f"[{self.code}] {self.message}")

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class NotFound(GameError):
    code = NOT_FOUND
    status = 404
    default_message = 'Game not found'


class InvalidPhaseTransition(GameError):
    code = INVALID_PHASE
    status = 409
    default_message = 'Action not allowed in the current phase'


class AlreadyStarted(InvalidPhaseTransition):
    code = ALREADY_STARTED
    default_message = 'Game already started'


class NotEnoughPlayers(GameError):
    code = NOT_ENOUGH_PLAYERS
    default_message = 'Not enough players to start'


class NotHost(GameError):
    code = NOT_HOST
    status = 403
    default_message = 'Only the host may do that'


class InvalidAction(GameError):
    pass


class StoreUnavailable(GameError):
    code = STORE_UNAVAILABLE
    status = 503
    default_message = 'Temporary error, please try again'


class WriteConflict(GameError):
    code = WRITE_CONFLICT
    status = 409
    default_message = 'The game changed meanwhile, please reload'


class MalformedState(GameError):
    code = MALFORMED_STATE
    status = 500
    default_message = 'Game record could not be loaded'
