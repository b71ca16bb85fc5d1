"""Domain errors raised by the session services.

Every error carries a stable ``code`` and an HTTP ``status_code``; the app
factory registers a single handler that renders them as JSON.
"""


class GameError(Exception):
    status_code = 400
    code = 'GAME_ERROR'
    message = 'An unknown game error occurred.'

    def __init__(self, message=None, **details):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self):
        payload = {'error': self.message, 'code': self.code}
        payload.update(self.details)
        return payload


# ---- Categories ----

class ValidationError(GameError):
    status_code = 400
    code = 'VALIDATION_ERROR'


class NotFoundError(GameError):
    status_code = 404
    code = 'NOT_FOUND'


class AuthorizationError(GameError):
    status_code = 403
    code = 'UNAUTHORIZED'
    message = 'You are not allowed to perform this action.'


class StateConflictError(GameError):
    status_code = 409
    code = 'STATE_CONFLICT'


class EconomicError(GameError):
    status_code = 401
    code = 'INSUFFICIENT_FUNDS'


class RuleViolationError(GameError):
    status_code = 422
    code = 'RULE_VIOLATION'


class TimeoutForfeitError(GameError):
    status_code = 409
    code = 'TIMEOUT_FORFEIT'


class TransientError(GameError):
    status_code = 503
    code = 'TRANSIENT'


# ---- Validation ----

class MissingParameters(ValidationError):
    code = 'MISSING_PARAMETERS'
    message = 'You have to specify either an opponent email or an AI difficulty.'


class InvalidParameters(ValidationError):
    status_code = 422
    code = 'INVALID_PARAMETERS'
    message = 'You cannot specify both an opponent and an AI difficulty.'


class InvalidDifficulty(ValidationError):
    code = 'INVALID_DIFFICULTY'
    message = 'The AI difficulty must be Easy or Hard.'


class InvalidPosition(ValidationError):
    code = 'INVALID_POSITION'
    message = 'Positions must be a file letter A-H followed by a rank 1-8.'


class InvalidBoardSnapshot(ValidationError):
    status_code = 422
    code = 'INVALID_BOARD'
    message = 'The board snapshot is not valid.'


class InvalidFormat(ValidationError):
    code = 'INVALID_FORMAT'
    message = 'The requested export format is not supported.'


class MissingDate(ValidationError):
    code = 'MISSING_DATE'
    message = 'Both start_date and end_date must be provided.'


class InvalidDate(ValidationError):
    code = 'INVALID_DATE'
    message = 'Dates must use the YYYY-MM-DD format.'


class InvalidDateRange(ValidationError):
    code = 'INVALID_DATE_RANGE'
    message = 'start_date must not be after end_date.'


class NonPositiveTokens(ValidationError):
    status_code = 422
    code = 'POSITIVE_TOKEN'
    message = 'The token amount must be a positive number.'


# ---- Not found ----

class SessionNotFound(NotFoundError):
    code = 'SESSION_NOT_FOUND'
    message = "The game session doesn't exist!"


class PlayerNotFound(NotFoundError):
    code = 'PLAYER_NOT_FOUND'
    message = 'Player not found.'


class OpponentNotFound(NotFoundError):
    code = 'OPPONENT_NOT_FOUND'
    message = 'The opponent could not be found.'


class NoMoves(NotFoundError):
    code = 'NO_MOVES'
    message = 'There are no moves for this game session.'


# ---- Authorization ----

class NotParticipant(AuthorizationError):
    code = 'NOT_PARTICIPANT'
    message = 'You are not a participant of this game session.'


class AdminRequired(AuthorizationError):
    code = 'ADMIN_REQUIRED'
    message = 'Only administrators can perform this action.'


# ---- State conflicts ----

class SessionNotActive(StateConflictError):
    code = 'SESSION_NOT_ACTIVE'
    message = 'The game session is not in progress.'


class NotActorsTurn(StateConflictError):
    code = 'NOT_ACTORS_TURN'
    message = 'It is not your turn.'


class SelfChallenge(StateConflictError):
    status_code = 400
    code = 'SELF_CHALLENGE_NOT_ALLOWED'
    message = 'You cannot challenge yourself.'


class PlayerAlreadyInGame(StateConflictError):
    code = 'PLAYER_ALREADY_IN_GAME'
    message = 'You are already playing an ongoing game.'


class OpponentAlreadyInGame(StateConflictError):
    code = 'OPPONENT_ALREADY_IN_GAME'
    message = 'The opponent is already playing an ongoing game.'


# ---- Economy ----

class InsufficientCredit(EconomicError):
    code = 'INSUFFICIENT_CREDIT'
    message = 'You do not have enough tokens to create a game.'


# ---- Rules ----

class IllegalMove(RuleViolationError):
    code = 'NOT_VALID_MOVE'
    message = 'The move is not valid!'


# ---- Timeout / transient ----

class TimeoutForfeit(TimeoutForfeitError):
    message = 'The game has ended due to a timeout.'


class SessionBusy(TransientError):
    code = 'SESSION_BUSY'
    message = 'The game session is busy, please retry.'
