"""Faults raised by lobby and round operations.

Every fault is surfaced synchronously to the caller; the HTTP layer renders
``kind`` and the message with ``status_code``. A stale phase nonce is not a
fault (see ``RoundAdvancer``).
"""


class GameError(Exception):
    kind = 'game_error'
    status_code = 400


class AuthorizationError(GameError):
    """Wrong role: not host, not question owner, answering own question."""
    kind = 'authorization'
    status_code = 403


class StateError(GameError):
    """Wrong game state or phase for the requested action."""
    kind = 'state'
    status_code = 400


class TimingError(GameError):
    """The phase deadline has already passed."""
    kind = 'timing'
    status_code = 409


class ValidationError(GameError):
    kind = 'validation'
    status_code = 400


class ConsistencyError(GameError):
    """A referenced document vanished or does not belong where expected."""
    kind = 'consistency'
    status_code = 409


class NotHost(AuthorizationError):
    kind = 'not_host'


class NotMember(AuthorizationError):
    kind = 'not_member'


class NotOwner(AuthorizationError):
    kind = 'not_owner'


class NotAuthorized(AuthorizationError):
    kind = 'not_authorized'


class OwnAnswerRejected(AuthorizationError):
    kind = 'own_answer_rejected'


class WrongState(StateError):
    kind = 'wrong_state'


class PhaseClosed(StateError):
    kind = 'phase_closed'


class NotEnoughPlayers(StateError):
    kind = 'not_enough_players'


class InsufficientQuestions(StateError):
    kind = 'insufficient_questions'


class IncompleteRatings(StateError):
    kind = 'incomplete_ratings'


class WindowClosed(TimingError):
    kind = 'window_closed'


class BlankAnswer(ValidationError):
    kind = 'blank_answer'


class StarOutOfRange(ValidationError):
    kind = 'star_out_of_range'


class InvalidSetting(ValidationError):
    kind = 'invalid_setting'


class ResponseMismatch(ConsistencyError):
    kind = 'response_mismatch'


class QuestionMissing(ConsistencyError):
    kind = 'question_missing'


class ConcurrentUpdate(ConsistencyError):
    kind = 'concurrent_update'


class LobbyNotFound(ConsistencyError):
    kind = 'lobby_not_found'
    status_code = 404
