"""Errors raised by the round controller.

None of these are fatal: every condition is correctable by the player
within the current round, and transport layers turn them into JSON errors.
"""

from typing import Optional


class GameError(Exception):
    code = 'game_error'
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.code, 'message': self.message}


class InvalidAnswer(GameError):
    """A submission rejected before scoring."""

    code = 'invalid_answer'

    def __init__(self, message: str, expected_length: int):
        super().__init__(message)
        self.expected_length = expected_length

    def to_dict(self):
        data = super().to_dict()
        data['expected_length'] = self.expected_length
        return data


class InvalidLength(InvalidAnswer):
    code = 'invalid_length'

    def __init__(self, expected_length: int, actual_length: int):
        super().__init__(f'Please enter exactly {expected_length} digits', expected_length)
        self.actual_length = actual_length


class InvalidFormat(InvalidAnswer):
    code = 'invalid_format'

    def __init__(self, expected_length: int):
        super().__init__('Please enter only numbers', expected_length)


class NotAcceptingAnswers(GameError):
    code = 'not_accepting_answers'
    status_code = 409

    def __init__(self, state: Optional[str]):
        super().__init__(f'Not accepting answers while {state or "idle"}')
        self.state = state


class SessionNotFound(GameError):
    code = 'session_not_found'
    status_code = 404

    def __init__(self, game_code: str):
        super().__init__(f'Game {game_code} not found')
        self.game_code = game_code


class TooManySessions(GameError):
    code = 'too_many_sessions'
    status_code = 503

    def __init__(self, limit: int):
        super().__init__(f'Server is at its limit of {limit} live games')
        self.limit = limit
