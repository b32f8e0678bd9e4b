from dataclasses import dataclass
from enum import Enum
from typing import Optional

from memory_game.services.game.difficulty import group_digits


class RoundState(str, Enum):
    showing = 'showing'
    paused = 'paused'
    awaiting_answer = 'awaiting_answer'
    showing_result = 'showing_result'


@dataclass
class Round:
    number: int
    digits: str
    state: RoundState = RoundState.showing
    submitted: Optional[str] = None
    is_correct: Optional[bool] = None

    def to_dict(self):
        return {
            'number': self.number,
            'digits': self.digits,
            'state': self.state.value,
            'submitted': self.submitted,
            'is_correct': self.is_correct,
        }


@dataclass
class GameSession:
    score: int = 0
    current_length: int = 6
    rounds_played: int = 0
    correct_answers: int = 0
    best_length: int = 6

    def reset(self, min_length: int) -> None:
        self.score = 0
        self.current_length = min_length
        self.rounds_played = 0
        self.correct_answers = 0
        self.best_length = min_length

    def to_dict(self):
        return {
            'score': self.score,
            'current_length': self.current_length,
            'rounds_played': self.rounds_played,
            'correct_answers': self.correct_answers,
            'best_length': self.best_length,
        }


@dataclass(frozen=True)
class AnswerResult:
    is_correct: bool
    score: int
    previous_length: int
    current_length: int
    level_change: Optional[str] = None
    correct_answer: str = ''
    submitted_answer: str = ''

    def to_dict(self):
        data = {
            'is_correct': self.is_correct,
            'score': self.score,
            'previous_length': self.previous_length,
            'current_length': self.current_length,
            'level_change': self.level_change,
        }
        if not self.is_correct:
            data['correct_answer'] = group_digits(self.correct_answer)
            data['submitted_answer'] = group_digits(self.submitted_answer)
        return data
