"""Round lifecycle for the number memory game.

A round shows a freshly generated number, hides it, waits for the player's
answer, scores it and shows the result before the next round starts:

    showing -> paused -> awaiting_answer -> showing_result -> showing ...

Every delayed transition goes through the scheduler, and the controller
keeps at most one pending timer. Entering a state cancels whatever the
previous state scheduled, so a stale timer can never move the game on.
"""

import logging
import random
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from memory_game.models import AnswerResult, GameSession, Round, RoundState
from memory_game.renderers import Renderer
from memory_game.services.game.difficulty import (
    DifficultyConfig,
    TimingConfig,
    generate_number,
    group_digits,
    length_for_score,
    level_change,
    question_duration_ms,
    variant,
)
from memory_game.services.game.errors import InvalidAnswer, InvalidFormat, InvalidLength, NotAcceptingAnswers
from memory_game.services.game.fsm import IDLE, RoundFSM
from memory_game.services.game.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r'[0-9]+')


@dataclass(frozen=True)
class GameSettings:
    difficulty: DifficultyConfig = field(default_factory=DifficultyConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    pause_ms: int = 500
    result_dwell_ms: int = 1000
    auto_advance: bool = True
    input_error_clear_ms: int = 1500
    level_change_display_ms: int = 1800

    @classmethod
    def from_config(cls, config) -> 'GameSettings':
        """Build settings from a Flask-style config mapping."""
        base = variant(config.get('DIFFICULTY_VARIANT', 'staircase'))
        max_length = config.get('MAX_LENGTH')
        difficulty = DifficultyConfig(
            min_length=int(config.get('MIN_LENGTH', base.min_length)),
            first_step_score=int(config.get('FIRST_STEP_SCORE', base.first_step_score)),
            step_width=int(config.get('STEP_WIDTH', base.step_width)),
            max_length=int(max_length) if max_length is not None else base.max_length,
        )
        timing = TimingConfig(
            base_duration_ms=int(config.get('BASE_DURATION_MS', 2500)),
            per_extra_digit_ms=int(config.get('PER_EXTRA_DIGIT_MS', 500)),
            base_length=int(config.get('BASE_LENGTH', 6)),
        )
        return cls(
            difficulty=difficulty,
            timing=timing,
            pause_ms=int(config.get('PAUSE_MS', 500)),
            result_dwell_ms=int(config.get('RESULT_DWELL_MS', 1000)),
            auto_advance=bool(config.get('RESULT_AUTO_ADVANCE', True)),
            input_error_clear_ms=int(config.get('INPUT_ERROR_CLEAR_MS', 1500)),
            level_change_display_ms=int(config.get('LEVEL_CHANGE_DISPLAY_MS', 1800)),
        )

    def timing_dict(self):
        return {
            'base_duration_ms': self.timing.base_duration_ms,
            'per_extra_digit_ms': self.timing.per_extra_digit_ms,
            'pause_ms': self.pause_ms,
            'result_dwell_ms': self.result_dwell_ms,
            'auto_advance': self.auto_advance,
            'input_error_clear_ms': self.input_error_clear_ms,
            'level_change_display_ms': self.level_change_display_ms,
        }


class RoundController:
    def __init__(
        self,
        scheduler: Scheduler,
        renderer: Optional[Renderer] = None,
        settings: Optional[GameSettings] = None,
        rng: Optional[random.Random] = None,
        number_source: Optional[Callable[[int], str]] = None,
        game_code: str = '',
    ):
        self.scheduler = scheduler
        self.renderer = renderer or Renderer()
        self.settings = settings or GameSettings()
        self.game_code = game_code
        self._rng = rng or random.Random()
        self._number_source = number_source or (lambda length: generate_number(length, self._rng))
        self._fsm = RoundFSM()
        min_length = self.settings.difficulty.min_length
        self.session = GameSession(current_length=min_length, best_length=min_length)
        self.round: Optional[Round] = None
        self._round_counter = 0
        self._pending: Optional[TimerHandle] = None
        # Delay of the pending timer when it drives a state transition (for countdowns)
        self._countdown_ms: Optional[float] = None
        self._input_error = False

    # ---- Public operations ----

    @property
    def state(self) -> Optional[RoundState]:
        return self._fsm.round_state

    @property
    def pending_timer(self) -> Optional[TimerHandle]:
        return self._pending

    def start(self) -> None:
        if self._fsm.state_value == IDLE:
            self.start_new_round()

    def start_new_round(self) -> None:
        self._begin_round('restart')

    def submit_answer(self, raw: Optional[str]) -> AnswerResult:
        state = self.state
        if state is not RoundState.awaiting_answer:
            raise NotAcceptingAnswers(state.value if state else None)

        answer = (raw or '').strip()
        expected = self.session.current_length
        if len(answer) != expected:
            self._reject(InvalidLength(expected, len(answer)))
        if not _DIGITS.fullmatch(answer):
            self._reject(InvalidFormat(expected))

        rnd = self.round
        is_correct = answer == rnd.digits
        session = self.session
        if is_correct:
            session.score += 1
            session.correct_answers += 1
        else:
            session.score = max(0, session.score - 1)
        session.rounds_played += 1

        previous_length = session.current_length
        change = self._apply_length_for_score()

        rnd.submitted = answer
        rnd.is_correct = is_correct
        self._clear_input_error(emit=self._input_error)
        self._fsm.score()
        rnd.state = RoundState.showing_result
        if self.settings.auto_advance:
            self._set_timer(self.settings.result_dwell_ms, self._advance_round, 'result')
        else:
            self._cancel_pending()
        logger.info(
            f"[answer] game={self.game_code} round={rnd.number} correct={is_correct} "
            f"score={session.score} length={session.current_length}"
        )
        self._emit_state()
        if change:
            self.renderer.emit('level_change', {
                'type': change,
                'previous_length': previous_length,
                'current_length': session.current_length,
                'display_ms': self.settings.level_change_display_ms,
            })
        return AnswerResult(
            is_correct=is_correct,
            score=session.score,
            previous_length=previous_length,
            current_length=session.current_length,
            level_change=change,
            correct_answer=rnd.digits,
            submitted_answer=answer,
        )

    def next_round(self) -> bool:
        """Explicit "next" trigger. Only moves on from a shown result."""
        if self.state is not RoundState.showing_result:
            logger.debug(f"[next-ignored] game={self.game_code} state={self._fsm.state_value}")
            return False
        self._advance_round()
        return True

    def reset(self) -> None:
        self._cancel_pending()
        self.session.reset(self.settings.difficulty.min_length)
        self._round_counter = 0
        self._input_error = False
        logger.info(f"[reset] game={self.game_code}")
        self.start_new_round()

    def teardown(self) -> None:
        """Cancel every outstanding timer and release the round. Safe to call twice."""
        self._cancel_pending()
        self._fsm.stop()
        self.round = None
        self._input_error = False
        logger.info(f"[teardown] game={self.game_code}")

    def snapshot(self):
        state = self.state
        rnd = self.round
        showing = state is RoundState.showing
        data = {
            'game_code': self.game_code,
            'state': self._fsm.state_value,
            'round': rnd.number if rnd else None,
            'digits': rnd.digits if showing else None,
            'display': group_digits(rnd.digits) if showing else None,
            'score': self.session.score,
            'current_length': self.session.current_length,
            'duration_ms': None,
            'remaining_ms': None,
            'stats': self.session.to_dict(),
            'result': None,
        }
        if self._countdown_ms is not None and self._pending is not None and self._pending.active:
            data['duration_ms'] = self._countdown_ms
            data['remaining_ms'] = max(0.0, self._pending.due_ms - self.scheduler.now_ms())
        if state is RoundState.showing_result:
            result = {'is_correct': rnd.is_correct}
            if not rnd.is_correct:
                result['correct_answer'] = group_digits(rnd.digits)
                result['submitted_answer'] = group_digits(rnd.submitted)
            data['result'] = result
        return data

    # ---- State entry ----

    def _begin_round(self, event: str) -> None:
        self._cancel_pending()
        self._fsm.send(event)
        self._input_error = False
        self._round_counter += 1
        length = self.session.current_length
        self.round = Round(number=self._round_counter, digits=self._number_source(length))
        duration = question_duration_ms(length, self.settings.timing)
        self._set_timer(duration, self._hide_number, 'showing')
        logger.info(f"[round-start] game={self.game_code} round={self._round_counter} length={length} duration={duration}ms")
        self._emit_state()

    def _advance_round(self) -> None:
        self._begin_round('advance')

    def _hide_number(self) -> None:
        self._fsm.hide()
        self.round.state = RoundState.paused
        self._set_timer(self.settings.pause_ms, self._prompt_answer, 'paused')
        self._emit_state()

    def _prompt_answer(self) -> None:
        self._fsm.prompt()
        self.round.state = RoundState.awaiting_answer
        self._emit_state()

    # ---- Helpers ----

    def _apply_length_for_score(self) -> Optional[str]:
        session = self.session
        target = length_for_score(session.score, self.settings.difficulty)
        change = level_change(session.current_length, target)
        if change:
            logger.info(f"[level-change] game={self.game_code} {change} {session.current_length} -> {target}")
            session.current_length = target
            session.best_length = max(session.best_length, target)
        return change

    def _reject(self, error: InvalidAnswer) -> None:
        logger.info(f"[answer-invalid] game={self.game_code} error={error.code}")
        self._input_error = True
        self._set_timer(self.settings.input_error_clear_ms, self._clear_input_error, 'input-error', countdown=False)
        payload = error.to_dict()
        payload['clear_after_ms'] = self.settings.input_error_clear_ms
        self.renderer.emit('input_error', payload)
        raise error

    def _clear_input_error(self, emit: bool = True) -> None:
        self._input_error = False
        if emit:
            self.renderer.emit('input_error_cleared', {})

    def _set_timer(self, delay_ms, action, label, countdown=True) -> None:
        self._cancel_pending()
        handle = None

        def fire():
            self._on_timer(handle, action)

        handle = self.scheduler.schedule(delay_ms, fire, label=f'{self.game_code}:{label}')
        self._pending = handle
        self._countdown_ms = delay_ms if countdown else None

    def _on_timer(self, handle, action) -> None:
        if handle is not self._pending:
            logger.debug(f"[timer-stale] game={self.game_code} id={handle.id} label={handle.label}")
            return
        self._pending = None
        self._countdown_ms = None
        logger.debug(f"[timer-fire] game={self.game_code} id={handle.id} label={handle.label}")
        action()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self.scheduler.cancel(self._pending)
        self._pending = None
        self._countdown_ms = None

    def _emit_state(self) -> None:
        self.renderer.emit('state_update', self.snapshot())
