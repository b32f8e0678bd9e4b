"""Score to difficulty mapping.

Everything here is a pure function of its arguments: the controller asks
for the digit length after each scored answer, and the same helpers format
numbers for display.
"""

import random
from dataclasses import dataclass
from typing import Optional

LEVEL_UP = 'level-up'
LEVEL_DOWN = 'level-down'


@dataclass(frozen=True)
class DifficultyConfig:
    min_length: int = 6
    # Score at which the first extra digit is added
    first_step_score: int = 5
    # Points between each further extra digit
    step_width: int = 7
    max_length: Optional[int] = None

    def __post_init__(self):
        if self.min_length < 1:
            raise ValueError('min_length must be positive')
        if self.step_width < 1:
            raise ValueError('step_width must be positive')
        if self.max_length is not None and self.max_length < self.min_length:
            raise ValueError('max_length must not be below min_length')


@dataclass(frozen=True)
class TimingConfig:
    base_duration_ms: int = 2500
    per_extra_digit_ms: int = 500
    # Digits covered by base_duration_ms
    base_length: int = 6


VARIANTS = {
    'staircase': DifficultyConfig(),
    'capped': DifficultyConfig(max_length=10),
}


def variant(name: str) -> DifficultyConfig:
    try:
        return VARIANTS[name]
    except KeyError:
        raise ValueError(f'Unknown difficulty variant {name!r}; expected one of {sorted(VARIANTS)}') from None


def length_for_score(score: int, config: DifficultyConfig = DifficultyConfig()) -> int:
    """Digit length for a cumulative score.

    Below ``first_step_score`` the minimum length applies; from there the
    length grows by one every ``step_width`` points (7 at 5, 8 at 12, ...).
    """
    if score < 0:
        raise ValueError('score must not be negative')
    if score < config.first_step_score:
        return config.min_length
    length = config.min_length + (score - config.first_step_score) // config.step_width + 1
    if config.max_length is not None:
        length = min(length, config.max_length)
    return length


def score_for_length(length: int, config: DifficultyConfig = DifficultyConfig()) -> int:
    """Lowest score at which ``length`` is reached."""
    if length <= config.min_length:
        return 0
    if config.max_length is not None and length > config.max_length:
        raise ValueError(f'length {length} is above the configured maximum {config.max_length}')
    return config.first_step_score + config.step_width * (length - config.min_length - 1)


def level_change(old_length: int, new_length: int) -> Optional[str]:
    if new_length > old_length:
        return LEVEL_UP
    if new_length < old_length:
        return LEVEL_DOWN
    return None


def question_duration_ms(length: int, timing: TimingConfig = TimingConfig()) -> int:
    extra_digits = max(0, length - timing.base_length)
    return timing.base_duration_ms + extra_digits * timing.per_extra_digit_ms


# Fixed layouts for the common lengths; anything else falls back to fours.
_GROUPINGS = {
    6: (3, 3),
    7: (3, 4),
    8: (4, 4),
    9: (3, 3, 3),
    10: (3, 3, 4),
}


def group_sizes(length: int):
    if length in _GROUPINGS:
        return _GROUPINGS[length]
    sizes = [4] * (length // 4)
    if length % 4:
        sizes.append(length % 4)
    return tuple(sizes)


def group_digits(digits: str, separator: str = ' ') -> str:
    """Insert separators for readability. Never changes the digits themselves."""
    groups = []
    start = 0
    for size in group_sizes(len(digits)):
        groups.append(digits[start:start + size])
        start += size
    return separator.join(groups)


def ungroup(text: str, separator: str = ' ') -> str:
    return text.replace(separator, '')


def generate_number(length: int, rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return ''.join(str(rng.randint(0, 9)) for _ in range(length))
