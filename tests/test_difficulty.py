import random

import pytest

from memory_game.services.game.difficulty import (
    LEVEL_DOWN,
    LEVEL_UP,
    DifficultyConfig,
    TimingConfig,
    generate_number,
    group_digits,
    length_for_score,
    level_change,
    question_duration_ms,
    score_for_length,
    ungroup,
    variant,
)


def test_length_stays_at_minimum_below_first_step():
    assert [length_for_score(s) for s in range(5)] == [6, 6, 6, 6, 6]


def test_length_staircase_breakpoints():
    assert length_for_score(5) == 7
    assert length_for_score(11) == 7
    assert length_for_score(12) == 8
    assert length_for_score(19) == 9
    assert length_for_score(26) == 10
    assert length_for_score(33) == 11


def test_length_is_monotonic_and_never_below_minimum():
    lengths = [length_for_score(s) for s in range(200)]
    assert min(lengths) >= 6
    assert lengths == sorted(lengths)


def test_score_for_length_matches_breakpoints():
    for length in range(7, 15):
        score = score_for_length(length)
        assert score == 5 + 7 * (length - 7)
        assert length_for_score(score) == length
        assert length_for_score(score - 1) == length - 1
    assert score_for_length(6) == 0


def test_capped_variant_stops_at_ten_digits():
    capped = variant('capped')
    assert length_for_score(26, capped) == 10
    assert length_for_score(500, capped) == 10
    with pytest.raises(ValueError):
        score_for_length(11, capped)


def test_unknown_variant_is_rejected():
    with pytest.raises(ValueError):
        variant('impossible')


def test_negative_score_is_rejected():
    with pytest.raises(ValueError):
        length_for_score(-1)


def test_invalid_config_is_rejected():
    with pytest.raises(ValueError):
        DifficultyConfig(step_width=0)
    with pytest.raises(ValueError):
        DifficultyConfig(min_length=6, max_length=5)


def test_custom_staircase():
    config = DifficultyConfig(min_length=4, first_step_score=2, step_width=3)
    assert [length_for_score(s, config) for s in range(9)] == [4, 4, 5, 5, 5, 6, 6, 6, 7]


def test_level_change():
    assert level_change(6, 7) == LEVEL_UP
    assert level_change(7, 6) == LEVEL_DOWN
    assert level_change(7, 7) is None


def test_question_duration():
    assert question_duration_ms(6) == 2500
    assert question_duration_ms(7) == 3000
    assert question_duration_ms(10) == 4500
    # Slower variant
    assert question_duration_ms(8, TimingConfig(base_duration_ms=3000)) == 4000


@pytest.mark.parametrize('digits, expected', [
    ('482910', '482 910'),
    ('4829101', '482 9101'),
    ('48291012', '4829 1012'),
    ('482910123', '482 910 123'),
    ('4829101234', '482 910 1234'),
    ('48291012345', '4829 1012 345'),
    ('482910123456', '4829 1012 3456'),
    ('4829101234567', '4829 1012 3456 7'),
])
def test_grouping_table(digits, expected):
    assert group_digits(digits) == expected


def test_grouping_keeps_digits_and_round_trips():
    rng = random.Random(7)
    for length in range(1, 25):
        digits = generate_number(length, rng)
        grouped = group_digits(digits)
        assert ungroup(grouped) == digits
        assert group_digits(digits, separator='-').replace('-', '') == digits


def test_grouping_depends_only_on_length():
    assert group_digits('000000') == '000 000'
    assert group_digits('999999') == '999 999'


def test_generate_number_is_digits_of_requested_length():
    rng = random.Random(1)
    numbers = {generate_number(9, rng) for _ in range(20)}
    assert all(len(n) == 9 and n.isdigit() for n in numbers)
    # Fresh numbers each call
    assert len(numbers) > 1
