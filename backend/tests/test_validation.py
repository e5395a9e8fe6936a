import math

import pytest

from trivia.errors import BlankAnswer, InvalidSetting, StarOutOfRange
from trivia.services.rounds.state import Difficulty
from trivia.services.rounds.validation import (
    clamp_and_validate_stars,
    clamp_max_questions,
    clamp_timer,
    effective_max_questions,
    normalize_stored_stars,
    parse_difficulty,
    sanitize_text,
)


@pytest.mark.parametrize('raw, expected', [(0, 0), (5, 5), (3.6, 4), (2.5, 3), (-0.4, 0), (5.4, 5)])
def test_stars_round_half_up(raw, expected):
    assert clamp_and_validate_stars(raw) == expected


@pytest.mark.parametrize('raw', [6, -1, 5.5, math.nan, math.inf, None, 'lots', '4', True])
def test_stars_rejected(raw):
    with pytest.raises(StarOutOfRange):
        clamp_and_validate_stars(raw)


def test_stored_stars_are_normalized_for_scoring():
    assert normalize_stored_stars(None) == 0
    assert normalize_stored_stars(9) == 5
    assert normalize_stored_stars(-3) == 0
    assert normalize_stored_stars('junk') == 0
    assert normalize_stored_stars(2) == 2


def test_sanitize_text_trims():
    assert sanitize_text('  Paris \n', 'Answer') == 'Paris'
    for blank in ('', '   ', None, 12):
        with pytest.raises(BlankAnswer):
            sanitize_text(blank, 'Answer')


def test_parse_difficulty():
    assert parse_difficulty(' medium ') is Difficulty.MEDIUM
    with pytest.raises(InvalidSetting):
        parse_difficulty('impossible')


def test_timer_is_clamped():
    assert clamp_timer(5, 15, 300) == 15
    assert clamp_timer('90', 15, 300) == 90
    assert clamp_timer(1000, 15, 300) == 300
    with pytest.raises(InvalidSetting):
        clamp_timer('soon', 15, 300)


def test_max_questions():
    assert effective_max_questions(None, 9, 3, 6) == 6
    assert effective_max_questions(10, 9, 3, 6) == 9
    assert clamp_max_questions(1, 9, 3) == 3
    assert clamp_max_questions(20, 9, 3) == 9
    with pytest.raises(InvalidSetting):
        clamp_max_questions(4, 2, 3)
