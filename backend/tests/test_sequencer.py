from collections import Counter
from types import SimpleNamespace

import pytest

from conftest import KeepOrder
from trivia.errors import InsufficientQuestions
from trivia.services.rounds.sequencer import QuestionSequencer, balanced_order
from trivia.services.rounds.settings import RoundSettings
from trivia.services.rounds.state import Difficulty

EASY, MEDIUM, HARD = Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD


def _questions(**counts):
    questions = []
    for difficulty, count in counts.items():
        for _ in range(count):
            questions.append(SimpleNamespace(id=len(questions) + 1, difficulty=difficulty.upper()))
    return questions


def test_equal_pools_tie_break_on_difficulty_name():
    pools = {EASY: [1, 2], MEDIUM: [3, 4], HARD: [5, 6]}
    assert balanced_order(pools, 6) == [1, 5, 3, 2, 6, 4]


def test_larger_pool_wins_ties():
    pools = {EASY: [1], MEDIUM: [2, 3, 4], HARD: [5, 6]}
    assert balanced_order(pools, 3) == [2, 5, 1]


def test_exhausted_pool_is_skipped():
    pools = {EASY: [1, 2, 3, 4], MEDIUM: [5], HARD: []}
    assert balanced_order(pools, 10) == [1, 5, 2, 3, 4]


def test_per_difficulty_counts_stay_within_one(flask_app):
    sequencer = QuestionSequencer(RoundSettings(), rng=KeepOrder())
    questions = _questions(easy=3, medium=3, hard=2)
    by_id = {q.id: q.difficulty for q in questions}

    order = sequencer.build_order(questions, None)
    assert len(order) == 6
    counts = Counter(by_id[question_id] for question_id in order)
    assert max(counts.values()) - min(counts.values()) <= 1
    assert len(set(order)) == len(order)


def test_match_size_rules():
    sequencer = QuestionSequencer(RoundSettings())
    assert sequencer.match_size(None, 10) == 6
    assert sequencer.match_size(None, 4) == 4
    assert sequencer.match_size(2, 10) == 3
    assert sequencer.match_size(8, 5) == 5


def test_build_order_honours_configured_maximum(flask_app):
    sequencer = QuestionSequencer(RoundSettings(), rng=KeepOrder())
    order = sequencer.build_order(_questions(easy=3, medium=3, hard=3), 4)
    assert len(order) == 4


def test_too_few_questions(flask_app):
    sequencer = QuestionSequencer(RoundSettings())
    with pytest.raises(InsufficientQuestions):
        sequencer.build_order(_questions(easy=1, hard=1), None)


def test_unknown_difficulties_are_skipped(flask_app):
    sequencer = QuestionSequencer(RoundSettings(), rng=KeepOrder())
    questions = _questions(trivial=3)
    with pytest.raises(InsufficientQuestions):
        sequencer.build_order(questions, None)

    questions = _questions(trivial=2, easy=2)
    assert sequencer.build_order(questions, None) == [3, 4]
