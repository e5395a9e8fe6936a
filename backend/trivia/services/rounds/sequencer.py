import random
from typing import Dict, List, Optional

from flask import current_app

from trivia.errors import InsufficientQuestions
from trivia.services.rounds.settings import RoundSettings
from trivia.services.rounds.state import Difficulty
from trivia.services.rounds.validation import effective_max_questions


def balanced_order(pools: Dict[Difficulty, List[int]], limit: int) -> List[int]:
    """Pop from the least-picked difficulty until ``limit`` or every pool is empty.

    Ties go to the larger remaining pool, then to the difficulty name.
    Pools are consumed from the front.
    """
    picked = {difficulty: 0 for difficulty in pools}
    order = []
    while len(order) < limit:
        candidates = [difficulty for difficulty, ids in pools.items() if ids]
        if not candidates:
            break
        fewest = min(picked[difficulty] for difficulty in candidates)
        choice = min(
            (difficulty for difficulty in candidates if picked[difficulty] == fewest),
            key=lambda difficulty: (-len(pools[difficulty]), difficulty.value),
        )
        order.append(pools[choice].pop(0))
        picked[choice] += 1
    return order


class QuestionSequencer:
    def __init__(self, settings: RoundSettings, rng=None):
        self.settings = settings
        self.rng = rng or random

    def match_size(self, configured: Optional[int], available: int) -> int:
        return effective_max_questions(
            configured,
            available,
            self.settings.min_question_count,
            self.settings.default_max_questions,
        )

    def build_order(self, questions, configured_max: Optional[int]) -> List[int]:
        """Ordered question ids for a match from the unresolved ``questions``."""
        minimum = self.settings.min_question_count
        if len(questions) < minimum:
            raise InsufficientQuestions(f'At least {minimum} questions are required to start the game.')

        pools = {difficulty: [] for difficulty in Difficulty}
        for question in questions:
            try:
                pools[Difficulty(question.difficulty)].append(question.id)
            except ValueError:
                current_app.logger.warning(f"[sequence-skip] question={question.id} difficulty={question.difficulty!r}")
        for ids in pools.values():
            self.rng.shuffle(ids)

        order = balanced_order(pools, self.match_size(configured_max, len(questions)))
        if not order:
            raise InsufficientQuestions('No valid questions were found for this game.')
        return order
