from dataclasses import dataclass
from enum import Enum
from typing import Union


class GameState(str, Enum):
    SETUP = 'SETUP'
    PLAY = 'PLAY'
    ENDED = 'ENDED'


class Phase(str, Enum):
    ANSWERING = 'ANSWERING'
    RATING = 'RATING'


class Difficulty(str, Enum):
    EASY = 'EASY'
    MEDIUM = 'MEDIUM'
    HARD = 'HARD'


def phase_duration(phase: Phase, time_per_question: int) -> int:
    """Rating gets double the answering window: the owner reviews every answer."""
    return time_per_question * 2 if phase is Phase.RATING else time_per_question


@dataclass(frozen=True)
class NotPlaying:
    """No live phase: lobby is in setup, ended, or its round state was lost."""

    def as_fields(self) -> dict:
        return {
            'phase': None,
            'current_question_id': None,
            'phase_started_at': None,
            'phase_ends_at': None,
        }


@dataclass(frozen=True)
class Active:
    phase: Phase
    question_id: int
    started_at: int
    ends_at: int
    nonce: int

    def remaining(self, now: int) -> int:
        return self.ends_at - now

    def is_open(self, now: int) -> bool:
        return now < self.ends_at

    def as_fields(self) -> dict:
        return {
            'phase': self.phase.value,
            'current_question_id': self.question_id,
            'phase_started_at': self.started_at,
            'phase_ends_at': self.ends_at,
            'phase_nonce': self.nonce,
        }


RoundState = Union[NotPlaying, Active]
