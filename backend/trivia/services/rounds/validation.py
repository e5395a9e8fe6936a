import math
from typing import Optional

from trivia.errors import BlankAnswer, InvalidSetting, StarOutOfRange
from trivia.services.rounds.state import Difficulty

MIN_STARS = 0
MAX_STARS = 5


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def sanitize_text(value, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise BlankAnswer(f'{label} must be at least 1 character long.')
    return value.strip()


def clamp_and_validate_stars(raw) -> int:
    """Round a submitted star rating to the nearest integer in [0, 5].

    Strings and booleans are rejected, as are non-finite and out-of-range
    numbers; nothing is clamped.
    """
    if isinstance(raw, (bool, str)):
        raise StarOutOfRange('Star rating must be a number.')
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise StarOutOfRange('Star rating must be a number.')
    if not math.isfinite(value):
        raise StarOutOfRange('Star rating must be a number.')
    rounded = _round_half_up(value)
    if rounded < MIN_STARS or rounded > MAX_STARS:
        raise StarOutOfRange(f'Star rating must be between {MIN_STARS} and {MAX_STARS}.')
    return rounded


def normalize_stored_stars(raw) -> int:
    """Stored ratings coerced for scoring: missing or broken values count as 0."""
    if raw is None or isinstance(raw, bool):
        return 0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(value):
        return 0
    return max(MIN_STARS, min(MAX_STARS, _round_half_up(value)))


def parse_difficulty(raw) -> Difficulty:
    try:
        return Difficulty(str(raw).strip().upper())
    except ValueError:
        raise InvalidSetting('Difficulty must be one of easy, medium or hard.')


def clamp_timer(raw, min_seconds: int, max_seconds: int) -> int:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidSetting('Timer must be a number of seconds.')
    if not math.isfinite(value):
        raise InvalidSetting('Timer must be a number of seconds.')
    return max(min_seconds, min(max_seconds, _round_half_up(value)))


def effective_max_questions(configured: Optional[int], available: int, minimum: int, default: int) -> int:
    available = max(0, int(available))
    if configured is None:
        return min(default, available)
    return max(minimum, min(available, int(configured)))


def clamp_max_questions(raw, available: int, minimum: int) -> int:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidSetting('Maximum questions must be a number.')
    if not math.isfinite(value):
        raise InvalidSetting('Maximum questions must be a number.')
    available = max(0, int(available))
    if available < minimum:
        raise InvalidSetting(f'At least {minimum} questions must be saved before setting a maximum.')
    return max(minimum, min(available, _round_half_up(value)))
