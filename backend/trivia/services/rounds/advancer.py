import json
from dataclasses import dataclass
from typing import List, Optional

from flask import current_app

from trivia.errors import IncompleteRatings, NotAuthorized, QuestionMissing, StateError, WrongState
from trivia.models import Lobby, Question, Response
from trivia.services.rounds.state import Active, GameState, NotPlaying, Phase, phase_duration

NOT_IN_PLAY = 'not_in_play'
STALE_NONCE = 'stale_nonce'
MISSING_PHASE_STATE = 'missing_phase_state'
MISSING_QUESTION = 'missing_question'


@dataclass(frozen=True)
class AdvanceResult:
    advanced: bool
    reason: Optional[str] = None
    phase: Optional[str] = None

    def to_dict(self):
        payload = {'advanced': self.advanced}
        if self.reason:
            payload['reason'] = self.reason
        if self.phase:
            payload['phase'] = self.phase
        return payload


def require_current_question(store, state: Active):
    question = store.get(Question, state.question_id)
    if not question:
        raise QuestionMissing('The active question no longer exists.')
    return question


class RoundAdvancer:
    """ANSWERING -> RATING -> (next ANSWERING | ENDED).

    Every transition is claimed with a compare-and-swap on ``phase_nonce``:
    the lobby row is updated only while it still carries the caller's
    expected nonce, and the update bumps it by one. Timer fires and manual
    advances are the same input; whichever commits first wins and the rest
    observe a stale nonce.
    """

    def __init__(self, store, clock, scheduler, scoring, settings):
        self.store = store
        self.clock = clock
        self.scheduler = scheduler
        self.scoring = scoring
        self.settings = settings

    def begin_match(self, lobby: Lobby, order: List[int]) -> Active:
        """First ANSWERING phase at nonce 1. Caller owns the transaction."""
        now = self.clock.now()
        first = Active(
            phase=Phase.ANSWERING,
            question_id=order[0],
            started_at=now,
            ends_at=now + phase_duration(Phase.ANSWERING, lobby.time_per_question),
            nonce=1,
        )
        fields = {
            'game_state': GameState.PLAY.value,
            'question_order': json.dumps(order),
            'question_cursor': 0,
            **first.as_fields(),
        }
        if not self.store.patch(Lobby, lobby.id, fields, expect={'game_state': GameState.SETUP.value}):
            raise WrongState('This game can no longer be started from this screen.')
        self.scheduler.arm(lobby.id, first.nonce, first.ends_at - now)
        current_app.logger.info(f"[match-start] lobby={lobby.id} questions={order}")
        return first

    def advance(self, lobby_id: int, expected_nonce: int) -> AdvanceResult:
        with self.store.transaction():
            return self._advance(lobby_id, expected_nonce)

    def on_deadline(self, lobby_id: int, expected_nonce: int) -> AdvanceResult:
        current_app.logger.info(f"[timer-fire] lobby={lobby_id} expected_nonce={expected_nonce}")
        return self.advance(lobby_id, expected_nonce)

    def request_early_advance(self, lobby_id: int, player_id: int) -> AdvanceResult:
        """Host may always skip; the question owner only once every response is rated."""
        with self.store.transaction():
            lobby = self.store.get(Lobby, lobby_id)
            if not lobby or lobby.game_state != GameState.PLAY.value:
                raise WrongState('This game is not currently in play mode.')
            state = lobby.round_state
            if not isinstance(state, Active):
                raise StateError('Round state is not ready for skipping.')

            if lobby.host_player_id != player_id:
                if state.phase is not Phase.RATING:
                    raise NotAuthorized('Only the host can skip before ratings start.')
                question = require_current_question(self.store, state)
                if question.owner_id != player_id:
                    raise NotAuthorized('Only the rating player can skip early after ratings are complete.')
                responses = self.store.query_by_index(Response, 'question_id', question.id)
                if not all(response.is_fully_rated for response in responses):
                    raise IncompleteRatings('Rate every submitted response before moving to the next question.')

            return self._advance(lobby.id, state.nonce)

    def _claim(self, lobby_id: int, expected_nonce: int, fields: dict) -> bool:
        fields = {**fields, 'phase_nonce': expected_nonce + 1}
        return self.store.patch(Lobby, lobby_id, fields, expect={'phase_nonce': expected_nonce})

    def _stale(self, lobby_id: int, expected_nonce: int, actual) -> AdvanceResult:
        current_app.logger.info(f"[stale] lobby={lobby_id} expected_nonce={expected_nonce} actual_nonce={actual}")
        return AdvanceResult(False, reason=STALE_NONCE)

    def _advance(self, lobby_id: int, expected_nonce: int) -> AdvanceResult:
        lobby = self.store.get(Lobby, lobby_id)
        if not lobby or lobby.game_state != GameState.PLAY.value:
            return AdvanceResult(False, reason=NOT_IN_PLAY)
        if lobby.phase_nonce != expected_nonce:
            return self._stale(lobby_id, expected_nonce, lobby.phase_nonce)

        state = lobby.round_state
        if not isinstance(state, Active):
            current_app.logger.warning(f"[phase] lobby={lobby_id} nonce={expected_nonce} missing phase state")
            return AdvanceResult(False, reason=MISSING_PHASE_STATE)

        question = self.store.get(Question, state.question_id)
        if not question:
            ended = {'game_state': GameState.ENDED.value, **NotPlaying().as_fields()}
            if not self._claim(lobby_id, expected_nonce, ended):
                return self._stale(lobby_id, expected_nonce, None)
            current_app.logger.error(f"[recover] lobby={lobby_id} question={state.question_id} vanished; match ended")
            return AdvanceResult(False, reason=MISSING_QUESTION)

        now = self.clock.now()
        if state.phase is Phase.ANSWERING:
            rating = Active(
                phase=Phase.RATING,
                question_id=question.id,
                started_at=now,
                ends_at=now + phase_duration(Phase.RATING, lobby.time_per_question),
                nonce=expected_nonce + 1,
            )
            if not self._claim(lobby_id, expected_nonce, rating.as_fields()):
                return self._stale(lobby_id, expected_nonce, None)
            self.scheduler.arm(lobby_id, rating.nonce, rating.ends_at - now)
            current_app.logger.info(f"[phase] lobby={lobby_id} question={question.id} ANSWERING -> RATING nonce={rating.nonce}")
            return AdvanceResult(True, phase=Phase.RATING.value)

        order = lobby.question_order_ids
        next_cursor = (lobby.question_cursor or 0) + 1
        following = None
        if next_cursor >= len(order):
            fields = {
                'game_state': GameState.ENDED.value,
                'question_cursor': len(order),
                **NotPlaying().as_fields(),
            }
        else:
            following = Active(
                phase=Phase.ANSWERING,
                question_id=order[next_cursor],
                started_at=now,
                ends_at=now + phase_duration(Phase.ANSWERING, lobby.time_per_question),
                nonce=expected_nonce + 1,
            )
            fields = {**following.as_fields(), 'question_cursor': next_cursor}

        if not self._claim(lobby_id, expected_nonce, fields):
            return self._stale(lobby_id, expected_nonce, None)
        self.scoring.finalize(lobby_id, question.id)

        if following is None:
            current_app.logger.info(f"[match-end] lobby={lobby_id} after question={question.id}")
        else:
            self.scheduler.arm(lobby_id, following.nonce, following.ends_at - now)
            current_app.logger.info(
                f"[phase] lobby={lobby_id} RATING -> ANSWERING question={following.question_id} nonce={following.nonce}"
            )
        return AdvanceResult(True, phase='ANSWERING_OR_END')
