from flask import current_app

from trivia.errors import (
    NotMember,
    NotOwner,
    OwnAnswerRejected,
    PhaseClosed,
    ResponseMismatch,
    WindowClosed,
    WrongState,
)
from trivia.models import Lobby, Player, Response
from trivia.services.rounds.advancer import require_current_question
from trivia.services.rounds.state import Active, GameState, Phase
from trivia.services.rounds.validation import clamp_and_validate_stars, sanitize_text


class _PhaseCollector:
    """Shared checks for writes made during a live phase.

    The lobby row is read ``for_update`` so a write and a transition on the
    same lobby serialize; the deadline is always ``phase_ends_at``, whether
    or not its callback has fired yet.
    """

    phase = None
    closed_message = ''
    expired_message = ''

    def __init__(self, store, clock, scheduler, settings):
        self.store = store
        self.clock = clock
        self.scheduler = scheduler
        self.settings = settings

    def _open_phase(self, lobby_id: int, player_id: int):
        lobby = self.store.get(Lobby, lobby_id, for_update=True)
        player = self.store.get(Player, player_id)
        if not lobby or not player or player.lobby_id != lobby.id:
            raise NotMember('You are not currently in this lobby.')
        if lobby.game_state != GameState.PLAY.value:
            raise WrongState('This game is not currently in play mode.')
        state = lobby.round_state
        if not isinstance(state, Active) or state.phase is not self.phase:
            raise PhaseClosed(self.closed_message)
        now = self.clock.now()
        if not state.is_open(now):
            raise WindowClosed(self.expired_message)
        return lobby, state, now

    def _accelerate(self, lobby: Lobby, state: Active, now: int) -> bool:
        """Shrink the window to the threshold and race a shorter timer at the same nonce."""
        window = self.settings.accelerated_window_sec
        if state.remaining(now) <= window:
            return False
        shortened = self.store.patch(
            Lobby, lobby.id, {'phase_ends_at': now + window}, expect={'phase_nonce': state.nonce}
        )
        if not shortened:
            return False
        self.scheduler.arm(lobby.id, state.nonce, window)
        current_app.logger.info(
            f"[accelerate] lobby={lobby.id} phase={state.phase.value} nonce={state.nonce} ends_at={now + window}"
        )
        return True


class ResponseCollector(_PhaseCollector):
    phase = Phase.ANSWERING
    closed_message = 'The answer window is currently closed.'
    expired_message = 'The answer timer for this question has ended.'

    def submit_answer(self, lobby_id: int, player_id: int, text) -> dict:
        with self.store.transaction():
            lobby, state, now = self._open_phase(lobby_id, player_id)
            question = require_current_question(self.store, state)
            if question.owner_id == player_id:
                raise OwnAnswerRejected('You cannot answer your own question.')
            answer = sanitize_text(text, 'Answer')

            self.store.upsert(
                Response,
                keys={'question_id': question.id, 'responder_id': player_id},
                create={'lobby_id': lobby.id, 'answer_text': answer, 'submitted_at': now, 'updated_at': now},
                changes={'answer_text': answer, 'updated_at': now},
            )

            if self._everyone_answered(lobby, question):
                self._accelerate(lobby, state, now)
            return {'submitted': True, 'updated_at': now}

    def _everyone_answered(self, lobby: Lobby, question) -> bool:
        expected = {
            p.id for p in self.store.query_by_index(Player, 'lobby_id', lobby.id)
            if p.id != question.owner_id
        }
        if not expected:
            return False
        answered = {r.responder_id for r in self.store.query_by_index(Response, 'question_id', question.id)}
        return expected <= answered


class RatingCollector(_PhaseCollector):
    phase = Phase.RATING
    closed_message = 'Ratings are not open right now.'
    expired_message = 'The rating timer for this question has ended.'

    def rate_response(self, lobby_id: int, player_id: int, response_id: int, correctness, creativity) -> dict:
        with self.store.transaction():
            lobby, state, now = self._open_phase(lobby_id, player_id)
            question = require_current_question(self.store, state)
            if question.owner_id != player_id:
                raise NotOwner('Only the question owner can submit ratings.')
            response = self.store.get(Response, response_id)
            if not response or response.lobby_id != lobby.id or response.question_id != question.id:
                raise ResponseMismatch('This response is not part of the active question.')

            self.store.patch(Response, response.id, {
                'correctness_stars': clamp_and_validate_stars(correctness),
                'creativity_stars': clamp_and_validate_stars(creativity),
                'rated_at': now,
            })

            responses = self.store.query_by_index(Response, 'question_id', question.id)
            if responses and all(r.is_fully_rated for r in responses):
                self._accelerate(lobby, state, now)
            return {'rated': True}
