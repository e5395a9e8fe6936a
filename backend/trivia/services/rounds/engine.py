from flask import current_app

from trivia import db
from trivia.errors import InsufficientQuestions, LobbyNotFound, NotEnoughPlayers, NotHost, WrongState
from trivia.models import Lobby, Player, Question
from trivia.services.rounds.advancer import MISSING_QUESTION, AdvanceResult, RoundAdvancer
from trivia.services.rounds.clock import SystemClock
from trivia.services.rounds.collectors import RatingCollector, ResponseCollector
from trivia.services.rounds.scheduler import BackgroundTaskRunner, PendingCallbackQueue, PhaseScheduler
from trivia.services.rounds.scoring import ScoringEngine
from trivia.services.rounds.sequencer import QuestionSequencer
from trivia.services.rounds.settings import RoundSettings
from trivia.services.rounds.state import Difficulty, GameState
from trivia.services.rounds.store import Store


def on_deadline(lobby_id: int, expected_nonce: int) -> AdvanceResult:
    """Delayed-callback entry point; needs an app context."""
    return get_engine().on_deadline(lobby_id, expected_nonce)


def _changed_state(result: AdvanceResult) -> bool:
    return result.advanced or result.reason == MISSING_QUESTION


def _first_without_full_set(players, questions):
    """First member (by id) missing a question in some difficulty."""
    written = {(q.owner_id, q.difficulty) for q in questions}
    for player in players:
        if any((player.id, difficulty.value) not in written for difficulty in Difficulty):
            return player
    return None


class GameEngine:
    """Wires the round components around one store, clock and callback runner."""

    def __init__(self, store, clock, callbacks, settings: RoundSettings, rng=None):
        self.store = store
        self.clock = clock
        self.callbacks = callbacks
        self.settings = settings
        self.sequencer = QuestionSequencer(settings, rng=rng)
        self.scheduler = PhaseScheduler(store, callbacks, on_deadline)
        self.scoring = ScoringEngine(store, clock)
        self.advancer = RoundAdvancer(store, clock, self.scheduler, self.scoring, settings)
        self.responses = ResponseCollector(store, clock, self.scheduler, settings)
        self.ratings = RatingCollector(store, clock, self.scheduler, settings)

    def start_match(self, lobby_id: int, player_id: int) -> dict:
        with self.store.transaction():
            lobby = self.store.get(Lobby, lobby_id, for_update=True)
            if not lobby:
                raise LobbyNotFound('Lobby not found.')
            if lobby.host_player_id != player_id:
                raise NotHost('Only the host can start the game.')
            if lobby.game_state == GameState.PLAY.value:
                return {'question_order': lobby.question_order_ids}
            if lobby.game_state != GameState.SETUP.value:
                raise WrongState('This game can no longer be started from this screen.')

            players = self.store.query_by_index(Player, 'lobby_id', lobby.id)
            if len(players) < self.settings.min_players:
                raise NotEnoughPlayers(f'At least {self.settings.min_players} players are required.')

            questions = self.store.query_by_index(Question, 'lobby_id', lobby.id)
            incomplete = _first_without_full_set(players, questions)
            if incomplete:
                raise InsufficientQuestions(f'{incomplete.name} still needs all 3 questions filled in.')

            unresolved = [q for q in questions if not q.is_answered]
            order = self.sequencer.build_order(unresolved, lobby.max_questions)
            self.advancer.begin_match(lobby, order)
            self.store.on_commit(lambda: self.notify(lobby_id))
            return {'question_order': order}

    def submit_answer(self, lobby_id: int, player_id: int, text) -> dict:
        result = self.responses.submit_answer(lobby_id, player_id, text)
        self.notify(lobby_id)
        return result

    def rate_response(self, lobby_id: int, player_id: int, response_id: int, correctness, creativity) -> dict:
        result = self.ratings.rate_response(lobby_id, player_id, response_id, correctness, creativity)
        self.notify(lobby_id)
        return result

    def request_early_advance(self, lobby_id: int, player_id: int) -> AdvanceResult:
        result = self.advancer.request_early_advance(lobby_id, player_id)
        if _changed_state(result):
            self.notify(lobby_id)
        return result

    def on_deadline(self, lobby_id: int, expected_nonce: int) -> AdvanceResult:
        result = self.advancer.on_deadline(lobby_id, expected_nonce)
        if _changed_state(result):
            self.notify(lobby_id)
        return result

    def notify(self, lobby_id: int) -> None:
        from trivia.socketio_events import broadcast_state
        lobby = self.store.get(Lobby, lobby_id)
        if lobby:
            broadcast_state(lobby.code)


def build_callbacks(app, clock):
    backend = app.config.get('SCHEDULER_BACKEND', 'background')
    if backend == 'manual':
        return PendingCallbackQueue(clock)
    if backend != 'background':
        app.logger.warning(f"[timer-set] unknown SCHEDULER_BACKEND={backend!r}; using background")
    return BackgroundTaskRunner(app)


def init_engine(app, clock=None, rng=None) -> GameEngine:
    clock = clock or SystemClock()
    engine = GameEngine(
        store=Store(db),
        clock=clock,
        callbacks=build_callbacks(app, clock),
        settings=RoundSettings.from_config(app.config),
        rng=rng,
    )
    app.extensions['trivia'] = engine
    return engine


def get_engine() -> GameEngine:
    return current_app.extensions['trivia']
