import os
import sys
import pytest

# Ensure the backend root (containing the `trivia` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from trivia import create_app, db, socketio
from trivia.services import lobby as lobby_service
from trivia.services.rounds.clock import FrozenClock
from trivia.services.rounds.engine import init_engine

START_TIME = 1_700_000_000


class KeepOrder:
    """Stands in for the sequencer rng: pools keep their save order."""

    def shuffle(self, items):
        pass


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SCHEDULER_BACKEND = 'manual'
    TIME_PER_QUESTION_SEC = 60
    ACCELERATED_WINDOW_SEC = 10
    TIMER_HEARTBEAT_SEC = 0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import trivia.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def clock():
    return FrozenClock(START_TIME)


@pytest.fixture()
def engine(flask_app, clock):
    return init_engine(flask_app, clock=clock, rng=KeepOrder())


@pytest.fixture()
def client(flask_app, engine):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


QUESTIONS = {
    'EASY': ('What is 2 + 2?', 'Four'),
    'MEDIUM': ('What is the capital of Peru?', 'Lima'),
    'HARD': ('Who wrote Middlemarch?', 'George Eliot'),
}


@pytest.fixture()
def make_lobby(engine):
    """Build a lobby through the setup services.

    The first name hosts. ``authors`` (default: everyone) save one question
    per difficulty. Returns ``(lobby_id, code, players_by_name)``.
    """
    def _make(names=('Alice', 'Bob'), authors=None):
        lobby, host = lobby_service.create_lobby(engine.store, engine.settings, names[0])
        players = {names[0]: host.id}
        for name in names[1:]:
            players[name] = lobby_service.join_lobby(engine.store, lobby.code, name).id
        for name in (authors if authors is not None else names):
            for difficulty, (prompt, answer) in QUESTIONS.items():
                lobby_service.save_question(
                    engine.store, lobby.id, players[name], difficulty, f'{prompt} ({name})', answer
                )
        return lobby.id, lobby.code, players

    return _make


def fresh(model, ident):
    """Fresh row, bypassing anything cached in the test's session."""
    db.session.expire_all()
    return db.session.get(model, ident)
