import os
import sys
import random
import pytest

# Ensure the backend root (containing the `memory_game` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from memory_game import create_app, db, socketio
from memory_game.services.games.difficulty import DIFFICULTY_SETTINGS
from memory_game.services.games.high_scores import HighScoreStore
from memory_game.services.games.runtime import get_game_services
from memory_game.services.games.scheduler import ManualScheduler
from memory_game.services.games.session import GameSession
from memory_game.services.storage import InMemoryKeyValueStore


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    RESOLUTION_DELAY_SEC = 1.0
    TICK_INTERVAL_SEC = 1.0
    DEFAULT_DIFFICULTY = 'easy'
    HIGH_SCORES_KEY = 'memoryGameHighScores'
    HIGH_SCORE_LIMIT = 5
    BOARD_SEED = 7
    SESSION_IDLE_TTL_SEC = 600


class Recorder:
    """Collects (event, payload) pairs emitted by a GameSession."""

    def __init__(self):
        self.events = []

    def __call__(self, event, payload):
        self.events.append((event, payload))

    def names(self):
        return [name for name, _ in self.events]

    def of(self, name):
        return [payload for event, payload in self.events if event == name]

    def clear(self):
        self.events.clear()


@pytest.fixture()
def storage():
    return InMemoryKeyValueStore()


@pytest.fixture()
def high_scores(storage):
    return HighScoreStore(storage, DIFFICULTY_SETTINGS.keys())


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def recorder():
    return Recorder()


@pytest.fixture()
def session(high_scores, scheduler, recorder):
    return GameSession(high_scores, scheduler, notify=recorder, rng=random.Random(1234))


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import memory_game.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def clock(flask_app):
    return get_game_services(flask_app).scheduler


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
