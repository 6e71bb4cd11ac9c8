import os
import sys
import pytest

# Ensure the backend root (containing the `trivia` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from trivia import create_app, socketio

NAMESPACE = '/ws'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    GAME_URL = 'http://trivia.test'
    SOCKETIO_NAMESPACE = NAMESPACE
    CORS_ALLOWED_ORIGINS = '*'
    ROUND_DURATION_MS = 60000
    TIMER_TICK_SEC = 1
    MIN_PLAYERS = 3
    MAX_ATTEMPTS = 3
    WINNER_BONUS = 10
    ROUND_RESET_DELAY_SEC = 5
    MASTER_IDLE_TIMEOUT_SEC = 60


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class PickRandom:
    """Deterministic stand-in for random.Random: choice() returns the player with a given name."""

    def __init__(self, name=None):
        self.name = name
        self.calls = []

    def choice(self, seq):
        self.calls.append([p.name for p in seq])
        for item in seq:
            if item.name == self.name:
                return item
        return seq[0]


class RecordingTransport:
    def __init__(self):
        self.sent = []
        self.members = set()

    def emit(self, event, data, to):
        self.sent.append((event, data, to))

    def enter(self, sid):
        self.members.add(sid)

    def events(self, to=None):
        return [e for e, _, t in self.sent if to is None or t == to]

    def last(self, event):
        for e, data, to in reversed(self.sent):
            if e == event:
                return data
        return None


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def flask_app(clock):
    application = create_app(TestConfig)
    room = application.extensions['trivia.room']
    room.session.timer.clock = clock
    with application.app_context():
        yield application


@pytest.fixture()
def room(flask_app):
    return flask_app.extensions['trivia.room']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_client(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace=NAMESPACE,
        )
        # Flush the connect greeting
        test_client.get_received(NAMESPACE)
        clients.append(test_client)
        return test_client

    yield _make
    for c in clients:
        try:
            if c.is_connected(NAMESPACE):
                c.disconnect(namespace=NAMESPACE)
        except Exception:
            pass


@pytest.fixture()
def sio_client(make_client):
    return make_client()


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def picker():
    """Factory for a random source that always picks the named player."""
    return PickRandom
