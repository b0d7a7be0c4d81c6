import os
import sys
import pytest

# Ensure the backend root (containing the `memorygame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from memorygame import create_app, socketio
from memorygame.models import Player, RoomConfig
from memorygame.services.games.registry import RoomRegistry


NAMESPACE = '/'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:3000']
    SOCKETIO_NAMESPACE = NAMESPACE
    LOG_LEVEL = 'DEBUG'
    RESOLVE_DELAY_SEC = 0
    ABANDONED_ROOM_GRACE_SEC = 0
    DEFAULT_GRID_SIZE = 4
    DEFAULT_THEME = 'emojis'
    DEFAULT_MAX_PLAYERS = 2
    MAX_GRID_SIZE = 6
    MAX_PLAYERS_LIMIT = 4
    ROOM_ID_MAX_LENGTH = 32
    PLAYER_NAME_MAX_LENGTH = 32


class AsyncTimerConfig(TestConfig):
    ASYNC_TIMERS_IN_TESTS = True
    RESOLVE_DELAY_SEC = 0.2


@pytest.fixture()
def flask_app():
    yield create_app(TestConfig)


@pytest.fixture()
def async_app():
    yield create_app(AsyncTimerConfig)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def registry(flask_app):
    return flask_app.extensions['room_registry']


def _client_factory(app):
    created = []

    def make():
        test_client = socketio.test_client(app, namespace=NAMESPACE)
        test_client.get_received(NAMESPACE)  # flush the connect ack
        created.append(test_client)
        return test_client

    return make, created


@pytest.fixture()
def sio_factory(flask_app):
    make, created = _client_factory(flask_app)
    yield make
    for test_client in created:
        if test_client.is_connected(NAMESPACE):
            test_client.disconnect(namespace=NAMESPACE)


@pytest.fixture()
def async_sio_factory(async_app):
    make, created = _client_factory(async_app)
    yield make
    for test_client in created:
        if test_client.is_connected(NAMESPACE):
            test_client.disconnect(namespace=NAMESPACE)


def received(test_client, name=None):
    """Drain the client's queue; return payloads (first arg) of matching events."""
    events = test_client.get_received(NAMESPACE)
    return [(e['name'], e['args'][0] if e['args'] else None) for e in events if name is None or e['name'] == name]


def join(test_client, room_id, name, config=None):
    payload = {'roomId': room_id, 'playerName': name}
    if config is not None:
        payload['config'] = config
    test_client.emit('join-room', payload, namespace=NAMESPACE)
    joined = [p for n, p in received(test_client) if n == 'room-joined']
    assert joined, f'{name} did not join {room_id}'
    return joined[0]['playerId']


@pytest.fixture()
def bare_registry():
    return RoomRegistry(RoomConfig())


@pytest.fixture()
def two_player_room(bare_registry):
    """A lobby room with Alice (p1) and Bob (p2) seated."""
    room = bare_registry.create_room('ROOM1')
    bare_registry.add_player('ROOM1', Player(id='p1', name='Alice'))
    bare_registry.add_player('ROOM1', Player(id='p2', name='Bob'))
    return room
