import os
import sys
from datetime import datetime, timedelta

import pytest

# Ensure the repo root (containing the `draughts_arena` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
REPO_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from draughts_arena import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    MOVE_COST = 0.02
    GAME_CREATION_COST = 0.35
    INITIAL_TOKENS = 10
    MOVE_TIMEOUT_SEC = 60
    AI_HARD_SEARCH_DEPTH = 2
    AI_RANDOM_SEED = 7
    SESSION_LOCK_TIMEOUT_SEC = 2
    TIMEOUT_SWEEP_INTERVAL_SEC = 0


class FakeClock:
    """Controllable replacement for the services' ``utcnow``."""

    def __init__(self, start=datetime(2026, 1, 10, 12, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)
        return self.now


def make_player(username, tokens=10, role='user', score=0):
    from draughts_arena.models import Player
    player = Player(username=username, email=f"{username}@example.com", role=role, tokens=tokens, score=score)
    player.set_password('password')
    db.session.add(player)
    db.session.commit()
    return player


def login(client, player, password='password'):
    res = client.post('/login', json={'email': player.email, 'password': password})
    assert res.status_code == 200, res.get_json()
    return res


def empty_board(pieces, turn='dark', quiet_plies=0):
    """Board snapshot with ``pieces`` mapping native index -> piece character."""
    squares = ['.'] * 32
    for index, piece in pieces.items():
        squares[index] = piece
    return {'version': 1, 'variant': 'english', 'turn': turn, 'squares': ''.join(squares), 'quiet_plies': quiet_plies}


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)

    # The fixture's app context is reused by every test-client request, so
    # flask-login's per-``g`` user cache must be reset for each request.
    @application.before_request
    def _reset_cached_login_user():
        from flask import g
        g.pop('_login_user', None)

    with application.app_context():
        # Ensure models are imported so tables are created
        import draughts_arena.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
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


@pytest.fixture()
def clock(flask_app):
    from draughts_arena.services.sessions import get_lifecycle, get_orchestrator
    fake = FakeClock()
    get_orchestrator().clock = fake
    get_lifecycle().clock = fake
    return fake


@pytest.fixture()
def players(flask_app):
    return {
        'alice': make_player('alice'),
        'bob': make_player('bob'),
        'carol': make_player('carol'),
        'admin': make_player('admin', role='admin'),
    }


@pytest.fixture()
def orchestrator(flask_app, clock):
    from draughts_arena.services.sessions import get_orchestrator
    return get_orchestrator()


@pytest.fixture()
def lifecycle(flask_app, clock):
    from draughts_arena.services.sessions import get_lifecycle
    return get_lifecycle()
