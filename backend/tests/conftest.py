import os
import sys
import pytest

# Ensure the backend root (containing the `jackofhearts` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from jackofhearts import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = []
    LOG_LEVEL = 'INFO'
    ROUND_DURATION_SEC = 600
    VOTING_DURATION_SEC = 30
    MIN_PLAYERS = 3
    CODE_LENGTH = 6
    # Tests drive resolution explicitly unless they opt in
    RESOLVE_WHEN_ALL_VOTED = False
    TIMER_TICK_SEC = 0.01
    CONTROLLER_DEBOUNCE_MS = 0
    TIMER_HEARTBEAT_SEC = 0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import jackofhearts.models  # noqa: F401
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
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def lobby(client):
    """A lobby hosted by Ana with Beto and Carla joined."""
    created = client.post('/api/games/create', json={'name': 'Ana'}).get_json()
    code = created['game_code']
    beto = client.post('/api/games/join', json={'game_code': code, 'name': 'Beto'}).get_json()
    carla = client.post('/api/games/join', json={'game_code': code, 'name': 'Carla'}).get_json()
    return {
        'code': code,
        'host': created['player_id'],
        'beto': beto['player_id'],
        'carla': carla['player_id'],
    }


@pytest.fixture()
def started(client, lobby):
    """The lobby above after the host started the game."""
    res = client.post(f"/api/games/{lobby['code']}/start", json={'player_id': lobby['host']})
    assert res.status_code == 200
    return dict(lobby, state=res.get_json())
