import os
import sys
import pytest

# Ensure the backend root (containing the `initials` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from initials import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MIN_TEAMS = 2
    MAX_TEAMS = 8
    DEFAULT_TIMER_DURATION_SEC = 60
    GAME_CODE_MAX_RETRIES = 5
    MAX_REPAIR_ATTEMPTS = 100
    LOOKUP_BASE_URL = 'https://lookup.test/api/rest_v1/page/summary'
    LOOKUP_PAGE_URL = 'https://lookup.test/wiki'
    LOOKUP_TIMEOUT_SEC = 1
    LOOKUP_USER_AGENT = 'initials-tests'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import initials.models  # noqa: F401
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
def new_game(client):
    """Factory: create a game over HTTP and return the JSON body."""
    def _create(**overrides):
        body = {'num_teams': 2, 'timer_duration': 60}
        body.update(overrides)
        res = client.post('/api/games/create', json=body)
        assert res.status_code == 201, res.get_json()
        return res.get_json()
    return _create
