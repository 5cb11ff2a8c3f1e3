import os
import random
import sys
import pytest

# Ensure the backend root (containing the `killboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from killboard import create_app, db, socketio
from killboard.services.dashboard import get_dashboard


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = False
    CORS_ORIGINS = ['*']
    LOG_LEVEL = 'DEBUG'
    ROSTER_SOURCE = 'demo'
    DEMO_PLAYERS = ['Alice', 'Bob']
    DEMO_JOIN_PROBABILITY = 0.0
    DEMO_LEAVE_PROBABILITY = 0.0
    SIM_KILL_PROBABILITY = 0.4
    SIM_ENVIRONMENT_PROBABILITY = 0.1
    DEATH_LOG_LIMIT = 100
    SUBSCRIBER_BUFFER = 64
    BROADCAST_SYNC = True
    START_BACKGROUND_TASKS = False


class StubSource:
    """Roster source returning a scripted list, or failing on demand."""

    def __init__(self, names=None):
        self.names = list(names or [])
        self.fail = False
        self.calls = 0

    def fetch(self):
        from killboard.services.roster import RosterSourceError
        self.calls += 1
        if self.fail:
            raise RosterSourceError('server unreachable')
        return list(self.names)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig, rng=random.Random(7))
    with application.app_context():
        db.create_all()
        yield application
        get_dashboard().shutdown()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def dashboard(flask_app):
    return get_dashboard()


@pytest.fixture()
def online(dashboard):
    """Dashboard with Alice and Bob on the roster."""
    dashboard.synchronizer.refresh()
    return dashboard


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
