from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
import requests
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, roster_source=None, rng=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    origins = flask_app.config.get('CORS_ORIGINS') or '*'
    if origins == ['*']:
        origins = '*'

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from killboard import models  # noqa: F401
    if flask_app.config.get('AUTO_CREATE_TABLES'):
        with flask_app.app_context():
            db.create_all()

    from killboard.services.dashboard import Dashboard
    flask_app.extensions['killboard'] = Dashboard(flask_app.config, source=roster_source, rng=rng)

    from killboard.main import main
    flask_app.register_blueprint(main)

    from killboard.api.dashboard import api
    flask_app.register_blueprint(api, url_prefix='/api')

    from killboard.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('stats-reset')
    def stats_reset_command():
        """Drops and recreates the kill/death ledger."""
        uri = flask_app.config.get('SQLALCHEMY_DATABASE_URI') or ''
        if _is_in_memory(uri):
            raise click.ClickException(
                'stats-reset needs a persistent DATABASE_URL; an in-memory ledger '
                'only exists inside the server process'
            )
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
        print('Player stats have been reset!')

    @click.command('deaths-reset')
    @click.option('--url', default=None, help='Base URL of the running killboard server.')
    def deaths_reset_command(url):
        """Asks the running server to clear its death feed."""
        base = (url or flask_app.config.get('KILLBOARD_URL') or 'http://localhost:5000').rstrip('/')
        try:
            resp = requests.post(f"{base}/api/deaths/reset", timeout=5)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise click.ClickException(f"Could not reset deaths on {base}: {exc}")
        print('Death feed cleared.')

    flask_app.cli.add_command(stats_reset_command)
    flask_app.cli.add_command(deaths_reset_command)

    return flask_app


def _is_in_memory(uri: str) -> bool:
    return uri in ('sqlite://', 'sqlite:///:memory:') or 'mode=memory' in uri
