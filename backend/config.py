import os


def _flag(name, default):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


def _csv(name, default=''):
    return [v.strip() for v in os.environ.get(name, default).split(',') if v.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Stats only need to live as long as the process
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = _flag('AUTO_CREATE_TABLES', 'true')
    CORS_ORIGINS = _csv('CORS_ORIGINS', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Roster source: 'demo' simulates a server, 'http' polls a JSON status endpoint
    ROSTER_SOURCE = os.environ.get('ROSTER_SOURCE', 'demo')
    ROSTER_SOURCE_URL = os.environ.get('ROSTER_SOURCE_URL', 'http://localhost:25580/players')
    ROSTER_SOURCE_TIMEOUT_SEC = float(os.environ.get('ROSTER_SOURCE_TIMEOUT_SEC', '3'))
    ROSTER_REFRESH_SEC = float(os.environ.get('ROSTER_REFRESH_SEC', '5'))

    # Demo mode
    SIMULATION_ENABLED = _flag('SIMULATION_ENABLED', 'true')
    SIMULATION_TICK_SEC = float(os.environ.get('SIMULATION_TICK_SEC', '5'))
    SIM_KILL_PROBABILITY = float(os.environ.get('SIM_KILL_PROBABILITY', '0.4'))
    SIM_ENVIRONMENT_PROBABILITY = float(os.environ.get('SIM_ENVIRONMENT_PROBABILITY', '0.1'))
    DEMO_PLAYERS = _csv('DEMO_PLAYERS')
    DEMO_SEED_COUNT = int(os.environ.get('DEMO_SEED_COUNT', '4'))
    DEMO_JOIN_PROBABILITY = float(os.environ.get('DEMO_JOIN_PROBABILITY', '0.05'))
    DEMO_LEAVE_PROBABILITY = float(os.environ.get('DEMO_LEAVE_PROBABILITY', '0.02'))

    # Death feed retention and fan-out buffering
    DEATH_LOG_LIMIT = int(os.environ.get('DEATH_LOG_LIMIT', '100'))
    SUBSCRIBER_BUFFER = int(os.environ.get('SUBSCRIBER_BUFFER', '256'))
    DAILY_RESET_ENABLED = _flag('DAILY_RESET_ENABLED', 'true')

    # Deliver pushes inline instead of through per-connection pump tasks
    BROADCAST_SYNC = _flag('BROADCAST_SYNC', 'false')
    START_BACKGROUND_TASKS = _flag('START_BACKGROUND_TASKS', 'true')

    # Where `flask deaths-reset` finds the running server
    KILLBOARD_URL = os.environ.get('KILLBOARD_URL', 'http://localhost:5000')
