from flask import Blueprint, jsonify
from killboard.services.dashboard import get_dashboard

main = Blueprint('main', __name__)


@main.route('/')
def index():
    dashboard = get_dashboard()
    return jsonify({
        'message': 'Killboard live dashboard',
        'players_online': len(dashboard.state.roster_snapshot()),
        'recent_deaths': len(dashboard.state.recent_deaths()),
        'viewers': dashboard.channel.subscriber_count,
        'endpoints': {
            'players': '/api/players',
            'leaderboard': '/api/leaderboard/kills',
            'deaths': '/api/deaths/recent',
            'deaths_reset': '/api/deaths/reset',
            'test_event': '/api/test-event',
            'ws': '/ws',
        },
    })
