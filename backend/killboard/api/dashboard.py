from flask import Blueprint, jsonify, request, current_app
from killboard.services.dashboard import get_dashboard
from killboard.services.events import InvalidEventError


api = Blueprint('api', __name__)

EVENT_TYPES = ('kill', 'death', 'join')


@api.route('/players', methods=['GET'])
def list_players():
    roster = get_dashboard().state.roster_snapshot()
    return jsonify([e.to_dict() for e in roster])


@api.route('/leaderboard/kills', methods=['GET'])
def kills_leaderboard():
    stats = get_dashboard().state.stats.all_stats()
    return jsonify([s.to_dict() for s in stats])


@api.route('/deaths/recent', methods=['GET'])
@api.route('/deaths/today', methods=['GET'])
def recent_deaths():
    deaths = get_dashboard().state.recent_deaths()
    return jsonify([d.to_dict() for d in deaths])


@api.route('/test-event', methods=['POST'])
def test_event():
    """Force a synthetic event for manual verification.

    Body may name the event type; otherwise a coin flip picks a kill or
    (in demo mode) a join.
    """
    data = request.get_json(silent=True) or {}
    dashboard = get_dashboard()
    event_type = data.get('type')
    if event_type is None:
        coin = dashboard.generator.rng.random()
        event_type = 'join' if dashboard.supports_join and coin >= 0.5 else 'kill'
    if event_type not in EVENT_TYPES:
        return jsonify({'error': f"Unknown event type '{event_type}'"}), 400

    if event_type == 'join':
        if not dashboard.supports_join:
            return jsonify({'error': 'Join events need the demo roster source'}), 400
        player = dashboard.force_join()
        if player is None:
            return jsonify({'error': 'Roster refresh in progress; the guest joins on the next poll'}), 409
        current_app.logger.info(f"[test-event] join name={player['name']}")
        return jsonify({'success': True, 'event': {'type': 'join', 'data': player}})

    try:
        if event_type == 'kill':
            event = dashboard.generator.random_kill()
        else:
            event = dashboard.generator.random_death()
    except InvalidEventError as exc:
        return jsonify({'error': f"Failed to generate valid {event_type}: {exc}"}), 400

    current_app.logger.info(f"[test-event] {event_type} id={event.id}")
    return jsonify({'success': True, 'event': {'type': event_type, 'data': event.to_dict()}})


@api.route('/deaths/reset', methods=['POST'])
def reset_deaths():
    """Clear the death feed now; same effect as the midnight reset."""
    get_dashboard().state.reset_deaths()
    return jsonify({'success': True})
