from flask import Blueprint, jsonify, request, current_app, abort
from memory_game.errors import ConfigurationError
from memory_game.services.games.difficulty import DIFFICULTY_SETTINGS
from memory_game.services.games.runtime import get_game_services


games = Blueprint('games', __name__)


@games.errorhandler(ConfigurationError)
def handle_configuration_error(exc):
    current_app.logger.info(f"[config-error] {exc}")
    return jsonify({'error': str(exc)}), 400


def _get_session_or_404(session_id):
    session = get_game_services().registry.get(session_id)
    if session is None:
        abort(404)
    return session


def _session_payload(session_id, session):
    payload = session.to_dict()
    payload['session_id'] = session_id
    return payload


@games.route('/difficulties', methods=['GET'])
def list_difficulties():
    return jsonify({
        'default': current_app.config.get('DEFAULT_DIFFICULTY', 'easy'),
        'difficulties': [s.to_dict() for s in DIFFICULTY_SETTINGS.values()],
    })


@games.route('/sessions', methods=['POST'])
def create_session():
    data = request.get_json(silent=True) or {}
    difficulty = data.get('difficulty')
    services = get_game_services()
    session_id, session = services.registry.create()
    try:
        session.start_game(difficulty)
    except ConfigurationError:
        services.registry.discard(session_id)
        raise
    current_app.logger.info(f"[session-create] session={session_id} tier={session.difficulty}")
    return jsonify(_session_payload(session_id, session)), 201


@games.route('/sessions/<string:session_id>', methods=['GET'])
def get_session(session_id):
    session = _get_session_or_404(session_id)
    return jsonify(_session_payload(session_id, session))


@games.route('/sessions/<string:session_id>', methods=['DELETE'])
def delete_session(session_id):
    if not get_game_services().registry.discard(session_id):
        abort(404)
    current_app.logger.info(f"[session-delete] session={session_id}")
    return '', 204


@games.route('/sessions/<string:session_id>/flip', methods=['POST'])
def flip_card(session_id):
    session = _get_session_or_404(session_id)
    data = request.get_json(silent=True) or {}
    position = data.get('position')
    if not isinstance(position, int) or isinstance(position, bool):
        return jsonify({'error': 'position must be an integer'}), 400
    accepted = session.flip_card(position)
    payload = _session_payload(session_id, session)
    payload['accepted'] = accepted
    return jsonify(payload)


@games.route('/sessions/<string:session_id>/reset', methods=['POST'])
def reset_session(session_id):
    session = _get_session_or_404(session_id)
    data = request.get_json(silent=True) or {}
    session.reset(data.get('difficulty'))
    return jsonify(_session_payload(session_id, session))


@games.route('/sessions/<string:session_id>/difficulty', methods=['POST'])
def select_difficulty(session_id):
    session = _get_session_or_404(session_id)
    data = request.get_json(silent=True) or {}
    difficulty = data.get('difficulty')
    if not difficulty:
        return jsonify({'error': 'difficulty is required'}), 400
    session.select_difficulty(difficulty)
    return jsonify(_session_payload(session_id, session))


@games.route('/high-scores', methods=['GET'])
def all_high_scores():
    table = get_game_services().high_scores.load()
    return jsonify({tier: [r.to_dict() for r in records] for tier, records in table.items()})


@games.route('/high-scores/<string:difficulty>', methods=['GET'])
def tier_high_scores(difficulty):
    records = get_game_services().high_scores.top(difficulty)
    return jsonify({'difficulty': difficulty, 'high_scores': [r.to_dict() for r in records]})
