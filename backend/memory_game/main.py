from flask import Blueprint, jsonify

from memory_game.services.games.runtime import get_game_services

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Memory Match game server!'})


@main.route('/health')
def health():
    services = get_game_services()
    return jsonify({'status': 'ok', 'sessions': len(services.registry)})
