from flask import Blueprint, jsonify

from jackofhearts.errors import GameError
from jackofhearts.services.games import store
from jackofhearts.session import clear_session, current_binding

main = Blueprint('main', __name__)


@main.app_errorhandler(GameError)
def handle_game_error(exc):
    return jsonify(exc.to_dict()), exc.status


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Jack of Hearts game server!'})


@main.route('/api/session', methods=['GET'])
def get_session():
    """Returns the game this client is bound to, or an empty binding."""
    binding = current_binding()
    if binding is None:
        return jsonify({'game_code': None, 'player_id': None, 'state': None})
    game = store.get_game(binding.game_code)
    return jsonify({
        'game_code': binding.game_code,
        'player_id': binding.player_id,
        'state': store.snapshot(game),
    })


@main.route('/api/session/leave', methods=['POST'])
def leave_session():
    clear_session()
    return jsonify({'message': 'Session cleared.'})
