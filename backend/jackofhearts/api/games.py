import time

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from jackofhearts.errors import InvalidAction, InvalidPhaseTransition
from jackofhearts.services.games import lifecycle, store
from jackofhearts.services.games.scheduler import (
    cancel_phase_timer as svc_cancel_phase_timer,
    schedule_phase_timer as svc_schedule_phase_timer,
)
from jackofhearts.session import bind_session, clear_session
from jackofhearts.socketio_events import forget_game

games = Blueprint('games', __name__)

_last_controller_action: dict[str, float] = {}


def _schedule_phase_timer(game_code: str) -> None:
    svc_schedule_phase_timer(current_app._get_current_object(), game_code)


def _acting_player_id(data):
    """Player making the request: explicit ``player_id`` or the bound session."""
    player_id = data.get('player_id')
    if player_id:
        return str(player_id)
    if current_user.is_authenticated:
        return current_user.id
    return None


def _debounced(action: str, game_code: str, player_id) -> bool:
    debounce_ms = int(current_app.config.get('CONTROLLER_DEBOUNCE_MS', 0))
    if debounce_ms <= 0:
        return False
    key = f"{action}:{game_code.upper()}:{player_id}"
    now = time.time() * 1000.0
    last = _last_controller_action.get(key, 0)
    if now - last < debounce_ms:
        return True
    _last_controller_action[key] = now
    return False


def _state(game, status=200):
    return jsonify(store.snapshot(game)), status


@games.route('/create', methods=['POST'])
def create_game():
    """
    Creates a new game lobby with the caller as host and binds the session to it.
    """
    data = request.get_json(silent=True) or {}
    game, host = lifecycle.create_game(data.get('name'))
    bind_session(host)
    return jsonify({
        'game_code': game.code,
        'player_id': host.id,
        'state': store.snapshot(game),
    }), 201


@games.route('/join', methods=['POST'])
def join_game():
    data = request.get_json(silent=True) or {}
    game_code = data.get('game_code')
    name = data.get('name')
    if not all([game_code, name]):
        raise InvalidAction('Game code and player name are required')
    game, player = lifecycle.join_game(game_code, name)
    bind_session(player)
    return jsonify({
        'game_code': game.code,
        'player_id': player.id,
        'state': store.snapshot(game),
    }), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    return _state(store.get_game(game_code))


@games.route('/<string:game_code>/players/<string:target_id>/remove', methods=['POST'])
def remove_player(game_code, target_id):
    data = request.get_json(silent=True) or {}
    game = lifecycle.remove_player(game_code, _acting_player_id(data), target_id)
    return _state(game)


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    data = request.get_json(silent=True) or {}
    player_id = _acting_player_id(data)
    if _debounced('start', game_code, player_id):
        return jsonify({'message': 'debounced'}), 202
    game = lifecycle.start_game(game_code, player_id)
    _schedule_phase_timer(game.code)
    return _state(game)


@games.route('/<string:game_code>/voting', methods=['POST'])
def start_voting(game_code):
    data = request.get_json(silent=True) or {}
    player_id = _acting_player_id(data)
    if _debounced('voting', game_code, player_id):
        return jsonify({'message': 'debounced'}), 202
    game = lifecycle.start_voting(game_code, player_id)
    _schedule_phase_timer(game.code)
    return _state(game)


@games.route('/<string:game_code>/vote', methods=['POST'])
def submit_vote(game_code):
    data = request.get_json(silent=True) or {}
    player_id = _acting_player_id(data)
    suit = data.get('suit')
    if not all([player_id, suit]):
        raise InvalidAction('Player ID and suit are required')
    game = lifecycle.submit_vote(game_code, player_id, suit)
    # Early resolution once every active player has voted
    if current_app.config.get('RESOLVE_WHEN_ALL_VOTED') and lifecycle.all_active_voted(game):
        try:
            game = lifecycle.process_round_results(game.code, expected_round=game.current_round)
        except InvalidPhaseTransition as exc:
            current_app.logger.info(f"[resolve-skip] game={game.code} {exc.message}")
        _schedule_phase_timer(game.code)
    return _state(game)


@games.route('/<string:game_code>/results', methods=['POST'])
def process_round_results(game_code):
    data = request.get_json(silent=True) or {}
    game = lifecycle.process_round_results(game_code, _acting_player_id(data))
    _schedule_phase_timer(game.code)
    return _state(game)


@games.route('/<string:game_code>/continue', methods=['POST'])
def continue_to_next_round(game_code):
    data = request.get_json(silent=True) or {}
    player_id = _acting_player_id(data)
    if _debounced('continue', game_code, player_id):
        return jsonify({'message': 'debounced'}), 202
    game = lifecycle.continue_to_next_round(game_code, player_id)
    _schedule_phase_timer(game.code)
    return _state(game)


@games.route('/<string:game_code>/end', methods=['POST'])
def end_game(game_code):
    data = request.get_json(silent=True) or {}
    game = lifecycle.end_game(game_code, _acting_player_id(data), data.get('winner'))
    svc_cancel_phase_timer(game.code)
    return _state(game)


@games.route('/<string:game_code>/reset', methods=['POST'])
def reset_game(game_code):
    """
    Destroys an ended game and drops the caller's session binding.
    Outside the ended phase only the binding is dropped.
    """
    reset = lifecycle.reset_game(game_code)
    if reset:
        svc_cancel_phase_timer(game_code)
        forget_game(game_code)
    clear_session()
    return jsonify({'reset': reset}), 200
