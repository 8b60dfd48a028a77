from typing import Dict

from flask import request
from flask_socketio import emit, join_room, leave_room

from jackofhearts import socketio
from jackofhearts.errors import GameError
from jackofhearts.services.games import store

# socket id -> subscribed game code
_sid_to_game: Dict[str, str] = {}


def _get_sid() -> str:
    return request.sid  # type: ignore[attr-defined]


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    _sid_to_game.pop(_get_sid(), None)


def handle_join_game(data):
    """Subscribe this socket to a game's updates and send the current state."""
    game_code = (data or {}).get('game_code')
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    try:
        game = store.get_game(game_code)
        state = store.snapshot(game)
    except GameError as exc:
        emit('error', {'message': exc.message, 'code': exc.code})
        return
    previous = _sid_to_game.get(_get_sid())
    if previous and previous != game.code:
        leave_room(store.room_for(previous))
    room = store.room_for(game.code)
    join_room(room)
    _sid_to_game[_get_sid()] = game.code
    emit('joined', {'room': room})
    emit('state_update', {'game_code': game.code, 'state': state})


def handle_leave_game(data):
    game_code = (data or {}).get('game_code') or _sid_to_game.get(_get_sid())
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    room = store.room_for(game_code)
    leave_room(room)
    _sid_to_game.pop(_get_sid(), None)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def forget_game(game_code) -> None:
    """Drop socket bookkeeping for a game that no longer exists."""
    game_code = game_code.upper()
    for sid in [sid for sid, code in _sid_to_game.items() if code == game_code]:
        _sid_to_game.pop(sid, None)


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_game', handle_join_game, namespace=namespace)
        socketio.on_event('leave_game', handle_leave_game, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
