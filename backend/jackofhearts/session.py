"""Binding between a client session and a (game code, player id) pair.

The binding lives in the Flask-Login session cookie so it survives page
reloads. It is resolved again on every request; when the player or its game
is gone the binding is dropped and the client is simply back at "no game".
"""
from collections import namedtuple

from flask import current_app, session
from flask_login import current_user, login_user, logout_user

from jackofhearts.errors import MalformedState
from jackofhearts.services.games import store

SessionBinding = namedtuple('SessionBinding', ['game_code', 'player_id'])


def load_bound_player(player_id):
    """Flask-Login user loader; an unknown player means "not bound"."""
    player = store.find_player(player_id)
    if player is None or player.game is None:
        return None
    return player


def bind_session(player):
    login_user(player, remember=True)
    return SessionBinding(player.game_code, player.id)


def clear_session():
    logout_user()


def current_binding():
    """Return the live binding, or None after clearing a stale one."""
    if not current_user.is_authenticated:
        if session.get('_user_id'):
            # The cookie names a player the store no longer knows
            clear_session()
        return None
    player = current_user._get_current_object()
    game = store.find_game(player.game_code)
    if game is None:
        current_app.logger.info(f"[session-clear] player={player.id} game={player.game_code} gone")
        clear_session()
        return None
    try:
        game.to_dict()
    except MalformedState as exc:
        current_app.logger.warning(f"[session-clear] player={player.id} {exc.message}")
        clear_session()
        return None
    return SessionBinding(game.code, player.id)
