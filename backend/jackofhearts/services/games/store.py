"""Persistence and change fan-out for the game aggregate.

All writes go through the session and become visible with ``save``, which
commits once and then pushes the fresh snapshot to everyone subscribed to
the game's Socket.IO room.
"""
import time

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from jackofhearts import db, socketio
from jackofhearts.errors import NotFound, StoreUnavailable, WriteConflict
from jackofhearts.models import Game, Player, RoundResult

NAMESPACE = '/ws'

GAME_FIELDS = frozenset({'phase', 'current_round', 'round_start_time', 'voting_end_time', 'winner'})
PLAYER_FIELDS = frozenset({'suit', 'is_jack', 'status', 'last_vote', 'eliminated_round'})


def room_for(game_code):
    return f"game:{game_code.upper()}"


def _store_error(exc, action):
    db.session.rollback()
    current_app.logger.error(f"[store-error] {action} failed: {exc}")
    return StoreUnavailable()


def find_game(game_code, for_update=False):
    if not game_code:
        return None
    try:
        query = Game.query.filter_by(code=game_code.upper())
        if for_update:
            query = query.with_for_update()
        return query.first()
    except SQLAlchemyError as exc:
        raise _store_error(exc, 'read game') from exc


def get_game(game_code, for_update=False):
    game = find_game(game_code, for_update=for_update)
    if not game:
        raise NotFound()
    return game


def find_player(player_id):
    if not player_id:
        return None
    try:
        return db.session.get(Player, str(player_id))
    except SQLAlchemyError as exc:
        raise _store_error(exc, 'read player') from exc


def code_in_use(game_code):
    return find_game(game_code) is not None


def player_id_in_use(player_id):
    return find_player(player_id) is not None


def add_game(game):
    db.session.add(game)
    return game


def add_player(game, player):
    player.seat = max((p.seat for p in game.players), default=-1) + 1
    game.players.append(player)
    return player


def update_game(game, **fields):
    unknown = set(fields) - GAME_FIELDS
    if unknown:
        raise ValueError(f"Cannot update game fields {sorted(unknown)}")
    for name, value in fields.items():
        setattr(game, name, value)
    return game


def update_player(player, **fields):
    unknown = set(fields) - PLAYER_FIELDS
    if unknown:
        raise ValueError(f"Cannot update player fields {sorted(unknown)}")
    for name, value in fields.items():
        setattr(player, name, value)
    return player


def add_round_result(game, **fields):
    row = RoundResult(**fields)
    game.round_results.append(row)
    return row


def delete_player(game, player):
    game.players.remove(player)
    db.session.delete(player)


def delete_game(game):
    game_code = game.code
    try:
        db.session.delete(game)
        db.session.commit()
    except SQLAlchemyError as exc:
        raise _store_error(exc, f'delete game {game_code}') from exc
    socketio.emit('session_ended', {'game_code': game_code}, to=room_for(game_code), namespace=NAMESPACE)
    socketio.close_room(room_for(game_code), namespace=NAMESPACE)


def save(game):
    """Commit pending writes for ``game`` and notify its subscribers."""
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.info(f"[store-conflict] game={game.code} {exc.orig}")
        raise WriteConflict() from exc
    except SQLAlchemyError as exc:
        raise _store_error(exc, f'save game {game.code}') from exc
    notify(game)
    return game


def notify(game):
    socketio.emit('state_update', {'game_code': game.code, 'state': snapshot(game)},
                  to=room_for(game.code), namespace=NAMESPACE)


def snapshot(game):
    """Serialize the game plus the timing constants clients count down with."""
    cfg = current_app.config
    round_duration = int(cfg.get('ROUND_DURATION_SEC', 600))
    payload = game.to_dict()
    payload['round_duration'] = round_duration
    payload['voting_duration'] = int(cfg.get('VOTING_DURATION_SEC', 30))
    payload['round_end_time'] = (
        game.round_start_time + round_duration if game.round_start_time else None
    )
    payload['server_time'] = time.time()
    return payload
