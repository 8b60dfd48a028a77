"""Game operations: every mutation of the game aggregate goes through here.

Each operation loads the game, checks the phase table and its own guards,
writes through the store and saves once. Repeating an operation whose effect
is already visible (a second ``start_voting`` while voting) returns the game
untouched instead of failing, so late or duplicate requests are harmless.
"""
import time

from flask import current_app

from jackofhearts.errors import (
    AlreadyStarted, InvalidAction, InvalidPhaseTransition, NotEnoughPlayers,
    MalformedState, NotHost, StoreUnavailable, WriteConflict,
)
from jackofhearts.models import (
    ACTIVE, ELIMINATED, LOBBY, SUITS, WINNER_PLAYERS, WINNERS, Game, Player,
)
from . import phases, store
from .assignment import deal_suits
from .codes import new_code
from .resolution import evaluate_winner, resolve_round

MAX_CODE_ATTEMPTS = 10
MAX_NAME_LENGTH = 64


def _config_int(name, default):
    return int(current_app.config.get(name, default))


def round_duration():
    return _config_int('ROUND_DURATION_SEC', 600)


def voting_duration():
    return _config_int('VOTING_DURATION_SEC', 30)


def _fresh_code(in_use):
    length = _config_int('CODE_LENGTH', 6)
    for _ in range(MAX_CODE_ATTEMPTS):
        code = new_code(length)
        if not in_use(code):
            return code
    raise StoreUnavailable('Could not allocate a free code, please try again')


def _clean_name(name):
    name = (name or '').strip()
    if not name:
        raise InvalidAction('Player name is required')
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidAction(f'Player name must be at most {MAX_NAME_LENGTH} characters')
    return name


def _require_host(game, acting_player_id):
    if not acting_player_id or acting_player_id != game.host_id:
        raise NotHost()


def _deadline_passed(deadline):
    return deadline is not None and time.time() >= deadline


def _settled(game, event):
    """True if ``event`` already took effect; raises if it is not allowed."""
    if phases.allows(game.phase, event):
        return False
    if phases.already_applied(game.phase, event):
        current_app.logger.info(f"[duplicate] game={game.code} event={event} phase={game.phase}")
        return True
    raise InvalidPhaseTransition(f"Cannot {event.replace('_', ' ')} while the game is {game.phase}")


def round_end_time(game):
    if game.round_start_time is None:
        return None
    return game.round_start_time + round_duration()


def all_active_voted(game):
    active = game.active_players
    return bool(active) and all(p.last_vote is not None for p in active)


def create_game(host_name):
    name = _clean_name(host_name)
    code = _fresh_code(store.code_in_use)
    host_id = _fresh_code(store.player_id_in_use)
    game = store.add_game(Game(code=code, host_id=host_id, phase=LOBBY, current_round=0))
    host = store.add_player(game, Player(id=host_id, name=name, is_host=True, status=ACTIVE))
    store.save(game)
    current_app.logger.info(f"[create] game={code} host={host_id}")
    return game, host


def join_game(game_code, player_name):
    name = _clean_name(player_name)
    game = store.get_game(game_code, for_update=True)
    if not phases.allows(game.phase, phases.JOIN_GAME):
        raise AlreadyStarted()
    player_id = _fresh_code(store.player_id_in_use)
    player = store.add_player(game, Player(id=player_id, name=name, status=ACTIVE))
    store.save(game)
    current_app.logger.info(f"[join] game={game.code} player={player_id} players={len(game.players)}")
    return game, player


def remove_player(game_code, acting_player_id, target_player_id):
    game = store.get_game(game_code, for_update=True)
    _require_host(game, acting_player_id)
    if not phases.allows(game.phase, phases.REMOVE_PLAYER):
        raise InvalidPhaseTransition('Players can only be removed in the lobby')
    target = game.player(target_player_id)
    if not target:
        raise InvalidAction('Player is not in this game')
    if target.is_host:
        raise InvalidAction('The host cannot be removed')
    store.delete_player(game, target)
    store.save(game)
    current_app.logger.info(f"[remove] game={game.code} player={target_player_id}")
    return game


def start_game(game_code, acting_player_id, rng=None):
    game = store.get_game(game_code, for_update=True)
    _require_host(game, acting_player_id)
    if _settled(game, phases.START_GAME):
        return game
    min_players = _config_int('MIN_PLAYERS', 3)
    if len(game.players) < min_players:
        raise NotEnoughPlayers(f'At least {min_players} players are required to start')

    seats = {p.id: p for p in game.players}
    for deal in deal_suits(list(seats), rng=rng):
        store.update_player(seats[deal.player_id], suit=deal.suit, is_jack=deal.is_jack,
                            status=ACTIVE, last_vote=None, eliminated_round=None)
    store.update_game(game, phase=phases.next_phase(game.phase, phases.START_GAME),
                      current_round=1, round_start_time=time.time(),
                      voting_end_time=None, winner=None)
    store.save(game)
    current_app.logger.info(f"[start] game={game.code} players={len(seats)} round=1")
    return game


def start_voting(game_code, acting_player_id=None):
    """Open the voting window.

    The host may do this at any time during play; anyone else (the phase
    scheduler included) only once the round clock has run out.
    """
    game = store.get_game(game_code, for_update=True)
    if _settled(game, phases.START_VOTING):
        return game
    if acting_player_id != game.host_id and not _deadline_passed(round_end_time(game)):
        raise NotHost('Only the host may start voting before the round ends')
    store.update_game(game, phase=phases.next_phase(game.phase, phases.START_VOTING),
                      voting_end_time=time.time() + voting_duration())
    store.save(game)
    current_app.logger.info(f"[voting] game={game.code} round={game.current_round} until={game.voting_end_time}")
    return game


def submit_vote(game_code, player_id, suit):
    if suit not in SUITS:
        raise InvalidAction(f'Unknown suit {suit!r}')
    game = store.get_game(game_code, for_update=True)
    if not phases.allows(game.phase, phases.SUBMIT_VOTE):
        raise InvalidPhaseTransition('Votes are only accepted while voting is open')
    player = game.player(player_id)
    if not player:
        raise InvalidAction('Player is not in this game')
    if player.status != ACTIVE:
        raise InvalidAction('Only active players may vote')
    store.update_player(player, last_vote=suit)
    store.save(game)
    return game


def process_round_results(game_code, acting_player_id=None, expected_round=None):
    """Resolve the current round in a single transaction.

    Eliminations, cleared votes, result rows and the new phase/winner are
    committed together. If another request resolved the same round first the
    unique result rows make this save fail, and the already resolved game is
    returned instead.
    """
    game = store.get_game(game_code, for_update=True)
    if expected_round is not None and game.current_round != expected_round:
        current_app.logger.info(
            f"[resolve-skip] game={game.code} expected_round={expected_round} actual_round={game.current_round}")
        return game
    if _settled(game, phases.PROCESS_ROUND_RESULTS):
        return game
    if (acting_player_id != game.host_id
            and not _deadline_passed(game.voting_end_time)
            and not all_active_voted(game)):
        raise NotHost('Only the host may close voting early')

    round_number = game.current_round
    outcome = resolve_round(round_number, game.players)
    by_id = {p.id: p for p in game.active_players}
    for player_id in outcome.survivors:
        player = by_id[player_id]
        store.add_round_result(
            game,
            round_number=round_number,
            player_id=player.id,
            player_name=player.name,
            vote=player.last_vote,
            actual_suit=player.suit,
            correct=True,
            eliminated=False,
        )
        store.update_player(player, last_vote=None)
    for elimination in outcome.eliminations:
        player = by_id[elimination.player_id]
        store.add_round_result(
            game,
            round_number=round_number,
            player_id=player.id,
            player_name=player.name,
            vote=player.last_vote,
            actual_suit=player.suit,
            correct=False,
            eliminated=True,
        )
        store.update_player(player, status=ELIMINATED, eliminated_round=round_number, last_vote=None)

    phase, winner = evaluate_winner(game.players)
    if phase not in phases.targets(game.phase, phases.PROCESS_ROUND_RESULTS):
        raise MalformedState(f'Round resolution produced unexpected phase {phase!r}')
    store.update_game(game, phase=phase, winner=winner, voting_end_time=None)
    try:
        store.save(game)
    except WriteConflict:
        current_app.logger.info(f"[resolve-skip] game={game_code} round={round_number} already resolved")
        return store.get_game(game_code)
    current_app.logger.info(
        f"[resolve] game={game.code} round={round_number} eliminated={len(outcome.eliminations)} "
        f"phase={phase} winner={winner}")
    return game


def continue_to_next_round(game_code, acting_player_id):
    game = store.get_game(game_code, for_update=True)
    _require_host(game, acting_player_id)
    if _settled(game, phases.CONTINUE_TO_NEXT_ROUND):
        return game
    store.update_game(game, phase=phases.next_phase(game.phase, phases.CONTINUE_TO_NEXT_ROUND),
                      current_round=game.current_round + 1,
                      round_start_time=time.time(), voting_end_time=None)
    store.save(game)
    current_app.logger.info(f"[continue] game={game.code} round={game.current_round}")
    return game


def end_game(game_code, acting_player_id, forced_winner=None):
    game = store.get_game(game_code, for_update=True)
    _require_host(game, acting_player_id)
    if _settled(game, phases.END_GAME):
        return game
    if forced_winner is not None and forced_winner not in WINNERS:
        raise InvalidAction(f'Unknown winner {forced_winner!r}')
    winner = forced_winner
    if winner is None:
        _, winner = evaluate_winner(game.players)
    store.update_game(game, phase=phases.next_phase(game.phase, phases.END_GAME),
                      winner=winner or WINNER_PLAYERS, voting_end_time=None)
    store.save(game)
    current_app.logger.info(f"[end] game={game.code} winner={game.winner} forced={forced_winner is not None}")
    return game


def reset_game(game_code):
    """Destroy an ended game. Returns False when there was nothing to reset."""
    game = store.find_game(game_code, for_update=True)
    if not game or not phases.allows(game.phase, phases.RESET_GAME):
        return False
    code = game.code
    store.delete_game(game)
    current_app.logger.info(f"[reset] game={code}")
    return True
