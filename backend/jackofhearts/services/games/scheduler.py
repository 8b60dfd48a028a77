import threading
from typing import Dict, Tuple

from jackofhearts import socketio
from jackofhearts.errors import GameError, InvalidPhaseTransition
from jackofhearts.models import PLAYING, VOTING
from . import lifecycle, store
from .timer import DeadlineTimer

TimerKey = Tuple[str, str, int]

# One live timer per game code
_timers: Dict[str, Tuple[TimerKey, DeadlineTimer]] = {}
_lock = threading.Lock()


def scheduled_key(game_code):
    entry = _timers.get(game_code.upper())
    return entry[0] if entry else None


def cancel_phase_timer(game_code) -> None:
    with _lock:
        entry = _timers.pop(game_code.upper(), None)
    if entry:
        entry[1].cancel()


def schedule_phase_timer(app, game_code) -> None:
    """Schedule the automatic transition for the game's current phase.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - playing: start voting when the round clock runs out
    - voting: resolve the round when the voting window closes
    - Keeps a single timer per (game, phase, round); a new phase cancels the old timer
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    with app.app_context():
        game = store.find_game(game_code)
        if not game or game.phase not in (PLAYING, VOTING):
            cancel_phase_timer(game_code)
            return
        phase = game.phase
        round_idx = int(game.current_round or 0)
        code = game.code
        key = (code, phase, round_idx)
        if phase == PLAYING:
            target = lifecycle.round_end_time(game)
            start = game.round_start_time
        else:
            target = game.voting_end_time
            start = target - lifecycle.voting_duration() if target else None

    with _lock:
        current = _timers.get(code)
        if current and current[0] == key:
            app.logger.info(f"[timer-skip] game={code} phase={phase} round={round_idx} already scheduled")
            return
        timer = DeadlineTimer(
            target,
            on_complete=lambda: fire_phase_deadline(app, code, phase, round_idx),
            start=start,
        )
        if current:
            current[1].cancel()
        _timers[code] = (key, timer)

    app.logger.info(f"[timer-set] game={code} phase={phase} round={round_idx} deadline={target}")

    def _worker():
        heartbeat = int(app.config.get('TIMER_HEARTBEAT_SEC', 0))
        last_beat = [timer.clock()]

        def _on_tick(remaining):
            if heartbeat > 0 and timer.clock() - last_beat[0] >= heartbeat:
                last_beat[0] = timer.clock()
                app.logger.info(f"[timer-heartbeat] game={code} phase={phase} round={round_idx} remaining={int(remaining)}s")

        timer.run(sleep=socketio.sleep, interval=float(app.config.get('TIMER_TICK_SEC', 1)), on_tick=_on_tick)

    if app.config.get('TESTING'):
        _worker()
    else:
        socketio.start_background_task(_worker)


def fire_phase_deadline(app, game_code, expected_phase, expected_round) -> None:
    """Apply the transition a phase deadline stands for, unless the game moved on."""
    with app.app_context():
        with _lock:
            entry = _timers.get(game_code)
            if entry and entry[0] == (game_code, expected_phase, expected_round):
                _timers.pop(game_code, None)
        game = store.find_game(game_code)
        if not game:
            return
        app.logger.info(
            f"[timer-fire] game={game_code} expected_phase={expected_phase} expected_round={expected_round} "
            f"actual_phase={game.phase} actual_round={game.current_round}"
        )
        if game.phase != expected_phase or game.current_round != expected_round:
            app.logger.info(f"[timer-abort] game={game_code} mismatch phase/round")
            return
        try:
            if expected_phase == PLAYING:
                lifecycle.start_voting(game_code)
            elif expected_phase == VOTING:
                lifecycle.process_round_results(game_code, expected_round=expected_round)
        except InvalidPhaseTransition as exc:
            app.logger.info(f"[timer-abort] game={game_code} {exc.message}")
            return
        except GameError as exc:
            app.logger.warning(f"[timer-error] game={game_code} {exc}")
            return
    schedule_phase_timer(app, game_code)
