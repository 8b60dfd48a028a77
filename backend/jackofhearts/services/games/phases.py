"""Phase transition table for a game.

``next_phase`` is total over (phase, event): it answers the target phase, or
``None`` when the event is not allowed from that phase. Guards that depend on
the roster (host, player count, deadlines) live in ``lifecycle``.
"""
from jackofhearts.models import ENDED, LOBBY, PLAYING, RESULTS, VOTING, normalize_phase

CREATE_GAME = 'create_game'
JOIN_GAME = 'join_game'
REMOVE_PLAYER = 'remove_player'
START_GAME = 'start_game'
START_VOTING = 'start_voting'
SUBMIT_VOTE = 'submit_vote'
PROCESS_ROUND_RESULTS = 'process_round_results'
CONTINUE_TO_NEXT_ROUND = 'continue_to_next_round'
END_GAME = 'end_game'
RESET_GAME = 'reset_game'

# Pseudo phase for "no game"
NO_GAME = None

TRANSITIONS = {
    (NO_GAME, CREATE_GAME): (LOBBY,),
    (LOBBY, JOIN_GAME): (LOBBY,),
    (LOBBY, REMOVE_PLAYER): (LOBBY,),
    (LOBBY, START_GAME): (PLAYING,),
    (PLAYING, START_VOTING): (VOTING,),
    (VOTING, SUBMIT_VOTE): (VOTING,),
    (VOTING, PROCESS_ROUND_RESULTS): (RESULTS, ENDED),
    (RESULTS, CONTINUE_TO_NEXT_ROUND): (PLAYING,),
    (PLAYING, END_GAME): (ENDED,),
    (VOTING, END_GAME): (ENDED,),
    (RESULTS, END_GAME): (ENDED,),
    (ENDED, RESET_GAME): (NO_GAME,),
}

# Phases in which a repeated event has already taken effect
_SETTLED = {
    START_GAME: (PLAYING,),
    START_VOTING: (VOTING,),
    PROCESS_ROUND_RESULTS: (RESULTS, ENDED),
    CONTINUE_TO_NEXT_ROUND: (PLAYING,),
    END_GAME: (ENDED,),
}


def _key(phase):
    return NO_GAME if phase is NO_GAME else normalize_phase(phase)


def targets(phase, event):
    return TRANSITIONS.get((_key(phase), event), ())


def next_phase(phase, event):
    """Target phase of ``event`` from ``phase``, or ``None`` if not allowed.

    Events with two possible outcomes answer the first one; the caller picks
    the actual target (round resolution decides between results and ended).
    """
    found = targets(phase, event)
    return found[0] if found else None


def allows(phase, event):
    return (_key(phase), event) in TRANSITIONS


def already_applied(phase, event):
    """True when ``phase`` shows ``event`` has already been applied."""
    return _key(phase) in _SETTLED.get(event, ())
