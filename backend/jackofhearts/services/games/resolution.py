from collections import namedtuple
from typing import Iterable, List, Optional, Tuple

from jackofhearts.models import (
    ACTIVE, ELIMINATED, ENDED, NO_VOTE, RESULTS, WINNER_JACK, WINNER_PLAYERS,
)

Elimination = namedtuple('Elimination', ['player_id', 'player_name', 'guessed_suit', 'actual_suit'])


class RoundOutcome:
    """Eliminations and survivors of one resolved round."""

    def __init__(self, round_number: int, eliminations: List[Elimination], survivors: List[str]):
        self.round_number = round_number
        self.eliminations = eliminations
        self.survivors = survivors


def resolve_round(round_number: int, players: Iterable) -> RoundOutcome:
    """Compare each active player's vote with their suit.

    A missing vote counts as a wrong guess and is recorded as ``NO_VOTE``.
    Players that guessed right survive. Nothing is mutated here.
    """
    eliminations = []
    survivors = []
    for player in players:
        if player.status != ACTIVE:
            continue
        if player.last_vote is not None and player.last_vote == player.suit:
            survivors.append(player.id)
            continue
        eliminations.append(Elimination(
            player_id=player.id,
            player_name=player.name,
            guessed_suit=player.last_vote or NO_VOTE,
            actual_suit=player.suit,
        ))
    return RoundOutcome(round_number, eliminations, survivors)


def evaluate_winner(players: Iterable) -> Tuple[str, Optional[str]]:
    """Decide the next phase and winner from the post-resolution roster.

    The Jack's elimination always wins the game for the players, whatever
    else is left on the table.
    """
    players = list(players)
    jack = next((p for p in players if p.is_jack), None)
    active = [p for p in players if p.status == ACTIVE]
    if jack is not None and jack.status == ELIMINATED:
        return ENDED, WINNER_PLAYERS
    if len(active) == 1 and active[0].is_jack:
        return ENDED, WINNER_JACK
    if not active:
        return ENDED, WINNER_PLAYERS
    return RESULTS, None
