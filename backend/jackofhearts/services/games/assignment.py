import random
from collections import namedtuple
from typing import List, Sequence

from jackofhearts.models import SUITS

# The classic pool holds every suit four times (16 cards)
BASE_REPEATS = 4

SuitDeal = namedtuple('SuitDeal', ['player_id', 'suit', 'is_jack'])


def build_suit_pool(player_count: int) -> List[str]:
    """Return enough copies of the suits that no two seats share a card slot."""
    repeats = max(BASE_REPEATS, -(-player_count // len(SUITS)))
    return list(SUITS) * repeats


def deal_suits(player_ids: Sequence[str], rng=None) -> List[SuitDeal]:
    """Shuffle the suit pool across the roster and pick the Jack.

    Seat ``i`` receives ``pool[i]`` of the shuffled pool. The Jack is drawn
    independently of the suits, so the Jack's suit carries no signal.
    """
    rng = rng or random
    if not player_ids:
        return []
    pool = build_suit_pool(len(player_ids))
    rng.shuffle(pool)
    jack_index = rng.randrange(len(player_ids))
    return [
        SuitDeal(player_id, pool[i % len(pool)], i == jack_index)
        for i, player_id in enumerate(player_ids)
    ]
