import random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from memory_game.errors import ConfigurationError


@dataclass(frozen=True)
class Card:
    position: int
    symbol: str


def generate_board(pair_count: int, symbol_pool: Sequence[str], rng: Optional[random.Random] = None) -> Tuple[Card, ...]:
    """Deal a shuffled board of ``pair_count`` pairs.

    The first ``pair_count`` symbols of the pool are used, each exactly twice.
    Pass a seeded ``random.Random`` to get a reproducible layout.
    """
    if pair_count < 1 or pair_count > len(symbol_pool):
        raise ConfigurationError(
            f"Cannot deal {pair_count} pairs from a pool of {len(symbol_pool)} symbols"
        )
    rng = rng or random.Random()
    selected = list(symbol_pool[:pair_count])
    deck = selected + selected
    rng.shuffle(deck)
    return tuple(Card(position=i, symbol=s) for i, s in enumerate(deck))
