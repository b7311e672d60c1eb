"""Group orderings used to diversify search attempts.

Each attempt hands the placer the same groups in a different order so that
different groups get first pick of the tables.
"""
from __future__ import annotations

import random
from typing import Callable, Dict, List, Sequence

from .models import AtomicGroup

SHUFFLE = "shuffle"
REVERSE = "reverse"
SIZE_FIRST = "size-first"
SIZE_LAST = "size-last"
RANDOM_PAIRS = "random-pairs"
PRIORITY_FIRST = "priority-first"
CONSTRAINT_HEAVY_FIRST = "constraint-heavy-first"

# Round-robin order across attempts.
STRATEGIES = (
    SHUFFLE,
    REVERSE,
    SIZE_FIRST,
    SIZE_LAST,
    RANDOM_PAIRS,
    PRIORITY_FIRST,
    CONSTRAINT_HEAVY_FIRST,
)


def strategy_for_attempt(attempt: int) -> str:
    return STRATEGIES[attempt % len(STRATEGIES)]


def _shuffled(groups: Sequence[AtomicGroup], rng: random.Random) -> List[AtomicGroup]:
    out = list(groups)
    rng.shuffle(out)  # Fisher-Yates
    return out


def _random_pairs(groups: Sequence[AtomicGroup], rng: random.Random) -> List[AtomicGroup]:
    """Cut the incoming order into adjacent pairs and shuffle the pairs.

    Neighbours in the default order stay next to each other, so this only
    perturbs the order locally instead of re-sorting it.
    """
    blocks = [list(groups[i:i + 2]) for i in range(0, len(groups), 2)]
    rng.shuffle(blocks)
    return [g for block in blocks for g in block]


_ORDERINGS: Dict[str, Callable[[Sequence[AtomicGroup], random.Random], List[AtomicGroup]]] = {
    SHUFFLE: _shuffled,
    REVERSE: lambda groups, rng: list(reversed(groups)),
    SIZE_FIRST: lambda groups, rng: sorted(groups, key=lambda g: -g.occupancy),
    SIZE_LAST: lambda groups, rng: sorted(groups, key=lambda g: g.occupancy),
    RANDOM_PAIRS: _random_pairs,
    PRIORITY_FIRST: lambda groups, rng: sorted(groups, key=lambda g: (-g.priority, -g.occupancy)),
    CONSTRAINT_HEAVY_FIRST: lambda groups, rng: sorted(groups, key=lambda g: -g.constraint_degree),
}


def order_groups(groups: Sequence[AtomicGroup], strategy: str, rng: random.Random) -> List[AtomicGroup]:
    """Return a new list with ``groups`` reordered by ``strategy``."""
    try:
        ordering = _ORDERINGS[strategy]
    except KeyError:
        raise ValueError(f"Unknown ordering strategy: {strategy}") from None
    return ordering(groups, rng)
