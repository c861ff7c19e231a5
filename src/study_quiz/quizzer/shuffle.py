"""In-place Fisher-Yates shuffle."""

from __future__ import annotations

import random
from typing import MutableSequence, TypeVar

__all__ = ["shuffle"]

S = TypeVar("S", bound=MutableSequence)


def shuffle(seq: S, rng: random.Random | None = None) -> S:
    """Shuffle ``seq`` in place and return it.

    Walks from the last index down to 1, swapping each slot with a uniformly
    chosen slot at or before it. Pass ``rng`` for reproducible orderings.
    """

    rand = rng or random
    for i in range(len(seq) - 1, 0, -1):
        j = rand.randint(0, i)
        seq[i], seq[j] = seq[j], seq[i]
    return seq
