"""
Selection order - decides which pool players are pulled into groups first.

Nobody has finished a game yet: shuffle, so the first round does not just
follow sign-up order. Otherwise: fewest completed sessions first, then lower
tier, then name.
"""
import random
from typing import Callable, Sequence

from courtqueue.domain.queue.models import Participant, Status

OrderingStrategy = Callable[[Sequence[Participant], random.Random], list[Participant]]


def shuffled_order(pool: Sequence[Participant], rng: random.Random) -> list[Participant]:
    queue = list(pool)
    rng.shuffle(queue)
    return queue


def fewest_sessions_order(pool: Sequence[Participant], rng: random.Random) -> list[Participant]:
    return sorted(pool, key=lambda p: (p.sessions, p.tier.rank, p.name))


def ordering_for(any_completed: bool) -> OrderingStrategy:
    """Pick the ordering strategy from whether anyone has ever finished a session."""
    if any_completed:
        return fewest_sessions_order
    return shuffled_order


def selection_queue(
    participants: Sequence[Participant],
    rng: random.Random,
) -> list[str]:
    """
    Build the queue of pool participant ids in the order they should be staged.

    The strategy switch looks at every participant, not only the pool: a
    player currently on court with completed sessions still counts.
    """
    any_completed = any(p.sessions > 0 for p in participants)
    pool = [p for p in participants if p.status == Status.POOL]
    strategy = ordering_for(any_completed)
    return [p.id for p in strategy(pool, rng)]
