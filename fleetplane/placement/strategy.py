"""Cluster selection strategies for new assignments.

When an application needs more placements than it has, the reconciler
asks a selection strategy to pick clusters from the unscheduled pool:

- random:  Uniform sample without replacement (reproducible via seed)
- ordered: First N candidates in inventory order (fully deterministic)
"""

import random
from enum import Enum
from typing import Callable, List, Optional, Sequence

from fleetplane.placement.models import Cluster

SelectionStrategy = Callable[[Sequence[Cluster], int], List[Cluster]]


class SelectionMode(str, Enum):
    """Named selection strategies exposed on the command line."""

    RANDOM = "random"
    ORDERED = "ordered"

    def describe(self) -> str:
        """Human-readable description of the strategy."""
        descriptions = {
            self.RANDOM: (
                "Pick unscheduled clusters uniformly at random. "
                "Use --seed for reproducibility."
            ),
            self.ORDERED: (
                "Pick unscheduled clusters in the order they appear in the "
                "control plane inventory."
            ),
        }
        return descriptions[self]


def random_selection(seed: Optional[int] = None) -> SelectionStrategy:
    """Build a strategy that samples clusters uniformly without replacement.

    Args:
        seed: Seed for the private random generator. ``None`` draws from
            system entropy.

    Returns:
        A selection strategy callable.
    """
    rng = random.Random(seed)

    def select(candidates: Sequence[Cluster], count: int) -> List[Cluster]:
        return rng.sample(list(candidates), count)

    return select


def ordered_selection(candidates: Sequence[Cluster], count: int) -> List[Cluster]:
    """Pick the first ``count`` candidates in their given order."""
    return list(candidates)[:count]


def build_strategy(mode: SelectionMode, seed: Optional[int] = None) -> SelectionStrategy:
    """Resolve a named selection mode to a strategy callable."""
    if mode == SelectionMode.RANDOM:
        return random_selection(seed)
    elif mode == SelectionMode.ORDERED:
        return ordered_selection
    else:
        raise ValueError(f"Unknown selection mode: {mode}")
