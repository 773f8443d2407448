"""
Bounded top-k selection over (score, index) candidates.

A selector keeps at most ``k`` candidates in a min-heap so the weakest
retained candidate is always the one evicted. Selectors built over disjoint
index ranges are combined with ``merge``, which applies the same bounded
insert rule, so the result is the exact top-k whatever the partitioning.
"""

import heapq
import math
from typing import Iterable, List, Tuple

# NaN ranks below every real score and equal to any other NaN
_NAN_RANK = (0, 0.0)


def score_key(score: float) -> Tuple[int, float]:
    """Total-order key for a score: NaN < -inf < ... < +inf."""
    if math.isnan(score):
        return _NAN_RANK
    return (1, score)


class TopKSelector:
    """
    Keep the ``k`` highest-scoring candidates seen so far.

    Equal scores rank the lower index higher, which makes the final order
    deterministic regardless of how candidates were split across workers.
    """

    def __init__(self, k: int):
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")
        self.k = k
        # Entries are ((rank, score), -index); heap[0] is the weakest candidate
        self._heap: List[Tuple[Tuple[int, float], int]] = []

    def push(self, score: float, index: int) -> None:
        """Insert a candidate, evicting the weakest one once over capacity."""
        if self.k == 0:
            return

        entry = (score_key(score), -index)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
        elif entry > self._heap[0]:
            heapq.heapreplace(self._heap, entry)

    def extend(self, candidates: Iterable[Tuple[float, int]]) -> None:
        for score, index in candidates:
            self.push(score, index)

    def merge(self, other: "TopKSelector") -> "TopKSelector":
        """Fold another selector's candidates into this one and return self."""
        for (rank, score), neg_index in other._heap:
            self.push(score if rank else math.nan, -neg_index)
        return self

    def into_sorted(self) -> List[Tuple[float, int]]:
        """Return the retained candidates as (score, index), best first."""
        ordered = sorted(self._heap, reverse=True)
        return [(score if rank else math.nan, -neg_index) for (rank, score), neg_index in ordered]

    def __len__(self) -> int:
        return len(self._heap)
