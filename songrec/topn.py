from __future__ import annotations

import heapq
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from songrec.errors import ConfigurationError


@dataclass(frozen=True, kw_only=True)
class ScoredItem:
    key: str
    score: float


class _Ranked:
    """Heap entry ordered so that the heap root is the worst-ranked entry."""

    __slots__ = ("key", "score")

    def __init__(self, key: str, score: float) -> None:
        self.key = key
        self.score = score

    def __lt__(self, other: "_Ranked") -> bool:
        if self.score != other.score:
            return self.score < other.score
        # equal scores: the larger id ranks lower
        return self.key > other.key


class TopNAccumulator:
    """Capacity-bounded accumulator keeping the N best (key, score) pairs.

    Entries are ranked by score descending, then by key ascending. The ranking
    is a total order, so the drained result does not depend on push order.

    Parameters
    ----------
    capacity : int
        Maximum number of entries retained.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ConfigurationError(f"capacity must be >= 1, got {capacity}")
        self.capacity = int(capacity)
        self._heap: List[_Ranked] = []

    def __len__(self) -> int:
        return len(self._heap)

    def push(self, key: str, score: float) -> bool:
        """Offer an entry; return True when it was retained."""
        entry = _Ranked(key, float(score))
        if len(self._heap) < self.capacity:
            heapq.heappush(self._heap, entry)
            return True

        if self._heap[0] < entry:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def push_many(self, items: Iterable[Tuple[str, float]]) -> None:
        for key, score in items:
            self.push(key, score)

    def peek_min(self) -> ScoredItem | None:
        if not self._heap:
            return None
        head = self._heap[0]
        return ScoredItem(key=head.key, score=head.score)

    def drain(self) -> List[ScoredItem]:
        """Empty the accumulator and return its entries, best first."""
        ordered = sorted(self._heap, reverse=True)
        self._heap = []
        return [ScoredItem(key=e.key, score=e.score) for e in ordered]


def backfill(
    partial: Sequence[str],
    n: int,
    fallback_ranked: Iterable[str],
) -> Tuple[str, ...]:
    """Pad ``partial`` up to ``n`` ids from ``fallback_ranked``, skipping duplicates.

    Returns fewer than ``n`` ids only when the fallback runs out.
    """
    result = list(partial[:n])
    if len(result) >= n:
        return tuple(result)

    present = set(result)
    for song_id in fallback_ranked:
        if len(result) >= n:
            break
        if song_id in present:
            continue
        result.append(song_id)
        present.add(song_id)

    return tuple(result)
