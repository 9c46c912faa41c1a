from __future__ import annotations

import math
from bisect import bisect_right
from typing import List, Sequence, Tuple

from .exceptions import InvalidArgumentError, OutOfBoundsError

# 32-bit integer extremes close the open-ended outer bands
LOWEST_BOUND: int = -(2 ** 31)
HIGHEST_BOUND: int = 2 ** 31 - 1


class LodPartitions:
    """
    Maps a score to the half-open band that contains it.

    Thresholds ``p0 < p1 < ... < pn`` give the bands
    ``[LOWEST, p0), [p0, p1), ..., [pn, HIGHEST)``.
    """

    def __init__(self, thresholds: Sequence[int]):
        values = [int(t) for t in thresholds]
        if not values:
            raise InvalidArgumentError("at least one LOD partition threshold is required")
        for lower, upper in zip(values, values[1:]):
            if lower >= upper:
                raise InvalidArgumentError(
                    f"LOD partitions must be strictly increasing, got {lower} before {upper}"
                )
        if values[0] <= LOWEST_BOUND or values[-1] >= HIGHEST_BOUND:
            raise InvalidArgumentError(f"LOD partitions must lie within ({LOWEST_BOUND}, {HIGHEST_BOUND})")
        self._thresholds: List[int] = values

    @property
    def thresholds(self) -> List[int]:
        return list(self._thresholds)

    def bands(self) -> List[Tuple[int, int]]:
        edges = [LOWEST_BOUND] + self._thresholds + [HIGHEST_BOUND]
        return list(zip(edges, edges[1:]))

    def band_for(self, score: float) -> Tuple[int, int]:
        """Return ``(lower, upper)`` of the band holding ``score``."""
        if math.isnan(score) or not (LOWEST_BOUND <= score < HIGHEST_BOUND):
            raise OutOfBoundsError(score, LOWEST_BOUND, HIGHEST_BOUND)
        idx = bisect_right(self._thresholds, score)
        lower = self._thresholds[idx - 1] if idx > 0 else LOWEST_BOUND
        upper = self._thresholds[idx] if idx < len(self._thresholds) else HIGHEST_BOUND
        return lower, upper

    def __len__(self) -> int:
        return len(self._thresholds) + 1

    def __repr__(self) -> str:
        return f"LodPartitions({self._thresholds})"
