from __future__ import annotations

import math
import statistics
from dataclasses import dataclass, field
from typing import List

from .exceptions import EmptyBlockError
from .models import VariantRecord


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward +infinity."""
    return int(math.floor(value + 0.5))


@dataclass
class PositionRun:
    """
    Bookkeeping for a contiguous run of positions on one contig.

    ``start`` and ``end`` are inclusive. Depths are stored in merge order,
    one per merged record, clamped to zero.
    """
    contig: str
    start: int
    end: int
    ref: str
    depths: List[int] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: VariantRecord) -> "PositionRun":
        return cls(contig=record.contig, start=record.position, end=record.position, ref=record.ref)

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    def extend(self, new_end: int, depth: int) -> None:
        self.end = new_end
        self.depths.append(max(depth, 0))

    def is_contiguous(self, record: VariantRecord) -> bool:
        return record.contig == self.contig and record.position == self.end + 1

    def median_depth(self) -> int:
        """Median depth, averaging the two middle values and rounding half up."""
        if not self.depths:
            raise EmptyBlockError("cannot compute the median depth of an empty run")
        return round_half_up(statistics.median(self.depths))

    def min_depth(self) -> int:
        if not self.depths:
            raise EmptyBlockError("cannot compute the minimum depth of an empty run")
        return min(self.depths)
