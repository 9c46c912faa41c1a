"""
Exception classes for reference-confidence blocking.

All of these signal caller errors. Nothing in the blocks service catches them.
"""

from typing import Optional


class BlockError(ValueError):
    pass


class InvalidArgumentError(BlockError):
    pass


class NullInputError(BlockError):
    pass


class EmptyBlockError(BlockError):
    pass


class NotContiguousError(BlockError):
    """A position was merged that does not immediately follow the block end."""

    def __init__(self, position: int, end: int):
        self.position = position
        self.end = end
        super().__init__(
            f"adding genotype at pos {position} isn't contiguous with previous end {end}"
        )


class OutOfBoundsError(BlockError):
    """A score fell outside the half-open band ``[lower_bound, upper_bound)``."""

    def __init__(self, score: float, lower_bound: Optional[int], upper_bound: Optional[int]):
        self.score = score
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        super().__init__(
            f"cannot add a genotype with LOD={score} because it's not within bounds "
            f"[{lower_bound},{upper_bound})"
        )
