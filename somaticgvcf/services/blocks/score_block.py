"""
LOD band accumulator for somatic reference-confidence output.

A block holds the TLOD and DP values of a contiguous stretch of hom-ref
genotypes whose TLOD lies in one half-open band, and summarises them as a
single genotype when the block is written.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .exceptions import InvalidArgumentError, NotContiguousError, NullInputError, OutOfBoundsError, EmptyBlockError
from .models import (
    END_KEY,
    MIN_DP_FORMAT_KEY,
    NON_REF_SYMBOLIC_ALLELE,
    TUMOR_LOD_KEY,
    Genotype,
    VariantRecord,
)
from .position_run import PositionRun, round_half_up

logger = logging.getLogger(__name__)

# Blocks are always written as diploid hom-ref, whatever the sample's ploidy,
# so that downstream gVCF tooling sees a familiar genotype.
EXPORT_PLOIDY = 2


class ScoreBlock:
    """
    Accumulates hom-ref genotypes with a score in ``[lower_bound, upper_bound)``.

    Bounds are stored as whole numbers; merged scores are compared unrounded.
    The most conservative summary of a reference block is the highest LOD seen,
    so that is what the block reports.
    """

    def __init__(
        self,
        starting_record: VariantRecord,
        lower_bound: float,
        upper_bound: float,
        score_key: str = TUMOR_LOD_KEY,
        min_dp_key: str = MIN_DP_FORMAT_KEY,
    ):
        """
        Args:
            starting_record: record that anchors the block's start position and reference allele.
            lower_bound:     inclusive lower score bound.
            upper_bound:     exclusive upper score bound.
            score_key:       FORMAT attribute holding the per-position score.
            min_dp_key:      FORMAT attribute written with the minimum depth on export.
        """
        if starting_record is None:
            raise NullInputError("starting record cannot be None")
        if lower_bound > upper_bound:
            raise InvalidArgumentError(
                f"bad lower bound {lower_bound} as it's > upper bound {upper_bound}"
            )
        self._run = PositionRun.from_record(starting_record)
        self._min_score = round_half_up(lower_bound)
        self._max_score = round_half_up(upper_bound)
        self._score_key = score_key
        self._min_dp_key = min_dp_key
        self._max_block_score: Optional[float] = None

    @classmethod
    def open(
        cls,
        record: VariantRecord,
        lower_bound: float,
        upper_bound: float,
        score_key: str = TUMOR_LOD_KEY,
        min_dp_key: str = MIN_DP_FORMAT_KEY,
    ) -> "ScoreBlock":
        """
        Create a block whose first merged position is ``record`` itself.
        """
        genotype = record.get_genotype() if record is not None else None
        block = cls(record, lower_bound, upper_bound, score_key=score_key, min_dp_key=min_dp_key)
        score = block._validated_score(genotype)
        block._absorb(score, record.end, genotype)
        return block

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def merge(self, position: int, new_end: int, genotype: Genotype) -> None:
        """
        Add one genotype to this block.

        Args:
            position: genomic position of the genotype; must be ``end + 1``.
            new_end:  last position covered by the genotype's record.
            genotype: non-null genotype carrying the score attribute and DP.
        """
        if genotype is None:
            raise NullInputError("genotype cannot be None")
        if position != self.end + 1:
            raise NotContiguousError(position, self.end)
        if new_end < position:
            raise InvalidArgumentError(f"new end {new_end} is before position {position}")
        score = self._validated_score(genotype)
        self._absorb(score, new_end, genotype)

    def _validated_score(self, genotype: Optional[Genotype]) -> float:
        if genotype is None:
            raise NullInputError("genotype cannot be None")
        raw = genotype.get_extended_attribute(self._score_key)
        if raw is None:
            raise NullInputError(f"genotype has no {self._score_key} attribute")
        try:
            score = float(str(raw))
        except ValueError:
            raise InvalidArgumentError(f"{self._score_key}={raw!r} is not a number") from None
        if not self.within_bounds(score):
            raise OutOfBoundsError(score, self._min_score, self._max_score)
        return score

    def _absorb(self, score: float, new_end: int, genotype: Genotype) -> None:
        if self._max_block_score is None or score > self._max_block_score:
            self._max_block_score = score
        depth = genotype.dp if genotype.dp is not None else 0
        self._run.extend(new_end, depth)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def within_bounds(self, score: float) -> bool:
        """Is ``score`` within this block's band (lower <= score < upper)?"""
        return self._min_score <= score < self._max_score

    def get_max_block_score(self) -> Optional[float]:
        """Highest score merged so far, or None when nothing has been merged."""
        return self._max_block_score

    def get_lower_bound(self) -> int:
        return self._min_score

    def get_upper_bound(self) -> int:
        return self._max_score

    def get_reference(self) -> str:
        return self._run.ref

    def get_median_dp(self) -> int:
        return self._run.median_depth()

    def get_min_dp(self) -> int:
        return self._run.min_depth()

    @property
    def contig(self) -> str:
        return self._run.contig

    @property
    def start(self) -> int:
        return self._run.start

    @property
    def end(self) -> int:
        return self._run.end

    @property
    def size(self) -> int:
        return self._run.size

    @property
    def depths(self) -> List[int]:
        return list(self._run.depths)

    def is_contiguous(self, record: VariantRecord) -> bool:
        return self._run.is_contiguous(record)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def export(self, sample_name: str) -> Genotype:
        """
        Summarise the block as a single diploid hom-ref genotype with TLOD,
        DP (median) and MIN_DP annotations. Any per-position AD, PL or other
        attributes are left out.
        """
        if self._max_block_score is None:
            raise EmptyBlockError(f"cannot export {self!r}: no genotypes merged")
        ref = self.get_reference()
        return Genotype(
            sample_name=sample_name,
            alleles=[ref] * EXPORT_PLOIDY,
            dp=self.get_median_dp(),
            attributes={
                self._score_key: self._max_block_score,
                self._min_dp_key: self.get_min_dp(),
            },
        )

    def to_record(self, sample_name: str) -> VariantRecord:
        """Build the gVCF record for this block (INFO END set to the block end)."""
        genotype = self.export(sample_name)
        logger.debug("Emitting block %r covering %s:%d-%d", self, self.contig, self.start, self.end)
        return VariantRecord(
            contig=self.contig,
            position=self.start,
            end=self.end,
            ref=self.get_reference(),
            alts=[NON_REF_SYMBOLIC_ALLELE],
            info={END_KEY: self.end},
            genotypes=[genotype],
        )

    def __repr__(self) -> str:
        return f"ScoreBlock(lower_bound={self._min_score}, upper_bound={self._max_score})"
