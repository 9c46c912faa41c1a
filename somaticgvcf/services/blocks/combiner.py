"""
Somatic reference-block combiner.

Consumes position records in coordinate order and folds runs of hom-ref
<NON_REF> records into ScoreBlocks, one block per contiguous run within a
single TLOD band. Every other record is passed through unchanged, closing
the open block first so output stays sorted.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterable, Iterator, Optional, Sequence

from .config import get_config
from .models import VariantRecord
from .partitions import LodPartitions
from .score_block import ScoreBlock

logger = logging.getLogger(__name__)


class SomaticBlockCombiner:
    """
    Groups reference-confidence records into banded ScoreBlocks.

    Records are pushed with ``submit``; finished output (block records and
    passed-through variants) is collected with ``drain``.
    """

    def __init__(
        self,
        sample_name: str,
        lod_partitions: Optional[Sequence[int]] = None,
        score_key: Optional[str] = None,
        min_dp_key: Optional[str] = None,
    ):
        config = get_config()
        self.sample_name = sample_name
        self.partitions = LodPartitions(lod_partitions if lod_partitions is not None else config.lod_partitions)
        self.score_key = score_key or config.score_key
        self.min_dp_key = min_dp_key or config.min_dp_key
        self.current_block: Optional[ScoreBlock] = None
        self._output: Deque[VariantRecord] = deque()
        self.blocks_emitted = 0
        self.records_passed_through = 0

    def submit(self, record: VariantRecord) -> None:
        """Add one record; it must not precede anything submitted before it."""
        if self.current_block is not None and not self.current_block.is_contiguous(record):
            self._emit_current_block()

        score = self._block_score(record) if record.is_reference_block_candidate else None
        if score is not None:
            genotype = record.get_genotype()
            if self.current_block is None or not self.current_block.within_bounds(score):
                self._emit_current_block()
                self.current_block = self._create_new_block(record, score)
            else:
                self.current_block.merge(record.position, record.end, genotype)
        else:
            self._emit_current_block()
            self._output.append(record)
            self.records_passed_through += 1

    def signal_end_of_input(self) -> None:
        """Flush the open block, if any."""
        self._emit_current_block()

    def drain(self) -> Iterator[VariantRecord]:
        """Yield (and remove) every finished output record in order."""
        while self._output:
            yield self._output.popleft()

    def has_pending_output(self) -> bool:
        return bool(self._output)

    def combine(self, records: Iterable[VariantRecord]) -> Iterator[VariantRecord]:
        """Run ``records`` through the combiner, yielding output as it becomes final."""
        for record in records:
            self.submit(record)
            yield from self.drain()
        self.signal_end_of_input()
        yield from self.drain()

    # ------------------------------------------------------------------

    def _block_score(self, record: VariantRecord) -> Optional[float]:
        """Score of a hom-ref record, or None when it is missing or not a number."""
        raw = record.get_genotype().get_extended_attribute(self.score_key)
        if raw is None:
            logger.warning(
                "Hom-ref record at %s:%d has no %s attribute; writing it unblocked",
                record.contig, record.position, self.score_key,
            )
            return None
        try:
            return float(str(raw))
        except ValueError:
            logger.warning(
                "Hom-ref record at %s:%d has non-numeric %s=%r; writing it unblocked",
                record.contig, record.position, self.score_key, raw,
            )
            return None

    def _create_new_block(self, record: VariantRecord, score: float) -> ScoreBlock:
        lower, upper = self.partitions.band_for(score)
        return ScoreBlock.open(
            record, lower, upper, score_key=self.score_key, min_dp_key=self.min_dp_key
        )

    def _emit_current_block(self) -> None:
        if self.current_block is None:
            return
        self._output.append(self.current_block.to_record(self.sample_name))
        self.blocks_emitted += 1
        self.current_block = None
