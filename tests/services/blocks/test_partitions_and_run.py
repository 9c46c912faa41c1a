"""
Tests for LOD band lookup and the position-run bookkeeping blocks delegate to.
"""

import math

import pytest
from somaticgvcf.services.blocks import (
    EmptyBlockError,
    HIGHEST_BOUND,
    InvalidArgumentError,
    LOWEST_BOUND,
    LodPartitions,
    NON_REF_SYMBOLIC_ALLELE,
    OutOfBoundsError,
    PositionRun,
    VariantRecord,
)


class TestLodPartitions:

    @pytest.fixture
    def partitions(self):
        return LodPartitions([-2, 0, 3])

    @pytest.mark.parametrize("score,band", [
        (-100.0, (LOWEST_BOUND, -2)),
        (-2.0, (-2, 0)),
        (-0.01, (-2, 0)),
        (0.0, (0, 3)),
        (2.99, (0, 3)),
        (3.0, (3, HIGHEST_BOUND)),
        (1e6, (3, HIGHEST_BOUND)),
    ])
    def test_band_for(self, partitions, score, band):
        assert partitions.band_for(score) == band

    def test_bands_cover_every_threshold(self, partitions):
        assert partitions.bands() == [
            (LOWEST_BOUND, -2),
            (-2, 0),
            (0, 3),
            (3, HIGHEST_BOUND),
        ]
        assert len(partitions) == 4

    @pytest.mark.parametrize("score", [math.nan, math.inf, -math.inf, float(HIGHEST_BOUND)])
    def test_unplaceable_scores(self, partitions, score):
        with pytest.raises(OutOfBoundsError):
            partitions.band_for(score)

    @pytest.mark.parametrize("thresholds", [[], [1, 1], [3, 2], [0, LOWEST_BOUND]])
    def test_invalid_thresholds(self, thresholds):
        with pytest.raises(InvalidArgumentError):
            LodPartitions(thresholds)


class TestPositionRun:

    @pytest.fixture
    def run(self):
        record = VariantRecord(contig="chr2", position=500, ref="G", alts=[NON_REF_SYMBOLIC_ALLELE])
        return PositionRun.from_record(record)

    def test_from_record(self, run):
        assert (run.contig, run.start, run.end, run.ref) == ("chr2", 500, 500, "G")
        assert run.depths == []
        assert run.size == 1

    def test_extend_clamps_depth(self, run):
        run.extend(501, -3)
        run.extend(510, 8)
        assert run.depths == [0, 8]
        assert run.end == 510
        assert run.size == 11

    @pytest.mark.parametrize("depths,median", [
        ([30, 10], 20),
        ([1, 2, 3], 2),
        ([10, 31], 21),  # 20.5 rounds half up
        ([7], 7),
    ])
    def test_median_depth(self, run, depths, median):
        for i, dp in enumerate(depths, start=1):
            run.extend(500 + i, dp)
        assert run.median_depth() == median

    def test_min_depth(self, run):
        for i, dp in enumerate([12, 4, 9], start=1):
            run.extend(500 + i, dp)
        assert run.min_depth() == 4

    def test_empty_run_statistics_fail(self, run):
        with pytest.raises(EmptyBlockError):
            run.median_depth()
        with pytest.raises(EmptyBlockError):
            run.min_depth()

    def test_is_contiguous(self, run):
        next_rec = VariantRecord(contig="chr2", position=501, ref="T")
        gap_rec = VariantRecord(contig="chr2", position=503, ref="T")
        other_contig = VariantRecord(contig="chr3", position=501, ref="T")
        assert run.is_contiguous(next_rec)
        assert not run.is_contiguous(gap_rec)
        assert not run.is_contiguous(other_contig)
