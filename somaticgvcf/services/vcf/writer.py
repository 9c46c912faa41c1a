"""
gVCF writer for somatic reference-confidence output.

Records are pushed through a SomaticBlockCombiner so runs of hom-ref
positions come out as one banded block line each.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, TextIO

from somaticgvcf.services.blocks.combiner import SomaticBlockCombiner
from somaticgvcf.services.blocks.config import get_config
from somaticgvcf.services.blocks.models import END_KEY, NO_CALL, TUMOR_LOD_KEY, Genotype, VariantRecord

logger = logging.getLogger(__name__)

VCF_COLUMNS = ["CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO", "FORMAT"]


def block_header_lines(score_key: str, min_dp_key: str) -> List[str]:
    """Meta-information lines every banded gVCF needs."""
    return [
        f'##INFO=<ID={END_KEY},Number=1,Type=Integer,Description="Stop position of the interval">',
        f'##FORMAT=<ID={score_key},Number=1,Type=Float,'
        f'Description="Log 10 likelihood ratio score of variant existing versus not existing">',
        f'##FORMAT=<ID={min_dp_key},Number=1,Type=Integer,'
        f'Description="Minimum DP observed within the GVCF block">',
        '##ALT=<ID=NON_REF,Description="Represents any possible alternative allele at this location">',
    ]


def _header_id(line: str) -> Optional[str]:
    """'##FORMAT=<ID=DP,...>' -> 'FORMAT:DP'"""
    if not line.startswith("##") or "=<ID=" not in line:
        return None
    kind, rest = line[2:].split("=<ID=", 1)
    return f"{kind}:{rest.split(',', 1)[0].rstrip('>')}"


def build_header(
    header_lines: Sequence[str],
    sample_name: str,
    score_key: str,
    min_dp_key: str,
) -> List[str]:
    """
    Return ``header_lines`` with any missing block definitions added just before
    the #CHROM line (which is synthesized when absent).
    """
    meta = [line for line in header_lines if line.startswith("##")]
    if not any(line.lower().startswith("##fileformat=") for line in meta):
        meta.insert(0, "##fileformat=VCFv4.2")
    present = {_header_id(line) for line in meta}
    for line in block_header_lines(score_key, min_dp_key):
        if _header_id(line) not in present:
            meta.append(line)

    chrom_lines = [
        line for line in header_lines
        if line.startswith("#CHROM") and len(line.split("\t")) >= len(VCF_COLUMNS) + 1
    ]
    chrom_line = chrom_lines[0] if chrom_lines else "#" + "\t".join(VCF_COLUMNS + [sample_name])
    return meta + [chrom_line]


def _format_value(value) -> str:
    if value is None:
        return NO_CALL
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join(_format_value(v) for v in value)
    return str(value)


def _format_info(info: Dict) -> str:
    if not info:
        return NO_CALL
    items = []
    for key, value in info.items():
        if value is True:
            items.append(key)
        else:
            items.append(f"{key}={_format_value(value)}")
    return ";".join(items)


def _format_gt(genotype: Genotype, alleles: Sequence[str]) -> str:
    if not genotype.alleles:
        return NO_CALL
    sep = "|" if genotype.phased else "/"
    indices = []
    for allele in genotype.alleles:
        indices.append(str(alleles.index(allele)) if allele in alleles else NO_CALL)
    return sep.join(indices)


def _format_keys(genotypes: Sequence[Genotype]) -> List[str]:
    keys = ["GT"]
    for key, attr in (("DP", "dp"), ("GQ", "gq"), ("AD", "ad"), ("PL", "pl")):
        if any(getattr(g, attr) is not None for g in genotypes):
            keys.append(key)
    for g in genotypes:
        for key in g.attributes:
            if key not in keys:
                keys.append(key)
    return keys


def _format_sample(genotype: Genotype, keys: Sequence[str], alleles: Sequence[str], score_key: str) -> str:
    values = []
    for key in keys:
        if key == "GT":
            values.append(_format_gt(genotype, alleles))
        elif key in ("DP", "GQ", "AD", "PL"):
            values.append(_format_value(getattr(genotype, key.lower())))
        else:
            value = genotype.get_extended_attribute(key)
            if key == score_key and isinstance(value, float):
                # block summary score
                values.append(f"{value:.2f}")
            else:
                values.append(_format_value(value))
    return ":".join(values)


def format_record(record: VariantRecord, score_key: str = TUMOR_LOD_KEY) -> str:
    """
    Render one record as a tab-separated VCF data line (no newline).

    Values read from a VCF are kept as their source text, so passed-through
    records are written back unchanged. Only a float ``score_key`` value (the
    block summary score) is rounded to two decimals.
    """
    alleles = [record.ref] + list(record.alts)
    cols = [
        record.contig,
        str(record.position),
        record.id or NO_CALL,
        record.ref,
        ",".join(record.alts) if record.alts else NO_CALL,
        record.qual_text if record.qual_text is not None else _format_value(record.qual),
        record.filter or NO_CALL,
        _format_info(record.info),
    ]
    if record.genotypes:
        keys = _format_keys(record.genotypes)
        cols.append(":".join(keys))
        cols.extend(_format_sample(g, keys, alleles, score_key) for g in record.genotypes)
    return "\t".join(cols)


class GVCFWriter:
    """
    Writes a single-sample banded gVCF to a text stream.

    Usage:
        with GVCFWriter(out, "TUMOR") as writer:
            writer.write_header(header_lines)
            for record in records:
                writer.add(record)
    """

    def __init__(
        self,
        stream: TextIO,
        sample_name: str,
        lod_partitions: Optional[Sequence[int]] = None,
        score_key: Optional[str] = None,
        min_dp_key: Optional[str] = None,
    ):
        config = get_config()
        self.stream = stream
        self.sample_name = sample_name
        self.score_key = score_key or config.score_key
        self.min_dp_key = min_dp_key or config.min_dp_key
        self.combiner = SomaticBlockCombiner(
            sample_name,
            lod_partitions=lod_partitions,
            score_key=self.score_key,
            min_dp_key=self.min_dp_key,
        )
        self.header_written = False
        self.lines_written = 0
        self.closed = False

    def write_header(self, header_lines: Iterable[str] = ()) -> None:
        if self.header_written:
            raise ValueError("header already written")
        for line in build_header(list(header_lines), self.sample_name, self.score_key, self.min_dp_key):
            self.stream.write(line + "\n")
        self.header_written = True

    def add(self, record: VariantRecord) -> None:
        if self.closed:
            raise ValueError("cannot add records to a closed GVCFWriter")
        if not self.header_written:
            self.write_header()
        self.combiner.submit(record)
        self._write_pending()

    def close(self) -> None:
        if self.closed:
            return
        if not self.header_written:
            self.write_header()
        self.combiner.signal_end_of_input()
        self._write_pending()
        self.closed = True
        logger.info(
            "Wrote %d gVCF lines (%d blocks, %d unblocked records)",
            self.lines_written, self.combiner.blocks_emitted, self.combiner.records_passed_through,
        )

    def _write_pending(self) -> None:
        for out in self.combiner.drain():
            self.stream.write(format_record(out, self.score_key) + "\n")
            self.lines_written += 1

    def __enter__(self) -> "GVCFWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            # an exception is propagating: the open block is dropped, not written
            self.closed = True
