from __future__ import annotations

import gzip
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from somaticgvcf.services.blocks.models import NO_CALL, Genotype, VariantRecord

logger = logging.getLogger(__name__)

# FORMAT keys promoted to typed Genotype fields; everything else stays in attributes
_TYPED_FORMAT_KEYS = ("GT", "DP", "GQ", "AD", "PL")


class VcfParseError(ValueError):
    pass


@dataclass(frozen=True)
class VcfHeaderInfo:
    vcf_version: Optional[str]
    header_lines: List[str]
    samples: List[str]
    has_fileformat: bool
    has_chrom_header: bool


@dataclass
class VcfParseResult:
    vcf_version: Optional[str]
    header: List[str]
    samples: List[str]
    records: List[VariantRecord]
    skipped_lines: int


def read_vcf(
    content: Union[str, bytes, Path, Iterable[str]],
    *,
    max_records: Optional[int] = None,
) -> VcfParseResult:
    """
    Parse a whole VCF v4.x file into VariantRecords.

    Args:
        content:     File bytes, string, Path or line iterable.
        max_records: Optional cap on records returned.
    """
    header_info, data_lines = read_vcf_header(normalize_to_lines(content))
    counter = _LineCounter()
    records = list(
        iter_vcf_records(data_lines, samples=header_info.samples, max_records=max_records, counter=counter)
    )
    return VcfParseResult(
        vcf_version=header_info.vcf_version,
        header=header_info.header_lines,
        samples=header_info.samples,
        records=records,
        skipped_lines=counter.skipped,
    )


def read_vcf_header(lines: Iterator[str]) -> Tuple[VcfHeaderInfo, Iterator[str]]:
    """
    Consume VCF lines until the first data record.
    Returns (header_info, remaining_lines_iterator).

    Raises VcfParseError when the ##fileformat line or the #CHROM line is missing.
    """
    header_lines: List[str] = []
    samples: List[str] = []
    vcf_version: Optional[str] = None
    column_header_seen = False
    fileformat_seen = False
    buffered_first_record: Optional[str] = None

    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line:
            continue
        if line.startswith("##"):
            header_lines.append(line)
            if line.lower().startswith("##fileformat="):
                vcf_version = line.split("=", 1)[1].strip()
                fileformat_seen = True
            continue
        if line.startswith("#CHROM"):
            header_lines.append(line)
            column_header_seen = True
            cols = line.lstrip("#").split("\t")
            if len(cols) >= 10:
                samples = cols[9:]
            continue
        if line.startswith("#"):
            header_lines.append(line)
            continue
        buffered_first_record = line
        break

    if not fileformat_seen or not column_header_seen:
        raise VcfParseError("Missing ##fileformat or #CHROM header")

    info = VcfHeaderInfo(
        vcf_version=vcf_version,
        header_lines=header_lines,
        samples=samples,
        has_fileformat=fileformat_seen,
        has_chrom_header=column_header_seen,
    )

    def remaining_iter() -> Iterator[str]:
        if buffered_first_record is not None:
            yield buffered_first_record
        yield from lines

    return info, remaining_iter()


class _LineCounter:
    def __init__(self) -> None:
        self.skipped = 0


def iter_vcf_records(
    lines: Iterable[str],
    *,
    samples: Sequence[str],
    max_records: Optional[int] = None,
    counter: Optional[_LineCounter] = None,
) -> Iterator[VariantRecord]:
    """Yield VariantRecords from VCF data lines, skipping malformed ones."""
    seen = 0
    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line or line.startswith("#"):
            continue
        record = _parse_record_line(line, samples=samples)
        if record is None:
            if counter is not None:
                counter.skipped += 1
            continue
        yield record
        seen += 1
        if max_records is not None and seen >= max_records:
            return


def normalize_to_lines(content: Union[str, bytes, Iterable[str], Path]) -> Iterator[str]:
    if isinstance(content, Path):
        if content.suffix == ".gz":
            with gzip.open(content, "rt", encoding="utf-8", errors="replace") as f:
                yield from f
        else:
            with content.open("r", encoding="utf-8", errors="replace", newline="") as f:
                yield from f
        return
    if isinstance(content, bytes):
        text = content.decode("utf-8", errors="replace")
        yield from text.splitlines(True)
        return
    if isinstance(content, str):
        yield from content.splitlines(True)
        return
    yield from content


def _parse_info_field(info: str) -> Dict[str, Union[str, int, float, bool, List[str]]]:
    out: Dict[str, Union[str, int, float, bool, List[str]]] = {}
    if info in (".", ""):
        return out
    for item in info.split(";"):
        if not item:
            continue
        if "=" not in item:
            out[item] = True
            continue
        k, v = item.split("=", 1)
        if "," in v:
            out[k] = v.split(",")
        else:
            # integers are typed (END); everything else keeps its source text
            out[k] = int(v) if v.isdigit() and str(int(v)) == v else v
    return out


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or value in (".", ""):
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_int_list(value: Optional[str]) -> Optional[List[int]]:
    if value is None or value in (".", ""):
        return None
    try:
        return [int(x) for x in value.split(",")]
    except ValueError:
        return None


def _parse_gt(gt: Optional[str], alleles: Sequence[str]) -> Tuple[List[str], bool]:
    """Turn a GT string such as '0/1' into allele strings; unknown indices become no-calls."""
    if not gt or gt == NO_CALL:
        return [], False
    phased = "|" in gt
    out: List[str] = []
    for idx in gt.replace("|", "/").split("/"):
        idx = idx.strip()
        if idx.isdigit() and int(idx) < len(alleles):
            out.append(alleles[int(idx)])
        else:
            out.append(NO_CALL)
    return out, phased


def _build_genotype(
    sample_name: str,
    format_keys: Sequence[str],
    sample_col: str,
    alleles: Sequence[str],
) -> Genotype:
    fields = sample_col.split(":")
    sample_map = {
        k: (fields[i] if i < len(fields) else "")
        for i, k in enumerate(format_keys)
    }
    called, phased = _parse_gt(sample_map.get("GT"), alleles)
    return Genotype(
        sample_name=sample_name,
        alleles=called,
        phased=phased,
        dp=_parse_int(sample_map.get("DP")),
        gq=_parse_int(sample_map.get("GQ")),
        ad=_parse_int_list(sample_map.get("AD")),
        pl=_parse_int_list(sample_map.get("PL")),
        attributes={
            k: v for k, v in sample_map.items()
            if k not in _TYPED_FORMAT_KEYS and v not in ("", ".")
        },
    )


def _parse_record_line(line: str, *, samples: Sequence[str]) -> Optional[VariantRecord]:
    cols = line.split("\t")
    if len(cols) < 8:
        logger.debug("Skipping malformed VCF line with %d columns", len(cols))
        return None

    chrom, pos_s, vid, ref, alt_s, qual_s, flt, info_s = cols[:8]

    try:
        pos = int(pos_s)
    except ValueError:
        logger.debug("Skipping VCF line with bad position %r", pos_s)
        return None

    qual = None
    if qual_s not in (".", ""):
        try:
            qual = float(qual_s)
        except ValueError:
            pass

    alts = alt_s.split(",") if alt_s not in (".", "") else []
    alleles = [ref] + alts

    format_keys: Tuple[str, ...] = ()
    if len(cols) >= 9 and cols[8] not in (".", ""):
        format_keys = tuple(cols[8].split(":"))

    genotypes = [
        _build_genotype(name, format_keys, sample_col, alleles)
        for name, sample_col in zip(samples, cols[9:])
    ]

    return VariantRecord(
        contig=chrom,
        position=pos,
        id=None if vid in (".", "") else vid,
        ref=ref,
        alts=alts,
        qual=qual,
        qual_text=None if qual_s in (".", "") else qual_s,
        filter=None if flt in (".", "") else flt,
        info=_parse_info_field(info_s),
        genotypes=genotypes,
    )
