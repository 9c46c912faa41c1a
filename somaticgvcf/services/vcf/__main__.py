from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from somaticgvcf.core.logging import configure_logging
from somaticgvcf.services.blocks.config import get_config, load_config_from_file
from somaticgvcf.services.blocks.exceptions import BlockError

from .parser import VcfParseError, normalize_to_lines, iter_vcf_records, read_vcf_header
from .writer import GVCFWriter

logger = logging.getLogger("somaticgvcf.cli")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m somaticgvcf.services.vcf",
        description="Fold a single-sample somatic reference-confidence VCF into TLOD-banded gVCF blocks.",
    )
    parser.add_argument("input", help="Input VCF (.vcf or .vcf.gz)")
    parser.add_argument("-o", "--output", help="Output gVCF path (default: stdout)")
    parser.add_argument(
        "--lod-band", dest="lod_bands", type=int, action="append",
        help="TLOD band threshold; repeat to give several (default: from config)",
    )
    parser.add_argument("--sample", help="Sample name when the input has no sample column")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    if not isinstance(logging.getLevelName(args.log_level.upper()), int):
        print(f"Error: unknown log level {args.log_level!r}", file=sys.stderr)
        return 2
    configure_logging(args.log_level)

    if args.config:
        try:
            load_config_from_file(args.config)
        except (OSError, ValueError) as e:
            logger.error("Could not load config %s: %s", args.config, e)
            return 2
    config = get_config()

    path = Path(args.input)
    if not path.exists():
        logger.error("File not found: %s", path)
        return 2

    out = open(args.output, "w", encoding="utf-8") if args.output else sys.stdout
    succeeded = False
    try:
        lines = normalize_to_lines(path)
        header, data_lines = read_vcf_header(lines)
        if len(header.samples) > 1:
            logger.error("Expected a single-sample VCF, found samples %s", ", ".join(header.samples))
            return 2
        sample_name = header.samples[0] if header.samples else (args.sample or config.sample_name)

        with GVCFWriter(out, sample_name, lod_partitions=args.lod_bands) as writer:
            writer.write_header(header.header_lines)
            for record in iter_vcf_records(data_lines, samples=header.samples):
                writer.add(record)
        succeeded = True
    except (VcfParseError, BlockError) as e:
        logger.error("Could not write gVCF for %s: %s", path, e)
        return 2
    finally:
        if out is not sys.stdout:
            out.close()
            if not succeeded:
                Path(args.output).unlink(missing_ok=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
