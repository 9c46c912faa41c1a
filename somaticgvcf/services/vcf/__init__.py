from .parser import VcfHeaderInfo, VcfParseError, VcfParseResult, iter_vcf_records, read_vcf, read_vcf_header
from .writer import GVCFWriter, build_header, format_record

__all__ = [
    "VcfHeaderInfo",
    "VcfParseError",
    "VcfParseResult",
    "iter_vcf_records",
    "read_vcf",
    "read_vcf_header",
    "GVCFWriter",
    "build_header",
    "format_record",
]
