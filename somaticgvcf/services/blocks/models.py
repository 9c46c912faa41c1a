"""
Record models for reference-confidence blocking.
These models represent the per-position records read from a VCF and the
summary records produced for each block.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Any, Dict, List, Optional, Union

# Attribute keys
TUMOR_LOD_KEY = "TLOD"
MIN_DP_FORMAT_KEY = "MIN_DP"
DEPTH_KEY = "DP"
END_KEY = "END"

# Symbolic allele standing for "any non-reference allele" in reference blocks
NON_REF_SYMBOLIC_ALLELE = "<NON_REF>"

NO_CALL = "."


class Genotype(BaseModel):
    """A single sample's genotype at one record."""
    sample_name: str = Field(..., description="Sample identifier")
    alleles: List[str] = Field(default_factory=list, description="Called alleles; length is the ploidy")
    phased: bool = Field(default=False, description="Whether the GT used '|' separators")
    dp: Optional[int] = Field(None, description="Read depth (FORMAT DP)")
    gq: Optional[int] = Field(None, description="Genotype quality (FORMAT GQ)")
    ad: Optional[List[int]] = Field(None, description="Allele depths (FORMAT AD)")
    pl: Optional[List[int]] = Field(None, description="Phred-scaled likelihoods (FORMAT PL)")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Extended FORMAT attributes")

    @property
    def ploidy(self) -> int:
        return len(self.alleles)

    def get_extended_attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def has_extended_attribute(self, key: str) -> bool:
        return key in self.attributes

    def is_hom_ref(self, ref: str) -> bool:
        """True when every called allele is the reference allele."""
        if not self.alleles:
            return False
        return all(a == ref for a in self.alleles)


class VariantRecord(BaseModel):
    """One VCF data line: a position (or span) with its per-sample genotypes."""
    contig: str = Field(..., description="Chromosome / contig name")
    position: int = Field(..., description="1-based start position")
    end: Optional[int] = Field(None, description="Last covered position (INFO END for blocks)")
    id: Optional[str] = Field(None, description="ID column (rsID etc.)")
    ref: str = Field(..., description="Reference allele")
    alts: List[str] = Field(default_factory=list, description="Alternate alleles")
    qual: Optional[float] = Field(None, description="QUAL column")
    qual_text: Optional[str] = Field(None, description="QUAL exactly as written in the source line")
    filter: Optional[str] = Field(None, description="FILTER column")
    info: Dict[str, Union[str, int, float, bool, List[str]]] = Field(default_factory=dict)
    genotypes: List[Genotype] = Field(default_factory=list)

    @model_validator(mode="after")
    def _fill_end(self) -> "VariantRecord":
        if self.end is None:
            info_end = self.info.get(END_KEY)
            if isinstance(info_end, int):
                self.end = info_end
            else:
                self.end = self.position + max(len(self.ref), 1) - 1
        return self

    def get_reference(self) -> str:
        return self.ref

    def get_genotype(self, sample_name: Optional[str] = None) -> Optional[Genotype]:
        """Return the genotype for ``sample_name`` or the first one when no name is given."""
        if not self.genotypes:
            return None
        if sample_name is None:
            return self.genotypes[0]
        for g in self.genotypes:
            if g.sample_name == sample_name:
                return g
        return None

    @property
    def is_reference_block_candidate(self) -> bool:
        """
        A record can be folded into a reference block when it carries exactly one
        hom-ref genotype and its only alternate allele is <NON_REF>.
        """
        if len(self.genotypes) != 1:
            return False
        if self.alts != [NON_REF_SYMBOLIC_ALLELE]:
            return False
        return self.genotypes[0].is_hom_ref(self.ref)
