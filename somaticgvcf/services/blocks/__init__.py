"""
Reference Blocks Service

Folds contiguous somatic reference-confidence positions into TLOD-banded
blocks for compact gVCF output.
"""

from .models import (
    Genotype,
    VariantRecord,
    TUMOR_LOD_KEY,
    MIN_DP_FORMAT_KEY,
    DEPTH_KEY,
    END_KEY,
    NON_REF_SYMBOLIC_ALLELE,
)
from .exceptions import (
    BlockError,
    InvalidArgumentError,
    NullInputError,
    NotContiguousError,
    OutOfBoundsError,
    EmptyBlockError,
)
from .position_run import PositionRun
from .score_block import ScoreBlock, EXPORT_PLOIDY
from .partitions import LodPartitions, LOWEST_BOUND, HIGHEST_BOUND
from .combiner import SomaticBlockCombiner
from .config import (
    BlockCombinerConfig,
    get_config,
    update_config,
    reset_config,
    load_config_from_file,
    save_config_to_file,
)

__all__ = [
    # Models
    'Genotype',
    'VariantRecord',
    'TUMOR_LOD_KEY',
    'MIN_DP_FORMAT_KEY',
    'DEPTH_KEY',
    'END_KEY',
    'NON_REF_SYMBOLIC_ALLELE',

    # Errors
    'BlockError',
    'InvalidArgumentError',
    'NullInputError',
    'NotContiguousError',
    'OutOfBoundsError',
    'EmptyBlockError',

    # Blocks
    'PositionRun',
    'ScoreBlock',
    'EXPORT_PLOIDY',
    'LodPartitions',
    'LOWEST_BOUND',
    'HIGHEST_BOUND',
    'SomaticBlockCombiner',

    # Config
    'BlockCombinerConfig',
    'get_config',
    'update_config',
    'reset_config',
    'load_config_from_file',
    'save_config_to_file',
]
