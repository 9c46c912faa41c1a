"""
Configuration for the reference-block combiner.
Centralizes the LOD band partitions and the FORMAT keys used for blocking.
"""

import json
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BlockCombinerConfig(BaseModel):
    """Main configuration for somatic reference-confidence blocking."""

    model_config = ConfigDict(extra="forbid")

    lod_partitions: List[int] = Field(
        default_factory=lambda: [-4, -3, -2, -1, 0, 1, 2, 3, 4, 5, 6],
        description="Strictly increasing TLOD thresholds; consecutive values delimit one band"
    )

    score_key: str = Field(
        default="TLOD",
        min_length=1,
        description="FORMAT attribute holding the per-position score"
    )

    min_dp_key: str = Field(
        default="MIN_DP",
        min_length=1,
        description="FORMAT attribute written with the block's minimum depth"
    )

    sample_name: str = Field(
        default="TUMOR",
        min_length=1,
        description="Sample name used when the input VCF has no sample columns"
    )

    @field_validator("lod_partitions")
    @classmethod
    def _strictly_increasing(cls, value: List[int]) -> List[int]:
        if not value:
            raise ValueError("lod_partitions must contain at least one threshold")
        for lower, upper in zip(value, value[1:]):
            if lower >= upper:
                raise ValueError(f"lod_partitions must be strictly increasing, got {lower} before {upper}")
        return value


# Global configuration instance
_config: BlockCombinerConfig = BlockCombinerConfig()


def get_config() -> BlockCombinerConfig:
    """Get the global configuration instance."""
    return _config


def update_config(**kwargs) -> BlockCombinerConfig:
    """Update configuration parameters."""
    global _config
    current_dict = _config.model_dump()
    current_dict.update(kwargs)

    _config = BlockCombinerConfig(**current_dict)
    return _config


def reset_config() -> BlockCombinerConfig:
    """Restore the default configuration."""
    global _config
    _config = BlockCombinerConfig()
    return _config


def load_config_from_file(filepath: str) -> BlockCombinerConfig:
    """Load configuration from a JSON file."""
    global _config

    with open(filepath, 'r') as f:
        config_dict = json.load(f)

    _config = BlockCombinerConfig(**config_dict)
    return _config


def save_config_to_file(filepath: str) -> None:
    """Save current configuration to a JSON file."""
    with open(filepath, 'w') as f:
        json.dump(_config.model_dump(), f, indent=2)
