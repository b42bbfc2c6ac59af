"""
Configuration management with typed Pydantic models.

Provides YAML loading with environment interpolation and base-file
inheritance.
"""

from wlereport.config.loader import load_config
from wlereport.config.settings import (
    ColumnsConfig,
    DataPathsConfig,
    LoggingConfig,
    ModelSpec,
    OutputConfig,
    PipelineConfig,
    SplitConfig,
    TrainingConfig,
)

__all__ = [
    "ColumnsConfig",
    "DataPathsConfig",
    "LoggingConfig",
    "ModelSpec",
    "OutputConfig",
    "PipelineConfig",
    "SplitConfig",
    "TrainingConfig",
    "load_config",
]
