"""Pipeline Package - configuration, per-model pipeline state machine, benchmark orchestration"""

from .config import (
    BenchmarkConfig,
    DataConfig,
    SplitConfig,
    TuningConfig,
    ModelConfig,
)
from .model_pipeline import ModelPipeline, PipelineState
from .runner import BenchmarkRunner, BenchmarkReport

__all__ = [
    'BenchmarkConfig',
    'DataConfig',
    'SplitConfig',
    'TuningConfig',
    'ModelConfig',
    'ModelPipeline',
    'PipelineState',
    'BenchmarkRunner',
    'BenchmarkReport',
]
