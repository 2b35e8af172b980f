"""
Data Layer

Dataset artifacts (train/test split, cross-validation plan, fitted recipe,
test labels) and result exporters.
"""

from .dataset import (
    DatasetSplit,
    CVFold,
    CVPlan,
    DatasetArtifacts,
    load_dataset_csv,
    encode_target,
    prepare_artifacts,
    save_artifacts,
    load_artifacts,
)
from .exporters import (
    write_metrics_csv,
    read_metrics_csv,
    metrics_frame,
    ExcelExporter,
)

__all__ = [
    # Artifacts
    'DatasetSplit',
    'CVFold',
    'CVPlan',
    'DatasetArtifacts',
    'load_dataset_csv',
    'encode_target',
    'prepare_artifacts',
    'save_artifacts',
    'load_artifacts',

    # Exporters
    'write_metrics_csv',
    'read_metrics_csv',
    'metrics_frame',
    'ExcelExporter',
]
