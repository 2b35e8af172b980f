"""Models Package - model families, specification, tuning, selection, fitting, metrics"""

from .errors import (
    ConfigurationError,
    FitFailureError,
    ResourceError,
    MetricComputationError,
    PipelineStateError,
)
from .classifiers import (
    ModelFamily,
    SVMClassifier,
    KNNClassifier,
    RandomForestClassifier,
    XGBoostClassifier,
    LogisticRegressionClassifier,
)
from .neural_network import NeuralNetworkClassifier
from .specification import (
    Fixed,
    Tunable,
    ModelSpecification,
    FAMILIES,
    get_family,
    specify,
    tune_all,
    spec_from_config,
)
from .evaluation import (
    METRIC_NAMES,
    SUPPORTED_METRICS,
    confusion_counts,
    metrics_from_confusion,
    compute_metrics,
    fold_scorers,
)
from .tuning import TuningResult, TuningRunner, worker_pool, default_n_workers
from .selection import best_index, select_best, show_best
from .fitting import FittedModel, FinalFitter, ModelPersistence

__all__ = [
    # Errors
    'ConfigurationError',
    'FitFailureError',
    'ResourceError',
    'MetricComputationError',
    'PipelineStateError',

    # Families
    'ModelFamily',
    'SVMClassifier',
    'KNNClassifier',
    'RandomForestClassifier',
    'XGBoostClassifier',
    'LogisticRegressionClassifier',
    'NeuralNetworkClassifier',

    # Specification
    'Fixed',
    'Tunable',
    'ModelSpecification',
    'FAMILIES',
    'get_family',
    'specify',
    'tune_all',
    'spec_from_config',

    # Metrics
    'METRIC_NAMES',
    'SUPPORTED_METRICS',
    'confusion_counts',
    'metrics_from_confusion',
    'compute_metrics',
    'fold_scorers',

    # Tuning / selection / fitting
    'TuningResult',
    'TuningRunner',
    'worker_pool',
    'default_n_workers',
    'best_index',
    'select_best',
    'show_best',
    'FittedModel',
    'FinalFitter',
    'ModelPersistence',
]
