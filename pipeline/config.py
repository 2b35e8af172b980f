"""
Benchmark Configuration

YAML-backed configuration for data preparation, tuning and the model list.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import yaml

from models.errors import ConfigurationError
from models.evaluation import SUPPORTED_METRICS
from models.specification import FAMILIES, ModelSpecification, spec_from_config


@dataclass
class DataConfig:
    """Dataset location and outcome definition."""
    dataset_file: str = 'thyroid_recurrence.csv'
    target_column: str = 'Recurred'
    positive_label: Any = 'Yes'
    artifacts_dir: str = 'artifacts'
    output_dir: str = 'results'


@dataclass
class SplitConfig:
    """Train/test split, resampling plan and recipe settings."""
    test_size: float = 0.25
    n_folds: int = 10
    correlation_threshold: float = 0.9


@dataclass
class TuningConfig:
    """Grid search settings."""
    metric: str = 'accuracy'
    n_workers: Optional[int] = None  # None = available cores minus one
    backend: str = 'multiprocessing'
    save_predictions: bool = False


@dataclass
class ModelConfig:
    """
    One model pipeline.

    Attributes:
        tune: Hyperparameter -> list of values (None = family default grid)
        fixed: Hyperparameter -> literal value
    """
    tune: Dict[str, Optional[List[Any]]] = field(default_factory=dict)
    fixed: Dict[str, Any] = field(default_factory=dict)


def _default_models() -> Dict[str, ModelConfig]:
    return {
        'neural_network': ModelConfig(
            tune={'hidden_layer_sizes': None, 'alpha': None, 'max_iter': None},
            fixed={'learning_rate_init': 0.01},
        ),
        'boosted_trees': ModelConfig(
            tune={'n_estimators': None, 'max_depth': None},
            fixed={'learning_rate': 0.1},
        ),
        'svm': ModelConfig(tune={'C': None, 'gamma': None}),
        'logistic_regression': ModelConfig(tune={'C': None}),
        'knn': ModelConfig(tune={'n_neighbors': None, 'weights': None}),
        'random_forest': ModelConfig(
            tune={'max_features': None, 'min_samples_split': None},
            fixed={'n_estimators': 500},
        ),
    }


@dataclass
class BenchmarkConfig:
    """Configuration for the six-model benchmark."""

    data: DataConfig = field(default_factory=DataConfig)
    split: SplitConfig = field(default_factory=SplitConfig)
    tuning: TuningConfig = field(default_factory=TuningConfig)
    models: Dict[str, ModelConfig] = field(default_factory=_default_models)
    random_state: int = 42
    create_plots: bool = True

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'BenchmarkConfig':
        raw = raw or {}
        known = {'data', 'split', 'tuning', 'models', 'random_state', 'create_plots'}
        unknown = set(raw) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration sections: {sorted(unknown)}")

        try:
            config = cls(
                data=DataConfig(**(raw.get('data') or {})),
                split=SplitConfig(**(raw.get('split') or {})),
                tuning=TuningConfig(**(raw.get('tuning') or {})),
                random_state=raw.get('random_state', 42),
                create_plots=raw.get('create_plots', True),
            )
            if 'models' in raw:
                config.models = {
                    name: ModelConfig(
                        tune=dict((model or {}).get('tune') or {}),
                        fixed=dict((model or {}).get('fixed') or {}),
                    )
                    for name, model in (raw['models'] or {}).items()
                }
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        config.validate()
        return config

    @classmethod
    def from_yaml(cls, filepath: Union[str, Path]) -> 'BenchmarkConfig':
        """Load configuration from YAML file."""
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Config not found: {filepath}")
        with open(filepath, 'r') as f:
            return cls.from_dict(yaml.safe_load(f))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_yaml(self, filepath: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)

    def validate(self) -> None:
        """Validate configuration parameters."""
        if not 0 < self.split.test_size < 1:
            raise ConfigurationError(f"test_size must be in (0, 1), got {self.split.test_size}")
        if self.split.n_folds < 2:
            raise ConfigurationError(f"n_folds must be >= 2, got {self.split.n_folds}")
        if not 0 < self.split.correlation_threshold <= 1:
            raise ConfigurationError(
                f"correlation_threshold must be in (0, 1], got {self.split.correlation_threshold}"
            )
        if self.tuning.metric not in SUPPORTED_METRICS:
            raise ConfigurationError(
                f"Unsupported tuning metric '{self.tuning.metric}'. Available: {list(SUPPORTED_METRICS)}"
            )
        if self.tuning.n_workers is not None and self.tuning.n_workers < 1:
            raise ConfigurationError(f"n_workers must be >= 1, got {self.tuning.n_workers}")
        if not self.models:
            raise ConfigurationError("No models configured")
        unknown = [name for name in self.models if name not in FAMILIES]
        if unknown:
            raise ConfigurationError(f"Unknown model families {unknown}. Available: {list(FAMILIES)}")

    def specification(self, name: str) -> ModelSpecification:
        """Model specification for one configured family."""
        if name not in self.models:
            raise ConfigurationError(f"Model '{name}' is not configured")
        model = self.models[name]
        return spec_from_config(name, tune=model.tune, fixed=model.fixed)
