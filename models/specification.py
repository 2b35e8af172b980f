"""
Model Specification

Declares a model family together with the hyperparameters that are tuned
and those held at a fixed value. Each hyperparameter is tagged explicitly:

    spec = specify('knn', n_neighbors=Tunable([3, 5, 7]), weights='distance')

Bare values are treated as Fixed. Tunable() without a search space uses the
family's default grid. Validation happens here, before any fitting.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from sklearn.base import BaseEstimator, clone
from sklearn.model_selection import ParameterGrid
from sklearn.pipeline import Pipeline

from .classifiers import (
    ModelFamily,
    SVMClassifier,
    KNNClassifier,
    RandomForestClassifier,
    XGBoostClassifier,
    LogisticRegressionClassifier,
)
from .neural_network import NeuralNetworkClassifier
from .errors import ConfigurationError


@dataclass(frozen=True)
class Fixed:
    """Hyperparameter held at a literal value."""
    value: Any


@dataclass(frozen=True)
class Tunable:
    """Hyperparameter explored during grid search (None = family default grid)."""
    search_space: Optional[Tuple[Any, ...]] = None

    def __post_init__(self):
        if self.search_space is not None:
            object.__setattr__(self, 'search_space', tuple(self.search_space))


Hyperparameter = Union[Fixed, Tunable]


FAMILIES: Dict[str, ModelFamily] = {
    family.name: family
    for family in (
        NeuralNetworkClassifier(),
        XGBoostClassifier(),
        SVMClassifier(),
        LogisticRegressionClassifier(),
        KNNClassifier(),
        RandomForestClassifier(),
    )
}


def get_family(name: Union[str, ModelFamily]) -> ModelFamily:
    """Look up a model family by id."""
    if isinstance(name, ModelFamily):
        return name
    if name not in FAMILIES:
        raise ConfigurationError(f"Unknown model family '{name}'. Available: {list(FAMILIES)}")
    return FAMILIES[name]


@dataclass(frozen=True)
class ModelSpecification:
    """
    Opaque description of a model consumed by the tuning runner and the
    final fitter.

    Attributes:
        family: Model family
        hyperparameters: Name -> Fixed / Tunable (already validated)
    """
    family: ModelFamily
    hyperparameters: Mapping[str, Hyperparameter] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.family.name

    @property
    def tunable_names(self) -> Tuple[str, ...]:
        return tuple(sorted(k for k, v in self.hyperparameters.items() if isinstance(v, Tunable)))

    def search_grid(self) -> Dict[str, list]:
        """Resolved search space of every tunable hyperparameter."""
        grid = {}
        for name in self.tunable_names:
            space = self.hyperparameters[name].search_space
            grid[name] = list(space) if space is not None else list(self.family.default_grid[name])
        return grid

    def fixed_params(self) -> Dict[str, Any]:
        return {k: v.value for k, v in self.hyperparameters.items() if isinstance(v, Fixed)}

    def finalize(self, grid_point: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Complete parameter set for one grid point.

        Raises:
            ConfigurationError: If the grid point does not assign exactly the
                tunable hyperparameters
        """
        if set(grid_point) != set(self.tunable_names):
            raise ConfigurationError(
                f"Grid point {dict(grid_point)} does not match tunable "
                f"hyperparameters {list(self.tunable_names)} of {self.family.label}"
            )
        return {**self.fixed_params(), **grid_point}

    def build_estimator(self, grid_point: Mapping[str, Any], random_state: Optional[int] = 42) -> BaseEstimator:
        return self.family.build_estimator(self.finalize(grid_point), random_state=random_state)

    def build_pipeline(
            self,
            recipe: BaseEstimator,
            grid_point: Mapping[str, Any],
            random_state: Optional[int] = 42
    ) -> Pipeline:
        """Unfitted recipe + model pipeline for one grid point."""
        return Pipeline([
            ('recipe', clone(recipe)),
            ('model', self.build_estimator(grid_point, random_state=random_state)),
        ])

    def param_grid(self) -> Dict[str, list]:
        """Search grid addressed to the 'model' step of the pipeline."""
        return {f'model__{name}': values for name, values in self.search_grid().items()}

    def base_pipeline(self, recipe: BaseEstimator, random_state: Optional[int] = 42) -> Pipeline:
        """Unfitted pipeline with the fixed hyperparameters applied; grid search sets the rest."""
        return Pipeline([
            ('recipe', clone(recipe)),
            ('model', self.family.build_estimator(self.fixed_params(), random_state=random_state)),
        ])

    def validate(self) -> None:
        """
        Check every grid point against the estimator's parameter constraints.

        Raises:
            ConfigurationError: A fixed value or search-space value is invalid
        """
        for point in ParameterGrid(self.search_grid()):
            self.build_estimator(point, random_state=None)


def specify(family: Union[str, ModelFamily], **hyperparameters: Any) -> ModelSpecification:
    """
    Build a validated model specification.

    Args:
        family: Family id (e.g. 'svm') or ModelFamily instance
        **hyperparameters: Fixed(value), Tunable(search_space) or a bare value

    Returns:
        ModelSpecification

    Raises:
        ConfigurationError: Unknown hyperparameter, tuning a hyperparameter
            the family cannot tune, an empty search space, or a value the
            estimator rejects
    """
    family = get_family(family)
    known = set(family.parameter_names())
    resolved: Dict[str, Hyperparameter] = {}

    for name, value in hyperparameters.items():
        if name not in known:
            raise ConfigurationError(f"{family.label} has no hyperparameter '{name}'")

        if isinstance(value, Tunable):
            if not family.supports_tuning(name):
                raise ConfigurationError(f"{family.label} does not support tuning '{name}'")
            if value.search_space is not None:
                if len(value.search_space) == 0:
                    raise ConfigurationError(f"Empty search space for '{name}' ({family.label})")
                value = Tunable(tuple(family.coerce(name, v) for v in value.search_space))
            resolved[name] = value
        elif isinstance(value, Fixed):
            resolved[name] = Fixed(family.coerce(name, value.value))
        else:
            resolved[name] = Fixed(family.coerce(name, value))

    specification = ModelSpecification(family=family, hyperparameters=resolved)
    specification.validate()
    return specification


def tune_all(family: Union[str, ModelFamily], **fixed: Any) -> ModelSpecification:
    """Specification tuning every hyperparameter in the family's default grid."""
    family = get_family(family)
    params: Dict[str, Any] = {name: Tunable() for name in family.default_grid if family.supports_tuning(name)}
    params.update(fixed)
    return specify(family, **params)


def spec_from_config(
        family: Union[str, ModelFamily],
        tune: Optional[Mapping[str, Optional[Sequence[Any]]]] = None,
        fixed: Optional[Mapping[str, Any]] = None
) -> ModelSpecification:
    """
    Specification from config mappings.

    Args:
        family: Family id
        tune: Name -> list of values, or None for the family default grid
        fixed: Name -> literal value
    """
    params: Dict[str, Any] = {}
    for name, space in (tune or {}).items():
        params[name] = Tunable(space)
    for name, value in (fixed or {}).items():
        if name in params:
            raise ConfigurationError(f"'{name}' is declared both tuned and fixed")
        params[name] = Fixed(value)
    return specify(family, **params)
