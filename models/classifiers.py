"""
Classifiers

Model families with a consistent interface. A family knows how to build its
estimator, which hyperparameters it can tune (with default search spaces)
and which it only accepts as fixed values.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Any, List, FrozenSet

# Sklearn imports
from sklearn.svm import SVC
from sklearn.neighbors import KNeighborsClassifier
# Alias RandomForest to avoid name collision with our family class
from sklearn.ensemble import RandomForestClassifier as SkRandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.base import BaseEstimator
from xgboost import XGBClassifier as XGB

from .errors import ConfigurationError


class ModelFamily(ABC):
    """Abstract base class for all model families."""

    name: str = ''
    label: str = ''

    # Tunable hyperparameters and the grid explored when no search space is given
    default_grid: Dict[str, List[Any]] = {}

    # Values applied on top of the estimator defaults unless overridden
    fixed_defaults: Dict[str, Any] = {}

    # Hyperparameters the family only accepts as fixed values
    untunable: FrozenSet[str] = frozenset()

    @abstractmethod
    def _make_estimator(self, random_state: Optional[int]) -> BaseEstimator:
        """Create the bare estimator."""
        pass

    def parameter_names(self) -> List[str]:
        """Names of every hyperparameter the estimator accepts."""
        return sorted(self._make_estimator(None).get_params(deep=False))

    def supports_tuning(self, name: str) -> bool:
        return name in self.default_grid and name not in self.untunable

    def coerce(self, name: str, value: Any) -> Any:
        """Normalize a configured value (e.g. coming from YAML) for the estimator."""
        return value

    def build_estimator(self, params: Dict[str, Any], random_state: Optional[int] = 42) -> BaseEstimator:
        """
        Build a fully specified estimator.

        Args:
            params: Hyperparameter values, applied on top of fixed_defaults
            random_state: Seed for any stochastic component of the family

        Returns:
            Unfitted sklearn-compatible estimator
        """
        estimator = self._make_estimator(random_state)
        merged = {**self.fixed_defaults, **params}
        try:
            estimator.set_params(**{k: self.coerce(k, v) for k, v in merged.items()})
            # set_params stores values as-is; sklearn checks them against the declared constraints
            if hasattr(estimator, '_parameter_constraints'):
                estimator._validate_params()
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"{self.label}: {e}") from e
        return estimator

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name='{self.name}')"


class SVMClassifier(ModelFamily):
    """Support Vector Machine with an RBF kernel."""

    name = 'svm'
    label = 'Support Vector Machine'
    default_grid = {
        'C': [0.25, 1.0, 4.0, 16.0],
        'gamma': ['scale', 0.01, 0.1, 1.0],
    }
    fixed_defaults = {'kernel': 'rbf'}

    def _make_estimator(self, random_state: Optional[int]) -> BaseEstimator:
        return SVC(random_state=random_state)


class KNNClassifier(ModelFamily):
    """K-Nearest Neighbors classifier."""

    name = 'knn'
    label = 'K-Nearest Neighbors'
    default_grid = {
        'n_neighbors': [3, 5, 7, 9, 11],
        'weights': ['uniform', 'distance'],
    }

    def _make_estimator(self, random_state: Optional[int]) -> BaseEstimator:
        # KNN is deterministic, random_state is not used
        return KNeighborsClassifier()


class RandomForestClassifier(ModelFamily):
    """Random Forest classifier."""

    name = 'random_forest'
    label = 'Random Forest'
    default_grid = {
        'max_features': ['sqrt', 0.5, 1.0],
        'min_samples_split': [2, 10, 20],
    }
    fixed_defaults = {'n_estimators': 500}

    def _make_estimator(self, random_state: Optional[int]) -> BaseEstimator:
        return SkRandomForestClassifier(random_state=random_state, n_jobs=1)


class XGBoostClassifier(ModelFamily):
    """Gradient-boosted trees (XGBoost)."""

    name = 'boosted_trees'
    label = 'Boosted Trees'
    default_grid = {
        'n_estimators': [50, 100, 200],
        'max_depth': [2, 4, 6],
        'learning_rate': [0.01, 0.1, 0.3],
    }

    def _make_estimator(self, random_state: Optional[int]) -> BaseEstimator:
        # n_jobs=1: parallelism happens at the grid level
        return XGB(eval_metric='logloss', random_state=random_state, n_jobs=1)


class LogisticRegressionClassifier(ModelFamily):
    """Logistic Regression classifier (baseline)."""

    name = 'logistic_regression'
    label = 'Logistic Regression'
    default_grid = {
        'C': [0.01, 0.1, 1.0, 10.0, 100.0],
    }
    fixed_defaults = {'max_iter': 1000}

    def _make_estimator(self, random_state: Optional[int]) -> BaseEstimator:
        return LogisticRegression(solver='lbfgs', random_state=random_state)
