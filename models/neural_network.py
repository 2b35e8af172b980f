"""
Neural Network Classifier

Multi-Layer Perceptron family for the recurrence benchmark.
"""

from typing import Any, Optional
from sklearn.base import BaseEstimator
from sklearn.neural_network import MLPClassifier
from .classifiers import ModelFamily


class NeuralNetworkClassifier(ModelFamily):
    """
    Feed-forward Neural Network (Multi-Layer Perceptron).

    Tunes the architecture (hidden_layer_sizes), the L2 penalty (alpha) and
    the number of epochs (max_iter). The initial learning rate is part of the
    specification but only as a fixed value: asking to tune it is rejected.

    Inputs are expected to be standardized already; the preprocessing recipe
    scales numeric columns ahead of the model.
    """

    name = 'neural_network'
    label = 'Neural Network'
    default_grid = {
        'hidden_layer_sizes': [(5,), (10,), (20,)],
        'alpha': [1e-4, 1e-2, 1.0],
        'max_iter': [200, 500],
    }
    fixed_defaults = {
        'solver': 'adam',
        'activation': 'relu',
        'learning_rate_init': 0.01,
    }
    untunable = frozenset({'learning_rate_init'})

    def _make_estimator(self, random_state: Optional[int]) -> BaseEstimator:
        return MLPClassifier(random_state=random_state)

    def coerce(self, name: str, value: Any) -> Any:
        """
        Layer sizes arrive from YAML as ints or lists; MLPClassifier wants tuples.
        """
        if name == 'hidden_layer_sizes':
            if isinstance(value, int):
                return (value,)
            return tuple(int(v) for v in value)
        return value
