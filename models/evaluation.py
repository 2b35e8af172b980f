"""
Model Evaluation

Metrics reporter for test-set predictions and the fold scorer used during
tuning. Positive class convention: label 1 (recurrence).
"""

from typing import Callable, Dict, List, Sequence, Tuple
import warnings
import numpy as np
from sklearn.metrics import accuracy_score, confusion_matrix, make_scorer, precision_score, recall_score

from .errors import ConfigurationError, MetricComputationError


METRIC_NAMES = ('Accuracy', 'Precision', 'Recall', 'Specificity')

# Metric ids accepted by the tuning runner / selector
SUPPORTED_METRICS = ('accuracy', 'precision', 'recall', 'specificity')


def _ratio(numerator: float, denominator: float, name: str) -> float:
    if denominator == 0:
        warnings.warn(f"{name} is undefined (zero denominator), reporting 0")
        return 0.0
    return numerator / denominator


def confusion_counts(
        y_true: Sequence,
        y_pred: Sequence,
        labels: Tuple = (0, 1),
        positive_label=1
) -> Dict[str, int]:
    """
    Validate predictions and count TP / FP / FN / TN.

    Args:
        y_true: Ground-truth labels
        y_pred: Predicted labels
        labels: Label domain (binary)
        positive_label: Member of labels treated as positive

    Raises:
        MetricComputationError: Length mismatch, empty input or unknown label
    """
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)

    if y_true.ndim != 1 or y_pred.ndim != 1:
        raise MetricComputationError("Labels and predictions must be one-dimensional")
    if len(y_true) != len(y_pred):
        raise MetricComputationError(
            f"Prediction vector has length {len(y_pred)}, expected {len(y_true)}"
        )
    if len(y_true) == 0:
        raise MetricComputationError("Cannot compute metrics on an empty prediction vector")
    if positive_label not in labels or len(labels) != 2:
        raise MetricComputationError(f"Positive label {positive_label!r} must be one of two labels {labels}")

    known = set(labels)
    unknown = (set(np.unique(y_true).tolist()) | set(np.unique(y_pred).tolist())) - known
    if unknown:
        raise MetricComputationError(f"Unknown labels {sorted(map(str, unknown))}, expected {labels}")

    negative_label = labels[0] if labels[1] == positive_label else labels[1]
    cm = confusion_matrix(y_true, y_pred, labels=[negative_label, positive_label])
    tn, fp, fn, tp = (int(v) for v in cm.ravel())
    return {'tp': tp, 'fp': fp, 'fn': fn, 'tn': tn}


def _fractions(tp: int, fp: int, fn: int, tn: int) -> Dict[str, float]:
    total = tp + fp + fn + tn
    return {
        'accuracy': _ratio(tp + tn, total, 'Accuracy'),
        'precision': _ratio(tp, tp + fp, 'Precision'),
        'recall': _ratio(tp, tp + fn, 'Recall'),
        'specificity': _ratio(tn, tn + fp, 'Specificity'),
    }


def metrics_from_confusion(tp: int, fp: int, fn: int, tn: int) -> List[Tuple[str, float]]:
    """
    Four metrics as percentages rounded to one decimal, in fixed order.

    >>> metrics_from_confusion(tp=5, fp=2, fn=1, tn=10)
    [('Accuracy', 83.3), ('Precision', 71.4), ('Recall', 83.3), ('Specificity', 83.3)]
    """
    fractions = _fractions(tp, fp, fn, tn)
    return [(name, round(100.0 * fractions[name.lower()], 1)) for name in METRIC_NAMES]


def compute_metrics(
        y_true: Sequence,
        y_pred: Sequence,
        labels: Tuple = (0, 1),
        positive_label=1
) -> List[Tuple[str, float]]:
    """Metrics table for a prediction vector."""
    counts = confusion_counts(y_true, y_pred, labels=labels, positive_label=positive_label)
    return metrics_from_confusion(**counts)


def fold_scorers(metric_names: Sequence[str], positive_label=1, negative_label=0) -> Dict[str, Callable]:
    """
    Scorers (fractions, 0-1) for cross-validated tuning.

    Undefined precision / recall / specificity on a held-out fold score 0.

    Raises:
        ConfigurationError: Unsupported metric name
    """
    unsupported = [m for m in metric_names if m not in SUPPORTED_METRICS]
    if unsupported or not metric_names:
        raise ConfigurationError(
            f"Unsupported metric(s) {unsupported or list(metric_names)}. Available: {list(SUPPORTED_METRICS)}"
        )

    scorers = {
        'accuracy': make_scorer(accuracy_score),
        'precision': make_scorer(precision_score, pos_label=positive_label, zero_division=0),
        'recall': make_scorer(recall_score, pos_label=positive_label, zero_division=0),
        'specificity': make_scorer(recall_score, pos_label=negative_label, zero_division=0),
    }
    return {m: scorers[m] for m in metric_names}
