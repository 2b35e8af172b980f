"""
Model Selection

Pick the best grid point from a tuning result.

Tie-break policy: when several grid points share the top mean score, the
one that comes first in enumeration order wins. Grid points whose every
fold failed are never selected.
"""

from typing import Any, Dict
import numpy as np
import pandas as pd

from .errors import FitFailureError
from .tuning import TuningResult


def best_index(result: TuningResult, metric: str = 'accuracy') -> int:
    """
    Enumeration index of the best grid point.

    Raises:
        ConfigurationError: Metric not computed by the tuning runner
        FitFailureError: No grid point has a valid score
    """
    means = result.mean_scores(metric)
    valid = ~np.isnan(means)
    if not valid.any():
        raise FitFailureError(f"No grid point of '{result.family}' could be fitted")

    top = means[valid].max()
    # argmax returns the first occurrence
    return int(np.argmax(np.where(valid, means, -np.inf) == top))


def select_best(result: TuningResult, metric: str = 'accuracy') -> Dict[str, Any]:
    """Grid point with the highest mean cross-validated score for a metric."""
    return result.grid_point(best_index(result, metric))


def show_best(result: TuningResult, metric: str = 'accuracy', n: int = 5) -> pd.DataFrame:
    """Top-n grid points by mean score (stable: ties keep enumeration order)."""
    frame = result.to_frame()
    column = f'mean_{metric}'
    # Raises ConfigurationError for an unknown metric
    result.mean_scores(metric)
    return (
        frame.dropna(subset=[column])
        .sort_values(column, ascending=False, kind='mergesort')
        .head(n)
        .reset_index(drop=True)
    )
