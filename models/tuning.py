"""
Hyperparameter Tuning

Grid search with k-fold cross-validation over the tunable hyperparameters of
a model specification, delegated to sklearn's GridSearchCV on the
recipe + model pipeline. The recipe is refit on the held-in rows of every
fold. All joblib work runs inside a worker pool scope that lives exactly as
long as one TuningRunner.run() call.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
import warnings

import joblib
import numpy as np
import pandas as pd
from joblib import parallel_config
from sklearn.base import clone
from sklearn.model_selection import GridSearchCV, cross_val_predict

from .errors import ConfigurationError, FitFailureError, ResourceError
from .evaluation import SUPPORTED_METRICS, fold_scorers
from .specification import ModelSpecification


def default_n_workers() -> int:
    """Available cores minus one, at least one."""
    return max(1, joblib.cpu_count() - 1)


@contextmanager
def worker_pool(n_workers: int, backend: str = 'multiprocessing') -> Iterator[int]:
    """
    Scoped joblib configuration for every Parallel call made in the block.

    With the 'multiprocessing' backend each call starts its own pool and
    terminates it when the call returns or raises, so no worker outlives
    the block.

    Raises:
        ResourceError: Invalid worker count or unknown backend
    """
    if n_workers is None or n_workers < 1:
        raise ResourceError(f"Worker pool needs at least one worker, got {n_workers}")

    try:
        config = parallel_config(backend=backend, n_jobs=n_workers)
    except (ValueError, ImportError) as e:
        raise ResourceError(f"Could not configure worker pool ({backend}, {n_workers} workers): {e}") from e

    with config:
        yield n_workers


@dataclass(frozen=True)
class TuningResult:
    """
    Cross-validated scores of every grid point.

    Attributes:
        family: Model family id
        grid_points: Grid points in enumeration order
        metrics: Metric ids that were computed
        scores: Array (n_points, n_folds, n_metrics); NaN where the fit failed
        failures: (grid index, fold index) of every fold left without a score
        predictions: Out-of-fold predictions (only when requested)
    """
    family: str
    grid_points: Tuple[Dict[str, Any], ...]
    metrics: Tuple[str, ...]
    scores: np.ndarray
    failures: Tuple[Tuple[int, int], ...] = ()
    predictions: Optional[pd.DataFrame] = None

    def __post_init__(self):
        scores = np.array(self.scores, dtype=float, copy=True)
        scores.setflags(write=False)
        object.__setattr__(self, 'scores', scores)
        object.__setattr__(self, 'grid_points', tuple(dict(p) for p in self.grid_points))
        if scores.shape[0] != len(self.grid_points) or scores.shape[2] != len(self.metrics):
            raise ValueError(f"Score array shape {scores.shape} does not match grid/metrics")

    @property
    def n_points(self) -> int:
        return len(self.grid_points)

    @property
    def n_folds(self) -> int:
        return self.scores.shape[1]

    def grid_point(self, index: int) -> Dict[str, Any]:
        """Copy of the grid point at an enumeration index."""
        return dict(self.grid_points[index])

    def _metric_index(self, metric: str) -> int:
        if metric not in self.metrics:
            raise ConfigurationError(f"Metric '{metric}' was not computed. Available: {list(self.metrics)}")
        return self.metrics.index(metric)

    def mean_scores(self, metric: str) -> np.ndarray:
        """Mean over folds per grid point, failed folds excluded (all failed -> NaN)."""
        values = self.scores[:, :, self._metric_index(metric)]
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", category=RuntimeWarning)
            return np.nanmean(values, axis=1)

    def std_scores(self, metric: str) -> np.ndarray:
        values = self.scores[:, :, self._metric_index(metric)]
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", category=RuntimeWarning)
            return np.nanstd(values, axis=1)

    def n_failed(self) -> np.ndarray:
        """Failed folds per grid point."""
        return np.isnan(self.scores).any(axis=2).sum(axis=1)

    def to_frame(self) -> pd.DataFrame:
        """One row per grid point: parameters, mean_/std_ per metric, n_failed."""
        frame = pd.DataFrame([{'grid_index': i, **p} for i, p in enumerate(self.grid_points)])
        for metric in self.metrics:
            frame[f'mean_{metric}'] = self.mean_scores(metric)
            frame[f'std_{metric}'] = self.std_scores(metric)
        frame['n_failed'] = self.n_failed()
        return frame


def _strip_step(params: Dict[str, Any]) -> Dict[str, Any]:
    """'model__C' -> 'C'"""
    return {key.split('__', 1)[1]: value for key, value in params.items()}


class TuningRunner:
    """
    Grid search over the tunable hyperparameters of a specification.

    Usage:
        runner = TuningRunner(n_workers=4)
        result = runner.run(spec, split, cv_plan, recipe)
    """

    def __init__(
            self,
            metrics: Sequence[str] = SUPPORTED_METRICS,
            n_workers: Optional[int] = None,
            backend: str = 'multiprocessing',
            save_predictions: bool = False,
            random_state: Optional[int] = 42,
            verbose: bool = True
    ):
        """
        Args:
            metrics: Metric ids computed for every fold
            n_workers: Pool size (None = available cores minus one)
            backend: joblib backend ('multiprocessing', 'threading', 'loky')
            save_predictions: Keep out-of-fold predictions in the result
            random_state: Seed passed to every estimator
            verbose: Print progress
        """
        self.scorers = fold_scorers(metrics)
        self.metrics = tuple(metrics)
        self.n_workers = default_n_workers() if n_workers is None else n_workers
        self.backend = backend
        self.save_predictions = save_predictions
        self.random_state = random_state
        self.verbose = verbose

    def run(self, specification: ModelSpecification, split, cv_plan, recipe) -> TuningResult:
        """
        Evaluate every grid point on every fold.

        Args:
            specification: Model specification with Tunable hyperparameters
            split: DatasetSplit (only the training subset is used)
            cv_plan: CVPlan over the training subset
            recipe: Preprocessing recipe, cloned unfitted for every fit

        Returns:
            TuningResult

        Raises:
            ConfigurationError: Invalid grid
            FitFailureError: No fit succeeded on any grid point
            ResourceError: Worker pool could not be started
        """
        pipeline = specification.base_pipeline(recipe, random_state=self.random_state)
        cv = [(fold.held_in, fold.held_out) for fold in cv_plan]
        X, y = split.X_train, np.asarray(split.y_train)

        search = GridSearchCV(
            pipeline,
            param_grid=specification.param_grid(),
            scoring=self.scorers,
            cv=cv,
            refit=False,
            error_score=np.nan,
            return_train_score=False,
        )

        if self.verbose:
            n_points = int(np.prod([len(v) for v in specification.search_grid().values()]))
            print(f"Tuning {specification.family.label}: {n_points} grid points x {len(cv)} folds "
                  f"on {self.n_workers} worker(s)")

        try:
            with worker_pool(self.n_workers, backend=self.backend):
                search.fit(X, y)
                grid = [_strip_step(params) for params in search.cv_results_['params']]
                scores = self._score_cube(search.cv_results_, len(grid), len(cv))
                predictions = (
                    self._out_of_fold(pipeline, grid, scores, X, y, cv)
                    if self.save_predictions else None
                )
        except OSError as e:
            raise ResourceError(f"Worker pool failed ({self.backend}, {self.n_workers} workers): {e}") from e
        except ValueError as e:
            # GridSearchCV raises instead of warning when not a single fit succeeded
            if isinstance(e, ConfigurationError) or 'fits failed' not in str(e):
                raise
            raise FitFailureError(f"No grid point of {specification.family.label} could be fitted: {e}") from e

        failed = np.isnan(scores).any(axis=2)
        return TuningResult(
            family=specification.name,
            grid_points=tuple(grid),
            metrics=self.metrics,
            scores=scores,
            failures=tuple((int(p), int(f)) for p, f in zip(*np.nonzero(failed))),
            predictions=predictions,
        )

    def _score_cube(self, cv_results: Dict[str, Any], n_points: int, n_folds: int) -> np.ndarray:
        """(n_points, n_folds, n_metrics) from the split{i}_test_<metric> columns."""
        scores = np.full((n_points, n_folds, len(self.metrics)), np.nan)
        for f in range(n_folds):
            for m, metric in enumerate(self.metrics):
                scores[:, f, m] = np.asarray(cv_results[f'split{f}_test_{metric}'], dtype=float)
        return scores

    def _out_of_fold(self, pipeline, grid, scores, X, y, cv) -> pd.DataFrame:
        """Held-out predictions of every fully scored grid point."""
        fold_of_row = np.empty(len(y), dtype=int)
        for f, (_, held_out) in enumerate(cv):
            fold_of_row[held_out] = f

        frames: List[pd.DataFrame] = []
        for p, point in enumerate(grid):
            if np.isnan(scores[p]).any():
                continue
            estimator = clone(pipeline).set_params(**{f'model__{k}': v for k, v in point.items()})
            frames.append(pd.DataFrame({
                'grid_index': p,
                'fold': fold_of_row,
                'row': np.arange(len(y)),
                'truth': y,
                'prediction': cross_val_predict(estimator, X, y, cv=cv),
            }))

        if not frames:
            return pd.DataFrame(columns=['grid_index', 'fold', 'row', 'truth', 'prediction'])
        return pd.concat(frames, ignore_index=True).sort_values(['grid_index', 'fold', 'row']).reset_index(drop=True)
