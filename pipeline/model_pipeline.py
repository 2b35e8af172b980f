"""
Model Pipeline

One tune -> select -> fit -> evaluate run for a single model family.

States move strictly forward:

    SPECIFIED -> TUNED -> SELECTED -> FITTED -> EVALUATED

An error in any stage moves the pipeline to FAILED; a failed pipeline
accepts no further stages. Pipelines never share mutable state, so a
failure here does not affect any other pipeline.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from data.dataset import DatasetArtifacts
from data.exporters import write_metrics_csv
from models.errors import PipelineStateError
from models.evaluation import compute_metrics
from models.fitting import FinalFitter, FittedModel
from models.selection import select_best
from models.specification import ModelSpecification
from models.tuning import TuningResult, TuningRunner


class PipelineState(Enum):
    SPECIFIED = 'specified'
    TUNED = 'tuned'
    SELECTED = 'selected'
    FITTED = 'fitted'
    EVALUATED = 'evaluated'
    FAILED = 'failed'


class ModelPipeline:
    """
    Tune, select, refit and evaluate one model specification.

    Usage:
        pipeline = ModelPipeline(spec, artifacts, TuningRunner(n_workers=4))
        metrics = pipeline.run()
        pipeline.write_report('results')
    """

    def __init__(
            self,
            specification: ModelSpecification,
            artifacts: DatasetArtifacts,
            runner: Optional[TuningRunner] = None,
            fitter: Optional[FinalFitter] = None,
            metric: str = 'accuracy'
    ):
        self.specification = specification
        self.artifacts = artifacts
        self.runner = runner or TuningRunner()
        self.fitter = fitter or FinalFitter()
        self.metric = metric

        self.state = PipelineState.SPECIFIED
        self.error: Optional[BaseException] = None
        self.tuning_result: Optional[TuningResult] = None
        self.best_params: Optional[Dict[str, Any]] = None
        self.fitted: Optional[FittedModel] = None
        self.metrics: Optional[List[Tuple[str, float]]] = None

    @property
    def name(self) -> str:
        return self.specification.name

    @property
    def label(self) -> str:
        return self.specification.family.label

    def _advance(self, expected: PipelineState, target: PipelineState, stage) -> None:
        if self.state is PipelineState.FAILED:
            raise PipelineStateError(f"{self.label} pipeline failed earlier: {self.error}")
        if self.state is not expected:
            raise PipelineStateError(
                f"{self.label}: moving to '{target.value}' requires state '{expected.value}', "
                f"current state is '{self.state.value}'"
            )
        try:
            stage()
        except Exception as e:
            self.state = PipelineState.FAILED
            self.error = e
            raise
        self.state = target

    def tune(self) -> TuningResult:
        def stage():
            self.tuning_result = self.runner.run(
                self.specification,
                self.artifacts.split,
                self.artifacts.cv_plan,
                self.artifacts.recipe,
            )
        self._advance(PipelineState.SPECIFIED, PipelineState.TUNED, stage)
        return self.tuning_result

    def select(self) -> Dict[str, Any]:
        def stage():
            self.best_params = select_best(self.tuning_result, self.metric)
        self._advance(PipelineState.TUNED, PipelineState.SELECTED, stage)
        return dict(self.best_params)

    def fit(self) -> FittedModel:
        def stage():
            self.fitted = self.fitter.fit(
                self.specification,
                self.best_params,
                self.artifacts.split,
                self.artifacts.recipe,
            )
        self._advance(PipelineState.SELECTED, PipelineState.FITTED, stage)
        return self.fitted

    def evaluate(self) -> List[Tuple[str, float]]:
        def stage():
            self.metrics = compute_metrics(self.artifacts.test_labels, self.fitted.predictions)
        self._advance(PipelineState.FITTED, PipelineState.EVALUATED, stage)
        return list(self.metrics)

    def run(self) -> List[Tuple[str, float]]:
        """Run every remaining stage in order."""
        self.tune()
        best = self.select()
        print(f"    Best {self.label} configuration ({self.metric}): {best}")
        self.fit()
        return self.evaluate()

    def write_report(self, output_dir: Union[str, Path]) -> Path:
        """Write <output_dir>/<family>_metrics.csv (only after evaluation)."""
        if self.state is not PipelineState.EVALUATED:
            raise PipelineStateError(
                f"{self.label}: metrics can only be written after evaluation (state '{self.state.value}')"
            )
        return write_metrics_csv(self.metrics, Path(output_dir) / f"{self.name}_metrics.csv")

    def __repr__(self) -> str:
        return f"ModelPipeline(family='{self.name}', state='{self.state.value}')"
