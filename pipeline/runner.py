"""
Benchmark Runner

Runs one ModelPipeline per configured model family against the same
read-only dataset artifacts and collects a comparison report.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union
import traceback
import warnings

import pandas as pd
from tqdm import tqdm

from data.dataset import DatasetArtifacts
from data.exporters import ExcelExporter, metrics_frame
from models.fitting import FinalFitter
from models.tuning import TuningResult, TuningRunner
from visualization.interactive import InteractivePlotter
from .config import BenchmarkConfig
from .model_pipeline import ModelPipeline


@dataclass
class BenchmarkReport:
    """
    Attributes:
        metrics: Family id -> ordered (metric, value) pairs
        tuning: Family id -> tuning result
        failures: Family id -> error message
        reports: Family id -> written metrics CSV
    """
    metrics: Dict[str, List[Tuple[str, float]]] = field(default_factory=dict)
    tuning: Dict[str, TuningResult] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)
    reports: Dict[str, Path] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def comparison(self) -> pd.DataFrame:
        """One row per evaluated model, one column per metric."""
        return metrics_frame({self.labels.get(name, name): m for name, m in self.metrics.items()})


class BenchmarkRunner:
    """
    Orchestrates the model pipelines.

    Steps per family:
    1. Build the specification from the configuration
    2. Tune (grid search, k-fold CV)
    3. Select the best grid point
    4. Refit on the whole training partition
    5. Evaluate on the test partition and write <family>_metrics.csv

    A failing pipeline is reported and skipped; the others keep running.
    """

    def __init__(self, config: BenchmarkConfig, output_dir: Optional[Union[str, Path]] = None):
        self.config = config
        self.output_dir = Path(output_dir if output_dir is not None else config.data.output_dir)

    def _make_runner(self) -> TuningRunner:
        tuning = self.config.tuning
        return TuningRunner(
            n_workers=tuning.n_workers,
            backend=tuning.backend,
            save_predictions=tuning.save_predictions,
            random_state=self.config.random_state,
        )

    def run(
            self,
            artifacts: DatasetArtifacts,
            models: Optional[Sequence[str]] = None,
            create_plots: Optional[bool] = None
    ) -> BenchmarkReport:
        """
        Run every configured (or selected) model pipeline.

        Args:
            artifacts: Shared read-only dataset artifacts
            models: Subset of configured family ids (default: all)
            create_plots: Override config.create_plots

        Returns:
            BenchmarkReport
        """
        models = list(models) if models else list(self.config.models)
        create_plots = self.config.create_plots if create_plots is None else create_plots
        self.output_dir.mkdir(parents=True, exist_ok=True)

        split = artifacts.split
        print(f"🚀 Benchmark: {len(models)} model(s) | train N = {split.n_train}, test N = {split.n_test}, "
              f"{artifacts.cv_plan.n_folds}-fold CV | tuning metric: {self.config.tuning.metric}")

        report = BenchmarkReport()
        plotter = InteractivePlotter(self.output_dir / "plots") if create_plots else None

        for name in tqdm(models, desc="Pipelines"):
            # No report from an earlier run may stand in for this one
            (self.output_dir / f"{name}_metrics.csv").unlink(missing_ok=True)
            try:
                specification = self.config.specification(name)
                report.labels[name] = specification.family.label
                pipeline = ModelPipeline(
                    specification,
                    artifacts,
                    runner=self._make_runner(),
                    fitter=FinalFitter(random_state=self.config.random_state),
                    metric=self.config.tuning.metric,
                )
                metrics = pipeline.run()
                report_path = pipeline.write_report(self.output_dir)
            except Exception as e:
                report.failures[name] = f"{type(e).__name__}: {e}"
                print(f"    ❌ Pipeline '{name}' failed: {e}")
                traceback.print_exc()
                continue

            report.tuning[name] = pipeline.tuning_result
            report.metrics[name] = metrics
            report.reports[name] = report_path
            print(f"    ✅ {name}: " + ", ".join(f"{m} {v:.1f}" for m, v in metrics))

            if plotter:
                self._plot(plotter, pipeline, artifacts)

        self._export(report, plotter)
        print(f"\n✅ Benchmark finished: {len(report.metrics)} evaluated, {len(report.failures)} failed.")
        return report

    def _export(self, report: BenchmarkReport, plotter: Optional[InteractivePlotter]) -> None:
        comparison = report.comparison
        if comparison.empty:
            return

        comparison.to_csv(self.output_dir / "model_comparison.csv", index=False)

        exporter = ExcelExporter(self.output_dir / "model_comparison.xlsx")
        exporter.add_sheet("Comparison", comparison)
        for name, result in report.tuning.items():
            exporter.add_sheet(f"Tuning_{name}", result.to_frame())
        exporter.write()

        if plotter:
            plotter.plot_model_comparison(comparison)

    def _plot(self, plotter: InteractivePlotter, pipeline: ModelPipeline, artifacts: DatasetArtifacts) -> None:
        """HTML renderings of one evaluated pipeline; a rendering error only warns."""
        label = pipeline.label
        try:
            plotter.plot_metrics_table(pipeline.metrics, label)
            plotter.plot_tuning_results(pipeline.tuning_result.to_frame(), self.config.tuning.metric, label)
            plotter.plot_confusion_matrix(artifacts.test_labels, pipeline.fitted.predictions,
                                          class_names=artifacts.split.classes, title=f"CM: {label}",
                                          filename=f"cm_{pipeline.name}.html")
        except Exception as e:
            warnings.warn(f"Plots for '{pipeline.name}' could not be written: {e}")
