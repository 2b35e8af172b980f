import os
import tempfile
import unittest
import warnings
from pathlib import Path
from unittest import mock

import pandas as pd
import yaml

from data.exporters import read_metrics_csv, write_metrics_csv
from models.errors import ConfigurationError, FitFailureError, PipelineStateError
from models.evaluation import METRIC_NAMES
from models.specification import FAMILIES, Tunable, specify
from models.tuning import TuningRunner
from pipeline.config import BenchmarkConfig
from pipeline.main import main
from pipeline.model_pipeline import ModelPipeline, PipelineState
from pipeline.runner import BenchmarkRunner
from visualization.interactive import InteractivePlotter
from synthetic_data import make_artifacts, make_recurrence_frame

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config.yaml"


def small_config(tmp_dir, models=None):
    """Fast configuration writing everything below tmp_dir."""
    return BenchmarkConfig.from_dict({
        'data': {
            'dataset_file': os.path.join(tmp_dir, 'recurrence.csv'),
            'artifacts_dir': os.path.join(tmp_dir, 'artifacts'),
            'output_dir': os.path.join(tmp_dir, 'results'),
        },
        'split': {'test_size': 0.25, 'n_folds': 3},
        'tuning': {'n_workers': 1},
        'create_plots': False,
        'models': models or {
            'knn': {'tune': {'n_neighbors': [3, 5]}},
            'logistic_regression': {'tune': {'C': [0.1, 1.0]}},
        },
    })


class TestModelPipeline(unittest.TestCase):

    def setUp(self):
        self.artifacts = make_artifacts(n_samples=120, n_folds=3)
        self.runner = TuningRunner(n_workers=1, verbose=False)

    def test_full_run_reaches_evaluated(self):
        spec = specify('knn', n_neighbors=Tunable([3, 5, 7]))
        pipeline = ModelPipeline(spec, self.artifacts, runner=self.runner)
        self.assertEqual(pipeline.state, PipelineState.SPECIFIED)

        metrics = pipeline.run()

        self.assertEqual(pipeline.state, PipelineState.EVALUATED)
        self.assertEqual(tuple(name for name, _ in metrics), METRIC_NAMES)
        self.assertIn(pipeline.best_params, pipeline.tuning_result.grid_points)

        with tempfile.TemporaryDirectory() as tmp:
            path = pipeline.write_report(tmp)
            self.assertEqual(path.name, 'knn_metrics.csv')
            self.assertEqual(read_metrics_csv(path), metrics)

    def test_stages_in_order(self):
        pipeline = ModelPipeline(specify('knn', n_neighbors=Tunable([3])), self.artifacts, runner=self.runner)
        with self.assertRaises(PipelineStateError):
            pipeline.fit()
        with self.assertRaises(PipelineStateError):
            pipeline.write_report(tempfile.gettempdir())

        pipeline.tune()
        self.assertEqual(pipeline.state, PipelineState.TUNED)
        with self.assertRaises(PipelineStateError):
            pipeline.tune()
        # Rejected calls do not change state
        self.assertEqual(pipeline.state, PipelineState.TUNED)

    def test_failure_is_terminal(self):
        # Zero-width hidden layer: every fold fit fails
        spec = specify('neural_network', hidden_layer_sizes=Tunable([(0,)]))
        pipeline = ModelPipeline(spec, self.artifacts, runner=self.runner)

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            with self.assertRaises(FitFailureError):
                pipeline.tune()

        self.assertEqual(pipeline.state, PipelineState.FAILED)
        self.assertIsInstance(pipeline.error, FitFailureError)
        with self.assertRaises(PipelineStateError):
            pipeline.select()


class TestBenchmarkRunner(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.artifacts = make_artifacts(n_samples=120, n_folds=3)

    def tearDown(self):
        self.tmp.cleanup()

    def test_failing_pipeline_isolated(self):
        config = small_config(self.tmp.name, models={
            'knn': {'tune': {'n_neighbors': [3, 5]}},
            'svm': {'tune': {'C': [-1.0]}},
            'neural_network': {'tune': {'hidden_layer_sizes': [[0]]}},
            'logistic_regression': {'tune': {'C': [0.1, 1.0]}},
        })
        out = Path(config.data.output_dir)
        out.mkdir(parents=True)
        # Reports left over from an earlier run
        stale = [('Accuracy', 99.0), ('Precision', 99.0), ('Recall', 99.0), ('Specificity', 99.0)]
        write_metrics_csv(stale, out / 'svm_metrics.csv')
        write_metrics_csv(stale, out / 'neural_network_metrics.csv')

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            report = BenchmarkRunner(config).run(self.artifacts, create_plots=True)

        self.assertEqual(set(report.metrics), {'knn', 'logistic_regression'})
        self.assertEqual(list(report.failures), ['svm', 'neural_network'])
        self.assertIn('ConfigurationError', report.failures['svm'])
        self.assertIn('FitFailureError', report.failures['neural_network'])
        self.assertTrue((out / 'knn_metrics.csv').exists())
        self.assertTrue((out / 'logistic_regression_metrics.csv').exists())
        self.assertFalse((out / 'svm_metrics.csv').exists())
        self.assertFalse((out / 'neural_network_metrics.csv').exists())

        comparison = pd.read_csv(out / 'model_comparison.csv')
        self.assertEqual(comparison.columns.tolist(), ['Model', *METRIC_NAMES])
        self.assertEqual(len(comparison), 2)
        sheets = pd.read_excel(out / 'model_comparison.xlsx', sheet_name=None, engine='openpyxl')
        self.assertIn('Comparison', sheets)
        self.assertIn('Tuning_knn', sheets)
        self.assertTrue((out / 'plots' / 'model_comparison.html').exists())
        self.assertTrue((out / 'plots' / 'cm_knn.html').exists())

    def test_plot_error_does_not_fail_pipeline(self):
        config = small_config(self.tmp.name)
        with mock.patch.object(InteractivePlotter, 'plot_confusion_matrix', side_effect=RuntimeError('no renderer')):
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                report = BenchmarkRunner(config).run(self.artifacts, models=['knn'], create_plots=True)

        self.assertEqual(list(report.metrics), ['knn'])
        self.assertEqual(report.failures, {})
        self.assertTrue(any('no renderer' in str(w.message) for w in caught))

    def test_model_subset(self):
        config = small_config(self.tmp.name)
        report = BenchmarkRunner(config).run(self.artifacts, models=['knn'])
        self.assertEqual(list(report.metrics), ['knn'])
        self.assertEqual(report.failures, {})

    def test_unconfigured_model_reported(self):
        config = small_config(self.tmp.name)
        report = BenchmarkRunner(config).run(self.artifacts, models=['random_forest'])
        self.assertIn('random_forest', report.failures)


class TestBenchmarkConfig(unittest.TestCase):

    def test_repo_config_covers_six_families(self):
        config = BenchmarkConfig.from_yaml(REPO_CONFIG)
        self.assertEqual(set(config.models), set(FAMILIES))
        for name in config.models:
            spec = config.specification(name)
            self.assertTrue(spec.search_grid())
        nn = config.specification('neural_network')
        self.assertEqual(nn.fixed_params(), {'learning_rate_init': 0.01})
        self.assertEqual(nn.search_grid()['hidden_layer_sizes'], [(5,), (10,), (20,)])

    def test_defaults_build_every_specification(self):
        config = BenchmarkConfig()
        config.validate()
        for name in config.models:
            config.specification(name)

    def test_yaml_round_trip(self):
        config = BenchmarkConfig()
        config.tuning.n_workers = 3
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'config.yaml'
            config.to_yaml(path)
            loaded = BenchmarkConfig.from_yaml(path)
        self.assertEqual(loaded.to_dict(), config.to_dict())

    def test_invalid_values(self):
        cases = [
            {'split': {'n_folds': 1}},
            {'split': {'test_size': 1.5}},
            {'tuning': {'metric': 'roc_auc'}},
            {'tuning': {'n_workers': 0}},
            {'models': {'naive_bayes': {}}},
            {'data': {'no_such_option': 1}},
            {'plots': True},
        ]
        for raw in cases:
            with self.subTest(raw=raw):
                with self.assertRaises(ConfigurationError):
                    BenchmarkConfig.from_dict(raw)

    def test_learning_rate_cannot_be_tuned(self):
        config = BenchmarkConfig.from_dict({
            'models': {'neural_network': {'tune': {'learning_rate_init': [0.001, 0.01]}}}
        })
        with self.assertRaises(ConfigurationError):
            config.specification('neural_network')


class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        config = small_config(self.tmp.name, models={'knn': {'tune': {'n_neighbors': [3, 5]}}})
        make_recurrence_frame(n_samples=120).to_csv(config.data.dataset_file, index=False)
        self.config_path = os.path.join(self.tmp.name, 'config.yaml')
        config.to_yaml(self.config_path)
        self.config = config

    def tearDown(self):
        self.tmp.cleanup()

    def test_prepare_then_run(self):
        self.assertEqual(main(['--config', self.config_path, 'prepare']), 0)
        self.assertTrue(os.path.isdir(self.config.data.artifacts_dir))

        code = main(['--config', self.config_path, 'run', '--models', 'knn', '--n-workers', '1', '--no-plots'])
        self.assertEqual(code, 0)
        metrics = read_metrics_csv(Path(self.config.data.output_dir) / 'knn_metrics.csv')
        self.assertEqual([name for name, _ in metrics], list(METRIC_NAMES))

    def test_run_without_artifacts_fails(self):
        self.assertEqual(main(['--config', self.config_path, 'run', '--no-plots']), 1)

    def test_missing_config(self):
        self.assertEqual(main(['--config', os.path.join(self.tmp.name, 'absent.yaml'), 'prepare']), 2)

    def test_invalid_config(self):
        with open(self.config_path, 'w') as f:
            yaml.safe_dump({'split': {'n_folds': 1}}, f)
        self.assertEqual(main(['--config', self.config_path, 'prepare']), 2)


if __name__ == '__main__':
    unittest.main()
