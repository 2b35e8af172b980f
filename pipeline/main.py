import argparse
import sys
import traceback
from pathlib import Path

from data.dataset import load_artifacts, load_dataset_csv, prepare_artifacts, save_artifacts
from models.errors import ConfigurationError
from pipeline.config import BenchmarkConfig
from pipeline.runner import BenchmarkRunner


def load_config(config_name="config.yaml"):
    paths = [Path(config_name), Path(__file__).resolve().parent.parent / config_name]
    for p in paths:
        if p.exists():
            print(f"    Found config at: {p.absolute()}")
            return BenchmarkConfig.from_yaml(p)
    raise FileNotFoundError(f"Config not found: {config_name}")


def prepare(config):
    """Create and persist the split, CV plan, fitted recipe and test labels."""
    data_cfg, split_cfg = config.data, config.split
    frame = load_dataset_csv(data_cfg.dataset_file)
    print(f"    Loaded {len(frame)} rows x {frame.shape[1]} columns from {data_cfg.dataset_file}")

    artifacts = prepare_artifacts(
        frame,
        target_column=data_cfg.target_column,
        positive_label=data_cfg.positive_label,
        test_size=split_cfg.test_size,
        n_folds=split_cfg.n_folds,
        correlation_threshold=split_cfg.correlation_threshold,
        random_state=config.random_state,
    )
    dropped = artifacts.recipe.dropped_correlated()
    if dropped:
        print(f"    Correlation filter dropped: {dropped}")
    save_artifacts(artifacts, data_cfg.artifacts_dir)
    return artifacts


def run(config, models=None, create_plots=None):
    artifacts = load_artifacts(config.data.artifacts_dir)
    return BenchmarkRunner(config).run(artifacts, models=models, create_plots=create_plots)


def build_parser():
    parser = argparse.ArgumentParser(description="Thyroid cancer recurrence: six-model benchmark")
    parser.add_argument("--config", default="config.yaml", help="YAML configuration file")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("prepare", help="Split the dataset, build CV folds and fit the preprocessing recipe")

    run_parser = sub.add_parser("run", help="Tune, fit and evaluate the configured models")
    run_parser.add_argument("--models", nargs="+", default=None, help="Subset of model families to run")
    run_parser.add_argument("--n-workers", type=int, default=None, help="Worker pool size for grid search")
    run_parser.add_argument("--no-plots", action="store_true", help="Skip HTML renderings")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    print(f"🚀 Starting {args.command}...")
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ConfigurationError) as e:
        print(f"❌ CONFIG ERROR: {e}")
        return 2

    try:
        if args.command == "prepare":
            prepare(config)
        else:
            if args.n_workers is not None:
                config.tuning.n_workers = args.n_workers
                config.validate()
            report = run(config, models=args.models, create_plots=False if args.no_plots else None)
            if report.failures:
                return 1
    except Exception as e:
        print(f"❌ FAILED {args.command}: {e}")
        traceback.print_exc()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
