"""
Dataset Artifacts

The fixed train/test split, the k-fold cross-validation plan, the fitted
preprocessing recipe and the held-out labels. They are created once,
persisted with joblib, and passed explicitly into every model pipeline.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union, Any
import joblib
import numpy as np
import pandas as pd
from sklearn.model_selection import StratifiedKFold, train_test_split

from preprocessing.recipe import PreprocessingRecipe


ARTIFACT_FILES = {
    'split': 'split.joblib',
    'cv_plan': 'cv_plan.joblib',
    'recipe': 'recipe.joblib',
    'test_labels': 'test_labels.joblib',
}


def _readonly(values) -> np.ndarray:
    arr = np.array(values, copy=True)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class DatasetSplit:
    """
    Fixed partition of the dataset.

    Attributes:
        X_train: Training predictors
        X_test: Test predictors
        y_train: Training labels (1 = positive class)
        y_test: Test labels (1 = positive class)
        classes: (negative_label, positive_label) as they appear in the raw data
    """
    X_train: pd.DataFrame
    X_test: pd.DataFrame
    y_train: np.ndarray
    y_test: np.ndarray
    classes: Tuple[Any, Any] = (0, 1)

    def __post_init__(self):
        object.__setattr__(self, 'y_train', _readonly(self.y_train))
        object.__setattr__(self, 'y_test', _readonly(self.y_test))

        if len(self.X_train) != len(self.y_train):
            raise ValueError(f"X_train has {len(self.X_train)} rows but y_train has {len(self.y_train)}")
        if len(self.X_test) != len(self.y_test):
            raise ValueError(f"X_test has {len(self.X_test)} rows but y_test has {len(self.y_test)}")
        overlap = self.X_train.index.intersection(self.X_test.index)
        if len(overlap) > 0:
            raise ValueError(f"Train and test subsets share {len(overlap)} rows")
        if list(self.X_train.columns) != list(self.X_test.columns):
            raise ValueError("Train and test subsets have different columns")
        if len(self.classes) != 2:
            raise ValueError(f"Binary classification expected, got classes {self.classes}")

    @property
    def n_train(self) -> int:
        return len(self.y_train)

    @property
    def n_test(self) -> int:
        return len(self.y_test)

    @property
    def positive_label(self):
        return self.classes[1]


@dataclass(frozen=True)
class CVFold:
    """One held-in / held-out partition (positional indices into the training subset)."""
    held_in: np.ndarray
    held_out: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'held_in', _readonly(np.asarray(self.held_in, dtype=int)))
        object.__setattr__(self, 'held_out', _readonly(np.asarray(self.held_out, dtype=int)))
        if np.intersect1d(self.held_in, self.held_out).size:
            raise ValueError("Held-in and held-out indices overlap")


@dataclass(frozen=True)
class CVPlan:
    """
    Ordered k-fold resampling plan over the training subset.

    Every training example appears in exactly one held-out fold.
    """
    folds: Tuple[CVFold, ...]
    n_samples: int

    def __post_init__(self):
        object.__setattr__(self, 'folds', tuple(self.folds))
        if len(self.folds) < 2:
            raise ValueError(f"At least 2 folds required, got {len(self.folds)}")

        counts = np.zeros(self.n_samples, dtype=int)
        for fold in self.folds:
            if fold.held_out.size and (fold.held_out.min() < 0 or fold.held_out.max() >= self.n_samples):
                raise ValueError("Held-out index out of range")
            np.add.at(counts, fold.held_out, 1)
        if not np.all(counts == 1):
            raise ValueError("Each training example must appear in exactly one held-out fold")

    @property
    def n_folds(self) -> int:
        return len(self.folds)

    def __iter__(self):
        return iter(self.folds)

    def __len__(self) -> int:
        return len(self.folds)

    @classmethod
    def stratified(cls, y: np.ndarray, n_folds: int = 10, random_state: int = 42) -> 'CVPlan':
        """Stratified, shuffled k-fold plan."""
        y = np.asarray(y)
        splitter = StratifiedKFold(n_splits=n_folds, shuffle=True, random_state=random_state)
        folds = [CVFold(held_in, held_out) for held_in, held_out in splitter.split(np.zeros(len(y)), y)]
        return cls(folds=tuple(folds), n_samples=len(y))


@dataclass(frozen=True)
class DatasetArtifacts:
    """Everything a model pipeline consumes, shared read-only across pipelines."""
    split: DatasetSplit
    cv_plan: CVPlan
    recipe: PreprocessingRecipe
    test_labels: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'test_labels', _readonly(self.test_labels))
        if not np.array_equal(self.test_labels, self.split.y_test):
            raise ValueError("Test labels do not match the test subset of the split")
        if self.cv_plan.n_samples != self.split.n_train:
            raise ValueError(
                f"CV plan covers {self.cv_plan.n_samples} examples, training subset has {self.split.n_train}"
            )


def load_dataset_csv(filepath: Union[str, Path]) -> pd.DataFrame:
    """Read the raw dataset, stripping whitespace from column names."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    try:
        frame = pd.read_csv(filepath)
    except Exception as e:
        raise ValueError(f"Failed to load CSV file {filepath}: {e}")

    frame.columns = [str(c).strip() for c in frame.columns]
    return frame


def encode_target(values: pd.Series, positive_label) -> Tuple[np.ndarray, Tuple[Any, Any]]:
    """
    Binary-encode the target column.

    Returns:
        (codes, (negative_label, positive_label)) with code 1 for the positive label
    """
    if values.isna().any():
        raise ValueError(f"Target column '{values.name}' has missing values")

    observed = pd.unique(values)
    if len(observed) != 2:
        raise ValueError(f"Target column '{values.name}' must be binary, found {list(observed)}")
    if positive_label not in observed:
        raise ValueError(f"Positive label {positive_label!r} not found in {list(observed)}")

    negative_label = observed[0] if observed[1] == positive_label else observed[1]
    codes = (values == positive_label).to_numpy().astype(int)
    return codes, (negative_label, positive_label)


def prepare_artifacts(
        frame: pd.DataFrame,
        target_column: str,
        positive_label,
        test_size: float = 0.25,
        n_folds: int = 10,
        correlation_threshold: float = 0.9,
        random_state: int = 42
) -> DatasetArtifacts:
    """
    Create the split, the CV plan and the fitted recipe.

    Args:
        frame: Raw dataset (predictors + target)
        target_column: Name of the outcome column
        positive_label: Outcome value treated as the positive class
        test_size: Fraction held out for testing (stratified)
        n_folds: Number of cross-validation folds over the training subset
        correlation_threshold: Correlation filter threshold of the recipe
        random_state: Seed for the split and the folds

    Returns:
        DatasetArtifacts
    """
    if target_column not in frame.columns:
        raise KeyError(f"Target column '{target_column}' not found. Available: {frame.columns.tolist()}")

    y, classes = encode_target(frame[target_column], positive_label)
    X = frame.drop(columns=[target_column])

    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=test_size, stratify=y, random_state=random_state
    )

    split = DatasetSplit(
        X_train=X_train.copy(),
        X_test=X_test.copy(),
        y_train=y_train,
        y_test=y_test,
        classes=tuple(classes),
    )
    cv_plan = CVPlan.stratified(split.y_train, n_folds=n_folds, random_state=random_state)

    # Fit on the training subset only
    recipe = PreprocessingRecipe(correlation_threshold=correlation_threshold).fit(split.X_train)

    return DatasetArtifacts(split=split, cv_plan=cv_plan, recipe=recipe, test_labels=split.y_test)


def save_artifacts(artifacts: DatasetArtifacts, directory: Union[str, Path]) -> Path:
    """Persist the four artifacts as joblib files (overwrites)."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    joblib.dump(artifacts.split, directory / ARTIFACT_FILES['split'])
    joblib.dump(artifacts.cv_plan, directory / ARTIFACT_FILES['cv_plan'])
    joblib.dump(artifacts.recipe, directory / ARTIFACT_FILES['recipe'])
    joblib.dump(np.asarray(artifacts.test_labels), directory / ARTIFACT_FILES['test_labels'])
    print(f"Artifacts saved to: {directory}")
    return directory


def load_artifacts(directory: Union[str, Path]) -> DatasetArtifacts:
    """
    Load persisted artifacts.

    Raises:
        FileNotFoundError: If any artifact file is missing
        ValueError: If the artifacts are inconsistent with each other
    """
    directory = Path(directory)
    missing = [name for name in ARTIFACT_FILES.values() if not (directory / name).exists()]
    if missing:
        raise FileNotFoundError(f"Missing artifacts in {directory}: {missing}")

    return DatasetArtifacts(
        split=joblib.load(directory / ARTIFACT_FILES['split']),
        cv_plan=joblib.load(directory / ARTIFACT_FILES['cv_plan']),
        recipe=joblib.load(directory / ARTIFACT_FILES['recipe']),
        test_labels=joblib.load(directory / ARTIFACT_FILES['test_labels']),
    )
