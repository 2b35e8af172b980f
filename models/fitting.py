"""
Final Fitting

Refit the selected configuration on the whole training partition and predict
the held-out test partition. Also saves/loads fitted models.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union
import warnings
import joblib
import numpy as np
from sklearn.pipeline import Pipeline

from .errors import ConfigurationError, FitFailureError
from .specification import ModelSpecification


@dataclass(frozen=True)
class FittedModel:
    """
    Trained recipe + model pipeline owned by one model pipeline.

    Attributes:
        family: Model family id
        params: Complete hyperparameter set used for the fit
        grid_point: Selected grid point
        pipeline: Fitted sklearn Pipeline ('recipe', 'model')
        predictions: Predicted labels for every test row
    """
    family: str
    params: Dict[str, Any]
    grid_point: Dict[str, Any]
    pipeline: Pipeline
    predictions: np.ndarray

    def predict(self, X) -> np.ndarray:
        return self.pipeline.predict(X)


class FinalFitter:
    """Fit the fully specified pipeline on the training partition."""

    def __init__(self, random_state: Optional[int] = 42):
        self.random_state = random_state

    def fit(self, specification: ModelSpecification, grid_point: Dict[str, Any], split, recipe) -> FittedModel:
        """
        Args:
            specification: Original model specification
            grid_point: Selected grid point
            split: DatasetSplit
            recipe: Preprocessing recipe (refit on the training partition only)

        Returns:
            FittedModel with test-set predictions

        Raises:
            ConfigurationError: Grid point does not match the specification
            FitFailureError: The fit or the prediction failed
        """
        params = specification.finalize(grid_point)
        pipeline = specification.build_pipeline(recipe, grid_point, random_state=self.random_state)

        try:
            pipeline.fit(split.X_train, np.asarray(split.y_train))
            predictions = np.asarray(pipeline.predict(split.X_test))
        except ConfigurationError:
            raise
        except Exception as e:
            raise FitFailureError(
                f"Final fit of {specification.family.label} with {dict(grid_point)} failed: {e}"
            ) from e

        predictions.setflags(write=False)
        return FittedModel(
            family=specification.name,
            params=params,
            grid_point=dict(grid_point),
            pipeline=pipeline,
            predictions=predictions,
        )


class ModelPersistence:
    """Save and load fitted models."""

    @staticmethod
    def save_model(fitted: FittedModel, filepath: Union[str, Path]) -> Path:
        """Save a fitted model to file."""
        if not isinstance(fitted, FittedModel):
            warnings.warn(f"Saving object of type {type(fitted).__name__}, not a FittedModel.")
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(fitted, filepath)
        return filepath

    @staticmethod
    def load_model(filepath: Union[str, Path]) -> FittedModel:
        """Load a fitted model from file."""
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")
        return joblib.load(filepath)
