"""
Preprocessing Recipe

Deterministic feature transformations fit once on training data and applied
unchanged to any other data:

1. Correlation filtering of numeric predictors
2. Normalization (z-score) of the surviving numeric predictors
3. Dummy encoding of categorical predictors (first level dropped)

Both classes follow scikit-learn's estimator conventions, so
sklearn.base.clone() returns an unfitted recipe with the same settings.
"""

from typing import List, Optional
import warnings
import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.compose import ColumnTransformer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler
from sklearn.utils.validation import check_is_fitted


class CorrelationFilter(BaseEstimator, TransformerMixin):
    """
    Remove highly correlated numeric features.

    For every pair with |r| >= threshold the first feature is kept and the
    later one dropped.
    """

    def __init__(self, threshold: float = 0.9):
        self.threshold = threshold

    def fit(self, X, y=None):
        if not 0 < self.threshold <= 1:
            raise ValueError(f"threshold must be in (0, 1], got {self.threshold}")

        if isinstance(X, pd.DataFrame):
            names = np.asarray(X.columns, dtype=object)
            X = X.to_numpy(dtype=float)
        else:
            X = np.asarray(X, dtype=float)
            names = np.asarray([f'x{i}' for i in range(X.shape[1])], dtype=object)

        n_features = X.shape[1]
        self.n_features_in_ = n_features
        self.feature_names_in_ = names

        if n_features < 2:
            self.support_ = np.ones(n_features, dtype=bool)
            return self

        # Compute correlation matrix
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            corr_matrix = np.corrcoef(X.T)

        # Constant columns have undefined correlation
        corr_matrix = np.nan_to_num(corr_matrix, nan=0.0)

        to_drop = set()
        for i in range(n_features):
            if i in to_drop:
                continue
            for j in range(i + 1, n_features):
                if j in to_drop:
                    continue
                if abs(corr_matrix[i, j]) >= self.threshold:
                    to_drop.add(j)

        self.support_ = np.array([i not in to_drop for i in range(n_features)], dtype=bool)
        return self

    def transform(self, X):
        check_is_fitted(self, 'support_')
        if isinstance(X, pd.DataFrame):
            X = X.to_numpy(dtype=float)
        X = np.asarray(X, dtype=float)
        if X.shape[1] != self.n_features_in_:
            raise ValueError(f"Expected {self.n_features_in_} features, got {X.shape[1]}")
        return X[:, self.support_]

    def get_feature_names_out(self, input_features=None):
        check_is_fitted(self, 'support_')
        names = self.feature_names_in_ if input_features is None else np.asarray(input_features, dtype=object)
        return names[self.support_]


class PreprocessingRecipe(BaseEstimator, TransformerMixin):
    """
    Frozen preprocessing recipe for the tabular dataset.

    Numeric columns: CorrelationFilter -> StandardScaler
    Categorical columns (object / category / bool): OneHotEncoder(drop='first')

    Usage:
        recipe = PreprocessingRecipe(correlation_threshold=0.9).fit(X_train)
        X_ready = recipe.transform(X_test)
    """

    def __init__(self, correlation_threshold: float = 0.9):
        self.correlation_threshold = correlation_threshold

    def fit(self, X: pd.DataFrame, y=None) -> 'PreprocessingRecipe':
        if not isinstance(X, pd.DataFrame):
            raise TypeError(f"PreprocessingRecipe expects a pandas DataFrame, got {type(X)}")

        numeric = X.select_dtypes(include='number').columns.tolist()
        categorical = [c for c in X.columns if c not in numeric]

        transformers = []
        if numeric:
            transformers.append(('numeric', Pipeline([
                ('correlation', CorrelationFilter(threshold=self.correlation_threshold)),
                ('normalize', StandardScaler()),
            ]), numeric))
        if categorical:
            transformers.append(('categorical', OneHotEncoder(
                drop='first',
                handle_unknown='ignore',
                sparse_output=False,
            ), categorical))
        if not transformers:
            raise ValueError("No columns to preprocess")

        self.numeric_columns_ = numeric
        self.categorical_columns_ = categorical
        self.columns_ = X.columns.tolist()
        self.transformer_ = ColumnTransformer(transformers, remainder='drop').fit(X)
        return self

    def transform(self, X: pd.DataFrame) -> np.ndarray:
        check_is_fitted(self, 'transformer_')
        if not isinstance(X, pd.DataFrame):
            raise TypeError(f"PreprocessingRecipe expects a pandas DataFrame, got {type(X)}")
        missing = [c for c in self.columns_ if c not in X.columns]
        if missing:
            raise ValueError(f"Missing columns: {missing}")

        with warnings.catch_warnings():
            # Categories unseen during fit are encoded as all zeros
            warnings.filterwarnings("ignore", message=".*unknown categories.*")
            return np.asarray(self.transformer_.transform(X[self.columns_]), dtype=float)

    def feature_names_out(self) -> List[str]:
        """Names of the columns produced by transform()."""
        check_is_fitted(self, 'transformer_')
        return [str(name) for name in self.transformer_.get_feature_names_out()]

    def dropped_correlated(self) -> List[str]:
        """Numeric columns removed by the correlation filter."""
        check_is_fitted(self, 'transformer_')
        if not self.numeric_columns_:
            return []
        corr = self.transformer_.named_transformers_['numeric'].named_steps['correlation']
        return [c for c, keep in zip(self.numeric_columns_, corr.support_) if not keep]
