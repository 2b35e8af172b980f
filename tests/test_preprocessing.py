import unittest
import numpy as np
import pandas as pd
from sklearn.base import clone
from sklearn.exceptions import NotFittedError

from preprocessing.recipe import CorrelationFilter, PreprocessingRecipe
from synthetic_data import make_recurrence_frame


class TestCorrelationFilter(unittest.TestCase):

    def test_keeps_first_of_correlated_pair(self):
        rng = np.random.RandomState(0)
        a = rng.normal(size=50)
        X = pd.DataFrame({'a': a, 'b': rng.normal(size=50), 'a_copy': 3 * a - 2})

        corr = CorrelationFilter(threshold=0.9).fit(X)

        self.assertEqual(corr.support_.tolist(), [True, True, False])
        self.assertEqual(corr.transform(X).shape, (50, 2))
        self.assertEqual(corr.get_feature_names_out().tolist(), ['a', 'b'])

    def test_single_column_untouched(self):
        X = np.arange(10, dtype=float).reshape(-1, 1)
        self.assertEqual(CorrelationFilter().fit(X).transform(X).shape, (10, 1))

    def test_invalid_threshold(self):
        with self.assertRaises(ValueError):
            CorrelationFilter(threshold=0).fit(np.ones((5, 2)))


class TestPreprocessingRecipe(unittest.TestCase):

    def setUp(self):
        frame = make_recurrence_frame(n_samples=100)
        X = frame.drop(columns=['Recurred'])
        self.X_train, self.X_test = X.iloc[:75], X.iloc[75:]
        self.recipe = PreprocessingRecipe(correlation_threshold=0.9).fit(self.X_train)

    def test_column_roles(self):
        self.assertEqual(self.recipe.numeric_columns_, ['Age', 'Dose', 'Dose_mg', 'Size'])
        self.assertEqual(self.recipe.categorical_columns_, ['Gender', 'Risk'])
        self.assertEqual(self.recipe.dropped_correlated(), ['Dose_mg'])

    def test_output_layout(self):
        names = self.recipe.feature_names_out()
        # 3 numeric + Gender (2 levels -> 1) + Risk (3 levels -> 2)
        self.assertEqual(len(names), 6)
        self.assertFalse(any('Dose_mg' in name for name in names))
        self.assertEqual(self.recipe.transform(self.X_test).shape, (25, 6))

    def test_training_columns_normalized(self):
        Xt = self.recipe.transform(self.X_train)
        np.testing.assert_allclose(Xt[:, :3].mean(axis=0), 0.0, atol=1e-10)
        np.testing.assert_allclose(Xt[:, :3].std(axis=0), 1.0, atol=1e-10)

    def test_parameters_frozen_after_fit(self):
        """Transforming other data never re-estimates the scaling."""
        scaler = self.recipe.transformer_.named_transformers_['numeric'].named_steps['normalize']
        before = scaler.mean_.copy()
        self.recipe.transform(self.X_test)
        self.recipe.transform(self.X_test.assign(Age=1000.0))
        np.testing.assert_array_equal(scaler.mean_, before)
        np.testing.assert_allclose(before, self.X_train[['Age', 'Dose', 'Size']].mean().to_numpy())

    def test_unknown_category_encoded_as_zeros(self):
        X = self.X_test.copy()
        X['Risk'] = 'Unseen'
        Xt = self.recipe.transform(X)
        self.assertTrue(np.all(Xt[:, -2:] == 0))

    def test_clone_is_unfitted(self):
        fresh = clone(self.recipe)
        self.assertEqual(fresh.correlation_threshold, 0.9)
        with self.assertRaises(NotFittedError):
            fresh.transform(self.X_test)

    def test_missing_columns(self):
        with self.assertRaises(ValueError):
            self.recipe.transform(self.X_test.drop(columns=['Gender']))

    def test_requires_dataframe(self):
        with self.assertRaises(TypeError):
            PreprocessingRecipe().fit(self.X_train.to_numpy())


if __name__ == '__main__':
    unittest.main()
