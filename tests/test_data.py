import tempfile
import unittest
import numpy as np
import pandas as pd
from sklearn.base import clone

from data.dataset import (
    CVFold,
    CVPlan,
    DatasetArtifacts,
    DatasetSplit,
    encode_target,
    load_artifacts,
    save_artifacts,
)
from synthetic_data import make_artifacts, make_recurrence_frame


class TestDatasetArtifacts(unittest.TestCase):

    def setUp(self):
        self.artifacts = make_artifacts(n_samples=120, n_folds=4)

    def test_split_is_disjoint_partition(self):
        split = self.artifacts.split
        self.assertEqual(split.n_train + split.n_test, 120)
        self.assertEqual(len(split.X_train.index.intersection(split.X_test.index)), 0)
        self.assertNotIn('Recurred', split.X_train.columns)
        self.assertEqual(split.classes, ('No', 'Yes'))

    def test_labels_are_read_only(self):
        with self.assertRaises(ValueError):
            self.artifacts.split.y_train[0] = 1
        with self.assertRaises(ValueError):
            self.artifacts.test_labels[0] = 1

    def test_cv_plan_covers_each_example_once(self):
        plan = self.artifacts.cv_plan
        self.assertEqual(plan.n_folds, 4)
        held_out = np.concatenate([fold.held_out for fold in plan])
        self.assertEqual(sorted(held_out.tolist()), list(range(self.artifacts.split.n_train)))
        for fold in plan:
            self.assertEqual(len(np.intersect1d(fold.held_in, fold.held_out)), 0)

    def test_invalid_cv_plan_rejected(self):
        # Example 3 is held out twice, example 5 never
        folds = (
            CVFold(held_in=[4, 5], held_out=[0, 1, 2, 3]),
            CVFold(held_in=[0, 1, 2], held_out=[3, 4]),
        )
        with self.assertRaises(ValueError):
            CVPlan(folds=folds, n_samples=6)

    def test_overlapping_split_rejected(self):
        X = pd.DataFrame({'a': [1.0, 2.0, 3.0]})
        with self.assertRaises(ValueError):
            DatasetSplit(X_train=X, X_test=X.iloc[:1], y_train=[0, 1, 0], y_test=[1])

    def test_mismatched_test_labels_rejected(self):
        with self.assertRaises(ValueError):
            DatasetArtifacts(
                split=self.artifacts.split,
                cv_plan=self.artifacts.cv_plan,
                recipe=self.artifacts.recipe,
                test_labels=1 - self.artifacts.split.y_test,
            )

    def test_recipe_fit_on_training_subset(self):
        recipe = self.artifacts.recipe
        refit = clone(recipe).fit(self.artifacts.split.X_train)
        X_test = self.artifacts.split.X_test
        np.testing.assert_allclose(recipe.transform(X_test), refit.transform(X_test))

    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            save_artifacts(self.artifacts, tmp)
            loaded = load_artifacts(tmp)

        pd.testing.assert_frame_equal(loaded.split.X_train, self.artifacts.split.X_train)
        np.testing.assert_array_equal(loaded.test_labels, self.artifacts.test_labels)
        self.assertEqual(loaded.cv_plan.n_folds, self.artifacts.cv_plan.n_folds)
        np.testing.assert_allclose(
            loaded.recipe.transform(loaded.split.X_test),
            self.artifacts.recipe.transform(self.artifacts.split.X_test)
        )

    def test_load_missing_artifacts(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                load_artifacts(tmp)


class TestEncodeTarget(unittest.TestCase):

    def test_positive_label_is_one(self):
        codes, classes = encode_target(pd.Series(['No', 'Yes', 'No'], name='Recurred'), 'Yes')
        self.assertEqual(codes.tolist(), [0, 1, 0])
        self.assertEqual(classes, ('No', 'Yes'))

    def test_non_binary_target_rejected(self):
        with self.assertRaises(ValueError):
            encode_target(pd.Series(['No', 'Yes', 'Maybe'], name='Recurred'), 'Yes')

    def test_missing_positive_label_rejected(self):
        with self.assertRaises(ValueError):
            encode_target(pd.Series(['No', 'Yes'], name='Recurred'), 'Recurred')

    def test_frame_fixture_is_binary(self):
        frame = make_recurrence_frame()
        self.assertEqual(set(frame['Recurred']), {'No', 'Yes'})


if __name__ == '__main__':
    unittest.main()
