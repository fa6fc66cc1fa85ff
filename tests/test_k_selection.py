import numpy as np
import pytest

from collective import CollectiveKNN, ConfigurationError, Dataset
from collective.k_selection import KSelector
from conftest import make_blobs


class TestKSelector:

    def test_k_in_range(self, blobs):
        selector = KSelector(max_k=7, cv_folds=5, seed=1)
        k = selector.select(blobs)
        assert 1 <= k <= 7
        assert len(selector.errors_) == 7
        assert selector.errors_[k - 1] == selector.errors_.min()

    def test_ties_prefer_smaller_k(self, blobs):
        selector = KSelector(max_k=5, cv_folds=5, seed=1)
        k = selector.select(blobs)
        # separable blobs: every k is perfect
        assert np.allclose(selector.errors_, 0.0)
        assert k == 1

    def test_reproducible(self, blobs):
        assert KSelector(10, 5, seed=3).select(blobs) == KSelector(10, 5, seed=3).select(blobs)

    def test_not_enough_instances(self):
        small = make_blobs(n_per_class=3)
        with pytest.raises(ConfigurationError):
            KSelector(max_k=10, cv_folds=3).select(small)

    def test_single_instance_class(self):
        ds = Dataset.from_arrays(np.arange(6.0)[:, None], [0, 0, 0, 0, 0, 1])
        with pytest.raises(ConfigurationError):
            KSelector(max_k=1, cv_folds=5).select(ds)

    def test_independent_of_test_set(self, train_test):
        train, test = train_test
        other_test = make_blobs(seed=9)
        a = CollectiveKNN(max_k=5).build(train, test)
        b = CollectiveKNN(max_k=5).build(train, other_test)
        assert a.get_measure("measureDeterminedKNN") == b.get_measure("measureDeterminedKNN")
        assert a.get_measure("measureDeterminedKNN") == KSelector(5, 10, seed=1).select(train)
