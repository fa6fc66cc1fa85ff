import numpy as np
import pandas as pd

from collective import CollectiveKNN
from collective.evaluation import cross_validate, score, summarize, train


class TestEvaluation:

    def test_score(self, train_test):
        train_set, test_set = train_test
        model = train(CollectiveKNN(max_k=5), train_set, test_set)
        metrics = score(model, test_set)
        assert metrics["n"] == len(test_set)
        assert metrics["accuracy"] > 0.95
        assert metrics["error_rate"] == 1.0 - metrics["accuracy"]
        assert metrics["confusion"].sum() == len(test_set)
        assert 0.0 <= metrics["auc"] <= 1.0

    def test_auc_undefined_for_single_class(self, train_test):
        train_set, test_set = train_test
        model = train(CollectiveKNN(k=3), train_set, test_set)
        one_class = test_set.subset(np.flatnonzero(test_set.class_codes() == 0))
        assert np.isnan(score(model, one_class)["auc"])

    def test_cross_validate(self, blobs):
        results = cross_validate(CollectiveKNN(k=3), blobs, folds=4, seed=0)
        assert [r["fold"] for r in results] == [0, 1, 2, 3]
        assert sum(r["n"] for r in results) == len(blobs)
        table = summarize(results)
        assert isinstance(table, pd.DataFrame)
        assert list(table.index) == ["mean", "std"]
        assert table.loc["mean", "accuracy"] > 0.95
