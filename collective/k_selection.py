# k_selection.py
# ------------------------------------------------------------
# Chooses the neighborhood size by cross-validating a plain k-NN
# classifier on the labeled training data.

from __future__ import annotations

import numpy as np
from sklearn.model_selection import GridSearchCV, StratifiedKFold
from sklearn.neighbors import KNeighborsClassifier

from .dataset import Dataset
from .distance import FeatureSpace
from .exceptions import ConfigurationError
from .logging_setups import get_logger

logger = get_logger(__name__)


class KSelector:
    """
    Picks k in 1..max_k with the lowest cross-validated error on the
    training set. Ties go to the smaller k. Test data is never looked at.
    """

    def __init__(self, max_k: int = 10, cv_folds: int = 10, seed: int | None = 1):
        self.max_k = max_k
        self.cv_folds = cv_folds
        self.seed = seed
        self.k_ = None
        self.errors_ = None
        self.cv_results_ = None

    def _folds(self, y: np.ndarray) -> StratifiedKFold:
        counts = np.bincount(y)
        counts = counts[counts > 0]
        n_splits = min(self.cv_folds, int(counts.min())) if counts.size else 0
        if n_splits < 2:
            raise ConfigurationError(
                f"Cannot determine k: need at least 2 cross-validation folds, smallest class has {n_splits} instance(s)")
        return StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=self.seed)

    def select(self, train: Dataset) -> int:
        if self.max_k < 1:
            raise ConfigurationError(f"max_k must be >= 1, got {self.max_k}")
        y = train.class_codes()
        X = FeatureSpace(train.schema).fit_transform(train)
        skf = self._folds(y)

        smallest = min(len(tr) for tr, _ in skf.split(X, y))
        if smallest < self.max_k + 1:
            raise ConfigurationError(
                f"max_k={self.max_k} too large: a cross-validation fold only has {smallest} training instances")

        search = GridSearchCV(
            KNeighborsClassifier(),
            {"n_neighbors": list(range(1, self.max_k + 1))},
            cv=skf,
            scoring="accuracy",
            refit=False,
        )
        search.fit(X, y)

        self.cv_results_ = search.cv_results_
        self.errors_ = 1.0 - np.asarray(search.cv_results_["mean_test_score"])
        ks = [p["n_neighbors"] for p in search.cv_results_["params"]]
        self.k_ = int(ks[int(np.argmin(self.errors_))])
        logger.debug("k selection errors: %s -> k=%d", np.round(self.errors_, 4).tolist(), self.k_)
        return self.k_
