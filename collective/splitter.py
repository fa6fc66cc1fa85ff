# splitter.py
# ------------------------------------------------------------
# Turns a single labeled dataset into a (train, test) pair.

from __future__ import annotations

import numpy as np
from sklearn.model_selection import StratifiedKFold

from .dataset import Dataset
from .exceptions import ConfigurationError
from .logging_setups import get_logger

logger = get_logger(__name__)


class Splitter:
    """
    Stratified, unshuffled split of one dataset into train and test.

    With ``folds >= 2`` the first fold is the training set and the remaining
    folds form the test set; ``invert=True`` swaps the roles. With
    ``folds`` 0 or 1 no split happens and the test set is a copy of the
    training set.
    """

    def __init__(self, dataset: Dataset, folds: int = 0, invert: bool = False):
        if folds < 0:
            raise ConfigurationError(f"Number of folds must be >= 0, got {folds}")
        self.dataset = dataset
        self.folds = int(folds)
        self.invert = bool(invert)

    @property
    def splits(self) -> bool:
        return self.folds >= 2

    def indices(self) -> tuple[np.ndarray, np.ndarray]:
        n = len(self.dataset)
        if not self.splits:
            everything = np.arange(n)
            return everything, everything.copy()

        y = self.dataset.class_codes()
        skf = StratifiedKFold(n_splits=self.folds, shuffle=False)
        try:
            _, first_fold = next(skf.split(np.zeros((n, 1)), y))
        except ValueError as e:
            raise ConfigurationError(f"Cannot split {n} instances into {self.folds} folds: {e}") from e

        rest = np.setdiff1d(np.arange(n), first_fold)
        if self.invert:
            return rest, np.sort(first_fold)
        return np.sort(first_fold), rest

    def split(self) -> tuple[Dataset, Dataset]:
        if not self.splits:
            logger.warning("Folds (%d) < 2, no split performed: test set is a copy of the training set", self.folds)
            return self.dataset.copy(), self.dataset.copy()

        train_idx, test_idx = self.indices()
        logger.debug("Split %d instances into %d train / %d test (folds=%d, invert=%s)",
                     len(self.dataset), len(train_idx), len(test_idx), self.folds, self.invert)
        return self.dataset.subset(train_idx), self.dataset.subset(test_idx)
