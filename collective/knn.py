# knn.py
# ------------------------------------------------------------
# Transductive k-NN: k from cross-validation on the training data,
# neighbors from train ∪ test, labels propagated round by round.

from __future__ import annotations

import numpy as np

from .algorithm import CollectiveAlgorithm
from .config import SETTINGS
from .dataset import Capabilities, Dataset
from .distance import FeatureSpace
from .exceptions import ConfigurationError, InstanceNotFoundError
from .k_selection import KSelector
from .logging_setups import get_logger
from .neighbors import make_search
from .propagation import PropagationEngine
from .ranking import MarginRank

logger = get_logger(__name__)


def build_lookup(keys, labels) -> dict:
    """Feature key -> committed label. For duplicate keys the later test instance wins."""
    lookup = {}
    for key, label in zip(keys, np.asarray(labels).tolist()):
        previous = lookup.get(key)
        if previous is not None and previous != label:
            logger.warning("Duplicate test instance %s resolved to %d and %d, keeping %d",
                           key, previous, label, label)
        lookup[key] = label
    return lookup


class NeighborPropagation(CollectiveAlgorithm):

    capabilities = Capabilities(binary_class=True)

    def __init__(self, k=SETTINGS["k"], max_k=SETTINGS["max_k"], cv_folds=SETTINGS["cv_folds"],
                 use_exhaustive_search=SETTINGS["use_exhaustive_search"], batch_size=SETTINGS["batch_size"]):
        self.k = k
        self.max_k = max_k
        self.cv_folds = cv_folds
        self.use_exhaustive_search = use_exhaustive_search
        self.batch_size = batch_size
        self.determined_k_ = None
        self.engine_ = None
        self._lookup = None
        self._context = None

    def initialize(self, context, train: Dataset, test: Dataset):
        self._context = context
        pool_size = len(train) + len(test)

        if self.k is None:
            with context.timed("Time for determining k"):
                k = KSelector(self.max_k, self.cv_folds, context.seed).select(train)
            context.log("Determined KNN = %d", k)
        else:
            k = int(self.k)
        if not 1 <= k <= pool_size - 1:
            raise ConfigurationError(f"k={k} must be between 1 and {pool_size - 1} (pool size - 1)")
        self.determined_k_ = k
        context.measures["measureDeterminedKNN"] = float(k)

        pool_set = train.append(test)
        pool = FeatureSpace(train.schema).fit_transform(pool_set)
        y_train = train.class_codes()
        n_classes = train.num_classes
        majority = int(np.argmax(np.bincount(y_train, minlength=n_classes))) if len(y_train) else 0

        self.n_classes_ = n_classes
        self.engine_ = PropagationEngine(MarginRank(n_classes, majority),
                                         make_search(self.use_exhaustive_search, self.batch_size))
        with context.timed("Time for finding neighbors"):
            self.engine_.initialize(pool, y_train, len(test), k, context)
        self._keys = test.feature_keys()
        self._lookup = None

    def step(self):
        committed = self.engine_.step()
        self._context.log("Round %d: %d label(s) committed", self.engine_.round_, committed)

    def is_done(self) -> bool:
        if not self.engine_.is_done():
            return False
        if self._lookup is None:
            self._lookup = build_lookup(self._keys, self.engine_.test_labels())
            self._context.measures["measureNumRounds"] = float(self.engine_.round_)
        return True

    def transduction(self) -> np.ndarray:
        return self.engine_.test_labels()

    def distributions(self, dataset: Dataset) -> np.ndarray:
        out = np.zeros((len(dataset), self.n_classes_))
        for row, key in enumerate(dataset.feature_keys()):
            label = self._lookup.get(key)
            if label is None:
                raise InstanceNotFoundError(f"Cannot find test instance: {key}")
            out[row, label] = 1.0
        return out

    def summary(self) -> str:
        return f"Used K................: {self.determined_k_}\n"
