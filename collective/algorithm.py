# algorithm.py
# ------------------------------------------------------------
# Hooks the iteration controller drives. Concrete algorithms override
# what they need; restart hooks default to no-ops.

from __future__ import annotations

import numpy as np

from .dataset import Capabilities, Dataset


class CollectiveAlgorithm:
    """
    Life cycle of one build::

        initialize(context, train, test)
        [initialize_labels()]            # restartable only, once per restart
        step(); is_done() ...            # flip_labels() before every later step
    """

    restartable = False
    capabilities = Capabilities()

    def initialize(self, context, train: Dataset, test: Dataset):
        raise NotImplementedError

    def step(self):
        raise NotImplementedError

    def is_done(self) -> bool:
        raise NotImplementedError

    def initialize_labels(self):
        pass

    def flip_labels(self):
        pass

    def score(self) -> float | None:
        """Higher is better. Only restartable algorithms need a score."""
        return None

    def transduction(self) -> np.ndarray:
        """Class codes assigned to the test instances."""
        raise NotImplementedError

    def distributions(self, dataset: Dataset) -> np.ndarray:
        raise NotImplementedError

    def summary(self) -> str:
        return ""

    def __getstate__(self):
        state = self.__dict__.copy()
        state.pop("_context", None)
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._context = None
