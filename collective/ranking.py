# ranking.py
# ------------------------------------------------------------
# How confident a neighbor set is about its vote.

from __future__ import annotations

import numpy as np


class MarginRank:
    """
    Rank of a neighbor set from the labels of its neighbors.

    - no labeled neighbor: rank 0, vote = ``default_label``
    - a labeled neighbor at distance 0: rank k + 1, vote = its label
    - otherwise: rank = (top count - second count) + n_labeled / (k + 1)

    The vote is the majority label; ties go to the tied label met first
    when walking the neighbors in distance order.
    """

    def __init__(self, n_classes: int, default_label: int = 0):
        self.n_classes = n_classes
        self.default_label = default_label

    def evaluate(self, labels: np.ndarray, distances: np.ndarray) -> tuple[float, int]:
        k = len(labels)
        labeled = labels >= 0
        n_labeled = int(labeled.sum())
        if n_labeled == 0:
            return 0.0, int(self.default_label)

        exact = np.flatnonzero(labeled & (distances == 0.0))
        if exact.size:
            return float(k + 1), int(labels[exact[0]])

        counts = np.bincount(labels[labeled], minlength=self.n_classes)
        top = counts.max()
        second = np.sort(counts)[-2] if self.n_classes > 1 else 0
        tied = set(np.flatnonzero(counts == top).tolist())
        vote = next(int(lab) for lab in labels if lab in tied)
        return float(top - second) + n_labeled / (k + 1), vote
