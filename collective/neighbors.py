# neighbors.py
# ------------------------------------------------------------
# Neighbor sets of the test instances and the two k-NN search strategies
# (linear scan with torch, kd-tree with scikit-learn).

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import torch
from sklearn.neighbors import NearestNeighbors

from .exceptions import ConfigurationError


@dataclass(eq=False)
class NeighborSet:
    """The k nearest pool instances of one test instance (the anchor)."""

    anchor: int
    neighbors: np.ndarray
    distances: np.ndarray
    rank: float = 0.0
    vote: int = -1
    label: int = -1
    updated: bool = False

    @property
    def resolved(self) -> bool:
        return self.label >= 0

    def neighbor_labels(self, pool_labels: np.ndarray) -> np.ndarray:
        return pool_labels[self.neighbors]

    def evaluate(self, ranking, pool_labels: np.ndarray):
        self.rank, self.vote = ranking.evaluate(self.neighbor_labels(pool_labels), self.distances)
        return self.rank

    def commit(self, label: int):
        self.label = int(label)
        self.updated = True


class ExhaustiveSearch:
    """Linear scan. Ties in distance are ordered by pool index."""

    def __init__(self, batch_size: int = 256):
        self.batch_size = batch_size

    def query(self, pool: np.ndarray, anchors: np.ndarray, k: int):
        P = torch.from_numpy(np.ascontiguousarray(pool, dtype=np.float64))
        anchors = np.asarray(anchors, dtype=np.int64)
        all_idx, all_dist = [], []
        for start in range(0, len(anchors), self.batch_size):
            rows = torch.from_numpy(anchors[start:start + self.batch_size])
            d = torch.cdist(P[rows], P, compute_mode="donot_use_mm_for_euclid_dist")
            d[torch.arange(len(rows)), rows] = float("inf")  # never your own neighbor
            order = torch.sort(d, dim=1, stable=True).indices[:, :k]
            all_idx.append(order.numpy())
            all_dist.append(torch.gather(d, 1, order).numpy())
        if not all_idx:
            return np.empty((0, k), dtype=np.int64), np.empty((0, k))
        return np.vstack(all_idx).astype(np.int64), np.vstack(all_dist)


class KDTreeSearch:
    """
    kd-tree search with the same tie rule as the linear scan: every point
    at the k-th distance is fetched, then ordered by (distance, pool index).
    """

    def __init__(self, tolerance: float = 1e-9):
        self.tolerance = tolerance

    def query(self, pool: np.ndarray, anchors: np.ndarray, k: int):
        anchors = np.asarray(anchors, dtype=np.int64)
        n_query = min(k + 1, len(pool))
        nn = NearestNeighbors(n_neighbors=n_query, algorithm="kd_tree").fit(pool)
        dist, ind = nn.kneighbors(pool[anchors])

        out_idx = np.empty((len(anchors), k), dtype=np.int64)
        out_dist = np.empty((len(anchors), k))
        for row, anchor in enumerate(anchors):
            keep = ind[row] != anchor
            kth = np.sort(dist[row][keep])[k - 1]
            radius = kth + self.tolerance * max(1.0, kth)
            # the tree picks arbitrary members of a tie at the k-th distance
            r_dist, r_ind = nn.radius_neighbors(pool[[anchor]], radius=radius, sort_results=True)
            i, d = r_ind[0], r_dist[0]
            keep = i != anchor
            i, d = i[keep], d[keep]
            order = np.lexsort((i, d))[:k]
            out_idx[row], out_dist[row] = i[order], d[order]
        return out_idx, out_dist


def make_search(use_exhaustive: bool, batch_size: int = 256):
    return ExhaustiveSearch(batch_size) if use_exhaustive else KDTreeSearch()


def build_neighbor_sets(pool: np.ndarray, anchors, k: int, search) -> list:
    if not 1 <= k <= len(pool) - 1:
        raise ConfigurationError(f"k={k} must be between 1 and {len(pool) - 1} (pool size - 1)")
    idx, dist = search.query(pool, np.asarray(anchors), k)
    return [NeighborSet(int(a), idx[r], dist[r]) for r, a in enumerate(anchors)]
