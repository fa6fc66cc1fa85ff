# propagation.py
# ------------------------------------------------------------
# Round-based label propagation over the neighbor sets of the test
# instances. Each round commits every pending set that shares the
# current maximum rank.

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .exceptions import ConvergenceError
from .logging_setups import get_logger
from .neighbors import build_neighbor_sets

logger = get_logger(__name__)


@dataclass(frozen=True)
class Commit:
    round: int
    anchor: int
    label: int
    rank: float
    neighbor_labels: tuple


class PropagationEngine:
    """
    Pool layout: the first ``n_train`` rows are training instances, the
    remaining ``n_test`` rows are the test instances (anchors).
    """

    def __init__(self, ranking, search):
        self.ranking = ranking
        self.search = search
        self.sets_ = []
        self.pool_labels_ = None
        self.round_ = 0
        self.history_ = []
        self.commit_log_ = []
        self._dependents = {}
        self._dirty = set()
        self._context = None

    # ---- setup ----

    def initialize(self, pool: np.ndarray, train_labels: np.ndarray, n_test: int, k: int, context=None):
        n_train = len(train_labels)
        if pool.shape[0] != n_train + n_test:
            raise ValueError(f"Pool has {pool.shape[0]} rows, expected {n_train} + {n_test}")
        self._context = context
        self.n_train_ = n_train
        self.k_ = k
        self.pool_labels_ = np.concatenate([np.asarray(train_labels, dtype=np.int64),
                                            np.full(n_test, -1, dtype=np.int64)])
        anchors = np.arange(n_train, n_train + n_test)
        self.sets_ = build_neighbor_sets(pool, anchors, k, self.search) if n_test else []

        # test pool index -> positions of the sets that contain it
        self._dependents = {}
        for pos, ns in enumerate(self.sets_):
            for j in ns.neighbors[ns.neighbors >= n_train]:
                self._dependents.setdefault(int(j), []).append(pos)
        self._dirty = set(range(len(self.sets_)))
        self.round_ = 0
        self.history_ = []
        self.commit_log_ = []
        return self

    # ---- rounds ----

    def step(self) -> int:
        """Run one round; returns the number of labels committed."""
        if self._context is not None:
            self._context.check_interrupt()

        for ns in self.sets_:
            ns.updated = False

        for pos in sorted(self._dirty):
            ns = self.sets_[pos]
            if not ns.resolved:
                ns.evaluate(self.ranking, self.pool_labels_)
        self._dirty = set()

        self.round_ += 1
        pending = [ns for ns in self.sets_ if not ns.resolved]
        if not pending:
            return 0
        ranks = np.array([ns.rank for ns in pending], dtype=float)
        if np.all(np.isnan(ranks)):
            logger.debug("Round %d: no valid rank among %d pending sets", self.round_, len(pending))
            self.history_.append(0)
            return 0
        best = np.nanmax(ranks)
        winners = [ns for ns, r in zip(pending, ranks) if r == best]

        # all winners vote from the same snapshot, then commit together
        snapshot = self.pool_labels_.copy()
        for ns in winners:
            self.commit_log_.append(Commit(self.round_, ns.anchor, ns.vote, float(ns.rank),
                                           tuple(snapshot[ns.neighbors].tolist())))
            ns.commit(ns.vote)
        for ns in winners:
            self.pool_labels_[ns.anchor] = ns.label
            self._dirty.update(self._dependents.get(ns.anchor, ()))

        self.history_.append(len(winners))
        logger.debug("Round %d: committed %d label(s) at rank %.4f, %d pending",
                     self.round_, len(winners), best, len(pending) - len(winners))
        return len(winners)

    def is_done(self) -> bool:
        if all(ns.resolved for ns in self.sets_):
            return True
        if not any(ns.updated for ns in self.sets_):
            unresolved = sum(1 for ns in self.sets_ if not ns.resolved)
            raise ConvergenceError(f"Couldn't update any label in round {self.round_}, {unresolved} unresolved")
        return False

    # ---- results ----

    def test_labels(self) -> np.ndarray:
        return np.array([ns.label for ns in self.sets_], dtype=np.int64)

    def __getstate__(self):
        state = self.__dict__.copy()
        state["_context"] = None
        return state
