import threading

import numpy as np
import pytest

from collective import BuildInterrupted, ConvergenceError
from collective.config import BuildContext
from collective.neighbors import ExhaustiveSearch, KDTreeSearch
from collective.propagation import PropagationEngine
from collective.ranking import MarginRank

# 10 training points on a line, two classes, and 4 test points
TRAIN_X = np.array([0, 1, 2, 3, 4, 10, 11, 12, 13, 14], dtype=float)
TRAIN_Y = np.array([0, 0, 0, 0, 0, 1, 1, 1, 1, 1])
TEST_X = np.array([2.5, 6.25, 7.75, 11.5])


def line_engine(search=None, ranking=None, k=3, context=None, test_x=TEST_X):
    pool = np.concatenate([TRAIN_X, test_x])[:, None]
    engine = PropagationEngine(ranking or MarginRank(2, 0), search or ExhaustiveSearch())
    return engine.initialize(pool, TRAIN_Y, len(test_x), k, context)


def run(engine):
    while True:
        engine.step()
        if engine.is_done():
            return engine


class NaNRank:
    def evaluate(self, labels, distances):
        return float("nan"), 0


class CountingRank(MarginRank):
    def __init__(self):
        super().__init__(2, 0)
        self.calls = 0

    def evaluate(self, labels, distances):
        self.calls += 1
        return super().evaluate(labels, distances)


class TestLineScenario:

    def test_labels(self):
        engine = run(line_engine())
        assert engine.test_labels().tolist() == [0, 0, 1, 1]

    def test_batch_commit_rounds(self):
        engine = run(line_engine())
        assert engine.round_ == 2
        assert engine.history_ == [2, 2]
        first = {c.anchor for c in engine.commit_log_ if c.round == 1}
        assert first == {10, 13}

    def test_commit_follows_majority_at_commit_time(self):
        engine = run(line_engine())
        for commit in engine.commit_log_:
            labels = np.array(commit.neighbor_labels)
            counts = np.bincount(labels[labels >= 0], minlength=2)
            assert commit.label == counts.argmax()

    def test_batch_votes_use_one_snapshot(self):
        engine = run(line_engine())
        second = [c for c in engine.commit_log_ if c.round == 2]
        # 6.25 and 7.75 are neighbors of each other and commit in the same round
        assert all(-1 in c.neighbor_labels for c in second)

    def test_only_changed_sets_are_ranked_again(self):
        ranking = CountingRank()
        engine = line_engine(ranking=ranking, test_x=np.array([2.5, 5.5, 8.5, 11.5]))
        calls = []
        while True:
            before = ranking.calls
            engine.step()
            calls.append(ranking.calls - before)
            if engine.is_done():
                break
        # 5.5 sees 2.5, 8.5 sees 5.5; 11.5 is nobody's neighbor
        assert calls == [4, 1, 1]
        assert engine.history_ == [2, 1, 1]
        assert engine.test_labels().tolist() == [0, 0, 1, 1]

    def test_kdtree_gives_same_result(self):
        assert run(line_engine(KDTreeSearch())).test_labels().tolist() == [0, 0, 1, 1]

    def test_rounds_bounded_by_test_size(self):
        engine = run(line_engine(k=5))
        assert 1 <= engine.round_ <= len(TEST_X)

    def test_deterministic(self):
        a, b = run(line_engine()), run(line_engine())
        assert a.commit_log_ == b.commit_log_


class TestEdgeCases:

    def test_coincident_training_instance(self):
        pool = np.array([[0.0], [0.1], [0.2], [5.0], [5.0], [0.05]])
        engine = PropagationEngine(MarginRank(2, 0), ExhaustiveSearch())
        engine.initialize(pool, np.array([0, 0, 0, 1]), 2, 3)
        run(engine)
        assert engine.test_labels().tolist() == [1, 0]

    def test_no_progress_raises(self):
        engine = line_engine(ranking=NaNRank())
        engine.step()
        with pytest.raises(ConvergenceError):
            engine.is_done()

    def test_empty_test_set(self):
        engine = PropagationEngine(MarginRank(2, 0), ExhaustiveSearch())
        engine.initialize(TRAIN_X[:, None], TRAIN_Y, 0, 3)
        assert engine.step() == 0
        assert engine.is_done()

    def test_interrupt(self):
        context = BuildContext()
        context.interrupt = threading.Event()
        engine = line_engine(context=context)
        context.interrupt.set()
        with pytest.raises(BuildInterrupted):
            engine.step()
        assert engine.round_ == 0
