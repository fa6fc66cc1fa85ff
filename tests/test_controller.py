import threading

import pytest

from collective import BuildInterrupted, BuildState, IterationController
from collective.algorithm import CollectiveAlgorithm
from collective.config import BuildContext


class CountingAlgorithm(CollectiveAlgorithm):
    """Done after ``rounds`` steps."""

    def __init__(self, rounds=3):
        self.rounds = rounds
        self.steps = 0

    def initialize(self, context, train, test):
        self._context = context

    def step(self):
        self._context.check_interrupt()
        self.steps += 1

    def is_done(self):
        return self.steps >= self.rounds


class ScriptedRestarts(CollectiveAlgorithm):
    """Restartable; scores[restart][iteration] is returned by score()."""

    restartable = True

    def __init__(self, scores):
        self.scores = scores
        self.restart = -1
        self.iteration = -1
        self.flips = 0

    def initialize(self, context, train, test):
        self._context = context

    def initialize_labels(self):
        self.restart += 1
        self.iteration = -1

    def flip_labels(self):
        self.flips += 1

    def step(self):
        self.iteration += 1

    def is_done(self):
        return False

    def score(self):
        return self.scores[self.restart][self.iteration]


class TestConvergence:

    def test_steps_until_done(self):
        controller = IterationController()
        algorithm = controller.run(CountingAlgorithm(3), BuildContext(), None, None)
        assert algorithm.steps == 3
        assert controller.state == BuildState.CONVERGED
        assert (controller.last_restart, controller.last_iteration) == (0, 2)
        assert not controller.improved

    def test_at_least_one_step(self):
        algorithm = IterationController().run(CountingAlgorithm(0), BuildContext(), None, None)
        assert algorithm.steps == 1

    def test_measures_recorded(self):
        context = BuildContext()
        IterationController().run(CountingAlgorithm(2), context, None, None)
        assert context.measures["measureLastIteration"] == 1.0


class TestRestarts:

    def test_best_snapshot_is_kept(self):
        scores = [[0.1, 0.2], [0.5, 0.3], [0.4, 0.4]]
        controller = IterationController(num_restarts=3, num_iterations=2)
        best = controller.run(ScriptedRestarts(scores), BuildContext(), None, None)
        assert (controller.last_restart, controller.last_iteration) == (1, 0)
        assert controller.improved
        assert (best.restart, best.iteration) == (1, 0)
        assert best._context is not None

    def test_per_restart_records(self):
        scores = [[0.1, 0.2], [0.5, 0.3], [0.4, 0.4]]
        controller = IterationController(num_restarts=3, num_iterations=2)
        controller.run(ScriptedRestarts(scores), BuildContext(), None, None)
        assert [r.best_iteration for r in controller.restarts] == [1, 0, 0]
        assert [r.iterations for r in controller.restarts] == [2, 2, 2]

    def test_no_improvement_after_first_restart(self):
        scores = [[0.9, 0.1], [0.5, 0.3]]
        controller = IterationController(num_restarts=2, num_iterations=2)
        controller.run(ScriptedRestarts(scores), BuildContext(), None, None)
        assert controller.last_restart == 0
        assert not controller.improved

    def test_flip_before_every_later_iteration(self):
        scores = [[0.0] * 4] * 2
        controller = IterationController(num_restarts=2, num_iterations=4)
        algorithm = ScriptedRestarts(scores)
        controller.run(algorithm, BuildContext(), None, None)
        assert algorithm.flips == 6


class TestFailures:

    def test_interrupted(self):
        context = BuildContext(interrupt=threading.Event())
        context.interrupt.set()
        controller = IterationController()
        with pytest.raises(BuildInterrupted):
            controller.run(CountingAlgorithm(3), context, None, None)
        assert controller.state == BuildState.ABORTED

    def test_error_marks_failed(self):
        class Broken(CountingAlgorithm):
            def step(self):
                raise RuntimeError("boom")

        controller = IterationController()
        with pytest.raises(RuntimeError):
            controller.run(Broken(), BuildContext(), None, None)
        assert controller.state == BuildState.FAILED
