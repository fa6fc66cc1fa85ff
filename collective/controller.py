# controller.py
# ------------------------------------------------------------
# Drives an algorithm through initialize / step / is_done, with optional
# restarts that keep the best scoring snapshot.

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum

from .exceptions import BuildInterrupted
from .logging_setups import get_logger

logger = get_logger(__name__)


class BuildState(str, Enum):
    FRESH = "fresh"
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    RESTARTING = "restarting"
    CONVERGED = "converged"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass
class RestartRecord:
    restart: int
    best_iteration: int = -1
    best_score: float | None = None
    iterations: int = 0


class IterationController:
    """
    Non-restartable algorithms step until ``is_done()``. Restartable ones
    run ``num_restarts`` restarts of at most ``num_iterations`` steps each
    and the best scoring snapshot (deep copy) is returned.
    """

    def __init__(self, num_restarts: int = 1, num_iterations: int | None = None):
        self.num_restarts = num_restarts
        self.num_iterations = num_iterations
        self.state = BuildState.FRESH
        self.restarts = []
        self.last_restart = -1
        self.last_iteration = -1
        self.improved = False

    def run(self, algorithm, context, train, test):
        self.state = BuildState.FRESH
        self.restarts = []
        try:
            algorithm.initialize(context, train, test)
            self.state = BuildState.INITIALIZED
            if algorithm.restartable:
                algorithm = self._run_restarts(algorithm, context)
            else:
                self._run_to_convergence(algorithm, context)
        except BuildInterrupted:
            self.state = BuildState.ABORTED
            raise
        except Exception:
            self.state = BuildState.FAILED
            raise
        self.state = BuildState.CONVERGED
        context.measures["measureLastRestart"] = float(self.last_restart)
        context.measures["measureLastIteration"] = float(self.last_iteration)
        return algorithm

    def _run_to_convergence(self, algorithm, context):
        self.state = BuildState.ITERATING
        record = RestartRecord(0)
        while True:
            context.log("Iteration %d", record.iterations + 1)
            algorithm.step()
            record.iterations += 1
            if algorithm.is_done():
                break
        record.best_iteration = record.iterations - 1
        self.restarts.append(record)
        self.last_restart, self.last_iteration = 0, record.best_iteration
        self.improved = False

    def _run_restarts(self, algorithm, context):
        best, best_score = None, None
        for r in range(self.num_restarts):
            self.state = BuildState.RESTARTING if r else BuildState.ITERATING
            context.log("Restart %d", r + 1)
            algorithm.initialize_labels()
            self.state = BuildState.ITERATING
            record = RestartRecord(r)
            for i in range(self.num_iterations or 1):
                if i:
                    algorithm.flip_labels()
                algorithm.step()
                record.iterations += 1
                score = algorithm.score()
                if record.best_score is None or score > record.best_score:
                    record.best_iteration, record.best_score = i, score
                if best_score is None or score > best_score:
                    best, best_score = copy.deepcopy(algorithm), score
                    self.last_restart, self.last_iteration = r, i
                if algorithm.is_done():
                    break
            self.restarts.append(record)
            logger.debug("Restart %d: best iteration %d, score %s", r, record.best_iteration, record.best_score)
        self.improved = self.last_restart > 0
        # the snapshot lost its context when it was copied
        best._context = context
        return best
