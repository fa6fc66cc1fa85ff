# config.py
# ------------------------------------------------------------
# Default parameters and the per-build context object.
"""
Central parameter defaults for the collective classifiers.

The estimators use ``SETTINGS`` for their keyword defaults, so changing a
value here changes the default of every classifier that reads it.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field

import numpy as np

from .clock import Clock
from .exceptions import BuildInterrupted, ConfigurationError
from .logging_setups import get_logger

logger = get_logger(__name__)

SETTINGS = {
    # --------------------------------------------------
    #  SPLIT (only used when no test set is given)
    # --------------------------------------------------
    "folds"        : 0,        # <2 -> no split, test = copy of train
    "invert_folds" : False,    # fold 1 becomes the test part

    # --------------------------------------------------
    #  OUTPUT / DIAGNOSTICS
    # --------------------------------------------------
    "verbose"      : False,
    "use_insight"  : False,    # keep original test labels for statistics

    # --------------------------------------------------
    #  k-NN propagation
    # --------------------------------------------------
    "k"                     : None,   # None -> determined by cross-validation
    "max_k"                 : 10,
    "cv_folds"              : 10,
    "use_exhaustive_search" : False,  # kd-tree otherwise
    "batch_size"            : 256,    # rows per cdist block

    # --------------------------------------------------
    #  RESTARTS (label flipping)
    # --------------------------------------------------
    "num_restarts"   : 10,
    "num_iterations" : 10,
    "flipper"        : "triangle",
    "comparison"     : "rms_train",  # rms | rms_train | rms_test | acc_train

    "seed" : 1,
}


def _check_int(params, name, minimum, allow_none=False):
    value = params.get(name)
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ConfigurationError(f"'{name}' must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"'{name}' must be >= {minimum}, got {value}")


def check_settings(params: dict) -> dict:
    """Validate a parameter dict; unknown keys are passed through unchecked."""
    if "folds" in params:
        _check_int(params, "folds", 0)
    if "k" in params:
        _check_int(params, "k", 1, allow_none=True)
    for name in ("max_k", "cv_folds", "batch_size", "num_restarts", "num_iterations"):
        if name in params:
            _check_int(params, name, 1)
    if "seed" in params:
        _check_int(params, "seed", 0, allow_none=True)
    return params


@dataclass
class BuildContext:
    """State shared by the controller and the algorithm during one build."""

    verbose: bool = False
    seed: int | None = 1
    interrupt: threading.Event | None = None
    insight_labels: np.ndarray | None = None
    measures: dict = field(default_factory=dict)
    timings: dict = field(default_factory=dict)
    rng: np.random.Generator = field(init=False, repr=False)

    def __post_init__(self):
        self.rng = np.random.default_rng(self.seed)

    def log(self, msg, *args):
        logger.log(logging.INFO if self.verbose else logging.DEBUG, msg, *args)

    def check_interrupt(self):
        if self.interrupt is not None and self.interrupt.is_set():
            raise BuildInterrupted("Build interrupted")

    @contextmanager
    def timed(self, label):
        clock = Clock().start()
        try:
            yield clock
        finally:
            clock.stop()
            self.timings[label] = clock.elapsed
            self.log("%s: %s", label, clock)
