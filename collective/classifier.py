# classifier.py
# ------------------------------------------------------------
# Model facade: validation, splitting, lazy building, predictions and
# measures, with a scikit-learn compatible fit / predict surface.

from __future__ import annotations

import copy
import threading

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.exceptions import NotFittedError

from .clock import Clock
from .config import SETTINGS, BuildContext, check_settings
from .controller import BuildState, IterationController
from .dataset import Dataset
from .exceptions import ConfigurationError
from .flipping import LabelFlipping
from .knn import NeighborPropagation
from .logging_setups import get_logger
from .splitter import Splitter

logger = get_logger(__name__)


class CollectiveClassifier(BaseEstimator, ClassifierMixin):
    """
    Transductive classifier driving a collective algorithm.

    Two ways to build:

    - ``build(train, test)``: validates both sets and builds right away.
    - ``build_deferred(train)``: only validates and stores ``train``. The
      first prediction builds the model, on ``set_test_set()`` data if
      given, otherwise on a split of the training set (kept transient).

    ``fit(X, y)`` with ``y == -1`` for unlabeled rows is the scikit-learn
    shortcut for ``build``.
    """

    def __init__(self, algorithm=None, folds=SETTINGS["folds"], invert_folds=SETTINGS["invert_folds"],
                 verbose=SETTINGS["verbose"], use_insight=SETTINGS["use_insight"],
                 num_restarts=SETTINGS["num_restarts"], num_iterations=SETTINGS["num_iterations"],
                 seed=SETTINGS["seed"]):
        self.algorithm = algorithm
        self.folds = folds
        self.invert_folds = invert_folds
        self.verbose = verbose
        self.use_insight = use_insight
        self.num_restarts = num_restarts
        self.num_iterations = num_iterations
        self.seed = seed

    # ---- hooks for subclasses ----

    def _make_algorithm(self):
        if self.algorithm is None:
            raise ConfigurationError("No algorithm given")
        return copy.deepcopy(self.algorithm)

    def _restart_budget(self):
        return self.num_restarts, self.num_iterations

    def _check_params(self):
        restarts, iterations = self._restart_budget()
        check_settings({"folds": self.folds, "seed": self.seed,
                        "num_restarts": restarts, "num_iterations": iterations or 1})

    # ---- state ----

    def _interrupt_event(self):
        event = self.__dict__.get("_interrupt")
        if event is None:
            event = threading.Event()
            self._interrupt = event
        return event

    def interrupt(self):
        """Stop a running build after the current round."""
        self._interrupt_event().set()

    def reset(self):
        for name in ("algorithm_", "controller_", "measures_", "timings_", "test_set_",
                     "_insight_labels", "transient_"):
            self.__dict__.pop(name, None)
        self.built_ = False
        return self

    @property
    def state(self) -> BuildState:
        controller = self.__dict__.get("controller_")
        return controller.state if controller is not None else BuildState.FRESH

    @property
    def last_restart(self) -> int:
        return self.controller_.last_restart

    @property
    def last_iteration(self) -> int:
        return self.controller_.last_iteration

    @property
    def improved(self) -> bool:
        return self.controller_.improved

    # ---- validation ----

    def _check_train(self, train: Dataset, algorithm) -> Dataset:
        train.ensure_class_index()
        algorithm.capabilities.check(train.schema)
        return train.without_missing_class()

    def _check_data(self, train: Dataset, test: Dataset, algorithm):
        train.ensure_class_index()
        if test.class_index is None:
            test.set_class_index(train.class_index)
        if not train.schema.equal_headers(test.schema):
            raise ConfigurationError(
                f"Training and test set not compatible: {train.schema.difference(test.schema)}")
        train = self._check_train(train, algorithm)
        hidden = test.with_class_missing()
        insight = test.class_codes() if self.use_insight else None
        return train, hidden, insight

    # ---- building ----

    def build(self, train: Dataset, test: Dataset) -> "CollectiveClassifier":
        self._check_params()
        algorithm = self._make_algorithm()
        train, hidden, insight = self._check_data(train, test, algorithm)
        self.train_set_ = train
        self.test_set_ = test.copy()
        self._insight_labels = insight
        self.transient_ = False
        self._build(algorithm, train, hidden, insight)
        return self

    def build_deferred(self, train: Dataset) -> "CollectiveClassifier":
        self._check_params()
        self.reset()
        self.train_set_ = self._check_train(train, self._make_algorithm())
        return self

    def set_test_set(self, test: Dataset) -> "CollectiveClassifier":
        self.test_set_ = test.copy()
        self.built_ = False
        return self

    def _build(self, algorithm, train: Dataset, hidden: Dataset, insight):
        self.built_ = False
        event = self._interrupt_event()
        event.clear()
        context = BuildContext(verbose=self.verbose, seed=self.seed, interrupt=event, insight_labels=insight)
        restarts, iterations = self._restart_budget()
        self.controller_ = IterationController(restarts, iterations)

        clock = Clock().start()
        context.log("Building %s on %d train / %d test instances", type(self).__name__, len(train), len(hidden))
        algorithm = self.controller_.run(algorithm, context, train, hidden)
        clock.stop()

        context.measures["measureBuildTime"] = clock.elapsed
        if insight is not None:
            known = insight >= 0
            predicted = algorithm.transduction()
            context.measures["measureInsightAccuracy"] = \
                float(np.mean(predicted[known] == insight[known])) if known.any() else float("nan")

        self.algorithm_ = algorithm
        self.measures_ = dict(context.measures)
        self.timings_ = dict(context.timings)
        self.classes_ = np.asarray(train.schema.class_attribute.values)
        self.built_ = True

    def _ensure_built(self):
        if self.__dict__.get("built_", False):
            return
        train = self.__dict__.get("train_set_")
        if train is None:
            raise NotFittedError(f"This {type(self).__name__} instance has not been given any training data yet")
        test = self.__dict__.get("test_set_")
        if test is not None:
            self.build(train, test)
            return
        logger.info("No test set given, splitting the training set (folds=%d, invert=%s)",
                    self.folds, self.invert_folds)
        split_train, split_test = Splitter(train, self.folds, self.invert_folds).split()
        algorithm = self._make_algorithm()
        split_train, hidden, insight = self._check_data(split_train, split_test, algorithm)
        self._insight_labels = insight
        self._build(algorithm, split_train, hidden, insight)
        self.transient_ = True

    # ---- predictions ----

    def distributions(self, dataset: Dataset) -> np.ndarray:
        self._ensure_built()
        if dataset.class_index is None:
            dataset = Dataset(dataset.frame, self.train_set_.class_index, dataset.name)
        return self.algorithm_.distributions(dataset)

    def distribution_for_instance(self, instance, dataset: Dataset | None = None) -> np.ndarray:
        """Distribution of a single row; ``dataset`` gives the schema (default: training set)."""
        self._ensure_built()
        reference = dataset if dataset is not None else self.train_set_
        row = {c: instance.get(c, np.nan) for c in reference.frame.columns}
        frame = pd.DataFrame([row], columns=reference.frame.columns).astype(reference.frame.dtypes.to_dict())
        return self.distributions(Dataset(frame, reference.class_index))[0]

    def classify(self, dataset: Dataset) -> np.ndarray:
        return self.classes_[self.distributions(dataset).argmax(axis=1)]

    def transduction(self) -> np.ndarray:
        """Class values inferred for the stored test set."""
        self._ensure_built()
        return self.classes_[self.algorithm_.transduction()]

    # ---- scikit-learn surface ----

    def fit(self, X, y):
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)
        dataset = Dataset.from_arrays(X, y)
        unlabeled = dataset.has_missing_class()
        self.n_features_in_ = X.shape[1]
        self._feature_names = dataset.feature_names
        if not unlabeled.any():
            self.build_deferred(dataset)
            self._ensure_built()
        else:
            train = dataset.subset(np.flatnonzero(~unlabeled))
            test = dataset.subset(np.flatnonzero(unlabeled))
            self.build(train, test)

        self.label_distributions_ = np.zeros((len(dataset), len(self.classes_)))
        codes = dataset.class_codes()
        labeled = np.flatnonzero(codes >= 0)
        self.label_distributions_[labeled, codes[labeled]] = 1.0
        if unlabeled.any():
            self.label_distributions_[np.flatnonzero(unlabeled)] = \
                np.eye(len(self.classes_))[self.algorithm_.transduction()]
        self.transduction_ = self.classes_[self.label_distributions_.argmax(axis=1)]
        return self

    def _as_dataset(self, X) -> Dataset:
        if self.__dict__.get("_feature_names") is None:
            raise NotFittedError(f"This {type(self).__name__} instance is not fitted yet")
        X = np.asarray(X, dtype=float)
        return Dataset.from_arrays(X, None, class_values=self.classes_, feature_names=self._feature_names)

    def predict_proba(self, X) -> np.ndarray:
        return self.distributions(self._as_dataset(X))

    def predict(self, X) -> np.ndarray:
        return self.classes_[self.predict_proba(X).argmax(axis=1)]

    # ---- measures ----

    def enumerate_measures(self) -> list:
        return sorted(self.__dict__.get("measures_", {}))

    def get_measure(self, name: str) -> float:
        measures = self.__dict__.get("measures_", {})
        if name not in measures:
            raise ValueError(f"{name} not supported ({type(self).__name__})")
        return measures[name]

    # ---- persistence / output ----

    def __getstate__(self):
        state = dict(super().__getstate__())
        state.pop("_interrupt", None)
        return state

    def __str__(self):
        title = type(self).__name__
        lines = [title, "-" * len(title), ""]
        if not self.__dict__.get("built_", False):
            if self.__dict__.get("train_set_") is None:
                lines.append("No model built yet.")
            else:
                lines.append("No test set provided so far, model is built on first prediction.")
            return "\n".join(lines) + "\n"
        lines.append(self.algorithm_.summary().rstrip("\n"))
        restarts, _ = self._restart_budget()
        if restarts > 1:
            lines.append(f"Last restart..........: {self.last_restart + 1}")
            lines.append(f"Last iteration........: {self.last_iteration + 1}")
            lines.append(f"Improved..............: {self.improved}")
        if self.transient_:
            lines.append("Model built on a split of the training set.")
        return "\n".join(lines) + "\n"


class CollectiveKNN(CollectiveClassifier):
    """Collective k-NN: label propagation over a train ∪ test neighbor graph."""

    def __init__(self, k=SETTINGS["k"], max_k=SETTINGS["max_k"], cv_folds=SETTINGS["cv_folds"],
                 use_exhaustive_search=SETTINGS["use_exhaustive_search"], batch_size=SETTINGS["batch_size"],
                 folds=SETTINGS["folds"], invert_folds=SETTINGS["invert_folds"], verbose=SETTINGS["verbose"],
                 use_insight=SETTINGS["use_insight"], seed=SETTINGS["seed"]):
        self.k = k
        self.max_k = max_k
        self.cv_folds = cv_folds
        self.use_exhaustive_search = use_exhaustive_search
        self.batch_size = batch_size
        self.folds = folds
        self.invert_folds = invert_folds
        self.verbose = verbose
        self.use_insight = use_insight
        self.seed = seed

    def _make_algorithm(self):
        return NeighborPropagation(self.k, self.max_k, self.cv_folds, self.use_exhaustive_search, self.batch_size)

    def _restart_budget(self):
        return 1, None

    def _check_params(self):
        super()._check_params()
        check_settings({"k": self.k, "max_k": self.max_k, "cv_folds": self.cv_folds,
                        "batch_size": self.batch_size})


class FlipCollective(CollectiveClassifier):
    """Restartable label flipping around a scikit-learn base classifier."""

    def __init__(self, estimator=None, flipper=SETTINGS["flipper"], comparison=SETTINGS["comparison"],
                 num_restarts=SETTINGS["num_restarts"], num_iterations=SETTINGS["num_iterations"],
                 folds=SETTINGS["folds"], invert_folds=SETTINGS["invert_folds"], verbose=SETTINGS["verbose"],
                 use_insight=SETTINGS["use_insight"], seed=SETTINGS["seed"]):
        self.estimator = estimator
        self.flipper = flipper
        self.comparison = comparison
        self.num_restarts = num_restarts
        self.num_iterations = num_iterations
        self.folds = folds
        self.invert_folds = invert_folds
        self.verbose = verbose
        self.use_insight = use_insight
        self.seed = seed

    def _make_algorithm(self):
        return LabelFlipping(self.estimator, self.flipper, self.comparison)
