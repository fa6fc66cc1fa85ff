# flipping.py
# ------------------------------------------------------------
# Restartable collective classification by label flipping: guess test
# labels, train a base classifier on train ∪ test, then re-draw the test
# labels from its predictions. The controller keeps the best restart.

from __future__ import annotations

import numpy as np
from sklearn.base import clone
from sklearn.ensemble import RandomForestClassifier

from .algorithm import CollectiveAlgorithm
from .config import SETTINGS
from .dataset import Capabilities, Dataset
from .distance import FeatureSpace
from .exceptions import ConfigurationError


class SimpleFlipper:
    """Draw every label from the predicted probability of class 0."""

    def flip(self, proba, labels, rng):
        r = rng.random(len(labels))
        return np.where(r < proba[:, 0], 0, 1)


class TriangleFlipper:
    """
    Keep the predicted label unless a random draw falls below
    max(5 / n, 1 - 2 * (p - 0.5)); confident predictions rarely flip.
    """

    def flip(self, proba, labels, rng):
        n = len(labels)
        if n == 0:
            return labels.copy()
        predicted = proba.argmax(axis=1)
        p = proba[np.arange(n), predicted]
        threshold = np.maximum(5.0 / n, 1.0 - 2.0 * (p - 0.5))
        flip = rng.random(n) < threshold
        return np.where(flip, 1 - predicted, predicted)


class ConfidentFlipper:
    """
    Redraw a label only when the predicted probability of class 0 moved by
    at least ``delta`` since the previous call; otherwise keep it.
    """

    def __init__(self, delta: float = 0.75):
        self.delta = delta
        self.last_ = None

    def reset(self):
        self.last_ = None

    def flip(self, proba, labels, rng):
        p0 = proba[:, 0]
        last = self.last_ if self.last_ is not None and len(self.last_) == len(p0) else np.zeros(len(p0))
        r = rng.random(len(labels))
        redrawn = np.where(r < p0, 0, 1)
        self.last_ = p0.copy()
        return np.where(np.abs(p0 - last) >= self.delta, redrawn, labels)


FLIPPERS = {
    "simple": SimpleFlipper,
    "triangle": TriangleFlipper,
    "confident": ConfidentFlipper,
}

# statistic used to rank models, and whether higher is better
COMPARISONS = {
    "rms": ("rms_", False),
    "rms_train": ("rms_train_", False),
    "rms_test": ("rms_test_", False),
    "acc_train": ("acc_train_", True),
}


def make_flipper(name: str):
    if name not in FLIPPERS:
        raise ConfigurationError(f"Unknown flipper: {name}, choose from {sorted(FLIPPERS)}")
    return FLIPPERS[name]()


class LabelFlipping(CollectiveAlgorithm):
    """
    Wraps any scikit-learn classifier with ``predict_proba``.

    ``comparison`` picks the statistic ``score()`` is built from (see
    ``COMPARISONS``): an RMS is negated so that lower errors win, training
    accuracy is used as is. ``is_done()`` never stops early; the number of
    steps per restart is set by the controller.
    """

    restartable = True
    capabilities = Capabilities(binary_class=True)

    def __init__(self, estimator=None, flipper=SETTINGS["flipper"], comparison=SETTINGS["comparison"]):
        self.estimator = estimator
        self.flipper = flipper
        self.comparison = comparison
        self.model_ = None
        self._context = None

    def initialize(self, context, train: Dataset, test: Dataset):
        if self.comparison not in COMPARISONS:
            raise ConfigurationError(f"Unknown comparison: {self.comparison}, choose from {sorted(COMPARISONS)}")
        self._context = context
        self.flipper_ = make_flipper(self.flipper) if isinstance(self.flipper, str) else self.flipper
        self.space_ = FeatureSpace(train.schema).fit(train.append(test))
        self._X_train = self.space_.transform(train)
        self._X_test = self.space_.transform(test)
        self._y_train = train.class_codes()
        self.n_classes_ = train.num_classes
        self.labels_ = np.full(len(test), -1, dtype=np.int64)
        self.model_ = None
        self.flipped_ = 0.0
        self.iteration_ = 0

    def _base_estimator(self):
        if self.estimator is None:
            return RandomForestClassifier(n_estimators=50, random_state=self._context.seed)
        model = clone(self.estimator)
        params = model.get_params()
        if "random_state" in params and params["random_state"] is None:
            model.set_params(random_state=self._context.seed)
        return model

    def _proba(self, X) -> np.ndarray:
        out = np.zeros((len(X), self.n_classes_))
        if len(X):
            out[:, self.model_.classes_] = self.model_.predict_proba(X)
        return out

    # ---- restart hooks ----

    def initialize_labels(self):
        prior = float(np.mean(self._y_train == 0)) if len(self._y_train) else 0.5
        r = self._context.rng.random(len(self.labels_))
        self.labels_ = np.where(r < prior, 0, 1).astype(np.int64)
        self.flipped_ = 0.0
        self.iteration_ = 0
        if hasattr(self.flipper_, "reset"):
            self.flipper_.reset()

    def flip_labels(self):
        proba = self._proba(self._X_test)
        new = np.asarray(self.flipper_.flip(proba, self.labels_, self._context.rng), dtype=np.int64)
        self.flipped_ = float(np.mean(new != self.labels_)) if len(new) else 0.0
        self.labels_ = new
        self._context.measures["measureFlippedLabels"] = self.flipped_

    # ---- iteration ----

    def step(self):
        self._context.check_interrupt()
        X = np.vstack([self._X_train, self._X_test])
        y = np.concatenate([self._y_train, self.labels_])
        self.model_ = self._base_estimator().fit(X, y)
        self.iteration_ += 1

        self._statistics()
        self._context.log("Iteration %d: RMS %.4f, RMS train %.4f, RMS test %.4f, accuracy train %.4f",
                          self.iteration_, self.rms_, self.rms_train_, self.rms_test_, self.acc_train_)

    def _statistics(self):
        # train: probability given to the wrong class; test: the smaller probability
        train_proba = self._proba(self._X_train)
        n_train = len(self._y_train)
        wrong = train_proba[np.arange(n_train), 1 - self._y_train] if n_train else np.zeros(0)
        unsure = self._proba(self._X_test).min(axis=1) if len(self.labels_) else np.zeros(0)

        sq_train, sq_test = float(np.sum(wrong ** 2)), float(np.sum(unsure ** 2))
        n_all = wrong.size + unsure.size
        self.rms_ = float(np.sqrt((sq_train + sq_test) / n_all)) if n_all else 0.0
        self.rms_train_ = float(np.sqrt(sq_train / wrong.size)) if wrong.size else 0.0
        self.rms_test_ = float(np.sqrt(sq_test / unsure.size)) if unsure.size else 0.0
        self.acc_train_ = float(np.mean(train_proba.argmax(axis=1) == self._y_train)) if n_train else 1.0

    def is_done(self) -> bool:
        return False

    def score(self) -> float:
        attribute, higher_is_better = COMPARISONS[self.comparison]
        value = getattr(self, attribute)
        return value if higher_is_better else -value

    def transduction(self) -> np.ndarray:
        return self.labels_.copy()

    def distributions(self, dataset: Dataset) -> np.ndarray:
        return self._proba(self.space_.transform(dataset))

    def summary(self) -> str:
        name = type(self.estimator).__name__ if self.estimator is not None else "RandomForestClassifier"
        return (f"Base classifier.......: {name}\n"
                f"Flipper...............: {type(self.flipper_).__name__}\n"
                f"Comparison............: {self.comparison}\n"
                f"RMS...................: {self.rms_:.4f}\n"
                f"RMS train.............: {self.rms_train_:.4f}\n"
                f"RMS test..............: {self.rms_test_:.4f}\n"
                f"Accuracy train........: {self.acc_train_:.4f}\n")
