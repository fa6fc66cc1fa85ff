# evaluation.py
# ------------------------------------------------------------
# Thin evaluator: build on (train, test), score against the true labels,
# cross-validate by using each fold as the test set.

from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.base import clone
from sklearn.metrics import accuracy_score, confusion_matrix, roc_auc_score
from sklearn.model_selection import StratifiedKFold

from .dataset import Dataset
from .logging_setups import get_logger

logger = get_logger(__name__)


def train(model, train_set: Dataset, test_set: Dataset):
    return model.build(train_set, test_set)


def score(model, labeled_set: Dataset) -> dict:
    """Metrics of ``model`` on ``labeled_set`` (rows with a missing class are ignored)."""
    labeled_set.ensure_class_index()
    y = labeled_set.class_codes()
    dist = model.distributions(labeled_set)
    known = y >= 0
    y, dist = y[known], dist[known]
    pred = dist.argmax(axis=1)

    n_classes = dist.shape[1]
    if n_classes == 2 and len(np.unique(y)) == 2:
        auc = roc_auc_score(y, dist[:, 1])
    else:
        auc = float("nan")
    acc = accuracy_score(y, pred) if len(y) else float("nan")
    return {
        "n": int(len(y)),
        "accuracy": float(acc),
        "error_rate": float(1.0 - acc),
        "auc": float(auc),
        "confusion": confusion_matrix(y, pred, labels=list(range(n_classes))),
    }


def cross_validate(model, dataset: Dataset, folds: int = 10, seed: int | None = 1) -> list:
    """
    Each stratified fold is the (unlabeled) test set once, the other folds
    are the training set. Returns one ``score()`` dict per fold.
    """
    dataset.ensure_class_index()
    dataset = dataset.without_missing_class()
    y = dataset.class_codes()
    skf = StratifiedKFold(n_splits=folds, shuffle=True, random_state=seed)
    results = []
    for fold, (tr, te) in enumerate(skf.split(np.zeros((len(y), 1)), y)):
        fold_model = clone(model)
        test_set = dataset.subset(te)
        train(fold_model, dataset.subset(tr), test_set)
        result = score(fold_model, test_set)
        result["fold"] = fold
        logger.debug("Fold %d: accuracy %.4f", fold, result["accuracy"])
        results.append(result)
    return results


def summarize(results: list) -> pd.DataFrame:
    frame = pd.DataFrame([{k: v for k, v in r.items() if k != "confusion"} for r in results])
    return frame[["accuracy", "error_rate", "auc"]].agg(["mean", "std"])
