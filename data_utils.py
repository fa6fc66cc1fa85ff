# data_utils.py
# ------------------------------------------------------------
# Small binary datasets for the experiments, returned as collective Datasets.

import numpy as np
import pandas as pd
from sklearn.datasets import load_breast_cancer, make_moons
from sklearn.model_selection import train_test_split

from collective import Dataset


def load_moons_data(n_samples=300, noise=0.2, random_state=42):
    X, y = make_moons(n_samples=n_samples, noise=noise, random_state=random_state)
    return Dataset.from_arrays(X, y, feature_names=["x0", "x1"], name="Moons")


def load_breast_cancer_data():
    ds = load_breast_cancer()
    return Dataset.from_arrays(ds.data, ds.target, feature_names=list(ds.feature_names), name="BreastCancer")


def load_mixed_data(n_samples=200, random_state=42):
    """Two numeric and one nominal attribute, some values missing."""
    rng = np.random.default_rng(random_state)
    y = rng.integers(0, 2, n_samples)
    frame = pd.DataFrame({
        "a": rng.normal(y * 2.0, 1.0),
        "b": rng.normal(-y, 1.0),
        "color": pd.Categorical(np.where(rng.random(n_samples) < 0.7 + 0.2 * y, "red", "blue"),
                                categories=["blue", "red"]),
    })
    frame.loc[rng.random(n_samples) < 0.05, "a"] = np.nan
    frame["class"] = pd.Categorical(np.where(y == 1, "pos", "neg"), categories=["neg", "pos"])
    return Dataset(frame, class_index=3, name="Mixed")


def label_split(dataset, frac, seed=42):
    """Stratified split into a labeled part (``frac``) and an unlabeled part."""
    idx_lab, idx_unlab = train_test_split(
        np.arange(len(dataset)), train_size=frac,
        stratify=dataset.class_codes(), random_state=seed)
    return dataset.subset(np.sort(idx_lab)), dataset.subset(np.sort(idx_unlab))
