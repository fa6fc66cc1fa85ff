import numpy as np
import pandas as pd
import pytest

from collective import Dataset, Splitter


def make_blobs(n_per_class=50, seed=0):
    rng = np.random.default_rng(seed)
    X = np.vstack([rng.normal(-3.0, 1.0, (n_per_class, 2)),
                   rng.normal(3.0, 1.0, (n_per_class, 2))])
    y = np.array([0] * n_per_class + [1] * n_per_class)
    return Dataset.from_arrays(X, y, name="blobs")


@pytest.fixture
def blobs():
    return make_blobs()


@pytest.fixture
def train_test(blobs):
    return Splitter(blobs, folds=5).split()


@pytest.fixture
def mixed():
    rng = np.random.default_rng(1)
    n = 60
    y = np.array([0, 1] * (n // 2))
    frame = pd.DataFrame({
        "a": rng.normal(y * 4.0, 0.5),
        "color": pd.Categorical(np.where(y == 1, "red", "blue"), categories=["blue", "red"]),
        "class": pd.Categorical(np.where(y == 1, "yes", "no"), categories=["no", "yes"]),
    })
    frame.loc[3, "a"] = np.nan
    return Dataset(frame, class_index=2, name="mixed")
