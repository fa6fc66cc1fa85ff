# distance.py
# ------------------------------------------------------------
# Maps instances into a numeric space where Euclidean distance is the
# instance distance: numeric attributes min-max scaled to [0, 1], nominal
# attributes one-hot encoded so two different values are at distance 1.

from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.impute import SimpleImputer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import FunctionTransformer, MinMaxScaler, OneHotEncoder

from .dataset import DATE, NOMINAL, NUMERIC, Dataset, Schema
from .exceptions import ConfigurationError

# one-hot rows differ in two positions -> sqrt(2) * scale == 1
NOMINAL_SCALE = 1.0 / np.sqrt(2.0)


def _scale_nominal(X):
    return np.asarray(X, dtype=np.float64) * NOMINAL_SCALE


class FeatureSpace:
    """
    Fit on a dataset (usually train ∪ test), then transform any dataset
    with the same schema into a dense float64 matrix.
    """

    def __init__(self, schema: Schema):
        self.schema = schema
        self.numeric_ = [a.name for a in schema.features if a.kind in (NUMERIC, DATE)]
        self.nominal_ = [a for a in schema.features if a.kind == NOMINAL]
        self.dates_ = [a.name for a in schema.features if a.kind == DATE]
        self.transformer_ = None

    def _frame(self, dataset: Dataset) -> pd.DataFrame:
        columns = {}
        for name in self.numeric_:
            s = dataset.frame[name]
            if name in self.dates_:
                s = pd.to_datetime(s)
                columns[name] = (s - pd.Timestamp(0)) / pd.Timedelta(seconds=1)
            else:
                columns[name] = s.astype(np.float64)
        for attr in self.nominal_:
            columns[attr.name] = dataset.frame[attr.name].astype(object).where(dataset.frame[attr.name].notna(), np.nan)
        return pd.DataFrame(columns, index=dataset.frame.index)

    def _build(self) -> ColumnTransformer:
        parts = []
        if self.numeric_:
            numeric = Pipeline([
                ("impute", SimpleImputer(strategy="mean", keep_empty_features=True)),
                ("scale", MinMaxScaler()),
            ])
            parts.append(("numeric", numeric, self.numeric_))
        if self.nominal_:
            nominal = Pipeline([
                ("impute", SimpleImputer(strategy="most_frequent", keep_empty_features=True)),
                ("onehot", OneHotEncoder(categories=[list(a.values) for a in self.nominal_],
                                         handle_unknown="ignore", sparse_output=False)),
                ("scale", FunctionTransformer(_scale_nominal)),
            ])
            parts.append(("nominal", nominal, [a.name for a in self.nominal_]))
        if not parts:
            raise ConfigurationError("No usable attributes to compute distances on")
        return ColumnTransformer(parts, sparse_threshold=0.0)

    def fit(self, dataset: Dataset) -> "FeatureSpace":
        self.transformer_ = self._build().fit(self._frame(dataset))
        return self

    def transform(self, dataset: Dataset) -> np.ndarray:
        if self.transformer_ is None:
            raise RuntimeError("FeatureSpace has not been fitted")
        return np.asarray(self.transformer_.transform(self._frame(dataset)), dtype=np.float64)

    def fit_transform(self, dataset: Dataset) -> np.ndarray:
        return self.fit(dataset).transform(dataset)
