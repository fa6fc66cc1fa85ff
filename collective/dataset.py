# dataset.py
# ------------------------------------------------------------
# Tabular data container (pandas based), schema and capability checks.

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import pandas as pd
from pandas.api import types as ptypes

from .exceptions import CapabilityError, ConfigurationError

NUMERIC = "numeric"
NOMINAL = "nominal"
DATE = "date"
OTHER = "other"

# Key component for a missing value; never equal to a (1, value) pair.
MISSING_KEY = (0, None)


@dataclass(frozen=True)
class Attribute:
    name: str
    kind: str
    values: tuple = ()


@dataclass(frozen=True)
class Schema:
    attributes: tuple
    class_index: int | None

    @property
    def class_attribute(self) -> Attribute | None:
        if self.class_index is None:
            return None
        return self.attributes[self.class_index]

    @property
    def features(self) -> tuple:
        return tuple(a for i, a in enumerate(self.attributes) if i != self.class_index)

    def equal_headers(self, other: "Schema") -> bool:
        return self.attributes == other.attributes and self.class_index == other.class_index

    def difference(self, other: "Schema") -> str:
        """Human readable reason why two schemas are not equal ("" if equal)."""
        if len(self.attributes) != len(other.attributes):
            return f"attribute count differs: {len(self.attributes)} != {len(other.attributes)}"
        if self.class_index != other.class_index:
            return f"class index differs: {self.class_index} != {other.class_index}"
        for mine, theirs in zip(self.attributes, other.attributes):
            if mine != theirs:
                return f"attribute '{mine.name}' differs from '{theirs.name}'"
        return ""


def _attribute_for(name, series: pd.Series) -> Attribute:
    dtype = series.dtype
    if isinstance(dtype, pd.CategoricalDtype):
        return Attribute(str(name), NOMINAL, tuple(dtype.categories))
    if ptypes.is_datetime64_any_dtype(dtype):
        return Attribute(str(name), DATE)
    if ptypes.is_numeric_dtype(dtype) and not ptypes.is_complex_dtype(dtype):
        return Attribute(str(name), NUMERIC)
    return Attribute(str(name), OTHER)


def _key_value(value, kind):
    if value is None or (isinstance(value, float) and math.isnan(value)) or pd.isna(value):
        return MISSING_KEY
    if kind == NUMERIC:
        return (1, float(value))
    return (1, value)


class Dataset:
    """
    A set of instances sharing one schema.

    Object and bool columns become nominal (pandas categorical) on
    construction, all other dtypes are kept. The class attribute is given by
    position; ``None`` means "not set yet", ``ensure_class_index()`` falls
    back to the last column.
    """

    def __init__(self, frame: pd.DataFrame, class_index: int | None = None, name: str = "dataset"):
        frame = frame.copy()
        for col in frame.columns:
            s = frame[col]
            if isinstance(s.dtype, pd.CategoricalDtype):
                continue
            if ptypes.is_bool_dtype(s.dtype) or ptypes.is_object_dtype(s.dtype) or ptypes.is_string_dtype(s.dtype):
                frame[col] = s.astype("category")
        self.frame = frame.reset_index(drop=True)
        self.name = name
        self.class_index = None
        if class_index is not None:
            self.set_class_index(class_index)

    @classmethod
    def from_arrays(cls, X, y=None, class_values=None, feature_names=None,
                    missing_label=-1, name="dataset") -> "Dataset":
        """
        Build a dataset from a numeric feature matrix and a label vector.

        Entries of ``y`` equal to ``missing_label`` (or NaN) become missing
        class values. ``class_values`` fixes the class categories; by default
        they are the sorted distinct labels of ``y``.
        """
        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            raise ConfigurationError(f"X must be 2-dimensional, got shape {X.shape}")
        if feature_names is None:
            feature_names = [f"x{i}" for i in range(X.shape[1])]
        frame = pd.DataFrame(X, columns=list(feature_names))

        if y is None:
            y = np.full(X.shape[0], missing_label)
        y = np.asarray(y, dtype=object)
        if y.shape[0] != X.shape[0]:
            raise ConfigurationError(f"X has {X.shape[0]} rows but y has {y.shape[0]}")
        missing = pd.isna(y) | np.array([v == missing_label for v in y], dtype=bool)
        if class_values is None:
            class_values = sorted(set(y[~missing].tolist()))
        labels = pd.Categorical([None if m else v for v, m in zip(y.tolist(), missing)],
                                categories=list(class_values))
        frame["class"] = labels
        return cls(frame, class_index=frame.shape[1] - 1, name=name)

    # ---- schema ----

    def __len__(self):
        return len(self.frame)

    @property
    def schema(self) -> Schema:
        attrs = tuple(_attribute_for(c, self.frame[c]) for c in self.frame.columns)
        return Schema(attrs, self.class_index)

    @property
    def num_attributes(self) -> int:
        return self.frame.shape[1]

    def set_class_index(self, index: int):
        if not 0 <= index < self.num_attributes:
            raise ConfigurationError(f"Class index {index} out of range for {self.num_attributes} attributes")
        self.class_index = int(index)

    def ensure_class_index(self):
        if self.class_index is None:
            self.set_class_index(self.num_attributes - 1)
        return self.class_index

    @property
    def class_name(self):
        if self.class_index is None:
            raise ConfigurationError("No class attribute set")
        return self.frame.columns[self.class_index]

    @property
    def feature_names(self) -> list:
        return [c for i, c in enumerate(self.frame.columns) if i != self.class_index]

    @property
    def num_classes(self) -> int:
        return len(self.schema.class_attribute.values)

    # ---- class values ----

    def _class_series(self) -> pd.Series:
        s = self.frame[self.class_name]
        if not isinstance(s.dtype, pd.CategoricalDtype):
            raise CapabilityError(f"Class attribute '{self.class_name}' is not nominal")
        return s

    def class_codes(self) -> np.ndarray:
        """Class value positions, -1 for missing."""
        return self._class_series().cat.codes.to_numpy().astype(np.int64)

    def class_values_for(self, codes) -> np.ndarray:
        categories = self._class_series().cat.categories
        return np.asarray(categories)[np.asarray(codes, dtype=np.int64)]

    def has_missing_class(self) -> np.ndarray:
        return self.frame[self.class_name].isna().to_numpy()

    # ---- derived datasets ----

    def copy(self) -> "Dataset":
        return Dataset(self.frame, self.class_index, self.name)

    def subset(self, indices) -> "Dataset":
        return Dataset(self.frame.iloc[np.asarray(indices, dtype=np.int64)], self.class_index, self.name)

    def append(self, other: "Dataset") -> "Dataset":
        frame = pd.concat([self.frame, other.frame], ignore_index=True)
        return Dataset(frame, self.class_index, self.name)

    def with_class_codes(self, codes) -> "Dataset":
        out = self.copy()
        categories = self._class_series().cat.categories
        out.frame[self.class_name] = pd.Categorical.from_codes(np.asarray(codes, dtype=np.int64), categories=categories)
        return out

    def with_class_missing(self) -> "Dataset":
        return self.with_class_codes(np.full(len(self), -1, dtype=np.int64))

    def without_missing_class(self) -> "Dataset":
        keep = np.flatnonzero(~self.has_missing_class())
        return self.subset(keep)

    # ---- lookup keys ----

    def feature_keys(self) -> list:
        """One hashable key per row built from the non-class attribute values."""
        kinds = {a.name: a.kind for a in self.schema.attributes}
        columns = [[_key_value(v, kinds[str(c)]) for v in self.frame[c].tolist()] for c in self.feature_names]
        return [tuple(row) for row in zip(*columns)] if columns else [() for _ in range(len(self))]

    def key_for(self, instance) -> tuple:
        kinds = {a.name: a.kind for a in self.schema.attributes}
        return tuple(_key_value(instance[c], kinds[str(c)]) for c in self.feature_names)

    def row(self, i) -> pd.Series:
        return self.frame.iloc[i]

    def __repr__(self):
        return f"Dataset(name={self.name!r}, n={len(self)}, attributes={self.num_attributes}, class_index={self.class_index})"


@dataclass(frozen=True)
class Capabilities:
    """What attribute and class types an algorithm accepts."""

    attribute_kinds: frozenset = frozenset({NUMERIC, NOMINAL, DATE})
    class_kinds: frozenset = frozenset({NOMINAL})
    binary_class: bool = True

    def check(self, schema: Schema):
        for attr in schema.features:
            if attr.kind not in self.attribute_kinds:
                raise CapabilityError(f"Cannot handle {attr.kind} attribute '{attr.name}'")
        cls = schema.class_attribute
        if cls is None:
            raise CapabilityError("No class attribute set")
        if cls.kind not in self.class_kinds:
            raise CapabilityError(f"Cannot handle {cls.kind} class attribute '{cls.name}'")
        if self.binary_class and len(cls.values) != 2:
            raise CapabilityError(
                f"Cannot handle class attribute '{cls.name}' with {len(cls.values)} values (binary class required)")
