import numpy as np
import pandas as pd
import pytest

from collective import Capabilities, CapabilityError, ConfigurationError, Dataset
from collective.dataset import MISSING_KEY, NOMINAL, NUMERIC


class TestFromArrays:

    def test_minus_one_marks_missing_class(self):
        ds = Dataset.from_arrays([[0.0], [1.0], [2.0]], [0, -1, 1])
        assert ds.class_codes().tolist() == [0, -1, 1]
        assert ds.has_missing_class().tolist() == [False, True, False]

    def test_class_is_last_attribute(self):
        ds = Dataset.from_arrays(np.zeros((4, 3)), [0, 1, 0, 1])
        assert ds.class_index == 3
        assert ds.feature_names == ["x0", "x1", "x2"]
        assert ds.schema.class_attribute.kind == NOMINAL

    def test_fixed_class_values(self):
        ds = Dataset.from_arrays(np.zeros((2, 1)), None, class_values=["a", "b"])
        assert ds.num_classes == 2
        assert ds.class_codes().tolist() == [-1, -1]

    def test_shape_mismatch(self):
        with pytest.raises(ConfigurationError):
            Dataset.from_arrays(np.zeros((3, 2)), [0, 1])


class TestSchema:

    def test_object_columns_become_nominal(self):
        ds = Dataset(pd.DataFrame({"c": ["x", "y", "x"], "v": [1.0, 2.0, 3.0], "y": ["a", "b", "a"]}))
        kinds = [a.kind for a in ds.schema.attributes]
        assert kinds == [NOMINAL, NUMERIC, NOMINAL]

    def test_equal_headers(self, blobs):
        other = blobs.subset([0, 1, 2])
        assert blobs.schema.equal_headers(other.schema)

    def test_different_headers(self, blobs):
        frame = blobs.frame.copy()
        frame.insert(0, "extra", 1.0)
        other = Dataset(frame, class_index=3)
        assert not blobs.schema.equal_headers(other.schema)
        assert blobs.schema.difference(other.schema)

    def test_default_class_index(self):
        ds = Dataset(pd.DataFrame({"a": [1.0], "b": ["x"]}))
        assert ds.class_index is None
        assert ds.ensure_class_index() == 1


class TestDerived:

    def test_with_class_missing_does_not_touch_original(self, blobs):
        before = blobs.class_codes().copy()
        hidden = blobs.with_class_missing()
        assert (hidden.class_codes() == -1).all()
        assert (blobs.class_codes() == before).all()

    def test_without_missing_class(self):
        ds = Dataset.from_arrays([[0.0], [1.0], [2.0]], [0, -1, 1])
        assert len(ds.without_missing_class()) == 2

    def test_append_keeps_categories(self, blobs):
        joined = blobs.subset([0]).append(blobs.subset([99]))
        assert joined.schema.equal_headers(blobs.schema)
        assert joined.class_codes().tolist() == [0, 1]


class TestKeys:

    def test_missing_value_marker(self):
        ds = Dataset.from_arrays([[np.nan, 1.0]], [0])
        assert ds.feature_keys()[0] == (MISSING_KEY, (1, 1.0))

    def test_key_ignores_class(self, blobs):
        hidden = blobs.with_class_missing()
        assert blobs.feature_keys() == hidden.feature_keys()
        assert blobs.key_for(blobs.row(5)) == blobs.feature_keys()[5]


class TestCapabilities:

    def test_multiclass_rejected(self):
        ds = Dataset.from_arrays(np.zeros((3, 1)), [0, 1, 2])
        with pytest.raises(CapabilityError):
            Capabilities().check(ds.schema)

    def test_numeric_class_rejected(self):
        ds = Dataset(pd.DataFrame({"a": [1.0, 2.0], "y": [0.5, 1.5]}), class_index=1)
        with pytest.raises(CapabilityError):
            Capabilities().check(ds.schema)

    def test_binary_nominal_accepted(self, mixed):
        Capabilities().check(mixed.schema)
