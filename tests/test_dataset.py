import numpy as np
import pandas as pd
import pytest

from id3chi import MISSING, Attribute, CapabilityError, Dataset, partition


def _mixed_dataset():
    X = np.array([["a", "x"], ["b", None], ["a", "y"], [None, "x"], ["c", "y"]], dtype=object)
    y = np.array(["p", "q", "p", "q", "p"])
    return Dataset.from_arrays(X, y, feature_names=["first", "second"])


def test_from_arrays_infers_sorted_values():
    data = _mixed_dataset()
    assert data.attribute("first").values == ("a", "b", "c")
    assert data.attribute("second").values == ("x", "y")
    assert data.class_attribute.values == ("p", "q")
    assert data.class_index == 2
    assert len(data) == 5
    assert data.num_classes == 2
    assert [a.name for a in data.enumerate_attributes()] == ["first", "second"]


def test_missing_values_are_encoded():
    data = _mixed_dataset()
    assert data.codes[1, 1] == MISSING
    assert data.codes[3, 0] == MISSING
    inst = data[3]
    assert inst.is_missing(data.attribute("first"))
    assert inst.label(data.attribute("second")) == "x"
    assert inst.class_value == 1


def test_partition_is_complete_and_disjoint():
    data = _mixed_dataset()
    att = data.attribute("first")
    buckets = partition(data, att)
    assert len(buckets) == att.num_values + 1
    assert sum(len(b) for b in buckets) == len(data)
    for j, bucket in enumerate(buckets[:-1]):
        assert np.all(bucket.column(att) == j)
    assert np.all(buckets[-1].column(att) == MISSING)
    # relative order is preserved
    assert buckets[0].codes[:, 1].tolist() == [0, 1]


def test_subsets_are_copies():
    data = _mixed_dataset()
    sub = data.without_missing(data.attribute("first"))
    sub.codes[0, 0] = 2
    assert data.codes[0, 0] == 0
    assert len(sub) == 4


def test_feature_names_length_mismatch():
    with pytest.raises(ValueError):
        Dataset.from_arrays([["a"], ["b"]], ["p", "q"], feature_names=["x", "y"])


def test_rows_mismatch():
    with pytest.raises(ValueError):
        Dataset.from_arrays([["a"], ["b"]], ["p"])


def test_numeric_attribute_is_rejected():
    data = Dataset.from_arrays(np.array([[1.5], [2.5]]), ["p", "q"])
    assert not data.attributes[0].nominal
    with pytest.raises(CapabilityError):
        data.check_capabilities()


def test_single_valued_attribute_is_rejected():
    data = Dataset.from_arrays([["a"], ["a"]], ["p", "q"])
    with pytest.raises(CapabilityError):
        data.check_capabilities()


def test_missing_class_is_rejected():
    data = Dataset.from_arrays([["a"], ["b"], ["a"]], ["p", None, "q"])
    with pytest.raises(CapabilityError):
        data.check_capabilities()
    assert len(data.without_missing_class()) == 2
    data.without_missing_class().check_capabilities()


def test_instance_encoding():
    data = _mixed_dataset()
    inst = data.instance(["b", "zzz"])
    assert inst.value(data.attribute("first")) == 1
    assert inst.is_missing(data.attribute("second"))
    assert inst.class_value == MISSING
    with pytest.raises(KeyError):
        data.instance(["b", "zzz"], strict=True)
    inst = data.instance({"second": "y"})
    assert inst.is_missing(data.attribute("first"))
    assert inst.value(data.attribute("second")) == 1
    with pytest.raises(ValueError):
        data.instance(["a"])


def test_attribute_duplicate_values():
    with pytest.raises(ValueError):
        Attribute("a", ["x", "x"])


def test_from_frame_keeps_category_order():
    df = pd.DataFrame({
        "size": pd.Categorical(["big", "small", None], categories=["small", "big"]),
        "colour": ["red", "blue", "red"],
        "label": ["y", "n", "y"],
    })
    data = Dataset.from_frame(df, "label")
    assert data.attribute("size").values == ("small", "big")
    assert data.codes[:, 0].tolist() == [1, 0, MISSING]
    assert data.attribute("colour").values == ("blue", "red")
    assert data.class_attribute.name == "label"


def test_from_frame_float_column_is_numeric():
    df = pd.DataFrame({"w": [0.5, 1.5], "label": ["y", "n"]})
    data = Dataset.from_frame(df, "label")
    with pytest.raises(CapabilityError):
        data.check_capabilities()


def test_from_arff(weather_arff, tmp_path):
    data = Dataset.from_arff(weather_arff)
    assert len(data) == 14
    assert data.class_attribute.name == "play"
    assert data.class_attribute.values == ("yes", "no")
    assert data.attribute("outlook").values == ("sunny", "overcast", "rainy")
    data.check_capabilities()

    path = tmp_path / "missing.arff"
    path.write_text("@relation t\n@attribute a {u, v}\n@attribute c {p, q}\n@data\n?,p\nv,q\n")
    data = Dataset.from_arff(str(path))
    assert data.codes.tolist() == [[MISSING, 0], [1, 1]]
