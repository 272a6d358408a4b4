# -*- coding: utf-8 -*-
"""
id3chi.dataset
==============

In-memory representation of a table of nominal instances.

A :class:`Dataset` keeps every value as an integer code into the ordered value
list of its :class:`Attribute`; a missing value is stored as :data:`MISSING`.
The class attribute is one column of the same code matrix, designated by
``class_index``.  Datasets are never modified in place: filtering and
partitioning always return fresh copies.

The module also contains the partitioner used by the statistics engine and
the tree builder, the capability check run before a tree is built, and a few
loaders (numpy arrays, pandas DataFrames and ARFF files).
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from .exceptions import CapabilityError

logger = logging.getLogger(__name__)

#: Code stored for a missing value.
MISSING = -1


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _isnan_scalar(v) -> bool:
    return (v is None) or (v is pd.NA) or (isinstance(v, float) and np.isnan(v))


def _infer_values(column) -> list:
    known = [v for v in column if not _isnan_scalar(v)]
    values = list(dict.fromkeys(known))
    try:
        return sorted(values)
    except TypeError:
        # mixed label types (e.g. ints and strings) have no natural order
        return sorted(values, key=str)


# -----------------------------------------------------------------------------
# Attribute / Instance
# -----------------------------------------------------------------------------
class Attribute:
    """A nominal variable with a fixed, ordered set of named values.

    Parameters
    ----------
    name : str
        Attribute name, used when printing the tree.
    values : sequence
        Ordered nominal values.  The position of a value is its code.
    index : int, default=0
        Position of the attribute in the dataset schema.
    nominal : bool, default=True
        ``False`` marks a numeric (continuous) attribute.  Such attributes can
        be loaded but are rejected by :meth:`Dataset.check_capabilities`.
    """

    def __init__(self, name, values=(), index: int = 0, *, nominal: bool = True):
        self.name = str(name)
        self.values = tuple(values)
        self.index = int(index)
        self.nominal = bool(nominal)
        self._lookup = {v: i for i, v in enumerate(self.values)}
        if len(self._lookup) != len(self.values):
            raise ValueError(f"Attribute {self.name!r} has duplicate values")

    @property
    def num_values(self) -> int:
        return len(self.values)

    def value(self, code: int):
        """Return the label for ``code``."""
        return self.values[code]

    def encode(self, label, strict: bool = True) -> int:
        """Return the code of ``label``; missing labels encode to ``MISSING``.

        An unknown label raises ``KeyError`` when ``strict`` is set and is
        otherwise encoded as missing.
        """
        if _isnan_scalar(label):
            return MISSING
        code = self._lookup.get(label)
        if code is None:
            if strict:
                raise KeyError(f"{label!r} is not a value of attribute {self.name!r}")
            return MISSING
        return code

    def with_index(self, index: int) -> "Attribute":
        return Attribute(self.name, self.values, index, nominal=self.nominal)

    def __repr__(self):
        if not self.nominal:
            return f"Attribute({self.name!r}, numeric)"
        return f"Attribute({self.name!r}, {list(self.values)!r})"


class Instance:
    """One row of a dataset: a code for every attribute, class included."""

    __slots__ = ("codes", "attributes", "class_index")

    def __init__(self, codes, attributes, class_index: int):
        self.codes = np.asarray(codes, dtype=int)
        self.attributes = attributes
        self.class_index = class_index

    def value(self, att: Attribute) -> int:
        return int(self.codes[att.index])

    def is_missing(self, att: Attribute) -> bool:
        return self.codes[att.index] == MISSING

    @property
    def class_value(self) -> int:
        return int(self.codes[self.class_index])

    def label(self, att: Attribute):
        """Return the raw label of ``att`` or ``None`` when missing."""
        code = self.value(att)
        return None if code == MISSING else att.value(code)

    def __repr__(self):
        parts = []
        for att in self.attributes:
            lab = self.label(att)
            parts.append("?" if lab is None else str(lab))
        return f"Instance({', '.join(parts)})"


# -----------------------------------------------------------------------------
# Dataset
# -----------------------------------------------------------------------------
class Dataset:
    """An ordered collection of instances sharing one schema.

    Parameters
    ----------
    attributes : sequence of Attribute
        The schema, class attribute included.  Attributes are re-indexed by
        position.
    codes : array-like of shape (n_instances, n_attributes)
        Integer value codes, ``MISSING`` for missing values.
    class_index : int, default=-1
        Position of the class attribute; negative values count from the end.
    """

    def __init__(self, attributes, codes=None, class_index: int = -1):
        self.attributes = tuple(
            att if att.index == i else att.with_index(i)
            for i, att in enumerate(attributes))
        n_att = len(self.attributes)
        if n_att == 0:
            raise ValueError("A dataset needs at least a class attribute")
        if codes is None:
            codes = np.empty((0, n_att), dtype=int)
        codes = np.asarray(codes, dtype=int)
        if codes.size == 0:
            codes = codes.reshape(0, n_att)
        if codes.ndim != 2 or codes.shape[1] != n_att:
            raise ValueError(f"codes must have shape (n, {n_att}), got {codes.shape}")
        if not -n_att <= class_index < n_att:
            raise ValueError(f"class_index {class_index} out of range")
        self.codes = codes
        self.class_index = class_index % n_att

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------
    @property
    def class_attribute(self) -> Attribute:
        return self.attributes[self.class_index]

    @property
    def num_attributes(self) -> int:
        return len(self.attributes)

    @property
    def num_classes(self) -> int:
        return self.class_attribute.num_values

    @property
    def num_instances(self) -> int:
        return self.codes.shape[0]

    def attribute(self, key) -> Attribute:
        """Look an attribute up by position or by name."""
        if isinstance(key, str):
            for att in self.attributes:
                if att.name == key:
                    return att
            raise KeyError(f"No attribute named {key!r}")
        return self.attributes[key]

    def enumerate_attributes(self) -> list[Attribute]:
        """Return the non-class attributes in schema order."""
        return [a for a in self.attributes if a.index != self.class_index]

    # ------------------------------------------------------------------
    # Instances
    # ------------------------------------------------------------------
    def __len__(self):
        return self.num_instances

    def __iter__(self):
        for row in self.codes:
            yield Instance(row, self.attributes, self.class_index)

    def __getitem__(self, i) -> Instance:
        return Instance(self.codes[i], self.attributes, self.class_index)

    def __repr__(self):
        return (f"Dataset({self.num_instances} instances, {self.num_attributes} attributes, "
                f"class={self.class_attribute.name!r})")

    def column(self, att: Attribute) -> np.ndarray:
        return self.codes[:, att.index]

    @property
    def class_values(self) -> np.ndarray:
        return self.codes[:, self.class_index]

    def missing_mask(self, att: Attribute) -> np.ndarray:
        return self.column(att) == MISSING

    def subset(self, indices) -> "Dataset":
        """Return a fresh dataset holding the selected rows (index array or mask)."""
        return Dataset(self.attributes, self.codes[indices].copy(), self.class_index)

    def without_missing(self, att: Attribute) -> "Dataset":
        return self.subset(~self.missing_mask(att))

    def without_missing_class(self) -> "Dataset":
        return self.without_missing(self.class_attribute)

    def partition(self, att: Attribute) -> list["Dataset"]:
        return partition(self, att)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def check_capabilities(self):
        """Raise :class:`CapabilityError` unless the tree can learn from this data."""
        for att in self.attributes:
            if not att.nominal:
                raise CapabilityError(f"Cannot handle numeric attribute {att.name!r}")
            if att.num_values < 2:
                raise CapabilityError(
                    f"Attribute {att.name!r} has {att.num_values} value(s); at least 2 are required")
            col = self.column(att)
            if np.any((col < MISSING) | (col >= att.num_values)):
                raise CapabilityError(f"Attribute {att.name!r} holds out-of-range value codes")
        if np.any(self.class_values == MISSING):
            raise CapabilityError("Cannot handle missing class values")

    # ------------------------------------------------------------------
    # Query encoding
    # ------------------------------------------------------------------
    def instance(self, values, strict: bool = False) -> Instance:
        """Encode a query row of raw labels into an :class:`Instance`.

        ``values`` is either a mapping from attribute name to label or a
        sequence of labels for the non-class attributes in schema order.
        Absent or ``None``/NaN labels are missing.  Unknown labels raise
        ``KeyError`` when ``strict`` is set and are otherwise missing.
        """
        codes = np.full(self.num_attributes, MISSING, dtype=int)
        atts = self.enumerate_attributes()
        if isinstance(values, dict):
            for att in atts:
                codes[att.index] = att.encode(values.get(att.name), strict)
        else:
            values = list(values)
            if len(values) != len(atts):
                raise ValueError(f"Expected {len(atts)} values, got {len(values)}")
            for att, label in zip(atts, values):
                codes[att.index] = att.encode(label, strict)
        return Instance(codes, self.attributes, self.class_index)

    # ------------------------------------------------------------------
    # Loaders
    # ------------------------------------------------------------------
    @classmethod
    def from_arrays(cls, X, y, feature_names=None, categories=None,
                    class_name: str = "class", class_values=None) -> "Dataset":
        """Build a dataset from a feature matrix of labels and a label vector.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Nominal labels; ``None`` or NaN marks a missing value.  A column of
            float dtype is treated as a numeric attribute.
        y : array-like of shape (n_samples,)
            Class labels.  Missing labels are kept as ``MISSING``.
        feature_names : list[str], optional
            Defaults to ``f0 .. f{n-1}``.
        categories : list of sequences, optional
            Ordered values per feature.  Inferred from ``X`` when omitted.
        class_name : str, default="class"
        class_values : sequence, optional
            Ordered class values.  Inferred from ``y`` when omitted.

        Returns
        -------
        Dataset
            The class attribute is the last column.
        """
        X = np.asarray(X)
        y = np.asarray(y)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if X.ndim != 2:
            raise ValueError("X must be 2-dimensional")
        n, n_features = X.shape
        if len(y) != n:
            raise ValueError("X and y must have the same number of rows")
        if feature_names is None:
            feature_names = [f"f{i}" for i in range(n_features)]
        if len(feature_names) != n_features:
            raise ValueError("feature_names length must match X.shape[1]")
        if categories is not None and len(categories) != n_features:
            raise ValueError("categories length must match X.shape[1]")

        attributes = []
        codes = np.full((n, n_features + 1), MISSING, dtype=int)
        for j in range(n_features):
            col = X[:, j]
            if categories is not None:
                att = Attribute(feature_names[j], categories[j], j)
            elif col.dtype.kind == "f":
                attributes.append(Attribute(feature_names[j], (), j, nominal=False))
                continue
            else:
                att = Attribute(feature_names[j], _infer_values(col), j)
            attributes.append(att)
            codes[:, j] = [att.encode(v) for v in col]

        if class_values is None:
            class_values = _infer_values(y)
        cls_att = Attribute(class_name, class_values, n_features)
        attributes.append(cls_att)
        codes[:, n_features] = [cls_att.encode(v) for v in y]
        return cls(attributes, codes, class_index=n_features)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, class_column) -> "Dataset":
        """Build a dataset from a DataFrame.

        Categorical columns keep their category order; float columns are
        treated as numeric attributes; other columns are nominal with values
        inferred from the data.
        """
        if class_column not in df.columns:
            raise KeyError(f"No column named {class_column!r}")
        attributes = []
        codes = np.full((len(df), len(df.columns)), MISSING, dtype=int)
        for j, name in enumerate(df.columns):
            series = df[name]
            if isinstance(series.dtype, pd.CategoricalDtype):
                att = Attribute(name, list(series.cat.categories), j)
            elif pd.api.types.is_float_dtype(series.dtype) and name != class_column:
                attributes.append(Attribute(name, (), j, nominal=False))
                continue
            else:
                att = Attribute(name, _infer_values(series.tolist()), j)
            attributes.append(att)
            codes[:, j] = [att.encode(None if pd.isna(v) else v) for v in series.tolist()]
        return cls(attributes, codes, class_index=list(df.columns).index(class_column))

    @classmethod
    def from_arff(cls, path, class_index: int = -1) -> "Dataset":
        """Load an ARFF file.  ``?`` marks a missing value.

        Numeric ARFF attributes are loaded without values (all missing) and are
        rejected later by :meth:`check_capabilities`.
        """
        from scipy.io import arff

        data, meta = arff.loadarff(path)
        attributes = []
        codes = np.full((len(data), len(meta.names())), MISSING, dtype=int)
        for j, name in enumerate(meta.names()):
            kind, values = meta[name]
            if kind != "nominal":
                attributes.append(Attribute(name, (), j, nominal=False))
                continue
            att = Attribute(name, values, j)
            attributes.append(att)
            raw = [v.decode() if isinstance(v, bytes) else v for v in data[name]]
            codes[:, j] = [MISSING if v == "?" else att.encode(v) for v in raw]
        logger.debug("Loaded %d instances with %d attributes from %s",
                     len(data), len(attributes), path)
        return cls(attributes, codes, class_index=class_index)


# -----------------------------------------------------------------------------
# Partitioner
# -----------------------------------------------------------------------------
def partition(data: Dataset, att: Attribute) -> list[Dataset]:
    """Split ``data`` by the values of a nominal attribute.

    Returns ``att.num_values + 1`` datasets: bucket ``j`` holds the instances
    whose value is ``att.value(j)`` and the last bucket holds the instances
    missing ``att``.  Relative order is preserved within each bucket.
    """
    col = data.column(att)
    buckets = [data.subset(np.flatnonzero(col == j)) for j in range(att.num_values)]
    buckets.append(data.subset(np.flatnonzero(col == MISSING)))
    return buckets
