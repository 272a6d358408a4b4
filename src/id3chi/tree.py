# -*- coding: utf-8 -*-
"""
id3chi.tree
===========

This module implements an ID3 decision tree for nominal data, following
Quinlan (1986), with two additions: a chi-square significance test that
pre-prunes splits whose association with the class is not significant at a
configurable confidence level, and the fractional ("token") treatment of
missing values, both when choosing splits and when classifying.

Nodes are one of two types.  A :class:`Leaf` stores a normalized class
distribution; an :class:`InternalNode` stores its split attribute and one
:class:`Branch` per nominal value of that attribute.  Every branch carries a
mass ratio, the share of the parent's training instances routed to it, which
is the weight applied to the token when the classification walk descends.

The module exposes a functional surface (:func:`build`, :func:`classify`,
:func:`class_distribution`, :func:`token_distribution`, :func:`render`) and a
scikit-learn style estimator, :class:`ID3ChiClassifier`.
"""

# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from enum import Enum
from typing import NamedTuple, Union

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin

from .criteria import (
    MAX_SMALL_BUCKET_FRACTION,
    MIN_BUCKET_SIZE,
    chi_square,
    class_counts,
    critical_value,
    degrees_of_freedom,
    entropy,
    information_gain,
    small_bucket_fraction,
)
from .dataset import MISSING, Attribute, Dataset, Instance, partition
from .exceptions import UndefinedQueryError

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_LEVEL = 0.99
#: Gains closer to zero than this are treated as zero.
GAIN_TOLERANCE = 1e-6


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------
class BuildState(Enum):
    """How the builder terminated at a node."""
    EMPTY = "empty"
    ZERO_GAIN = "zero_gain"
    PRUNED = "pruned"
    SPLIT = "split"


class Leaf:
    """Terminal node holding a class distribution.

    Attributes
    ----------
    distribution : ndarray of shape (n_classes,)
        Normalized class frequencies.  Uniform for a node no training
        instance reached.
    class_value : int or None
        Index of the predicted (majority) class; ``None`` when undefined.
    class_attribute : Attribute
        Used to turn ``class_value`` into a label.
    state : BuildState
        Why the builder stopped here.
    """

    is_leaf = True

    def __init__(self, distribution, class_value: int | None,
                 class_attribute: Attribute, state: BuildState):
        self.distribution = np.asarray(distribution, dtype=float)
        self.class_value = class_value
        self.class_attribute = class_attribute
        self.state = state

    @property
    def predicted_class(self):
        """The predicted class label, or ``None`` when undefined."""
        if self.class_value is None:
            return None
        return self.class_attribute.value(self.class_value)

    def __repr__(self):
        return f"Leaf({self.predicted_class!r}, {self.state.value})"


class Branch(NamedTuple):
    value: object
    ratio: float
    node: "Node"


class InternalNode:
    """Node testing a nominal attribute, with one branch per value."""

    is_leaf = False
    state = BuildState.SPLIT

    def __init__(self, attribute: Attribute, branches: list[Branch]):
        if len(branches) != attribute.num_values:
            raise ValueError("An internal node needs exactly one branch per attribute value")
        self.attribute = attribute
        self.branches = tuple(branches)

    def child(self, code: int) -> "Node":
        return self.branches[code].node

    def __repr__(self):
        return f"InternalNode({self.attribute.name!r}, {len(self.branches)} branches)"


Node = Union[Leaf, InternalNode]


# -----------------------------------------------------------------------------
# Builder
# -----------------------------------------------------------------------------
class TreeBuilder:
    """Recursive ID3 induction with chi-square pre-pruning.

    Parameters
    ----------
    confidence_level : float, default=0.99
        Confidence of the chi-square test, in (0, 1).  A split is pruned when
        its statistic does not exceed the critical value at this level, so
        higher values prune more.
    min_bucket_size : int, default=5
        Buckets with fewer instances count as small.
    max_small_bucket_fraction : float, default=0.2
        The chi-square test is only applied when the fraction of small
        buckets (the unknown bucket included) is below this value.
    """

    def __init__(self, confidence_level: float = DEFAULT_CONFIDENCE_LEVEL,
                 min_bucket_size: int = MIN_BUCKET_SIZE,
                 max_small_bucket_fraction: float = MAX_SMALL_BUCKET_FRACTION):
        if not 0.0 < confidence_level < 1.0:
            raise ValueError(f"confidence_level must be in (0, 1), got {confidence_level}")
        self.confidence_level = float(confidence_level)
        self.min_bucket_size = int(min_bucket_size)
        self.max_small_bucket_fraction = float(max_small_bucket_fraction)

    def build(self, data: Dataset) -> Node:
        """Build a tree from validated data and return its root."""
        return self._make_tree(data, depth=0)

    def _make_tree(self, data: Dataset, depth: int) -> Node:
        n = data.num_instances
        if n == 0:
            return _null_leaf(data)

        candidates = data.enumerate_attributes()
        if not candidates:
            return _make_leaf(data, None, BuildState.ZERO_GAIN)

        # Attribute with maximum information gain, ties to the lowest index
        entropy_of_all = entropy(data)
        best, best_gain, best_subsets = None, 0.0, None
        for att in candidates:
            subsets = partition(data, att)
            gain = information_gain(data, att, entropy_of_all, subsets)
            if best is None or gain > best_gain:
                best, best_gain, best_subsets = att, gain, subsets

        stat = chi_square(data, best, best_subsets)
        threshold = critical_value(self.confidence_level, degrees_of_freedom(best))

        if abs(best_gain) < GAIN_TOLERANCE:
            logger.debug("depth %d: leaf, zero gain (n=%d)", depth, n)
            return _make_leaf(data, best, BuildState.ZERO_GAIN)

        fraction = small_bucket_fraction(best_subsets, self.min_bucket_size)
        if fraction < self.max_small_bucket_fraction and stat <= threshold:
            logger.debug("depth %d: leaf, pruned split on %r (chi2=%.4f <= %.4f, n=%d)",
                         depth, best.name, stat, threshold, n)
            return _make_leaf(data, best, BuildState.PRUNED)

        logger.debug("depth %d: split on %r (gain=%.4f, chi2=%.4f, critical=%.4f, small=%.2f, n=%d)",
                     depth, best.name, best_gain, stat, threshold, fraction, n)
        branches = []
        for j in range(best.num_values):
            subset = best_subsets[j]
            ratio = subset.num_instances / n
            branches.append(Branch(best.value(j), ratio, self._make_tree(subset, depth + 1)))
        return InternalNode(best, branches)


def _null_leaf(data: Dataset) -> Leaf:
    k = data.num_classes
    return Leaf(np.full(k, 1.0 / k), None, data.class_attribute, BuildState.EMPTY)


def _make_leaf(data: Dataset, att: Attribute | None, state: BuildState) -> Leaf:
    if att is not None:
        data = data.without_missing(att)
    if data.num_instances == 0:
        return _null_leaf(data)
    counts = class_counts(data)
    distribution = counts / counts.sum()
    return Leaf(distribution, int(np.argmax(distribution)), data.class_attribute, state)


# -----------------------------------------------------------------------------
# Inference
# -----------------------------------------------------------------------------
def _token_walk(node: Node, instance: Instance, token: float) -> np.ndarray:
    if node.is_leaf:
        return token * node.distribution
    att = node.attribute
    code = instance.value(att)
    if code == MISSING:
        # fan out over every branch, weighted by its share of the training data
        return sum(_token_walk(b.node, instance, token * b.ratio) for b in node.branches)
    if not 0 <= code < att.num_values:
        raise UndefinedQueryError(f"Value code {code} is out of range for attribute {att.name!r}")
    branch = node.branches[code]
    return _token_walk(branch.node, instance, token * branch.ratio)


def _strict_walk(node: Node, instance: Instance) -> np.ndarray:
    if node.is_leaf:
        return node.distribution
    att = node.attribute
    code = instance.value(att)
    if code == MISSING:
        raise UndefinedQueryError(
            f"Attribute {att.name!r} is missing; use token classification for incomplete instances")
    if not 0 <= code < att.num_values:
        raise UndefinedQueryError(f"Value code {code} is out of range for attribute {att.name!r}")
    return _strict_walk(node.branches[code].node, instance)


# -----------------------------------------------------------------------------
# Printing helpers
# -----------------------------------------------------------------------------
def _leaf_label(leaf: Leaf) -> str:
    pred = leaf.predicted_class
    return "<undefined>" if pred is None else str(pred)


def _render_node(node: Node, level: int, out: list[str]):
    if node.is_leaf:
        out.append(f": {_leaf_label(node)}")
        return
    for branch in node.branches:
        sep = "\n" if out else ""
        out.append(sep + "|  " * level + f"{node.attribute.name} = {branch.value}")
        _render_node(branch.node, level + 1, out)


def _collect_rules(node: Node, parts: list[str], rules: list[str]):
    if node.is_leaf:
        body = " AND ".join(parts) if parts else "<root>"
        rules.append(f"{body} => {_leaf_label(node)}")
        return
    for branch in node.branches:
        _collect_rules(branch.node, parts + [f"{node.attribute.name} = {branch.value}"], rules)


def _add_graph_nodes(dot, node: Node, name: str):
    if node.is_leaf:
        dist = ", ".join(f"{v}: {p:.3f}" for v, p in zip(node.class_attribute.values, node.distribution))
        dot.node(name, f"class={_leaf_label(node)}\n{dist}",
                 shape="box", style="filled", color="lightgrey")
        return
    dot.node(name, node.attribute.name, shape="ellipse", style="filled", color="lightblue")
    for j, branch in enumerate(node.branches):
        child = f"{name}_{j}"
        _add_graph_nodes(dot, branch.node, child)
        dot.edge(name, child, label=f"{branch.value} ({branch.ratio:.2f})")


# -----------------------------------------------------------------------------
# Model
# -----------------------------------------------------------------------------
class DecisionTree:
    """A built tree together with the schema it was learned from.

    The tree is immutable once built.  Use :func:`build` to create one.
    """

    def __init__(self, root: Node, attributes, class_index: int, confidence_level: float):
        self.root = root
        self.attributes = tuple(attributes)
        self.class_index = class_index
        self.confidence_level = confidence_level

    @property
    def class_attribute(self) -> Attribute:
        return self.attributes[self.class_index]

    @property
    def num_classes(self) -> int:
        return self.class_attribute.num_values

    def class_label(self, class_value: int):
        return self.class_attribute.value(class_value)

    def iter_nodes(self):
        """Yield every node, depth first."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            if not node.is_leaf:
                stack.extend(reversed([b.node for b in node.branches]))

    @property
    def num_leaves(self) -> int:
        return sum(1 for node in self.iter_nodes() if node.is_leaf)

    @property
    def depth(self) -> int:
        def _depth(node):
            if node.is_leaf:
                return 0
            return 1 + max(_depth(b.node) for b in node.branches)
        return _depth(self.root)

    def token_distribution(self, instance: Instance) -> np.ndarray:
        """Class vector of the fractional walk, starting from a token of 1.0.

        At a known value the token is multiplied by the matching branch's mass
        ratio; at a missing value the walk descends every branch with the
        token multiplied by that branch's ratio and the results are summed.
        The vector is not normalized.
        """
        return np.asarray(_token_walk(self.root, instance, 1.0), dtype=float)

    def classify_index(self, instance: Instance) -> int:
        """Index of the class with the largest token weight (ties to the lowest index)."""
        return int(np.argmax(self.token_distribution(instance)))

    def classify(self, instance: Instance):
        """Class label predicted by the fractional walk."""
        return self.class_label(self.classify_index(instance))

    def class_distribution(self, instance: Instance) -> np.ndarray:
        """Distribution stored at the leaf reached by a strict walk.

        Every attribute tested along the path must be present in
        ``instance``.

        Raises
        ------
        UndefinedQueryError
            If a tested attribute is missing or out of range.
        """
        return _strict_walk(self.root, instance).copy()

    def render(self) -> str:
        """Indented text rendering of the tree."""
        out: list[str] = []
        _render_node(self.root, 0, out)
        return "ID3Chi\n\n" + "".join(out)

    def export_rules(self) -> list[str]:
        """One ``<antecedent> => <class>`` rule per leaf, in depth-first order."""
        rules: list[str] = []
        _collect_rules(self.root, [], rules)
        return rules

    def __str__(self):
        return self.render()


# -----------------------------------------------------------------------------
# Functional surface
# -----------------------------------------------------------------------------
def build(data: Dataset, confidence_level: float = DEFAULT_CONFIDENCE_LEVEL, *,
          min_bucket_size: int = MIN_BUCKET_SIZE,
          max_small_bucket_fraction: float = MAX_SMALL_BUCKET_FRACTION,
          drop_missing_class: bool = False) -> DecisionTree:
    """
    Build an ID3 tree with chi-square pre-pruning from ``data``.

    Parameters
    ----------
    data : Dataset
        Training data with nominal attributes only.
    confidence_level : float, default=0.99
        Confidence level of the chi-square test, in (0, 1).
    min_bucket_size : int, default=5
        See :class:`TreeBuilder`.
    max_small_bucket_fraction : float, default=0.2
        See :class:`TreeBuilder`.
    drop_missing_class : bool, default=False
        Remove instances with a missing class before validation instead of
        rejecting them.

    Returns
    -------
    DecisionTree

    Raises
    ------
    CapabilityError
        If ``data`` has a numeric attribute, an attribute with fewer than two
        values, or (unless dropped) an instance with a missing class.
    ValueError
        If ``confidence_level`` is not in (0, 1).
    """
    builder = TreeBuilder(confidence_level, min_bucket_size, max_small_bucket_fraction)
    if drop_missing_class:
        n_before = data.num_instances
        data = data.without_missing_class()
        if data.num_instances < n_before:
            logger.warning("Dropped %d instances with missing class", n_before - data.num_instances)
    data.check_capabilities()
    root = builder.build(data)
    return DecisionTree(root, data.attributes, data.class_index, builder.confidence_level)


def classify(tree: DecisionTree, instance: Instance):
    return tree.classify(instance)


def class_distribution(tree: DecisionTree, instance: Instance) -> np.ndarray:
    return tree.class_distribution(instance)


def token_distribution(tree: DecisionTree, instance: Instance) -> np.ndarray:
    return tree.token_distribution(instance)


def render(tree: DecisionTree) -> str:
    return tree.render()


# -----------------------------------------------------------------------------
# Classifier
# -----------------------------------------------------------------------------
class ID3ChiClassifier(ClassifierMixin, BaseEstimator):
    """
    ID3 decision tree classifier with chi-square pre-pruning.

    Every feature is treated as nominal.  Missing values (``None`` or NaN)
    are accepted both for training and for prediction; :meth:`predict`,
    :meth:`predict_proba` and :meth:`predict_token` use the fractional token
    walk, :meth:`predict_distribution` uses the strict walk and rejects
    missing values on tested attributes.

    Parameters
    ----------
    confidence_level : float, default=0.99
        Confidence of the chi-square test.  Higher values prune more.
    min_bucket_size : int, default=5
        Buckets with fewer training instances count as small.
    max_small_bucket_fraction : float, default=0.2
        The chi-square test is skipped (the split is kept) when at least
        this fraction of buckets is small.
    drop_missing_class : bool, default=False
        Drop training rows with a missing label instead of raising
        :class:`~id3chi.exceptions.CapabilityError`.
    feature_names : list[str] or None, default=None
        Names used when printing the tree.  Defaults to ``f0 .. f{n-1}``.
    categories : list of sequences or None, default=None
        Ordered values for each feature.  If ``None`` they are inferred from
        the training data, sorted.

    Attributes
    ----------
    tree_ : DecisionTree
        The fitted tree.
    classes_ : ndarray
        Class labels, in the order used by probability vectors.
    n_features_ : int
        Number of features seen during ``fit``.
    """

    def __init__(
        self,
        *,
        confidence_level: float = DEFAULT_CONFIDENCE_LEVEL,
        min_bucket_size: int = MIN_BUCKET_SIZE,
        max_small_bucket_fraction: float = MAX_SMALL_BUCKET_FRACTION,
        drop_missing_class: bool = False,
        feature_names: list[str] | None = None,
        categories: list | None = None,
    ):
        self.confidence_level = confidence_level
        self.min_bucket_size = min_bucket_size
        self.max_small_bucket_fraction = max_small_bucket_fraction
        self.drop_missing_class = drop_missing_class
        self.feature_names = feature_names
        self.categories = categories

    def fit(self, X, y, feature_names=None):
        """
        Build the tree from training data.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Nominal feature labels.  A column of float dtype is a numeric
            feature and is rejected.
        y : array-like of shape (n_samples,)
            Class labels.
        feature_names : list[str], optional
            Overrides the ``feature_names`` given at construction time.

        Returns
        -------
        self
        """
        names = feature_names if feature_names is not None else self.feature_names
        data = Dataset.from_arrays(X, y, feature_names=names, categories=self.categories)
        self.tree_ = build(
            data, self.confidence_level,
            min_bucket_size=self.min_bucket_size,
            max_small_bucket_fraction=self.max_small_bucket_fraction,
            drop_missing_class=self.drop_missing_class,
        )
        self.schema_ = Dataset(data.attributes, class_index=data.class_index)
        self.n_features_ = data.num_attributes - 1
        self.feature_names_ = [a.name for a in self.schema_.enumerate_attributes()]
        self.classes_ = np.asarray(data.class_attribute.values)
        logger.info("Built ID3Chi tree from %d instances: %d leaves, depth %d",
                    len(data), self.tree_.num_leaves, self.tree_.depth)
        return self

    def _check_fitted(self):
        if getattr(self, "tree_", None) is None:
            raise ValueError("Estimator not fitted. Call fit(...) first.")

    def _instances(self, X, strict: bool = False) -> list[Instance]:
        X = np.asarray(X, dtype=object)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if X.shape[1] != self.n_features_:
            raise ValueError(f"X has {X.shape[1]} features, expected {self.n_features_}")
        if not strict:
            return [self.schema_.instance(x) for x in X]
        instances = []
        for x in X:
            try:
                instances.append(self.schema_.instance(x, strict=True))
            except KeyError as e:
                raise UndefinedQueryError(str(e)) from e
        return instances

    def predict(self, X):
        """
        Predict class labels with the token walk.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Missing values may be ``None`` or NaN.  Labels not seen during
            ``fit`` are treated as missing.

        Returns
        -------
        ndarray of shape (n_samples,)
        """
        self._check_fitted()
        idx = [self.tree_.classify_index(inst) for inst in self._instances(X)]
        return self.classes_[np.asarray(idx, dtype=int)]

    def predict_token(self, X):
        """Unnormalized token class vectors, shape (n_samples, n_classes)."""
        self._check_fitted()
        return np.array([self.tree_.token_distribution(inst) for inst in self._instances(X)])

    def predict_proba(self, X):
        """
        Token class vectors normalized to sum to one per row.

        Rows whose token mass is zero (every reached branch was empty at
        training time) become uniform.
        """
        acc = self.predict_token(X)
        row_sum = acc.sum(axis=1, keepdims=True)
        zero = (row_sum == 0).ravel()
        row_sum[zero] = 1.0
        acc = acc / row_sum
        acc[zero] = 1.0 / len(self.classes_)
        return acc

    def predict_distribution(self, X):
        """
        Leaf distributions reached by the strict walk.

        Raises
        ------
        UndefinedQueryError
            If a tested feature is missing or holds a label unseen in ``fit``.
        """
        self._check_fitted()
        return np.array([self.tree_.class_distribution(inst)
                         for inst in self._instances(X, strict=True)])

    def export_text(self) -> str:
        """Indented rendering of the tree (see :meth:`DecisionTree.render`)."""
        self._check_fitted()
        return self.tree_.render()

    def print_tree(self):
        """Print :meth:`export_text` to ``stdout``."""
        print(self.export_text())

    def export_rules(self) -> list[str]:
        """One ``<antecedent> => <class>`` string per leaf."""
        self._check_fitted()
        return self.tree_.export_rules()

    def export_graphviz(self, filename: str | None = None, *, format: str = "png") -> str:
        """
        Export the tree in Graphviz format.

        Internal nodes are labelled with the attribute name and edges with the
        value and mass ratio; leaves show the predicted class and distribution.

        Parameters
        ----------
        filename : str or None, default=None
            Basename of the output file.  If None, the DOT source is returned
            and no file is written.
        format : str, default="png"
            Graphviz output format.  ``'dot'`` writes the DOT source directly
            without calling the external ``dot`` binary.

        Returns
        -------
        str
            Path to the written file, or the DOT source if filename is None.
        """
        self._check_fitted()
        try:
            import graphviz
        except ImportError:
            raise RuntimeError("Graphviz is required for export_graphviz but not installed.")
        dot = graphviz.Digraph(format=format)
        _add_graph_nodes(dot, self.tree_.root, "n0")

        if filename is None:
            return dot.source
        if format.lower() == "dot":
            path = f"{filename}.dot"
            dot.save(path)
            return path
        try:
            dot.render(filename, cleanup=True)
            return f"{filename}.{format}"
        except graphviz.ExecutableNotFound:
            logger.warning("Graphviz 'dot' executable not found; writing DOT source instead")
            fallback_path = f"{filename}.dot"
            dot.save(fallback_path)
            return fallback_path
