# -*- coding: utf-8 -*-
"""
id3chi.criteria
===============

Split statistics computed over partitions of a :class:`~id3chi.dataset.Dataset`:
Shannon entropy, the missing-value aware entropy and information gain of
Quinlan's ID3, and Pearson's chi-square statistic used to pre-prune splits
that are not significant at a chosen confidence level.
"""

from __future__ import annotations

import numpy as np
from scipy.stats import chi2

from .dataset import Attribute, Dataset, partition

#: A bucket with fewer instances than this is considered small.
MIN_BUCKET_SIZE = 5
#: The chi-square test applies only when the fraction of small buckets is below this.
MAX_SMALL_BUCKET_FRACTION = 0.2


def class_counts(data: Dataset) -> np.ndarray:
    """Per-class instance counts of ``data`` as a float vector."""
    return np.bincount(data.class_values, minlength=data.num_classes).astype(float)


def _entropy_from_counts(counts: np.ndarray, n: float) -> float:
    if n <= 0:
        return 0.0
    p = counts[counts > 0] / n
    return float(-np.sum(p * np.log2(p)))


def entropy(data: Dataset) -> float:
    """Shannon entropy, in bits, of the class distribution of ``data``.

    Classes with a zero count contribute nothing; an empty dataset has zero
    entropy.
    """
    return _entropy_from_counts(class_counts(data), data.num_instances)


def entropy_with_unknowns(known: Dataset, unknown_counts: np.ndarray, ratio: float) -> float:
    """Entropy of ``known`` after folding in a share of the unknown bucket.

    Each class count of ``known`` is increased by ``unknown_counts * ratio``
    before the counts are normalized by the size of ``known``.  ``ratio`` is
    the share of the parent population that fell in ``known``.
    """
    counts = class_counts(known) + np.asarray(unknown_counts, dtype=float) * ratio
    return _entropy_from_counts(counts, known.num_instances)


def information_gain(data: Dataset, att: Attribute, entropy_of_all: float | None = None,
                     subsets: list[Dataset] | None = None) -> float:
    """Information gain of splitting ``data`` on ``att``.

    Instances missing ``att`` are distributed over the known-value buckets in
    proportion to their sizes.  The gain is zero when every instance is
    missing ``att``.

    Parameters
    ----------
    data : Dataset
    att : Attribute
    entropy_of_all : float, optional
        ``entropy(data)``, if already known.
    subsets : list[Dataset], optional
        ``partition(data, att)``, if already known.

    Returns
    -------
    float
        Gain in bits.  It can be slightly negative when unknowns are present.
    """
    n = data.num_instances
    if n == 0:
        return 0.0
    if entropy_of_all is None:
        entropy_of_all = entropy(data)
    if subsets is None:
        subsets = partition(data, att)
    unknown = subsets[att.num_values]
    n_unknown = unknown.num_instances
    if n_unknown == n:
        return 0.0

    unknown_counts = class_counts(unknown)
    gain = entropy_of_all
    for subset in subsets[:att.num_values]:
        size = subset.num_instances
        if size > 0:
            ratio = size / n
            weight = (size + n_unknown * ratio) / n
            gain -= weight * entropy_with_unknowns(subset, unknown_counts, ratio)
    return float(gain)


def chi_square(data: Dataset, att: Attribute, subsets: list[Dataset] | None = None) -> float:
    """Pearson's chi-square statistic for independence of ``att`` and the class.

    Only the known-value buckets contribute; cells whose expected count is
    zero are skipped.
    """
    n = data.num_instances
    if n == 0:
        return 0.0
    if subsets is None:
        subsets = partition(data, att)
    totals = class_counts(data)
    stat = 0.0
    for subset in subsets[:att.num_values]:
        size = subset.num_instances
        if size > 0:
            observed = class_counts(subset)
            expected = totals * (size / n)
            cells = expected > 0
            stat += float(np.sum((observed[cells] - expected[cells]) ** 2 / expected[cells]))
    return stat


def degrees_of_freedom(att: Attribute) -> int:
    return att.num_values - 1


def critical_value(confidence_level: float, dof: int) -> float:
    """Chi-square value below which independence is not rejected."""
    return float(chi2.ppf(confidence_level, dof))


def small_bucket_fraction(subsets: list[Dataset], min_size: int = MIN_BUCKET_SIZE) -> float:
    """Fraction of ``subsets`` (unknown bucket included) with fewer than ``min_size`` instances."""
    small = sum(1 for s in subsets if s.num_instances < min_size)
    return small / len(subsets)


def chi_square_applicable(subsets: list[Dataset], min_size: int = MIN_BUCKET_SIZE,
                          max_fraction: float = MAX_SMALL_BUCKET_FRACTION) -> bool:
    """Whether buckets are large enough for the chi-square approximation to hold."""
    return small_bucket_fraction(subsets, min_size) < max_fraction
