# id3chi/__init__.py
"""
id3chi: ID3 decision trees for nominal data with chi-square pre-pruning and
fractional handling of missing values (scikit-learn style).

Exports:
    - ID3ChiClassifier
    - Dataset, Attribute, Instance, MISSING
    - build, classify, class_distribution, token_distribution, render
    - CapabilityError, UndefinedQueryError
"""
from .dataset import MISSING, Attribute, Dataset, Instance, partition
from .exceptions import CapabilityError, UndefinedQueryError
from .tree import (
    DecisionTree,
    ID3ChiClassifier,
    build,
    class_distribution,
    classify,
    render,
    token_distribution,
)

__all__ = [
    "ID3ChiClassifier",
    "DecisionTree",
    "Dataset",
    "Attribute",
    "Instance",
    "MISSING",
    "partition",
    "build",
    "classify",
    "class_distribution",
    "token_distribution",
    "render",
    "CapabilityError",
    "UndefinedQueryError",
]
__version__ = "0.1.0"
