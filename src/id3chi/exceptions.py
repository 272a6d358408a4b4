# -*- coding: utf-8 -*-
"""
id3chi.exceptions
=================

Errors raised by the tree builder and the inference walks.
"""


class CapabilityError(ValueError):
    """Training data violates a structural precondition of the learner.

    Raised before any tree construction starts: a non-nominal attribute, an
    attribute with fewer than two values, or a missing class value.
    """


class UndefinedQueryError(ValueError):
    """Strict classification reached a test on a missing or unknown value.

    Use the token (fractional) classification path when queries may carry
    missing values.
    """
