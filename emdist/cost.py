#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Ground costs between the features of two signatures.

The cost matrix is never built up front: :class:`CostEvaluator` calls the user's cost function
whenever the solver asks for a cell, and checks the returned value at that moment.
A few ready-made ground distances for vector features live here as well.

"""

import logging
import math

import numpy as np
from scipy.spatial import distance

from emdist.exceptions import InvalidCost

logger = logging.getLogger(__name__)


class CostEvaluator:
    """Lazy, non-caching accessor of the virtual `m x n` cost matrix between two signatures.

    Parameters
    ----------
    first : :class:`~emdist.signature.Signature`
        Signature indexing the rows.
    second : :class:`~emdist.signature.Signature`
        Signature indexing the columns.
    cost_fn : callable
        Pure function `cost_fn(a, b) -> float` over one feature of `first` and one of `second`.

    Attributes
    ----------
    evaluations : int
        How many times `cost_fn` has been called so far.
    max_cost : float
        Largest cost returned so far.

    """
    def __init__(self, first, second, cost_fn):
        if not callable(cost_fn):
            raise TypeError("cost function must be callable, got %r" % (cost_fn,))
        self.first = first.features
        self.second = second.features
        self.cost_fn = cost_fn
        self.evaluations = 0
        self.max_cost = 0.0

    @property
    def shape(self):
        """(int, int): Number of rows and columns of the virtual cost matrix."""
        return len(self.first), len(self.second)

    def evaluate(self, i, j):
        """Get the cost of moving mass from feature `i` of the first signature to feature `j` of the second.

        Raises
        ------
        :class:`~emdist.exceptions.InvalidCost`
            If the cost function returns a negative, NaN or infinite value.

        """
        value = float(self.cost_fn(self.first[i], self.second[j]))
        self.evaluations += 1
        if not value >= 0.0 or math.isinf(value):
            raise InvalidCost("cost between feature %i and feature %i must be finite and non-negative, got %r" % (i, j, value))
        if value > self.max_cost:
            self.max_cost = value
        return value

    def __repr__(self):
        return '%s(shape=%s, evaluations=%i)' % (self.__class__.__name__, self.shape, self.evaluations)


def euclidean(x, y):
    """Euclidean distance between two vectors.

    Parameters
    ----------
    x : array_like of float
    y : array_like of float

    Returns
    -------
    float

    """
    return float(distance.euclidean(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)))


def manhattan(x, y):
    """Manhattan (city block) distance between two vectors of equal length."""
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.shape != y.shape:
        raise ValueError("vectors must have the same shape, got %s and %s" % (x.shape, y.shape))
    return float(distance.cityblock(x, y))


def from_matrix(matrix):
    """Turn an explicit cost matrix into a cost function over integer features.

    Parameters
    ----------
    matrix : array_like of float
        Two-dimensional matrix, `matrix[a][b]` being the cost between features `a` and `b`.

    Returns
    -------
    callable
        Function `cost(a, b) -> float` looking up `matrix[a, b]`.

    Examples
    --------
    .. sourcecode:: pycon

        >>> cost = from_matrix([[0.0, 2.0], [1.0, 0.0]])
        >>> cost(1, 0)
        1.0

    """
    matrix = np.array(matrix, dtype=np.float64)
    if matrix.ndim != 2:
        raise ValueError("cost matrix must be two-dimensional, got shape %s" % (matrix.shape,))
    matrix.setflags(write=False)

    def cost(a, b):
        return float(matrix[a, b])
    return cost


METRICS = {
    'euclidean': euclidean,
    'manhattan': manhattan,
}
