#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Compute the Earth Mover's Distance between two signatures.

The distance is the least total cost of moving the mass of one signature onto the other,
divided by the mass actually moved. When the two signatures weigh differently, only the
lighter total is transported and the surplus stays in place for free.

Examples
--------
Signatures over arbitrary features, with a ground distance between features:

.. sourcecode:: pycon

    >>> from emdist import Signature, get_distance, get_distance_and_flow
    >>> from emdist.cost import euclidean
    >>>
    >>> first = Signature([[0.0, 0.0], [4.0, 0.0]], [0.5, 0.5])
    >>> second = Signature([[0.0, 3.0]], [1.0])
    >>> get_distance(first, second, euclidean)
    4.0
    >>> distance, flows = get_distance_and_flow(first, second, euclidean)
    >>> sorted((flow.source, flow.target, flow.amount) for flow in flows)
    [(0, 0, 0.5), (1, 0, 0.5)]

Histograms over shared bins, with a matrix of distances between bins:

.. sourcecode:: pycon

    >>> import numpy as np
    >>> from emdist import emd
    >>> emd(np.array([1.0, 0.0]), np.array([0.0, 1.0]), np.array([[0.0, 2.0], [2.0, 0.0]]))
    2.0

"""

from collections import namedtuple
import logging

import numpy as np

from emdist import cost as emd_cost
from emdist.signature import Signature
from emdist.solver import DEFAULT_INITIAL_SOLUTION, EPSILON, TransportationSimplex

logger = logging.getLogger(__name__)


class Flow(namedtuple('Flow', 'source target amount')):
    """Mass moved from feature `source` of the first signature to feature `target` of the second.

    Attributes
    ----------
    source : int
        Index of the feature in the first signature.
    target : int
        Index of the feature in the second signature.
    amount : float
        Mass moved.

    """
    __slots__ = ()

    def __str__(self):
        return '(%i, %i, %s)' % (self.source, self.target, self.amount)


def _solve(first, second, cost_fn, max_iterations, initial_solution):
    evaluator = emd_cost.CostEvaluator(first, second, cost_fn)
    return TransportationSimplex(
        first, second, evaluator, max_iterations=max_iterations, initial_solution=initial_solution,
    ).solve()


def _extract(solver):
    """Read the distance and the non-zero flows off an optimal basis.

    Cells involving the dummy node hold mass that is not moved: they are skipped, and the total cost
    is normalized by the mass actually transported.

    """
    threshold = EPSILON * solver.max_weight
    total_cost = 0.0
    flows = []
    for cell in solver.cells:
        if solver.is_dummy(cell.row, cell.col):
            continue
        total_cost += cell.flow * solver.cost_at(cell.row, cell.col)
        if cell.flow > threshold:
            flows.append(Flow(cell.row, cell.col, cell.flow))
    return total_cost / solver.moved_mass, flows


def get_distance(first, second, cost_fn, max_iterations=None, initial_solution=DEFAULT_INITIAL_SOLUTION):
    """Compute the Earth Mover's Distance between two signatures.

    Parameters
    ----------
    first : :class:`~emdist.signature.Signature`
        Signature mass is moved from.
    second : :class:`~emdist.signature.Signature`
        Signature mass is moved to.
    cost_fn : callable
        Pure function `cost_fn(a, b) -> float` giving the non-negative cost of moving a unit of mass from
        feature `a` of `first` to feature `b` of `second`. It is called again every time the solver needs
        a cell, so wrap it in a cache yourself if it is expensive.
    max_iterations : int, optional
        Maximum number of simplex pivots. If None, `10 * (rows + columns) ** 2` of the balanced problem,
        see :class:`~emdist.solver.TransportationSimplex`.
    initial_solution : {'russell', 'northwest'}, optional
        Rule building the initial basic feasible solution.

    Returns
    -------
    float
        Total cost of the optimal flow divided by `min(first.total_weight, second.total_weight)`.

    Raises
    ------
    :class:`~emdist.exceptions.InvalidCost`
        If `cost_fn` returns a negative or non-finite value.
    :class:`~emdist.exceptions.ConvergenceFailure`
        If the solver needs more than `max_iterations` pivots.

    """
    distance, _ = _extract(_solve(first, second, cost_fn, max_iterations, initial_solution))
    return distance


def get_distance_and_flow(first, second, cost_fn, max_iterations=None, initial_solution=DEFAULT_INITIAL_SOLUTION):
    """Compute the Earth Mover's Distance between two signatures, along with the optimal flow.

    Parameters are the same as for :func:`~emdist.emd.get_distance`.

    Returns
    -------
    (float, list of :class:`~emdist.emd.Flow`)
        The distance, and every non-zero flow of the optimal transport plan. Flows are listed in the
        order the solver holds them; compare them as a multiset.

    """
    return _extract(_solve(first, second, cost_fn, max_iterations, initial_solution))


def _histogram_problem(first_histogram, second_histogram, distance_matrix):
    distance_matrix = np.asarray(distance_matrix, dtype=np.float64)
    first_histogram = np.asarray(first_histogram, dtype=np.float64)
    second_histogram = np.asarray(second_histogram, dtype=np.float64)
    expected = (len(first_histogram), len(second_histogram))
    if distance_matrix.shape != expected:
        raise ValueError("distance matrix must have shape %s, got %s" % (expected, distance_matrix.shape))
    return (
        Signature.from_histogram(first_histogram),
        Signature.from_histogram(second_histogram),
        emd_cost.from_matrix(distance_matrix),
    )


def emd(first_histogram, second_histogram, distance_matrix, max_iterations=None, initial_solution=DEFAULT_INITIAL_SOLUTION):
    """Compute the Earth Mover's Distance between two histograms.

    Parameters
    ----------
    first_histogram : numpy.ndarray
        Non-negative mass of each bin of the first histogram.
    second_histogram : numpy.ndarray
        Non-negative mass of each bin of the second histogram.
    distance_matrix : numpy.ndarray
        `distance_matrix[a, b]` is the cost between bin `a` of the first histogram and bin `b` of the second.
    max_iterations : int, optional
        Maximum number of simplex pivots.
    initial_solution : {'russell', 'northwest'}, optional
        Rule building the initial basic feasible solution.

    Returns
    -------
    float
        Earth Mover's Distance between the histograms. Empty bins are ignored.

    """
    first, second, cost_fn = _histogram_problem(first_histogram, second_histogram, distance_matrix)
    return get_distance(first, second, cost_fn, max_iterations=max_iterations, initial_solution=initial_solution)


def emd_with_flow(first_histogram, second_histogram, distance_matrix, max_iterations=None, initial_solution=DEFAULT_INITIAL_SOLUTION):
    """Compute the Earth Mover's Distance between two histograms, along with the dense flow matrix.

    Parameters are the same as for :func:`~emdist.emd.emd`.

    Returns
    -------
    (float, numpy.ndarray)
        The distance, and a `len(first_histogram) x len(second_histogram)` matrix of moved mass.

    """
    first, second, cost_fn = _histogram_problem(first_histogram, second_histogram, distance_matrix)
    distance, flows = get_distance_and_flow(first, second, cost_fn, max_iterations=max_iterations, initial_solution=initial_solution)
    flow_matrix = np.zeros((len(first_histogram), len(second_histogram)), dtype=np.float64)
    for flow in flows:
        # features of a histogram signature are the original bin indices
        flow_matrix[first.features[flow.source], second.features[flow.target]] += flow.amount
    return distance, flow_matrix
