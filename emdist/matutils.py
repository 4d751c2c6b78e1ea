#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Math helper functions: dense cost matrices and matrix views of flow lists."""

import logging

import numpy as np
import scipy.sparse

from emdist.emd import Flow

logger = logging.getLogger(__name__)


def cost_matrix(first, second, cost_fn, dtype=np.float64):
    """Materialize the full cost matrix between the features of two signatures.

    The solver never needs this; it is meant for inspecting small problems.

    Parameters
    ----------
    first : :class:`~emdist.signature.Signature`
        Signature indexing the rows.
    second : :class:`~emdist.signature.Signature`
        Signature indexing the columns.
    cost_fn : callable
        Function `cost_fn(a, b) -> float` over one feature of `first` and one of `second`.
    dtype : data-type, optional
        Data type of the output matrix.

    Returns
    -------
    numpy.ndarray
        Matrix of shape `(len(first), len(second))`.

    """
    result = np.empty((len(first), len(second)), dtype=dtype)
    for i, a in enumerate(first.features):
        for j, b in enumerate(second.features):
            result[i, j] = cost_fn(a, b)
    return result


def flows2csr(flows, shape, dtype=np.float64):
    """Convert a list of flows into a sparse `scipy.sparse.csr_matrix`, sources as rows.

    Parameters
    ----------
    flows : iterable of (int, int, float)
        Flows as returned by :func:`~emdist.emd.get_distance_and_flow`.
    shape : (int, int)
        Number of features of the first and of the second signature.
    dtype : data-type, optional
        Data type of the output matrix.

    Returns
    -------
    scipy.sparse.csr_matrix
        Flow matrix; repeated `(source, target)` pairs are summed.

    """
    flows = list(flows)
    rows = np.array([flow[0] for flow in flows], dtype=np.int64)
    cols = np.array([flow[1] for flow in flows], dtype=np.int64)
    data = np.array([flow[2] for flow in flows], dtype=dtype)
    return scipy.sparse.coo_matrix((data, (rows, cols)), shape=shape, dtype=dtype).tocsr()


def flows2dense(flows, shape, dtype=np.float64):
    """Like :func:`~emdist.matutils.flows2csr`, but return a dense numpy array."""
    return flows2csr(flows, shape, dtype=dtype).toarray()


def dense2flows(matrix, eps=1e-9):
    """Convert a dense flow matrix back into a list of :class:`~emdist.emd.Flow`, row by row.

    Parameters
    ----------
    matrix : numpy.ndarray
        Two-dimensional flow matrix.
    eps : float
        Entries not greater than `eps` are left out.

    Returns
    -------
    list of :class:`~emdist.emd.Flow`

    """
    matrix = np.asarray(matrix, dtype=float)
    rows, cols = np.nonzero(matrix > eps)
    return [Flow(int(i), int(j), float(matrix[i, j])) for i, j in zip(rows, cols)]


def flow_marginals(flows, shape):
    """Total mass leaving every source and reaching every target.

    Returns
    -------
    (numpy.ndarray, numpy.ndarray)
        Row sums of length `shape[0]` and column sums of length `shape[1]`.

    """
    matrix = flows2csr(flows, shape)
    return np.asarray(matrix.sum(axis=1)).ravel(), np.asarray(matrix.sum(axis=0)).ravel()
