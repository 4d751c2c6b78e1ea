#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""This module contains various general utility functions."""

import json
import logging

import numpy as np
import smart_open

from emdist import cost as emd_cost
from emdist.signature import Signature

logger = logging.getLogger(__name__)


def open(uri, mode, encoding='utf-8', **kwargs):
    """Open a local or remote file with `smart_open`, transparently (de)compressing by extension.

    Parameters
    ----------
    uri : str
        Path or URI, e.g. `./problem.json.gz` or `s3://bucket/problem.json`.
    mode : str
        Mode, as for the builtin :func:`open`.
    encoding : str, optional
        Text encoding, ignored in binary modes.

    Returns
    -------
    file-like

    """
    if 'b' in mode:
        encoding = None
    return smart_open.open(uri, mode, encoding=encoding, **kwargs)


def _signature(description, name):
    try:
        features = description['features']
    except (KeyError, TypeError):
        raise ValueError("'%s' must be an object with a 'features' list" % name)
    return Signature(features, description.get('weights'))


def problem_from_dict(data):
    """Build the two signatures and the cost function described by a plain dict.

    Two layouts are accepted. An explicit transportation problem::

        {"costs": [[3, 5], [0, 2]], "supply": [0.5, 0.5], "demand": [0.7, 0.3]}

    or two signatures over vector features with a named ground distance::

        {"first": {"features": [[0, 0], [1, 1]], "weights": [0.5, 0.5]},
         "second": {"features": [[0, 1]]},
         "metric": "euclidean"}

    Parameters
    ----------
    data : dict
        Problem description.

    Returns
    -------
    (:class:`~emdist.signature.Signature`, :class:`~emdist.signature.Signature`, callable)
        First signature, second signature, cost function.

    Raises
    ------
    ValueError
        If the description is incomplete, or the metric is unknown.
    :class:`~emdist.exceptions.InvalidSignature`
        If a signature is invalid.

    """
    if 'costs' in data:
        costs = np.asarray(data['costs'], dtype=np.float64)
        if costs.ndim != 2:
            raise ValueError("'costs' must be a matrix, got shape %s" % (costs.shape,))
        supply = data.get('supply')
        demand = data.get('demand')
        if supply is None or demand is None:
            raise ValueError("'costs' requires both 'supply' and 'demand'")
        if (len(supply), len(demand)) != costs.shape:
            raise ValueError(
                "'costs' has shape %s but supply and demand have lengths %i and %i"
                % (costs.shape, len(supply), len(demand))
            )
        first = Signature(range(len(supply)), supply)
        second = Signature(range(len(demand)), demand)
        return first, second, emd_cost.from_matrix(costs)

    metric = data.get('metric', 'euclidean')
    if metric not in emd_cost.METRICS:
        raise ValueError("unknown metric %r, expected one of %s" % (metric, sorted(emd_cost.METRICS)))
    first = _signature(data.get('first'), 'first')
    second = _signature(data.get('second'), 'second')
    return first, second, emd_cost.METRICS[metric]


def load_problem(uri):
    """Load a problem stored as JSON, see :func:`~emdist.utils.problem_from_dict` for the layout."""
    with open(uri, 'r') as fin:
        data = json.load(fin)
    logger.info("loaded problem from %s", uri)
    return problem_from_dict(data)
