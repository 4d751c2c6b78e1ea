#!/usr/bin/env python
# encoding: utf-8

"""Module contains common utilities used in automated code tests for emdist modules.

Attributes:
-----------
module_path : str
    Full path to this module directory.

reference_features1, reference_weights1, reference_features2, reference_weights2 : list
    Color signatures with a known Euclidean EMD of about 160.542770.

reference_costs, reference_weights_supply, reference_weights_demand : list
    Explicit 5x3 transportation problem with a known EMD of about 1.888889.

Examples:
---------
>>> from emdist import Signature, get_distance
>>> from emdist.cost import euclidean
>>> from emdist.test.utils import reference_signatures
>>>
>>> first, second = reference_signatures()
>>> distance = get_distance(first, second, euclidean)

"""

import contextlib
import os
import shutil
import tempfile

from emdist.signature import Signature

module_path = os.path.dirname(__file__)  # needed because sample data files are located in the same folder


def datapath(fname):
    """Get full path for file `fname` in test data directory placed in this module directory."""
    return os.path.join(module_path, 'test_data', fname)


@contextlib.contextmanager
def temporary_file(name=""):
    """This context manager creates file `name` in temporary directory and returns its full path.
    Temporary directory with included files will deleted at the end of context. Note, it won't create file.

    Parameters
    ----------
    name : str
        Filename.

    Yields
    ------
    str
        Path to file `name` in temporary directory.

    """
    tmp = tempfile.mkdtemp()
    try:
        yield os.path.join(tmp, name)
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


# color signatures from Rubner's EMD reference data
reference_features1 = [[100, 40, 22], [211, 20, 2], [32, 190, 150], [2, 100, 100]]
reference_weights1 = [0.4, 0.3, 0.2, 0.1]
reference_features2 = [[0, 0, 0], [50, 100, 80], [255, 255, 255]]
reference_weights2 = [0.5, 0.3, 0.2]
reference_distance = 160.542770

# explicit cost matrix, features are row / column indices
reference_costs = [
    [3, 5, 2],
    [0, 2, 5],
    [1, 1, 3],
    [8, 4, 3],
    [7, 6, 5],
]
reference_weights_supply = [0.4, 0.2, 0.2, 0.1, 0.1]
reference_weights_demand = [0.6, 0.2, 0.1]
reference_costs_distance = 1.888889
reference_costs_flows = [
    (1, 0, 0.2),
    (0, 0, 0.3),
    (2, 0, 0.1),
    (3, 1, 0.1),
    (2, 1, 0.1),
    (0, 2, 0.1),
]


def reference_signatures():
    """Get the two color signatures with vector features."""
    return (
        Signature(reference_features1, reference_weights1),
        Signature(reference_features2, reference_weights2),
    )


def reference_costs_signatures():
    """Get the two signatures over row / column indices of :data:`reference_costs`."""
    return (
        Signature(range(len(reference_weights_supply)), reference_weights_supply),
        Signature(range(len(reference_weights_demand)), reference_weights_demand),
    )
