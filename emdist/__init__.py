"""
This package computes the Earth Mover's Distance between weighted collections of features,
with an exact transportation simplex solver.

"""

__version__ = "0.1.0.dev0"

import logging

from emdist.cost import CostEvaluator  # noqa:F401
from emdist.emd import Flow, emd, emd_with_flow, get_distance, get_distance_and_flow  # noqa:F401
from emdist.exceptions import ConvergenceFailure, EmdError, InvalidCost, InvalidSignature  # noqa:F401
from emdist.signature import Signature  # noqa:F401

logger = logging.getLogger("emdist")
if not logger.handlers:  # To ensure reload() doesn't add another one
    logger.addHandler(logging.NullHandler())
