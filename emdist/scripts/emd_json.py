#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Compute the Earth Mover's Distance of a problem stored in a JSON file.

The JSON file holds either an explicit transportation problem::

    {"costs": [[3, 5, 2], [0, 2, 5]], "supply": [0.6, 0.4], "demand": [0.5, 0.3, 0.2]}

or two signatures over vector features and the name of a ground distance
(`euclidean` or `manhattan`)::

    {"first": {"features": [[0, 0], [4, 0]], "weights": [0.5, 0.5]},
     "second": {"features": [[0, 3]]},
     "metric": "euclidean"}

The distance is printed to stdout; the optimal flows can be written to a CSV file with
`source,target,amount` columns.

How to use
----------
.. sourcecode:: bash

    python -m emdist.scripts.emd_json -i problem.json -o flows.csv

"""

import argparse
import csv
import logging
import sys

from emdist import utils
from emdist.emd import get_distance_and_flow
from emdist.exceptions import EmdError
from emdist.solver import DEFAULT_INITIAL_SOLUTION, INITIAL_SOLUTIONS

logger = logging.getLogger(__name__)


def write_flows(flows, output_file):
    """Write `flows` to `output_file` as CSV with a `source,target,amount` header.

    Parameters
    ----------
    flows : iterable of :class:`~emdist.emd.Flow`
        Flows to write.
    output_file : str
        Path or URI of the output file.

    Returns
    -------
    int
        Number of flows written.

    """
    count = 0
    with utils.open(output_file, 'w', newline='') as fout:
        writer = csv.writer(fout)
        writer.writerow(['source', 'target', 'amount'])
        for flow in flows:
            writer.writerow([flow.source, flow.target, repr(flow.amount)])
            count += 1
    logger.info("wrote %i flows to %s", count, output_file)
    return count


def main(argv=None):
    """Run the command line tool, returning the process exit status."""
    parser = argparse.ArgumentParser(description=__doc__.split("How to use")[0], formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("-i", "--input", required=True, help="Path to the JSON problem")
    parser.add_argument("-o", "--output", help="Path to the output CSV of flows")
    parser.add_argument(
        "-m", "--method", default=DEFAULT_INITIAL_SOLUTION, choices=INITIAL_SOLUTIONS,
        help="Rule building the initial basic feasible solution (default: %(default)s)",
    )
    parser.add_argument("--max-iterations", type=int, default=None, help="Maximum number of simplex pivots")
    args = parser.parse_args(argv)

    try:
        first, second, cost_fn = utils.load_problem(args.input)
        distance, flows = get_distance_and_flow(
            first, second, cost_fn, max_iterations=args.max_iterations, initial_solution=args.method,
        )
    except (EmdError, OSError, ValueError) as err:
        logger.error("failed to compute the EMD of %s: %s", args.input, err)
        return 1

    print(repr(distance))
    if args.output:
        write_flows(flows, args.output)
    return 0


if __name__ == "__main__":
    logging.basicConfig(format='%(asctime)s - %(module)s - %(levelname)s - %(message)s', level=logging.INFO)
    logger.info("running %s", " ".join(sys.argv))
    sys.exit(main())
