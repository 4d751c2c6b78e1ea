#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Transportation simplex (MODI, or u-v method) solver behind the Earth Mover's Distance.

The transportation problem between two signatures is first balanced with a zero-cost dummy node,
then an initial basic feasible solution is built and pivoted to optimality. The basis is kept
as a spanning tree over the supply (row) and demand (column) nodes: an arena of cell records,
addressed by integer ids, plus per-row and per-column lists of those ids.

Notes
-----
The entering cell is the non-basic cell with the most negative reduced cost, the leaving cell is
the `-` cell of the cycle carrying the least flow. Ties go to the lowest `(row, column)` pair in
both cases, which keeps degenerate (zero-amount) pivots deterministic.

References
----------
.. [1] Y. Rubner, C. Tomasi, L. J. Guibas. "The Earth Mover's Distance as a Metric for Image Retrieval",
   International Journal of Computer Vision 40(2), 2000.

"""

from collections import deque
import itertools
import logging

import numpy as np

from emdist.exceptions import ConvergenceFailure, InvalidSignature

logger = logging.getLogger(__name__)

#: Relative tolerance on masses: balancing test, exhausted supply/demand, numerically-zero flows.
EPSILON = 1e-12

#: Reduced costs above `-OPTIMALITY_TOLERANCE * max(1, largest cost)` count as non-negative.
OPTIMALITY_TOLERANCE = 1e-9

INITIAL_SOLUTIONS = ('russell', 'northwest')
DEFAULT_INITIAL_SOLUTION = 'russell'


class _Cell:
    """One basic cell of the flow matrix."""
    __slots__ = ('row', 'col', 'flow')

    def __init__(self, row, col, flow):
        self.row = row
        self.col = col
        self.flow = flow

    def __repr__(self):
        return '_Cell(%i, %i, %r)' % (self.row, self.col, self.flow)


class TransportationSimplex:
    """Minimum-cost transport of mass from one signature to another.

    Parameters
    ----------
    first : :class:`~emdist.signature.Signature`
        Supply side.
    second : :class:`~emdist.signature.Signature`
        Demand side.
    cost : :class:`~emdist.cost.CostEvaluator`
        Ground costs between `first` and `second`.
    max_iterations : int, optional
        Maximum number of pivots. If None, `10 * (rows + columns) ** 2` of the balanced problem.
    initial_solution : {'russell', 'northwest'}, optional
        Rule building the initial basic feasible solution.

    Attributes
    ----------
    cells : list of _Cell
        Arena of basic cells. Always exactly `rows + columns - 1` entries.
    moved_mass : float
        Mass actually transported, `min(first.total_weight, second.total_weight)`.
    iterations : int
        Number of pivots performed by :meth:`solve`.

    """
    def __init__(self, first, second, cost, max_iterations=None, initial_solution=DEFAULT_INITIAL_SOLUTION):
        if initial_solution not in INITIAL_SOLUTIONS:
            raise ValueError("initial_solution must be one of %s, got %r" % (INITIAL_SOLUTIONS, initial_solution))
        if max_iterations is not None and max_iterations < 0:
            raise ValueError("max_iterations must be non-negative, got %r" % (max_iterations,))

        self.cost = cost
        self.initial_solution = initial_solution
        self.num_real_rows, self.num_real_cols = len(first), len(second)

        supply = first.weights.tolist()
        demand = second.weights.tolist()
        total_supply, total_demand = first.total_weight, second.total_weight
        self.moved_mass = min(total_supply, total_demand)
        self.max_weight = max(total_supply, total_demand)
        if not self.moved_mass > 0.0:
            raise InvalidSignature("signatures must carry a positive total weight")

        # an unbalanced problem gets a zero-cost dummy node on its lighter side
        diff = total_supply - total_demand
        if abs(diff) >= EPSILON * self.max_weight:
            if diff < 0.0:
                supply.append(-diff)
            else:
                demand.append(diff)
            logger.debug("balancing supply %s and demand %s with a dummy node of weight %s", total_supply, total_demand, abs(diff))
        self.supply = supply
        self.demand = demand
        self.num_rows, self.num_cols = len(supply), len(demand)

        if max_iterations is None:
            max_iterations = 10 * (self.num_rows + self.num_cols) ** 2
        self.max_iterations = max_iterations

        self.cells = []
        self.rows = [[] for _ in range(self.num_rows)]
        self.cols = [[] for _ in range(self.num_cols)]
        self.basic = set()
        self.iterations = 0

    def is_dummy(self, row, col):
        """Does the cell `(row, col)` involve the dummy node of the balanced problem?"""
        return row >= self.num_real_rows or col >= self.num_real_cols

    def cost_at(self, row, col):
        """Ground cost of cell `(row, col)`; zero for cells involving the dummy node."""
        if self.is_dummy(row, col):
            return 0.0
        return self.cost.evaluate(row, col)

    def solve(self):
        """Build an initial basis and pivot it until no non-basic cell has a negative reduced cost.

        Returns
        -------
        :class:`~emdist.solver.TransportationSimplex`
            Self, with :attr:`cells` holding the optimal basis.

        Raises
        ------
        :class:`~emdist.exceptions.ConvergenceFailure`
            If more than `max_iterations` pivots are needed.
        :class:`~emdist.exceptions.InvalidCost`
            If the cost function returns a negative value for a visited cell.

        """
        self.initial_basis()
        for pivots in itertools.count():
            u, v = self._potentials()
            entering = self._entering_cell(u, v)
            if entering is None:
                self.iterations = pivots
                break
            if pivots >= self.max_iterations:
                raise ConvergenceFailure(
                    "maximum number of iterations has been reached (%i) on a %ix%i problem"
                    % (self.max_iterations, self.num_rows, self.num_cols)
                )
            self._pivot(*entering)

        logger.info(
            "solved %ix%i transportation problem in %i pivots (%i cost evaluations)",
            self.num_real_rows, self.num_real_cols, self.iterations, self.cost.evaluations,
        )
        return self

    def initial_basis(self):
        """Fill :attr:`cells` with a basic feasible solution of `rows + columns - 1` cells, using `initial_solution`."""
        if self.cells:
            raise RuntimeError("initial basis already built")
        if self.initial_solution == 'northwest':
            self._northwest_corner()
        else:
            self._russell()
        logger.debug("initial %s basis has %i cells", self.initial_solution, len(self.cells))
        return self

    def _add_cell(self, row, col, flow):
        cell_id = len(self.cells)
        self.cells.append(_Cell(row, col, flow))
        self.rows[row].append(cell_id)
        self.cols[col].append(cell_id)
        self.basic.add((row, col))

    def _northwest_corner(self):
        """Fill cells from the top-left corner, moving down when a supply row is exhausted and right otherwise.

        When supply and demand run out together, only the row is eliminated: the next cell of the same
        column then enters the basis with zero flow, so the basis stays a spanning tree.

        """
        supply, demand = list(self.supply), list(self.demand)
        last_row, last_col = self.num_rows - 1, self.num_cols - 1
        tolerance = EPSILON * self.max_weight
        row = col = 0
        while True:
            amount = min(supply[row], demand[col])
            self._add_cell(row, col, amount)
            supply[row] -= amount
            demand[col] -= amount
            if row == last_row and col == last_col:
                break
            if row < last_row and (supply[row] <= tolerance or col == last_col):
                row += 1
            else:
                col += 1

    def _russell(self):
        """Greedy start after Russell's approximation method.

        Every cell is ranked by `C[i][j] - max_k C[i][k] - max_k C[k][j]`, with the maxima taken once over
        the full matrix. The lowest-ranked live cell receives as much flow as its row and column allow; then
        the row is eliminated if its supply ran out (and it is not the last live row), the column otherwise.

        """
        costs = np.array(
            [[self.cost_at(row, col) for col in range(self.num_cols)] for row in range(self.num_rows)],
            dtype=np.float64,
        )
        penalties = costs - costs.max(axis=1)[:, None] - costs.max(axis=0)[None, :]

        supply, demand = list(self.supply), list(self.demand)
        tolerance = EPSILON * self.max_weight
        live_rows, live_cols = list(range(self.num_rows)), list(range(self.num_cols))
        while live_cols:
            # argmin picks the first minimum in row-major order, i.e. the lowest (row, col)
            best = int(np.argmin(penalties[np.ix_(live_rows, live_cols)]))
            row, col = live_rows[best // len(live_cols)], live_cols[best % len(live_cols)]

            if abs(supply[row] - demand[col]) <= tolerance or supply[row] < demand[col]:
                amount = supply[row]
                supply[row] = 0.0
                demand[col] = max(demand[col] - amount, 0.0)
            else:
                amount = demand[col]
                demand[col] = 0.0
                supply[row] -= amount
            self._add_cell(row, col, amount)

            if supply[row] == 0.0 and len(live_rows) > 1:
                live_rows.remove(row)
            else:
                live_cols.remove(col)

    def _potentials(self):
        """Solve `u[i] + v[j] = C[i][j]` over all basic cells by walking the basis tree from `u[0] = 0`."""
        u = [None] * self.num_rows
        v = [None] * self.num_cols
        u[0] = 0.0
        reached = 1
        queue = deque([(True, 0)])
        while queue:
            is_row, node = queue.popleft()
            if is_row:
                for cell_id in self.rows[node]:
                    cell = self.cells[cell_id]
                    if v[cell.col] is None:
                        v[cell.col] = self.cost_at(cell.row, cell.col) - u[node]
                        queue.append((False, cell.col))
                        reached += 1
            else:
                for cell_id in self.cols[node]:
                    cell = self.cells[cell_id]
                    if u[cell.row] is None:
                        u[cell.row] = self.cost_at(cell.row, cell.col) - v[node]
                        queue.append((True, cell.row))
                        reached += 1

        if reached != self.num_rows + self.num_cols:
            raise ConvergenceFailure(
                "basis no longer spans all nodes (%i of %i reached)" % (reached, self.num_rows + self.num_cols)
            )
        return u, v

    def _entering_cell(self, u, v):
        """Find the non-basic cell with the most negative reduced cost, or None if the basis is optimal."""
        threshold = -OPTIMALITY_TOLERANCE * max(1.0, self.cost.max_cost)
        best, best_reduced = None, threshold
        for row in range(self.num_rows):
            for col in range(self.num_cols):
                if (row, col) in self.basic:
                    continue
                reduced = self.cost_at(row, col) - u[row] - v[col]
                if reduced < best_reduced:
                    best, best_reduced = (row, col), reduced
        if best is not None:
            logger.debug("cell %s enters with reduced cost %.6g", best, best_reduced)
        return best

    def _cycle(self, row, col):
        """Tree path from column `col` to row `row`, as cell ids.

        Together with the entering cell `(row, col)` the path closes the unique cycle. Cells at even
        positions give up flow, cells at odd positions receive it.

        """
        start, goal = (False, col), (True, row)
        parents = {start: None}
        queue = deque([start])
        while queue:
            node = queue.popleft()
            if node == goal:
                break
            is_row, index = node
            for cell_id in (self.rows[index] if is_row else self.cols[index]):
                cell = self.cells[cell_id]
                neighbour = (False, cell.col) if is_row else (True, cell.row)
                if neighbour not in parents:
                    parents[neighbour] = (cell_id, node)
                    queue.append(neighbour)
        else:
            raise ConvergenceFailure("no cycle through entering cell (%i, %i)" % (row, col))

        path = []
        node = goal
        while parents[node] is not None:
            cell_id, node = parents[node]
            path.append(cell_id)
        path.reverse()
        return path

    def _pivot(self, row, col):
        """Bring cell `(row, col)` into the basis, pushing flow around its cycle."""
        path = self._cycle(row, col)
        donors, receivers = path[0::2], path[1::2]
        leaving = min(donors, key=lambda cell_id: (self.cells[cell_id].flow, self.cells[cell_id].row, self.cells[cell_id].col))
        amount = self.cells[leaving].flow

        for cell_id in receivers:
            self.cells[cell_id].flow += amount
        for cell_id in donors:
            cell = self.cells[cell_id]
            cell.flow = max(cell.flow - amount, 0.0)

        # the entering cell takes over the arena slot of the leaving one
        cell = self.cells[leaving]
        logger.debug("cell (%i, %i) leaves the basis, moving %.6g around a cycle of %i cells", cell.row, cell.col, amount, len(path) + 1)
        self.rows[cell.row].remove(leaving)
        self.cols[cell.col].remove(leaving)
        self.basic.discard((cell.row, cell.col))
        cell.row, cell.col, cell.flow = row, col, amount
        self.rows[row].append(leaving)
        self.cols[col].append(leaving)
        self.basic.add((row, col))
