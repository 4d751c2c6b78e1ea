#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""
Automated tests for checking the transportation simplex solver.
"""

import logging
import unittest

import numpy as np
from testfixtures import log_capture

from emdist.cost import CostEvaluator, euclidean, from_matrix
from emdist.exceptions import ConvergenceFailure
from emdist.signature import Signature
from emdist.solver import OPTIMALITY_TOLERANCE, TransportationSimplex
from emdist.test.utils import reference_costs, reference_costs_signatures, reference_signatures


def make_solver(first, second, cost_fn, **kwargs):
    return TransportationSimplex(first, second, CostEvaluator(first, second, cost_fn), **kwargs)


def cells_of(solver):
    return [(cell.row, cell.col) for cell in solver.cells]


class TestBalancing(unittest.TestCase):
    def test_balanced_problem_has_no_dummy(self):
        first, second = reference_signatures()
        solver = make_solver(first, second, euclidean)
        self.assertEqual((4, 3), (solver.num_rows, solver.num_cols))
        self.assertAlmostEqual(1.0, solver.moved_mass)

    def test_dummy_demand(self):
        first, second = reference_costs_signatures()
        solver = make_solver(first, second, from_matrix(reference_costs))
        self.assertEqual((5, 4), (solver.num_rows, solver.num_cols))
        self.assertAlmostEqual(0.1, solver.demand[-1])
        self.assertAlmostEqual(0.9, solver.moved_mass)
        self.assertTrue(solver.is_dummy(0, 3))
        self.assertFalse(solver.is_dummy(4, 2))
        self.assertEqual(0.0, solver.cost_at(2, 3))

    def test_dummy_supply(self):
        second, first = reference_costs_signatures()
        solver = make_solver(first, second, lambda a, b: 1.0)
        self.assertEqual((4, 5), (solver.num_rows, solver.num_cols))
        self.assertAlmostEqual(0.1, solver.supply[-1])
        self.assertTrue(solver.is_dummy(3, 0))

    def test_default_iteration_cap(self):
        first, second = reference_costs_signatures()
        solver = make_solver(first, second, from_matrix(reference_costs))
        self.assertEqual(10 * (5 + 4) ** 2, solver.max_iterations)

    def test_bad_arguments(self):
        first, second = reference_signatures()
        with self.assertRaises(ValueError):
            make_solver(first, second, euclidean, initial_solution='vogel')
        with self.assertRaises(ValueError):
            make_solver(first, second, euclidean, max_iterations=-1)


class TestInitialBasis(unittest.TestCase):
    def setUp(self):
        self.first, self.second = reference_costs_signatures()
        self.cost_fn = from_matrix(reference_costs)

    def test_northwest_corner(self):
        solver = make_solver(self.first, self.second, self.cost_fn, initial_solution='northwest').initial_basis()
        # supply and demand run out together at (1, 0) and (3, 2): only the row is eliminated
        self.assertEqual(
            [(0, 0), (1, 0), (2, 0), (2, 1), (3, 1), (3, 2), (4, 2), (4, 3)],
            cells_of(solver),
        )
        flows = [cell.flow for cell in solver.cells]
        self.assertTrue(np.allclose([0.4, 0.2, 0.0, 0.2, 0.0, 0.1, 0.0, 0.1], flows))

    def test_russell(self):
        solver = make_solver(self.first, self.second, self.cost_fn, initial_solution='russell').initial_basis()
        self.assertEqual(
            [(1, 0), (0, 0), (2, 0), (3, 1), (2, 1), (4, 2), (2, 2), (2, 3)],
            cells_of(solver),
        )
        flows = [cell.flow for cell in solver.cells]
        self.assertTrue(np.allclose([0.2, 0.4, 0.0, 0.1, 0.1, 0.1, 0.0, 0.1], flows))

    def test_basis_is_spanning_tree(self):
        for method in ('northwest', 'russell'):
            solver = make_solver(self.first, self.second, self.cost_fn, initial_solution=method).initial_basis()
            self.assertEqual(solver.num_rows + solver.num_cols - 1, len(solver.cells))
            self.assertEqual(len(solver.cells), len(solver.basic))
            u, v = solver._potentials()  # raises unless every node is reached
            self.assertNotIn(None, u + v)

    def test_initial_basis_is_feasible(self):
        for method in ('northwest', 'russell'):
            solver = make_solver(self.first, self.second, self.cost_fn, initial_solution=method).initial_basis()
            rows = np.zeros(solver.num_rows)
            cols = np.zeros(solver.num_cols)
            for cell in solver.cells:
                self.assertGreaterEqual(cell.flow, 0.0)
                rows[cell.row] += cell.flow
                cols[cell.col] += cell.flow
            self.assertTrue(np.allclose(solver.supply, rows))
            self.assertTrue(np.allclose(solver.demand, cols))

    def test_initial_basis_built_once(self):
        solver = make_solver(self.first, self.second, self.cost_fn).initial_basis()
        with self.assertRaises(RuntimeError):
            solver.initial_basis()


class TestPivoting(unittest.TestCase):
    def setUp(self):
        self.first, self.second = reference_costs_signatures()
        self.cost_fn = from_matrix(reference_costs)

    def test_optimal_basis_certified_by_potentials(self):
        for method in ('northwest', 'russell'):
            solver = make_solver(self.first, self.second, self.cost_fn, initial_solution=method).solve()
            u, v = solver._potentials()
            for cell in solver.cells:
                self.assertAlmostEqual(solver.cost_at(cell.row, cell.col), u[cell.row] + v[cell.col])
            for row in range(solver.num_rows):
                for col in range(solver.num_cols):
                    reduced = solver.cost_at(row, col) - u[row] - v[col]
                    self.assertGreaterEqual(reduced, -OPTIMALITY_TOLERANCE * 8.0)
            self.assertEqual(solver.num_rows + solver.num_cols - 1, len(solver.cells))

    def test_russell_needs_two_pivots(self):
        solver = make_solver(self.first, self.second, self.cost_fn, initial_solution='russell', max_iterations=2).solve()
        self.assertEqual(2, solver.iterations)

    def test_northwest_start_is_already_optimal(self):
        solver = make_solver(self.first, self.second, self.cost_fn, initial_solution='northwest', max_iterations=0).solve()
        self.assertEqual(0, solver.iterations)

    def test_iteration_cap(self):
        solver = make_solver(self.first, self.second, self.cost_fn, initial_solution='russell', max_iterations=1)
        with self.assertRaises(ConvergenceFailure):
            solver.solve()

    def test_single_row(self):
        first = Signature([0.0], [1.0])
        second = Signature([1.0, 2.0, 3.0], [0.2, 0.3, 0.5])
        solver = make_solver(first, second, lambda a, b: abs(a - b)).solve()
        self.assertEqual(0, solver.iterations)
        self.assertEqual([(0, 0), (0, 1), (0, 2)], sorted(cells_of(solver)))

    @log_capture()
    def test_logging(self, loglines):
        make_solver(self.first, self.second, self.cost_fn).solve()
        self.assertIn("solved 5x3 transportation problem in 2 pivots", str(loglines))
        self.assertIn("leaves the basis", str(loglines))


if __name__ == '__main__':
    logging.basicConfig(format='%(asctime)s : %(levelname)s : %(message)s', level=logging.DEBUG)
    unittest.main()
