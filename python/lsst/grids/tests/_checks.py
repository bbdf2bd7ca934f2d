# This file is part of lsst-grids.
#
# Developed for the LSST Data Management System.
# This product includes software developed by the LSST Project
# (https://www.lsst.org).
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = (
    "assert_same_validity",
    "assert_same_values",
    "check_grid_contract",
    "validity_array",
)

import math
import unittest

import numpy as np

from .._grid import NumericGrid2D


def validity_array(grid: NumericGrid2D) -> np.ndarray:
    """Return a boolean array of ``grid.is_valid`` for every cell."""
    result = np.zeros(grid.shape, dtype=bool)
    for i in range(grid.size_x):
        for j in range(grid.size_y):
            result[i, j] = grid.is_valid(i, j)
    return result


def assert_same_validity(tc: unittest.TestCase, a: NumericGrid2D, b: NumericGrid2D) -> None:
    """Test that two grids have the same shape and the same valid cells.

    Parameters
    ----------
    tc
        Test case object with assert methods to use.
    a
        Grid to compare.
    b
        Grid to compare.
    """
    tc.assertEqual(a.shape, b.shape)
    np.testing.assert_array_equal(validity_array(a), validity_array(b))


def assert_same_values(tc: unittest.TestCase, a: NumericGrid2D, b: NumericGrid2D) -> None:
    """Test that two grids have the same valid cells, holding the same
    values.
    """
    assert_same_validity(tc, a, b)
    for i in range(a.size_x):
        for j in range(a.size_y):
            if a.is_valid(i, j):
                tc.assertEqual(a.get(i, j), b.get(i, j), msg=f"cell ({i}, {j})")


def check_grid_contract(tc: unittest.TestCase, grid: NumericGrid2D, i: int, j: int) -> None:
    """Exercise the cell-level operations of a floating-point grid on one
    cell.

    The cell's previous contents are overwritten.

    Parameters
    ----------
    tc
        Test case object with assert methods to use.
    grid
        Grid to test.  Its element type must be floating-point.
    i
        First index of the cell to use.
    j
        Second index of the cell to use.
    """
    tc.assertTrue(grid.contains_index(i, j))
    grid.set(i, j, 2.5)
    tc.assertTrue(grid.is_valid(i, j))
    tc.assertEqual(grid.get(i, j), 2.5)
    grid.add(i, j, 1.0)
    tc.assertEqual(grid.get(i, j), 3.5)
    grid.discard(i, j)
    tc.assertFalse(grid.is_valid(i, j))
    grid.set(i, j, -1.0)
    tc.assertTrue(grid.is_valid(i, j))
    tc.assertEqual(grid.value_at_index(i, j), -1.0)
    tc.assertLess(grid.compare(math.nan, -1.0), 0)
    tc.assertGreater(grid.compare(1.0, -1.0), 0)
    tc.assertEqual(grid.compare(1.0, 1.0), 0)
