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

import math
import unittest

import numpy as np

from lsst.grids import Grid2D, Interpolation, Transposed2D
from lsst.grids.tests import assert_same_values, check_grid_contract


class Transposed2DTestCase(unittest.TestCase):
    """Tests for the index-swapping Transposed2D view."""

    def setUp(self) -> None:
        self.array = np.arange(4 * 7, dtype=np.float64).reshape(4, 7)
        self.grid = Grid2D(self.array.copy())
        self.transposed = Transposed2D(self.grid)

    def test_sizes(self) -> None:
        self.assertEqual(self.transposed.size_x, self.grid.size_y)
        self.assertEqual(self.transposed.size_y, self.grid.size_x)
        self.grid.set_size(2, 9)
        self.assertEqual(self.transposed.shape, (9, 2))
        self.assertEqual(Transposed2D().shape, (0, 0))

    def test_indexing(self) -> None:
        """Test that every coordinate-taking operation swaps indices."""
        for i in range(7):
            for j in range(4):
                self.assertEqual(self.transposed.get(i, j), self.array[j, i])
        self.transposed.set(6, 1, -5.0)
        self.assertEqual(self.grid.get(1, 6), -5.0)
        self.transposed.add(6, 1, 2.0)
        self.assertEqual(self.grid.get(1, 6), -3.0)
        self.transposed.discard(5, 0)
        self.assertFalse(self.grid.is_valid(0, 5))
        self.assertFalse(self.transposed.is_valid(5, 0))
        self.assertTrue(self.transposed.is_valid(0, 5))
        self.transposed.clear(5, 0)
        self.assertEqual(self.grid.get(0, 5), 0.0)
        np.testing.assert_array_equal(self.transposed.to_array(), self.grid.array.T)
        check_grid_contract(self, self.transposed, 6, 3)

    def test_interpolation(self) -> None:
        """Test that continuous coordinates are swapped too."""
        self.assertEqual(self.transposed.value_at_index(2.5, 1.0), self.grid.value_at_index(1.0, 2.5))
        self.assertEqual(
            self.transposed.value_at_index(2.2, 1.7, Interpolation.NEAREST), self.array[2, 2]
        )
        self.assertTrue(math.isnan(self.transposed.value_at_index(0.0, 5.0)))
        self.assertFalse(math.isnan(self.transposed.value_at_index(5.0, 0.0)))

    def test_involution(self) -> None:
        """Test that transposing twice restores the original indexing."""
        twice = Transposed2D(Transposed2D(self.grid))
        self.assertEqual(twice.shape, self.grid.shape)
        assert_same_values(self, twice, self.grid)
        for i in range(4):
            for j in range(7):
                self.assertEqual(twice.get(i, j), self.grid.get(i, j))
        self.assertEqual(twice.value_at_index(1.5, 3.25), self.grid.value_at_index(1.5, 3.25))


if __name__ == "__main__":
    unittest.main()
