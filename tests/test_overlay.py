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

import unittest

import astropy.units as u
import numpy as np

from lsst.grids import (
    Flagged2D,
    Grid2D,
    Interpolation,
    NumberType,
    Overlay2D,
    Transposed2D,
    UnattachedViewError,
)
from lsst.grids.tests import assert_same_values, check_grid_contract


class Overlay2DTestCase(unittest.TestCase):
    """Tests for the delegating Overlay2D view."""

    def setUp(self) -> None:
        self.rng = np.random.default_rng(42)
        self.grid = Grid2D(self.rng.normal(0.0, 1.0, size=(5, 8)), unit=u.mJy, parallel=3)
        self.overlay = Overlay2D(self.grid)

    def test_delegation(self) -> None:
        """Test that reads and writes go straight to the basis."""
        assert_same_values(self, self.overlay, self.grid)
        self.overlay.set(3, 4, 7.0)
        self.assertEqual(self.grid.get(3, 4), 7.0)
        self.overlay.add(3, 4, 1.0)
        self.assertEqual(self.grid.get(3, 4), 8.0)
        self.overlay.discard(0, 1)
        self.assertFalse(self.grid.is_valid(0, 1))
        self.assertFalse(self.overlay.is_valid(0, 1))
        self.overlay.clear(0, 1)
        self.assertEqual(self.grid.get(0, 1), 0.0)
        self.assertEqual(self.overlay.element_type, NumberType.float64)
        self.assertEqual(self.overlay.unit, u.mJy)
        self.assertEqual(self.overlay.value_at_index(0.5, 0.5), self.grid.value_at_index(0.5, 0.5))
        self.assertEqual(
            self.overlay.value_at_index(1.2, 2.7, Interpolation.NEAREST), self.grid.get(1, 3)
        )
        check_grid_contract(self, self.overlay, 4, 7)

    def test_size_liveness(self) -> None:
        """Test that resizing the basis is seen without rebuilding the view."""
        self.assertEqual(self.overlay.shape, (5, 8))
        self.grid.set_size(11, 2)
        self.assertEqual(self.overlay.size_x, 11)
        self.assertEqual(self.overlay.size_y, 2)
        self.overlay.basis = Grid2D(0.0, shape=(3, 3))
        self.assertEqual(self.overlay.shape, (3, 3))

    def test_unattached(self) -> None:
        """Test that an overlay without a basis has zero size and refuses
        everything else.
        """
        overlay = Overlay2D()
        self.assertIsNone(overlay.basis)
        self.assertEqual(overlay.size_x, 0)
        self.assertEqual(overlay.size_y, 0)
        self.assertEqual(overlay.count_valid(), 0)
        with self.assertRaises(UnattachedViewError):
            overlay.get(0, 0)
        with self.assertRaises(UnattachedViewError):
            overlay.set(0, 0, 1.0)
        with self.assertRaises(UnattachedViewError):
            overlay.is_valid(0, 0)
        with self.assertRaises(UnattachedViewError):
            overlay.element_type
        overlay.set_basis(self.grid)
        self.assertEqual(overlay.get(1, 1), self.grid.get(1, 1))

    def test_parallel(self) -> None:
        """Test that the parallel degree is copied from the basis."""
        self.assertEqual(self.overlay.parallel, 3)
        self.overlay.parallel = 2
        self.assertEqual(self.grid.parallel, 3)
        self.assertEqual(Overlay2D(self.overlay).parallel, 2)
        self.assertEqual(Overlay2D().parallel, 1)

    def test_equality(self) -> None:
        """Test that overlays compare by the value of their bases."""
        other = Overlay2D(self.grid.copy())
        self.assertEqual(self.overlay, other)
        self.assertEqual(hash(self.overlay), hash(other))
        self.assertNotEqual(self.overlay, Transposed2D(self.grid))
        other.set(0, 0, 100.0)
        self.assertNotEqual(self.overlay, other)
        self.assertEqual(Overlay2D(), Overlay2D())

    def test_copy(self) -> None:
        copy = self.overlay.copy()
        self.assertIs(type(copy), Overlay2D)
        self.assertEqual(copy, self.overlay)
        self.assertIsNot(copy.basis, self.grid)
        copy.set(0, 0, 99.0)
        self.assertNotEqual(self.grid.get(0, 0), 99.0)

    def test_find(self) -> None:
        """Test looking up views along a delegation chain."""
        flagged = Flagged2D(self.grid)
        chain = Transposed2D(Overlay2D(flagged))
        self.assertIs(chain.find(Transposed2D), chain)
        self.assertIs(chain.find(Flagged2D), flagged)
        self.assertIs(chain.find(Grid2D), self.grid)
        self.assertIsNone(Overlay2D(self.grid).find(Flagged2D))


if __name__ == "__main__":
    unittest.main()
