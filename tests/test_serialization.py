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

import json
import unittest

import astropy.units as u
import numpy as np

from lsst.grids import (
    ALL_FLAGS,
    FLAG_OPERATION,
    ArrayModel,
    Flagged2D,
    FlaggedSerializationModel,
    FlagPlane2D,
    FlagPlaneSerializationModel,
    Grid2D,
    Grid2DSerializationModel,
    NumberType,
    SerializationReadError,
    Transposed2D,
)
from lsst.grids.tests import assert_same_values


class SerializationTestCase(unittest.TestCase):
    """Tests for the Pydantic serialization models."""

    def setUp(self) -> None:
        self.rng = np.random.default_rng(500)

    def test_grid(self) -> None:
        grid = Grid2D(self.rng.normal(size=(4, 3)).astype(np.float32), unit=u.nJy)
        grid.discard(1, 2)
        text = grid.serialize().model_dump_json()
        model = Grid2DSerializationModel.model_validate_json(text)
        self.assertEqual(model.data.dtype, NumberType.float32)
        self.assertEqual(model.data.shape, (4, 3))
        result = Grid2D.deserialize(model)
        self.assertEqual(result, grid)
        self.assertEqual(result.unit, u.nJy)
        self.assertFalse(result.is_valid(1, 2))
        result.set(0, 0, 10.0)
        self.assertNotEqual(grid.get(0, 0), 10.0)

    def test_grid_without_unit(self) -> None:
        grid = Grid2D(np.arange(6, dtype=np.int16).reshape(2, 3))
        text = grid.serialize().model_dump_json()
        self.assertNotIn("unit", json.loads(text))
        result = Grid2D.deserialize(Grid2DSerializationModel.model_validate_json(text))
        self.assertIsNone(result.unit)
        self.assertEqual(result.element_type, NumberType.int16)
        self.assertEqual(result, grid)

    def test_flag_plane(self) -> None:
        plane = FlagPlane2D(self.rng.integers(0, 255, size=(3, 5), dtype=np.uint8))
        text = plane.serialize().model_dump_json()
        result = FlagPlane2D.deserialize(FlagPlaneSerializationModel.model_validate_json(text))
        self.assertEqual(result, plane)
        self.assertEqual(result.flag_type, NumberType.uint8)

    def test_flagged(self) -> None:
        flagged = Flagged2D(Transposed2D(Grid2D(self.rng.normal(size=(5, 2)))), critical_flags=FLAG_OPERATION)
        flagged.create_flags(NumberType.uint16)
        flagged.flag(1, 3, FLAG_OPERATION)
        flagged.set(0, 0, 0.5)
        text = flagged.serialize().model_dump_json()
        model = FlaggedSerializationModel.model_validate_json(text)
        self.assertEqual(model.critical_flags, FLAG_OPERATION)
        result = Flagged2D.deserialize(model)
        self.assertIsInstance(result.basis, Grid2D)
        self.assertEqual(result.shape, (2, 5))
        self.assertEqual(result.critical_flags, FLAG_OPERATION)
        self.assertEqual(result.flags, flagged.flags)
        assert_same_values(self, result, flagged)

    def test_default_critical_flags(self) -> None:
        flagged = Flagged2D(Grid2D(1.0, shape=(2, 2)))
        flagged.create_flags()
        model = FlaggedSerializationModel.model_validate_json(flagged.serialize().model_dump_json())
        self.assertEqual(model.critical_flags, ALL_FLAGS)

    def test_bad_byte_count(self) -> None:
        model = ArrayModel(data=b"\x00" * 7, shape=(2, 2), dtype=NumberType.uint16)
        with self.assertRaises(SerializationReadError):
            model.unpack()

    def test_bad_flag_type(self) -> None:
        model = FlagPlaneSerializationModel(data=ArrayModel.pack(np.zeros((2, 2), dtype=np.int32)))
        with self.assertRaises(SerializationReadError):
            FlagPlane2D.deserialize(model)


if __name__ == "__main__":
    unittest.main()
