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

__all__ = ("Transposed2D",)

import numpy as np

from ._grid import Interpolation, Number
from ._overlay import Overlay2D


class Transposed2D(Overlay2D):
    """A view of a grid with its two indices swapped.

    Cell ``(i, j)`` of the view is cell ``(j, i)`` of the basis.  No data
    is copied, and transposing a transposed view gives back the original
    indexing.
    """

    @property
    def size_x(self) -> int:
        return super().size_y

    @property
    def size_y(self) -> int:
        return super().size_x

    def get(self, i: int, j: int) -> Number:
        return super().get(j, i)

    def set(self, i: int, j: int, value: Number) -> None:
        super().set(j, i, value)

    def add(self, i: int, j: int, value: Number) -> None:
        super().add(j, i, value)

    def is_valid(self, i: int, j: int) -> bool:
        return super().is_valid(j, i)

    def discard(self, i: int, j: int) -> None:
        super().discard(j, i)

    def clear(self, i: int, j: int) -> None:
        super().clear(j, i)

    def value_at_index(
        self, ic: float, jc: float, interpolation: Interpolation = Interpolation.LINEAR
    ) -> float:
        return super().value_at_index(jc, ic, interpolation)

    def to_array(self) -> np.ndarray:
        return np.ascontiguousarray(self._require_basis().to_array().T)
