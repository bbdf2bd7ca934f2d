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

__all__ = ("Viewport2D",)

import sys

from ._geom import Box
from ._grid import Interpolation, Number, NumericGrid2D
from ._overlay import Overlay2D


class Viewport2D(Overlay2D):
    """A rectangular window onto a grid.

    Parameters
    ----------
    basis, optional
        The grid to delegate to.
    bounds, optional
        Index bounds of the window in the basis, ordered ``(i, j)``.  Negative
        starts are clipped to zero.  If not provided the window covers the
        whole basis, however it is later resized.

    Notes
    -----
    Cell ``(i, j)`` of the view is cell ``(i + origin[0], j + origin[1])`` of
    the basis.  The size of the view is the requested window size, clipped
    to the part of the basis that actually exists; it is recomputed from the
    basis on every query.
    """

    def __init__(self, basis: NumericGrid2D | None = None, bounds: Box | None = None):
        self._origin = (0, 0)
        self._window = (sys.maxsize, sys.maxsize)
        super().__init__(basis)
        if bounds is not None:
            self.set_bounds(bounds)

    @property
    def origin(self) -> tuple[int, int]:
        """Index of the basis cell shown at ``(0, 0)``."""
        return self._origin

    @property
    def bounds(self) -> Box:
        """Current index bounds of the view within the basis (`Box`)."""
        return Box.from_shape(self.shape, start=self._origin)

    def set_bounds(self, bounds: Box) -> None:
        """Change the window to the given index bounds of the basis."""
        if len(bounds) != 2:
            raise ValueError(f"Viewport bounds must be 2-d; got {bounds}.")
        origin = (max(0, bounds.start[0]), max(0, bounds.start[1]))
        self._window = (max(0, bounds.stop[0] - origin[0]), max(0, bounds.stop[1] - origin[1]))
        self._origin = origin

    def move(self, di: int, dj: int) -> None:
        """Shift the window by the given number of cells."""
        self._origin = (self._origin[0] + di, self._origin[1] + dj)

    @property
    def size_x(self) -> int:
        return max(0, min(self._window[0], super().size_x - self._origin[0]))

    @property
    def size_y(self) -> int:
        return max(0, min(self._window[1], super().size_y - self._origin[1]))

    def get(self, i: int, j: int) -> Number:
        return super().get(i + self._origin[0], j + self._origin[1])

    def set(self, i: int, j: int, value: Number) -> None:
        super().set(i + self._origin[0], j + self._origin[1], value)

    def add(self, i: int, j: int, value: Number) -> None:
        super().add(i + self._origin[0], j + self._origin[1], value)

    def is_valid(self, i: int, j: int) -> bool:
        return super().is_valid(i + self._origin[0], j + self._origin[1])

    def discard(self, i: int, j: int) -> None:
        super().discard(i + self._origin[0], j + self._origin[1])

    def clear(self, i: int, j: int) -> None:
        super().clear(i + self._origin[0], j + self._origin[1])

    def value_at_index(
        self, ic: float, jc: float, interpolation: Interpolation = Interpolation.LINEAR
    ) -> float:
        # Interpolate within the window only, not over the hidden cells.
        return NumericGrid2D.value_at_index(self, ic, jc, interpolation)

    def __eq__(self, other: object) -> bool:
        if not super().__eq__(other):
            return False
        assert isinstance(other, Viewport2D)
        return self._origin == other._origin and self._window == other._window

    def __hash__(self) -> int:
        return hash((super().__hash__(), self._origin, self._window))
