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

__all__ = ("Overlay2D",)

import copy
from typing import Self, TypeVar

import astropy.units

from ._dtypes import NumberType
from ._errors import UnattachedViewError
from ._fork import Parallelizable
from ._grid import Interpolation, Number, NumericGrid2D

V = TypeVar("V", bound=NumericGrid2D)


class Overlay2D(NumericGrid2D, Parallelizable):
    """A view that forwards every operation to another grid.

    Parameters
    ----------
    basis, optional
        The grid to delegate to.  The overlay does not own it: the basis may
        be resized, and other views may share it.  If it carries a parallel
        degree, the overlay starts with the same one.

    Notes
    -----
    Overlays are the building block for views that change indexing or
    validity without copying storage.  Subclasses override the operations
    they alter and call the base implementation to reach the basis, so
    views can be stacked in any order.

    Size queries on an overlay with no basis return zero; every other
    operation raises `UnattachedViewError`.
    """

    def __init__(self, basis: NumericGrid2D | None = None):
        self._basis: NumericGrid2D | None = None
        self.set_basis(basis)
        if basis is not None:
            self.copy_parallel(basis)

    @property
    def basis(self) -> NumericGrid2D | None:
        """The grid this view delegates to (`NumericGrid2D` | `None`).

        Assigning to this attribute replaces the basis; the change applies to
        every subsequent call.
        """
        return self._basis

    @basis.setter
    def basis(self, basis: NumericGrid2D | None) -> None:
        self.set_basis(basis)

    def set_basis(self, basis: NumericGrid2D | None) -> None:
        """Attach or replace the grid this view delegates to."""
        self._basis = basis

    def _require_basis(self) -> NumericGrid2D:
        if self._basis is None:
            raise UnattachedViewError(f"{type(self).__name__} has no basis attached.")
        return self._basis

    def find(self, view_type: type[V]) -> V | None:
        """Return the nearest grid of the given type in the delegation chain.

        The search starts with this view and follows `basis` links; `None`
        is returned if no grid in the chain has the requested type.
        """
        current: NumericGrid2D | None = self
        while current is not None:
            if isinstance(current, view_type):
                return current
            current = current.basis if isinstance(current, Overlay2D) else None
        return None

    @property
    def size_x(self) -> int:
        # Never cached: the basis may be resized at any time.
        return 0 if self._basis is None else self._basis.size_x

    @property
    def size_y(self) -> int:
        return 0 if self._basis is None else self._basis.size_y

    @property
    def element_type(self) -> NumberType:
        return self._require_basis().element_type

    @property
    def unit(self) -> astropy.units.UnitBase | None:
        return self._require_basis().unit

    def compare(self, a: Number, b: Number) -> int:
        return self._require_basis().compare(a, b)

    def get(self, i: int, j: int) -> Number:
        return self._require_basis().get(i, j)

    def set(self, i: int, j: int, value: Number) -> None:
        self._require_basis().set(i, j, value)

    def add(self, i: int, j: int, value: Number) -> None:
        self._require_basis().add(i, j, value)

    def is_valid(self, i: int, j: int) -> bool:
        return self._require_basis().is_valid(i, j)

    def discard(self, i: int, j: int) -> None:
        self._require_basis().discard(i, j)

    def clear(self, i: int, j: int) -> None:
        self._require_basis().clear(i, j)

    def value_at_index(
        self, ic: float, jc: float, interpolation: Interpolation = Interpolation.LINEAR
    ) -> float:
        return self._require_basis().value_at_index(ic, jc, interpolation)

    def copy(self) -> Self:
        """Copy the view, and its basis if the basis can be copied.

        The copy shares no storage with the original when the basis (and any
        state owned by a subclass) supports copying.
        """
        result = copy.copy(self)
        copier = getattr(self._basis, "copy", None)
        if copier is not None:
            result._basis = copier()
        return result

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return False
        assert isinstance(other, Overlay2D)
        return self._basis == other._basis

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._basis))

    def __str__(self) -> str:
        return f"{type(self).__name__}({self._basis!s})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._basis!r})"
