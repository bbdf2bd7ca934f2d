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

__all__ = ("Grid2D", "Grid2DSerializationModel", "Interpolation", "NumericGrid2D")

import enum
import math
import operator
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Protocol, TypeAlias

import astropy.units
import numpy as np
import numpy.typing as npt
import pydantic

from ._dtypes import NumberType
from ._fork import DEFAULT_PARALLEL, Parallelizable, fork
from ._serialization import ArrayModel, SerializationTree
from .utils import is_none, round_half_up

Number: TypeAlias = int | float | np.number | np.bool_


class _Shaped(Protocol):
    @property
    def shape(self) -> tuple[int, ...]: ...


class Interpolation(enum.Enum):
    """Interpolation schemes for continuous-coordinate lookups."""

    NEAREST = enum.auto()
    """Value of the nearest cell."""

    LINEAR = enum.auto()
    """Bilinear interpolation over the valid cells that bracket the point."""


class NumericGrid2D(ABC):
    """Interface for rectangular grids of numeric cells.

    Cells are addressed by integer ``(i, j)`` indices with
    ``0 <= i < size_x`` and ``0 <= j < size_y``.  Out-of-range indices are a
    caller error; implementations are not required to check them.

    Notes
    -----
    Implementations must report their current size on every query, since
    views over a grid never cache it.
    """

    @property
    @abstractmethod
    def size_x(self) -> int:
        """Extent of the first index (`int`)."""
        raise NotImplementedError()

    @property
    @abstractmethod
    def size_y(self) -> int:
        """Extent of the second index (`int`)."""
        raise NotImplementedError()

    @property
    @abstractmethod
    def element_type(self) -> NumberType:
        """Type of the values held by the grid (`NumberType`)."""
        raise NotImplementedError()

    @abstractmethod
    def get(self, i: int, j: int) -> Number:
        """Return the value of a cell."""
        raise NotImplementedError()

    @abstractmethod
    def set(self, i: int, j: int, value: Number) -> None:
        """Replace the value of a cell."""
        raise NotImplementedError()

    @abstractmethod
    def add(self, i: int, j: int, value: Number) -> None:
        """Accumulate a value into a cell."""
        raise NotImplementedError()

    @abstractmethod
    def is_valid(self, i: int, j: int) -> bool:
        """Test whether a cell holds usable data."""
        raise NotImplementedError()

    @abstractmethod
    def discard(self, i: int, j: int) -> None:
        """Mark a cell as invalid."""
        raise NotImplementedError()

    def clear(self, i: int, j: int) -> None:
        """Reset a cell to zero."""
        self.set(i, j, 0)

    @property
    def unit(self) -> astropy.units.UnitBase | None:
        """Units of the cell values (`astropy.units.UnitBase` | `None`)."""
        return None

    @property
    def shape(self) -> tuple[int, int]:
        """Current ``(size_x, size_y)`` of the grid."""
        return (self.size_x, self.size_y)

    def contains_index(self, i: int, j: int) -> bool:
        """Test whether ``(i, j)`` lies within the grid."""
        return 0 <= i < self.size_x and 0 <= j < self.size_y

    def conforms_to(self, other: NumericGrid2D | _Shaped | Sequence[int]) -> bool:
        """Test whether this grid has the same shape as another object.

        Parameters
        ----------
        other
            A grid, anything with a ``shape`` attribute, or a shape tuple.
        """
        shape = tuple(other) if isinstance(other, Sequence) else tuple(other.shape)
        return self.shape == shape

    @property
    def lowest_value(self) -> int | float:
        """Value that compares below every valid value of this grid's type."""
        return self.element_type.lowest()

    @property
    def highest_value(self) -> int | float:
        """Value that compares above every valid value of this grid's type."""
        return self.element_type.highest()

    def compare(self, a: Number, b: Number) -> int:
        """Compare two values of this grid's type.

        Returns
        -------
        `int`
            Negative, zero, or positive as ``a`` is less than, equal to, or
            greater than ``b``.  NaN values compare as `lowest_value`.
        """
        a = self.lowest_value if _is_nan(a) else a
        b = self.lowest_value if _is_nan(b) else b
        return int(a > b) - int(a < b)

    def value_at_index(
        self, ic: float, jc: float, interpolation: Interpolation = Interpolation.LINEAR
    ) -> float:
        """Return the value at continuous index coordinates.

        Parameters
        ----------
        ic
            Continuous first index; integer values are cell centers.
        jc
            Continuous second index.
        interpolation
            How to combine the cells around the point.

        Returns
        -------
        `float`
            Interpolated value, or NaN if the nearest cell is out of range or
            invalid, or if either coordinate is not finite.
        """
        if not (math.isfinite(ic) and math.isfinite(jc)):
            return math.nan
        i = round_half_up(ic)
        j = round_half_up(jc)
        if not self.contains_index(i, j) or not self.is_valid(i, j):
            return math.nan
        if i == ic and j == jc:
            return float(self.get(i, j))
        match interpolation:
            case Interpolation.NEAREST:
                return float(self.get(i, j))
            case Interpolation.LINEAR:
                return self._linear_at_index(ic, jc)
        raise ValueError(f"Unsupported interpolation {interpolation!r}.")

    def _linear_at_index(self, ic: float, jc: float) -> float:
        i = math.floor(ic)
        j = math.floor(jc)
        di = ic - i
        dj = jc - j
        total = 0.0
        weight = 0.0
        for i1, j1, w in (
            (i, j, (1.0 - di) * (1.0 - dj)),
            (i + 1, j, di * (1.0 - dj)),
            (i, j + 1, (1.0 - di) * dj),
            (i + 1, j + 1, di * dj),
        ):
            if w > 0.0 and self.contains_index(i1, j1) and self.is_valid(i1, j1):
                total += w * float(self.get(i1, j1))
                weight += w
        # The nearest cell is always one of the corners and is valid.
        return total / weight

    def to_array(self) -> np.ndarray:
        """Copy the cell values into a new `numpy.ndarray`."""
        result = np.zeros(self.shape, dtype=self.element_type.to_numpy())
        for i in range(self.size_x):
            for j in range(self.size_y):
                result[i, j] = self.get(i, j)
        return result

    def count_valid(self) -> int:
        """Count the valid cells in a bulk pass."""
        parallel = self.parallel if isinstance(self, Parallelizable) else DEFAULT_PARALLEL
        return fork(
            lambda i, j: int(self.is_valid(i, j)),
            self.size_x,
            self.size_y,
            parallel=parallel,
            merge=operator.add,
            initial=0,
        )


def _is_nan(value: Any) -> bool:
    return isinstance(value, float | np.floating) and math.isnan(value)


class Grid2D(NumericGrid2D, Parallelizable):
    """A `NumericGrid2D` backed by a 2-d `numpy.ndarray`.

    Parameters
    ----------
    array_or_fill, optional
        Array or fill value for the grid.  If a fill value, ``shape`` must be
        provided.
    shape, optional
        Dimensions of the array, ordered ``(size_x, size_y)``.  Only needed
        if ``array_or_fill`` is not an array.
    unit, optional
        Units for the cell values.
    dtype, optional
        Cell data type override.
    parallel, optional
        Number of worker threads for bulk passes over the grid.

    Notes
    -----
    Discarded cells hold the `~NumberType.blank` value of the element type:
    NaN for floating-point grids, the smallest representable value for
    signed integer grids and the largest for unsigned integer grids, all of
    which then report themselves invalid.  Zero is always valid, so
    `clear` never invalidates a cell.  Cells of boolean grids are always
    valid.
    """

    def __init__(
        self,
        array_or_fill: np.ndarray | int | float = 0,
        /,
        *,
        shape: Sequence[int] | None = None,
        unit: astropy.units.UnitBase | None = None,
        dtype: npt.DTypeLike | None = None,
        parallel: int = DEFAULT_PARALLEL,
    ):
        if isinstance(array_or_fill, np.ndarray):
            if dtype is not None:
                array = np.array(array_or_fill, dtype=dtype)
            else:
                array = array_or_fill
            if array.ndim != 2:
                raise ValueError(f"Grid array must be 2-d; got shape {array.shape}.")
            if shape is not None and tuple(shape) != array.shape:
                raise ValueError(f"Explicit shape {shape} does not match array with shape {array.shape}.")
        else:
            if shape is None:
                raise TypeError("No shape or array provided.")
            array = np.full(tuple(shape), array_or_fill, dtype=dtype if dtype is not None else np.float64)
            if array.ndim != 2:
                raise ValueError(f"Grid shape must be 2-d; got {shape}.")
        self._array = array
        self._unit = unit
        self._element_type = NumberType.from_numpy(array.dtype)
        self.set_parallel(parallel)

    @property
    def array(self) -> np.ndarray:
        """The low-level array (`numpy.ndarray`).

        Assigning to this attribute modifies the existing array in place; only
        `set_size` replaces it.
        """
        return self._array

    @array.setter
    def array(self, value: np.ndarray | int | float) -> None:
        self._array[...] = value

    @property
    def unit(self) -> astropy.units.UnitBase | None:
        return self._unit

    @property
    def size_x(self) -> int:
        return self._array.shape[0]

    @property
    def size_y(self) -> int:
        return self._array.shape[1]

    @property
    def element_type(self) -> NumberType:
        return self._element_type

    def get(self, i: int, j: int) -> Number:
        return self._array[i, j].item()

    def set(self, i: int, j: int, value: Number) -> None:
        self._array[i, j] = value

    def add(self, i: int, j: int, value: Number) -> None:
        self._array[i, j] += value

    def is_valid(self, i: int, j: int) -> bool:
        match self._array.dtype.kind:
            case "f":
                return not math.isnan(self._array[i, j])
            case "b":
                return True
            case _:
                return bool(self._array[i, j] != self._element_type.blank())

    def discard(self, i: int, j: int) -> None:
        self._array[i, j] = self._element_type.blank()

    def set_size(self, size_x: int, size_y: int) -> None:
        """Reallocate the grid with a new shape, filled with zeros.

        Views over this grid see the new size immediately.
        """
        self._array = np.zeros((size_x, size_y), dtype=self._array.dtype)

    def copy(self) -> Grid2D:
        """Deep-copy the grid."""
        return Grid2D(self._array.copy(), unit=self._unit, parallel=self.parallel)

    def __eq__(self, other: object) -> bool:
        if type(other) is not Grid2D:
            return False
        if self._array.dtype != other._array.dtype or self._unit != other._unit:
            return False
        return self._array.shape == other._array.shape and bool(
            np.array_equal(self._array, other._array, equal_nan=(self._array.dtype.kind == "f"))
        )

    def __hash__(self) -> int:
        return hash((self._array.shape, self._array.dtype.str, self._array.tobytes()))

    def __str__(self) -> str:
        return f"Grid2D({self.size_x}x{self.size_y}, {self._array.dtype.type.__name__})"

    def __repr__(self) -> str:
        return f"Grid2D(..., shape={self.shape!r}, dtype={self._array.dtype!r})"

    def serialize(self) -> Grid2DSerializationModel:
        """Return a Pydantic model holding a snapshot of the grid."""
        return Grid2DSerializationModel.model_construct(
            data=ArrayModel.pack(self._array),
            unit=self._unit.to_string() if self._unit is not None else None,
        )

    @classmethod
    def deserialize(cls, model: Grid2DSerializationModel) -> Grid2D:
        """Reconstruct a grid from its serialized form."""
        unit = astropy.units.Unit(model.unit) if model.unit is not None else None
        return cls(model.data.unpack(), unit=unit)


class Grid2DSerializationModel(SerializationTree):
    """Pydantic model used to represent the serialized form of a `Grid2D`."""

    data: ArrayModel = pydantic.Field(description="Cell values.")
    unit: str | None = pydantic.Field(
        default=None, exclude_if=is_none, description="Units of the cell values."
    )
