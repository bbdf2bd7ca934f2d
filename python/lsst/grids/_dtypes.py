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
    "FlagType",
    "NumberType",
    "UnsignedIntegerType",
    "is_unsigned",
)

import enum
from typing import Literal, TypeAlias, TypeGuard

import numpy as np
import numpy.typing as npt


class NumberType(enum.StrEnum):
    """Enumeration of grid element types supported by the library."""

    bool = enum.auto()
    uint8 = enum.auto()
    uint16 = enum.auto()
    uint32 = enum.auto()
    uint64 = enum.auto()
    int8 = enum.auto()
    int16 = enum.auto()
    int32 = enum.auto()
    int64 = enum.auto()
    float32 = enum.auto()
    float64 = enum.auto()

    def to_numpy(self) -> type:
        """Convert an enumeration member to the corresponding numpy scalar
        type object.

        Returns
        -------
        scalar_type
            Numpy scalar type, e.g. `numpy.int16`.  Note that this inherits
            from `type`, not `numpy.dtype` (though a `numpy.dtype` instance
            can always be constructed from it).
        """
        return getattr(np, self.value)

    @classmethod
    def from_numpy(cls, dtype: npt.DTypeLike) -> NumberType:
        """Construct an enumeration member from anything that can be coerced
        to `numpy.dtype`.

        Parameters
        ----------
        dtype
            Object convertible to `numpy.dtype`.

        Returns
        -------
        member
            Enumeration member.
        """
        return cls(np.dtype(dtype).name)

    @property
    def bits(self) -> int:
        """Number of bits in a single value of this type."""
        if self is NumberType.bool:
            return 1
        return np.dtype(self.to_numpy()).itemsize * 8

    def lowest(self) -> int | float:
        """Return the sentinel that compares below every valid value.

        Notes
        -----
        Floating-point types use negative infinity; integer types use the
        smallest representable value.
        """
        dtype = np.dtype(self.to_numpy())
        match dtype.kind:
            case "f":
                return -np.inf
            case "b":
                return False
            case _:
                return int(np.iinfo(dtype).min)

    def highest(self) -> int | float:
        """Return the sentinel that compares above every valid value."""
        dtype = np.dtype(self.to_numpy())
        match dtype.kind:
            case "f":
                return np.inf
            case "b":
                return True
            case _:
                return int(np.iinfo(dtype).max)

    def blank(self) -> int | float:
        """Return the value stored in cells that have been discarded.

        This is NaN for floating-point types, the `lowest` value for signed
        integers and the `highest` value for unsigned integers, so that zero
        is never blank.  Booleans use `False`.
        """
        match np.dtype(self.to_numpy()).kind:
            case "f":
                return np.nan
            case "u":
                return self.highest()
            case _:
                return self.lowest()

    def require_unsigned(self) -> UnsignedIntegerType:
        """Raise `TypeError` if this enumeration does not represent an
        unsigned integer type, and return it if it does.
        """
        if is_unsigned(self):
            return self
        raise TypeError(f"{self} is not an unsigned integer type.")

    def require_flag_type(self) -> FlagType:
        """Raise `TypeError` if this enumeration cannot hold flag words, and
        return it if it can.
        """
        if is_unsigned(self) and self is not NumberType.bool:
            return self  # type: ignore[return-value]
        raise TypeError(f"{self} cannot be used for flag words; expected uint8, uint16, uint32 or uint64.")


UnsignedIntegerType: TypeAlias = (
    Literal[NumberType.bool]
    | Literal[NumberType.uint8]
    | Literal[NumberType.uint16]
    | Literal[NumberType.uint32]
    | Literal[NumberType.uint64]
)

FlagType: TypeAlias = (
    Literal[NumberType.uint8]
    | Literal[NumberType.uint16]
    | Literal[NumberType.uint32]
    | Literal[NumberType.uint64]
)


def is_unsigned(t: NumberType) -> TypeGuard[UnsignedIntegerType]:
    """Test whether a `NumberType` corresponds to an unsigned integer type."""
    return np.dtype(t.to_numpy()).kind in "ub"
