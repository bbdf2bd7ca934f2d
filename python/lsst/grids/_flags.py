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
    "ALL_FLAGS",
    "FLAG_DEFAULT",
    "FLAG_DISCARD",
    "FLAG_OPERATION",
    "FlagPlane2D",
    "FlagPlaneSerializationModel",
)

import operator
from collections.abc import Sequence
from logging import getLogger
from typing import Final, TypeAlias

import numpy as np
import numpy.typing as npt
import pydantic

from ._dtypes import FlagType, NumberType
from ._errors import DestroyedFlagsError
from ._fork import DEFAULT_PARALLEL, Parallelizable, fork_rows
from ._geom import Interval
from ._serialization import ArrayModel, SerializationReadError, SerializationTree

_LOG = getLogger(__name__)

FLAG_DISCARD: Final[int] = 1 << 0
"""Bit set on cells that have been removed from consideration."""

FLAG_OPERATION: Final[int] = 1 << 1
"""Bit reserved for cells excluded by an operation in progress."""

FLAG_DEFAULT: Final[int] = FLAG_DISCARD
"""Bit pattern used when no pattern is given explicitly."""

ALL_FLAGS: Final[int] = (1 << 64) - 1
"""Pattern with every bit of a 64-bit flag word set."""

_Index: TypeAlias = int | slice


class FlagPlane2D(Parallelizable):
    """A 2-d plane of bitwise flag words that accompanies a grid.

    Parameters
    ----------
    array_or_fill, optional
        Array or fill pattern for the plane.  If a fill pattern, ``shape``
        must be provided.
    shape, optional
        Dimensions of the plane, ordered ``(size_x, size_y)``.
    dtype, optional
        Type of the flag words; one of ``uint8``, ``uint16``, ``uint32`` or
        ``uint64``.  Ignored if an array is given.
    parallel, optional
        Number of worker threads for bulk passes over the plane.

    Notes
    -----
    Bit patterns are Python `int` values.  Bits beyond the width of the flag
    word are silently dropped when writing, so `ALL_FLAGS` can be used with
    any word type.

    The cell-level methods accept slices as well as integers for either
    index, in which case they act on every selected cell.
    """

    def __init__(
        self,
        array_or_fill: np.ndarray | int = 0,
        /,
        *,
        shape: Sequence[int] | None = None,
        dtype: NumberType | npt.DTypeLike = NumberType.uint64,
        parallel: int = DEFAULT_PARALLEL,
    ):
        if isinstance(array_or_fill, np.ndarray):
            array = array_or_fill
            flag_type = NumberType.from_numpy(array.dtype).require_flag_type()
            if array.ndim != 2:
                raise ValueError(f"Flag array must be 2-d; got shape {array.shape}.")
            if shape is not None and tuple(shape) != array.shape:
                raise ValueError(f"Explicit shape {shape} does not match array with shape {array.shape}.")
        else:
            if shape is None:
                raise TypeError("No shape or array provided.")
            flag_type = NumberType.from_numpy(dtype).require_flag_type()
            word_mask = (1 << flag_type.bits) - 1
            array = np.full(tuple(shape), array_or_fill & word_mask, dtype=flag_type.to_numpy())
        self._array: np.ndarray | None = array
        self._flag_type: FlagType = flag_type
        self._word_mask = (1 << flag_type.bits) - 1
        self.set_parallel(parallel)

    def _require_array(self) -> np.ndarray:
        if self._array is None:
            raise DestroyedFlagsError("Flag plane has been destroyed.")
        return self._array

    def _word(self, pattern: int) -> np.unsignedinteger:
        return self._flag_type.to_numpy()(int(pattern) & self._word_mask)

    @property
    def array(self) -> np.ndarray:
        """The low-level array of flag words (`numpy.ndarray`)."""
        return self._require_array()

    @property
    def flag_type(self) -> FlagType:
        """Type of the flag words (`NumberType`)."""
        return self._flag_type

    @property
    def is_destroyed(self) -> bool:
        """Whether `destroy` has released the plane's storage (`bool`)."""
        return self._array is None

    @property
    def shape(self) -> tuple[int, int]:
        """Dimensions of the plane, ordered ``(size_x, size_y)``."""
        shape = self._require_array().shape
        return (shape[0], shape[1])

    @property
    def size_x(self) -> int:
        """Extent of the first index (`int`)."""
        return self._require_array().shape[0]

    @property
    def size_y(self) -> int:
        """Extent of the second index (`int`)."""
        return self._require_array().shape[1]

    def conforms_to(self, shape: Sequence[int]) -> bool:
        """Test whether the plane has the given ``(size_x, size_y)``."""
        return self.shape == tuple(shape)

    def get(self, i: int, j: int) -> int:
        """Return the flag word of a cell."""
        return int(self._require_array()[i, j])

    def set(self, i: _Index, j: _Index, pattern: int) -> None:
        """Replace the flag words of the selected cells."""
        self._require_array()[i, j] = self._word(pattern)

    def set_bits(self, i: _Index, j: _Index, pattern: int) -> None:
        """Set the bits of ``pattern`` on the selected cells."""
        self._require_array()[i, j] |= self._word(pattern)

    def clear_bits(self, i: _Index, j: _Index, pattern: int) -> None:
        """Clear the bits of ``pattern`` on the selected cells."""
        self._require_array()[i, j] &= self._word(~int(pattern))

    def is_clear(self, i: int, j: int, pattern: int = ALL_FLAGS) -> bool:
        """Test whether no bit of ``pattern`` is set on a cell."""
        return (int(self._require_array()[i, j]) & pattern) == 0

    def fill(self, pattern: int) -> None:
        """Set every flag word to ``pattern`` in a bulk pass."""
        array = self._require_array()
        word = self._word(pattern)

        def fill_rows(rows: Interval) -> None:
            array[rows.slice, :] = word

        fork_rows(fill_rows, array.shape[0], parallel=self.parallel)

    def clear(self) -> None:
        """Clear every bit of every flag word."""
        self.fill(0)

    def count(self, pattern: int = ALL_FLAGS) -> int:
        """Count the cells with any bit of ``pattern`` set, in a bulk pass."""
        array = self._require_array()
        word = self._word(pattern)

        def count_rows(rows: Interval) -> int:
            return int(np.count_nonzero(array[rows.slice, :] & word))

        return fork_rows(count_rows, array.shape[0], parallel=self.parallel, merge=operator.add, initial=0)

    def set_size(self, size_x: int, size_y: int) -> None:
        """Reallocate the plane with a new shape and all bits clear."""
        self._array = np.zeros((size_x, size_y), dtype=self._flag_type.to_numpy())

    def copy(self) -> FlagPlane2D:
        """Deep-copy the plane."""
        return FlagPlane2D(self._require_array().copy(), parallel=self.parallel)

    def destroy(self) -> None:
        """Release the plane's storage.

        Any later access raises `DestroyedFlagsError` until `set_size`
        allocates new storage.
        """
        if self._array is not None:
            _LOG.debug("Releasing %s flag plane of shape %s.", self._flag_type, self._array.shape)
        self._array = None

    def __eq__(self, other: object) -> bool:
        if type(other) is not FlagPlane2D:
            return False
        if self._array is None or other._array is None:
            return self._array is None and other._array is None and self._flag_type == other._flag_type
        return self._flag_type == other._flag_type and bool(np.array_equal(self._array, other._array))

    def __hash__(self) -> int:
        if self._array is None:
            return hash((self._flag_type, None))
        return hash((self._flag_type, self._array.shape, self._array.tobytes()))

    def __str__(self) -> str:
        if self._array is None:
            return f"FlagPlane2D(destroyed, {self._flag_type})"
        return f"FlagPlane2D({self.size_x}x{self.size_y}, {self._flag_type})"

    def __repr__(self) -> str:
        shape = None if self._array is None else self.shape
        return f"FlagPlane2D(..., shape={shape!r}, dtype={self._flag_type!r})"

    def serialize(self) -> FlagPlaneSerializationModel:
        """Return a Pydantic model holding a snapshot of the plane."""
        return FlagPlaneSerializationModel.model_construct(data=ArrayModel.pack(self._require_array()))

    @classmethod
    def deserialize(cls, model: FlagPlaneSerializationModel) -> FlagPlane2D:
        """Reconstruct a plane from its serialized form."""
        try:
            model.data.dtype.require_flag_type()
        except TypeError as err:
            raise SerializationReadError(str(err)) from err
        return cls(model.data.unpack())


class FlagPlaneSerializationModel(SerializationTree):
    """Pydantic model used to represent the serialized form of a
    `FlagPlane2D`.
    """

    data: ArrayModel = pydantic.Field(description="Flag words, one per cell.")
