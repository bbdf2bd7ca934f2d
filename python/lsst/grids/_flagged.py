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

__all__ = ("Flagged2D", "FlaggedSerializationModel")

from logging import getLogger
from typing import ClassVar, Self

import pydantic

from ._dtypes import NumberType
from ._errors import DestroyedFlagsError, FlagShapeError, MissingFlagsError
from ._flags import (
    ALL_FLAGS,
    FLAG_DEFAULT,
    FLAG_DISCARD,
    FLAG_OPERATION,
    FlagPlane2D,
    FlagPlaneSerializationModel,
)
from ._fork import fork_rows
from ._geom import Interval
from ._grid import Grid2D, Grid2DSerializationModel, Interpolation, Number, NumericGrid2D
from ._overlay import Overlay2D
from ._serialization import SerializationTree

_LOG = getLogger(__name__)


class Flagged2D(Overlay2D):
    """A view that adds a plane of per-cell flag bits to a grid.

    Parameters
    ----------
    basis, optional
        The grid to delegate values to.
    flags, optional
        Flag plane to attach.  Must have the same shape as ``basis``.
    critical_flags, optional
        Bits that make a cell invalid when set.

    Notes
    -----
    A cell is valid if and only if the basis reports it valid and none of its
    `critical_flags` bits are set.  Writing a value with `set` or `add`
    clears `FLAG_DEFAULT` on the cell, while `discard` and `clear` set
    `FLAG_DISCARD`, so a cell can always be revalidated by writing to it.

    Attaching a flag plane (or a basis) whose shape does not match the other
    raises `FlagShapeError` and leaves the view unchanged.  A basis that is
    resized in place is not tracked; call `create_flags` again afterwards.

    Bulk operations (`flag_all`, `unflag_all`, `count_flags`) partition the
    rows among `parallel` worker threads.  They are not safe to run
    concurrently with each other, or with cell-level writes, on the same
    view.
    """

    FLAG_DISCARD: ClassVar[int] = FLAG_DISCARD
    FLAG_OPERATION: ClassVar[int] = FLAG_OPERATION
    FLAG_DEFAULT: ClassVar[int] = FLAG_DEFAULT

    def __init__(
        self,
        basis: NumericGrid2D | None = None,
        flags: FlagPlane2D | None = None,
        *,
        critical_flags: int = ALL_FLAGS,
    ):
        self._flags: FlagPlane2D | None = None
        self._critical_flags = int(critical_flags)
        super().__init__(basis)
        if flags is not None:
            self.set_flags(flags)

    def _check_shapes(self, basis: NumericGrid2D | None, flags: FlagPlane2D | None) -> None:
        if basis is None or flags is None or flags.is_destroyed:
            return
        if not flags.conforms_to(basis.shape):
            raise FlagShapeError(f"Flag plane shape {flags.shape} does not match grid shape {basis.shape}.")

    def set_basis(self, basis: NumericGrid2D | None) -> None:
        self._check_shapes(basis, self._flags)
        super().set_basis(basis)

    def set_parallel(self, threads: int) -> None:
        super().set_parallel(threads)
        if self._flags is not None:
            self._flags.set_parallel(threads)

    @property
    def flags(self) -> FlagPlane2D | None:
        """The attached flag plane (`FlagPlane2D` | `None`).

        Assigning to this attribute is equivalent to calling `set_flags`.
        """
        return self._flags

    @flags.setter
    def flags(self, flags: FlagPlane2D | None) -> None:
        self.set_flags(flags)

    def set_flags(self, flags: FlagPlane2D | None) -> None:
        """Attach a flag plane, which then uses this view's parallel degree.

        Raises
        ------
        FlagShapeError
            Raised if the plane's shape differs from the basis's.
        """
        self._check_shapes(self._basis, flags)
        if flags is not None:
            flags.set_parallel(self.parallel)
        self._flags = flags

    def _require_flags(self) -> FlagPlane2D:
        if self._flags is None:
            raise MissingFlagsError(f"{type(self).__name__} has no flag plane attached.")
        return self._flags

    def _require_live_flags(self) -> FlagPlane2D:
        flags = self._require_flags()
        if flags.is_destroyed:
            raise DestroyedFlagsError(f"{type(self).__name__} flag plane has been destroyed.")
        return flags

    @property
    def critical_flags(self) -> int:
        """Bits that make a cell invalid when set (`int`)."""
        return self._critical_flags

    @critical_flags.setter
    def critical_flags(self, pattern: int) -> None:
        self._critical_flags = int(pattern)

    def create_flags(self, dtype: NumberType = NumberType.uint64) -> FlagPlane2D:
        """Attach a new flag plane with the shape of the basis, with every
        cell flagged with `FLAG_DEFAULT`.

        Parameters
        ----------
        dtype, optional
            Type of the flag words.

        Returns
        -------
        FlagPlane2D
            The new plane.
        """
        basis = self._require_basis()
        _LOG.debug("Creating %s flag plane of shape %s.", dtype, basis.shape)
        self.set_flags(FlagPlane2D(shape=basis.shape, dtype=dtype))
        self.init_flags()
        return self._require_flags()

    def init_flags(self) -> None:
        """Flag every cell with `FLAG_DEFAULT`, replacing all other bits."""
        self._require_flags().fill(FLAG_DEFAULT)

    def destroy(self) -> None:
        """Release the storage of the attached flag plane.

        Flag state cannot be queried again until a new plane is attached or
        created.
        """
        self._require_flags().destroy()

    def flag(self, i: int, j: int, pattern: int = FLAG_DEFAULT) -> None:
        """Set the bits of ``pattern`` on a single cell."""
        self._require_flags().set_bits(i, j, pattern)

    def unflag(self, i: int, j: int, pattern: int = FLAG_DEFAULT) -> None:
        """Clear the bits of ``pattern`` on a single cell."""
        self._require_flags().clear_bits(i, j, pattern)

    def is_flagged(self, i: int, j: int, pattern: int = ALL_FLAGS) -> bool:
        """Test whether any bit of ``pattern`` is set on a cell."""
        return not self._require_flags().is_clear(i, j, pattern)

    def is_unflagged(self, i: int, j: int, pattern: int = ALL_FLAGS) -> bool:
        """Test whether no bit of ``pattern`` is set on a cell."""
        return self._require_flags().is_clear(i, j, pattern)

    def flag_all(self, pattern: int = FLAG_DEFAULT) -> None:
        """Set the bits of ``pattern`` on every cell, in a bulk pass."""
        flags = self._require_flags()

        def flag_rows(rows: Interval) -> None:
            flags.set_bits(rows.slice, slice(None), pattern)

        fork_rows(flag_rows, flags.size_x, parallel=self.parallel)

    def unflag_all(self, pattern: int = ALL_FLAGS) -> None:
        """Clear the bits of ``pattern`` on every cell, in a bulk pass.

        With the default pattern every bit of every cell is cleared.
        """
        flags = self._require_flags()

        def unflag_rows(rows: Interval) -> None:
            flags.clear_bits(rows.slice, slice(None), pattern)

        fork_rows(unflag_rows, flags.size_x, parallel=self.parallel)

    def count_flags(self, pattern: int = ALL_FLAGS) -> int:
        """Count the cells with any bit of ``pattern`` set, in a bulk pass."""
        return self._require_flags().count(pattern)

    def is_valid(self, i: int, j: int) -> bool:
        if self.is_flagged(i, j, self._critical_flags):
            return False
        return super().is_valid(i, j)

    # Writes check for a usable flag plane before touching the basis.

    def set(self, i: int, j: int, value: Number) -> None:
        flags = self._require_live_flags()
        super().set(i, j, value)
        flags.clear_bits(i, j, FLAG_DEFAULT)

    def add(self, i: int, j: int, value: Number) -> None:
        flags = self._require_live_flags()
        super().add(i, j, value)
        flags.clear_bits(i, j, FLAG_DEFAULT)

    def discard(self, i: int, j: int) -> None:
        flags = self._require_live_flags()
        super().discard(i, j)
        flags.set_bits(i, j, FLAG_DISCARD)

    def clear(self, i: int, j: int) -> None:
        flags = self._require_live_flags()
        super().clear(i, j)
        flags.set_bits(i, j, FLAG_DISCARD)

    def value_at_index(
        self, ic: float, jc: float, interpolation: Interpolation = Interpolation.LINEAR
    ) -> float:
        # The basis does not know about flags, so interpolate here.
        return NumericGrid2D.value_at_index(self, ic, jc, interpolation)

    def copy(self) -> Self:
        """Copy the view, its basis and its flag plane.

        A destroyed plane is not shared with the copy, which is left with no
        plane attached.
        """
        result = super().copy()
        if self._flags is not None and not self._flags.is_destroyed:
            result._flags = self._flags.copy()
        else:
            result._flags = None
        return result

    def __eq__(self, other: object) -> bool:
        if not super().__eq__(other):
            return False
        assert isinstance(other, Flagged2D)
        return self._critical_flags == other._critical_flags and self._flags == other._flags

    def __hash__(self) -> int:
        return hash((super().__hash__(), self._flags, self._critical_flags))

    def serialize(self) -> FlaggedSerializationModel:
        """Return a Pydantic model holding a snapshot of the view's values,
        flags and critical mask.
        """
        data = Grid2D(self.to_array(), unit=self.unit).serialize()
        return FlaggedSerializationModel.model_construct(
            data=data, flags=self._require_flags().serialize(), critical_flags=self._critical_flags
        )

    @classmethod
    def deserialize(cls, model: FlaggedSerializationModel) -> Flagged2D:
        """Reconstruct a flagged view over a new `Grid2D`."""
        return cls(
            Grid2D.deserialize(model.data),
            FlagPlane2D.deserialize(model.flags),
            critical_flags=model.critical_flags,
        )


class FlaggedSerializationModel(SerializationTree):
    """Pydantic model used to represent the serialized form of a
    `Flagged2D`.
    """

    data: Grid2DSerializationModel = pydantic.Field(description="Cell values of the flagged view.")
    flags: FlagPlaneSerializationModel = pydantic.Field(description="Flag words, one per cell.")
    critical_flags: int = pydantic.Field(
        default=ALL_FLAGS, ge=0, le=ALL_FLAGS, description="Bits that make a cell invalid when set."
    )
