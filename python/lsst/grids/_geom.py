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
    "Box",
    "Interval",
)

from collections.abc import Iterator, Sequence
from typing import ClassVar, final, overload


@final
class Interval:
    """A 1-d half-open integer interval.

    Parameters
    ----------
    start
        Inclusive minimum point in the interval.
    stop
        One past the maximum point in the interval.

    Notes
    -----
    Unlike a bounding box, an interval may be empty (``start == stop``),
    which is what a grid with no rows is partitioned into.
    """

    def __init__(self, start: int, stop: int):
        # Coerce numpy int scalars.
        self._start = int(start)
        self._stop = int(stop)
        if self._stop < self._start:
            raise ValueError(f"Interval must have non-negative size; got [{self._start}, {self._stop})")

    __slots__ = ("_start", "_stop")

    factory: ClassVar[IntervalSliceFactory]

    @classmethod
    def from_size(cls, size: int, start: int = 0) -> Interval:
        """Construct an interval from its size and optional start."""
        return cls(start=start, stop=start + size)

    @property
    def start(self) -> int:
        """Inclusive minimum point in the interval."""
        return self._start

    @property
    def stop(self) -> int:
        """One past the maximum point in the interval."""
        return self._stop

    @property
    def size(self) -> int:
        """Size of the interval."""
        return self.stop - self.start

    @property
    def range(self) -> range:
        """A `range` object that iterates over all values in the interval."""
        return range(self.start, self.stop)

    @property
    def slice(self) -> slice:
        """A `slice` that selects this interval from a zero-based array."""
        return slice(self.start, self.stop)

    def __str__(self) -> str:
        return f"{self.start}:{self.stop}"

    def __repr__(self) -> str:
        return f"Interval(start={self.start}, stop={self.stop})"

    def __eq__(self, other: object) -> bool:
        if type(other) is Interval:
            return self._start == other._start and self._stop == other._stop
        return False

    def __hash__(self) -> int:
        return hash((self._start, self._stop))

    def split(self, n: int) -> list[Interval]:
        """Partition the interval into contiguous, non-overlapping chunks.

        Parameters
        ----------
        n
            Maximum number of chunks.

        Returns
        -------
        `list` [`Interval`]
            At most ``n`` non-empty chunks in increasing order whose union is
            ``self``.  Chunk sizes differ by at most one, with the larger
            chunks first.  An empty interval yields an empty list.
        """
        if n < 1:
            raise ValueError(f"Number of chunks must be positive; got {n}.")
        n = min(n, self.size)
        if n == 0:
            return []
        base, extra = divmod(self.size, n)
        chunks: list[Interval] = []
        start = self.start
        for k in range(n):
            stop = start + base + (1 if k < extra else 0)
            chunks.append(Interval(start, stop))
            start = stop
        return chunks


class IntervalSliceFactory:
    """A factory for `Interval` objects using array-slice syntax.

    Notes
    -----
    When indexed with a single slice, this returns an `Interval`::

        assert Interval.factory[3:6] == Interval(start=3, stop=6)

    """

    def __getitem__(self, s: slice) -> Interval:
        if s.step is not None and s.step != 1:
            raise ValueError(f"Slice {s} has non-unit step.")
        return Interval(start=s.start if s.start is not None else 0, stop=s.stop)


Interval.factory = IntervalSliceFactory()


class Box(Sequence[Interval]):
    """An axis-aligned rectangular region of grid indices.

    Parameters
    ----------
    *args
        Intervals for each dimension, in ``(i, j)`` order for 2-d grids.
    """

    def __init__(self, *args: Interval):
        self._intervals = tuple(args)

    __slots__ = ("_intervals",)

    factory: ClassVar[BoxSliceFactory]

    @classmethod
    def from_shape(cls, shape: Sequence[int], start: Sequence[int] | None = None) -> Box:
        """Construct a box from its shape and optional start."""
        if start is None:
            start = (0,) * len(shape)
        return Box(
            *[Interval.from_size(size, start=i_start) for size, i_start in zip(shape, start, strict=True)]
        )

    @property
    def shape(self) -> tuple[int, ...]:
        """Tuple holding the sizes of the intervals in all dimension."""
        return tuple([i.size for i in self._intervals])

    @property
    def start(self) -> tuple[int, ...]:
        """Tuple holding the start of the intervals in all dimensions."""
        return tuple([i.start for i in self._intervals])

    @property
    def stop(self) -> tuple[int, ...]:
        """Tuple holding the stop of the intervals in all dimensions."""
        return tuple([i.stop for i in self._intervals])

    def __eq__(self, other: object) -> bool:
        if type(other) is Box:
            return self._intervals == other._intervals
        return False

    def __hash__(self) -> int:
        return hash(self._intervals)

    def __len__(self) -> int:
        return len(self._intervals)

    @overload
    def __getitem__(self, key: int) -> Interval: ...

    @overload
    def __getitem__(self, key: slice) -> Box: ...

    def __getitem__(self, key: object) -> Box | Interval:
        match key:
            case slice():
                return Box(*self._intervals[key])
            case int():
                return self._intervals[key]
            case _:
                raise TypeError("Box can only be indexed with slices or integers.")

    def __iter__(self) -> Iterator[Interval]:
        return iter(self._intervals)

    def __str__(self) -> str:
        return f"[{', '.join([str(i) for i in self._intervals])}]"

    def __repr__(self) -> str:
        return f"Box({', '.join([repr(i) for i in self._intervals])})"


class BoxSliceFactory:
    """A factory for `Box` objects using array-slice syntax.

    Notes
    -----
    When indexed with one or more slices, this returns a `Box`::

        assert Box.factory[3:6, 0:2] == Box(Interval(3, 6), Interval(0, 2))
    """

    def __getitem__(self, key: slice | tuple[slice, ...]) -> Box:
        match key:
            case slice():
                return Box(Interval.factory[key])
            case tuple():
                return Box(*[Interval.factory[s] for s in key])
            case _:
                raise TypeError("Expected slice or tuple of slices.")


Box.factory = BoxSliceFactory()
