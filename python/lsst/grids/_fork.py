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

"""Parallel bulk passes over 2-d index domains.

A bulk pass ("fork") partitions the rows of a grid into contiguous,
non-overlapping chunks, runs one chunk per worker thread, joins every worker,
and then merges the per-chunk results.  Workers only ever touch the rows of
their own chunk, so writes from different chunks never race.
"""

from __future__ import annotations

__all__ = ("DEFAULT_PARALLEL", "Parallelizable", "fork", "fork_rows")

import functools
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from logging import getLogger
from typing import Any, TypeVar

from ._geom import Interval

R = TypeVar("R")

_LOG = getLogger(__name__)

DEFAULT_PARALLEL = 1
"""Number of worker threads used by objects that have not been configured
otherwise (`int`).
"""


class Parallelizable:
    """Mix-in for objects that carry a parallel-degree configuration.

    Notes
    -----
    The degree is the number of worker threads that bulk passes over the
    object should use; ``1`` means sequential.  Subclasses that own other
    parallelizable objects should override `set_parallel` to propagate the
    new degree; the `parallel` property setter always dispatches through it.
    """

    _parallel: int = DEFAULT_PARALLEL

    @property
    def parallel(self) -> int:
        """Number of worker threads used by bulk passes (`int`)."""
        return self._parallel

    @parallel.setter
    def parallel(self, threads: int) -> None:
        self.set_parallel(threads)

    def set_parallel(self, threads: int) -> None:
        """Set the number of worker threads used by bulk passes.

        This is not safe to call while a bulk pass on this object is in
        flight.
        """
        threads = int(threads)
        if threads < 1:
            raise ValueError(f"Parallel degree must be at least 1; got {threads}.")
        self._parallel = threads

    def no_parallel(self) -> None:
        """Configure bulk passes to run sequentially."""
        self.set_parallel(1)

    def copy_parallel(self, other: object) -> None:
        """Copy the parallel degree of another object, if it has one."""
        if isinstance(other, Parallelizable):
            self.set_parallel(other.parallel)


def fork_rows(
    process: Callable[[Interval], R],
    size: int,
    *,
    parallel: int = DEFAULT_PARALLEL,
    merge: Callable[[R, R], R] | None = None,
    initial: R | None = None,
) -> R | None:
    """Run a chunk-level operation over ``range(size)`` rows.

    Parameters
    ----------
    process
        Callable invoked once per chunk with the `Interval` of rows it owns.
        It must only modify state belonging to those rows.
    size
        Number of rows in the domain.
    parallel
        Maximum number of worker threads (and chunks).
    merge
        Binary function used to combine per-chunk results.  If `None`, the
        return values of ``process`` are ignored.
    initial
        Identity element of ``merge``, which seeds every chunk; also the
        result for an empty domain.

    Returns
    -------
    result
        ``initial`` merged with every chunk result in row order, or `None`
        when ``merge`` is `None`.

    Raises
    ------
    Exception
        The exception raised by the lowest-numbered failing chunk, re-raised
        only after all chunks have finished.  Cells processed before the
        failure keep their new state.
    """
    if parallel < 1:
        raise ValueError(f"Parallel degree must be at least 1; got {parallel}.")
    chunks = Interval.from_size(size).split(parallel) if size > 0 else []
    results: list[Any]
    if len(chunks) <= 1:
        results = [process(chunk) for chunk in chunks]
    else:
        _LOG.debug("Forking %d rows into %d chunks.", size, len(chunks))
        with ThreadPoolExecutor(max_workers=len(chunks), thread_name_prefix="fork") as executor:
            futures = [executor.submit(process, chunk) for chunk in chunks]
        # Leaving the executor context joins every worker.
        results = _collect(futures, chunks)
    if merge is None:
        return None
    return functools.reduce(merge, results, initial)


def _collect(futures: list[Future[Any]], chunks: list[Interval]) -> list[Any]:
    first: BaseException | None = None
    for future, chunk in zip(futures, chunks, strict=True):
        if (exc := future.exception()) is None:
            continue
        if first is None:
            first = exc
        else:
            _LOG.error("Bulk pass over rows %s also failed.", chunk, exc_info=exc)
    if first is not None:
        raise first
    return [future.result() for future in futures]


def fork(
    process: Callable[[int, int], R],
    size_x: int,
    size_y: int,
    *,
    parallel: int = DEFAULT_PARALLEL,
    merge: Callable[[R, R], R] | None = None,
    initial: R | None = None,
) -> R | None:
    """Run a per-cell operation over every ``(i, j)`` of a 2-d domain.

    Parameters
    ----------
    process
        Callable invoked with the ``(i, j)`` index of each cell.
    size_x
        Extent of the first index; this is the dimension that is chunked.
    size_y
        Extent of the second index.
    parallel
        Maximum number of worker threads.
    merge
        Binary function used to combine per-cell results, first within a
        chunk and then across chunks.  If `None`, the return values of
        ``process`` are ignored.
    initial
        Identity element of ``merge``, which seeds every chunk; also the
        result for an empty domain.

    Notes
    -----
    No ordering is guaranteed between cells in different chunks; the call
    returns only once every cell has been processed.  See `fork_rows` for
    error semantics.
    """
    columns = range(max(size_y, 0))

    if merge is None:

        def process_rows(rows: Interval) -> None:
            for i in rows.range:
                for j in columns:
                    process(i, j)

        fork_rows(process_rows, size_x, parallel=parallel)
        return None

    def reduce_rows(rows: Interval) -> R | None:
        return functools.reduce(merge, (process(i, j) for i in rows.range for j in columns), initial)

    return fork_rows(reduce_rows, size_x, parallel=parallel, merge=merge, initial=initial)
