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
    "DestroyedFlagsError",
    "FlagShapeError",
    "GridConfigurationError",
    "MissingFlagsError",
    "UnattachedViewError",
)


class GridConfigurationError(RuntimeError):
    """Base class for errors raised when a grid or view is used in a state
    it has not been configured for.
    """


class UnattachedViewError(GridConfigurationError):
    """Exception raised when an overlay with no basis is read from or
    written to.
    """


class MissingFlagsError(GridConfigurationError):
    """Exception raised when flag state is requested from a flagged view
    that has no flag plane attached.
    """


class DestroyedFlagsError(GridConfigurationError):
    """Exception raised when a flag plane is used after its storage has been
    released.
    """


class FlagShapeError(GridConfigurationError, ValueError):
    """Exception raised when a flag plane's shape does not match the grid it
    is attached to.
    """
