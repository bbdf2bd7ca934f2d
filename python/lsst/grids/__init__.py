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

"""Composable views over 2-d numeric grids, with bitmask validity and
parallel bulk passes.
"""

from ._dtypes import *
from ._errors import *
from ._flagged import *
from ._flags import *
from ._fork import *
from ._geom import *
from ._grid import *
from ._overlay import *
from ._serialization import *
from ._transposed import *
from ._viewport import *
