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

__all__ = ("ArrayModel", "SerializationReadError", "SerializationTree")

import numpy as np
import pydantic

from ._dtypes import NumberType


class SerializationTree(
    pydantic.BaseModel, ser_json_inf_nan="constants", ser_json_bytes="base64", val_json_bytes="base64"
):
    """An intermediate base class of `pydantic.BaseModel` that should be used
    for all serialized forms of grids and views.
    """


class SerializationReadError(RuntimeError):
    """Exception raised when a serialized grid cannot be reconstructed."""


class ArrayModel(SerializationTree):
    """Pydantic model for an inline 2-d array.

    Array values are stored little-endian in row-major order and encoded as
    base64 in JSON.
    """

    data: bytes = pydantic.Field(description="Raw little-endian array values.")
    shape: tuple[int, int] = pydantic.Field(description="Shape of the array, ordered (i, j).")
    dtype: NumberType = pydantic.Field(description="Type of the array values.")

    @classmethod
    def pack(cls, array: np.ndarray) -> ArrayModel:
        """Construct a model from an in-memory array."""
        if array.ndim != 2:
            raise ValueError(f"Only 2-d arrays can be serialized; got shape {array.shape}.")
        little = array.astype(array.dtype.newbyteorder("<"), copy=False)
        return cls.model_construct(
            data=np.ascontiguousarray(little).tobytes(),
            shape=(array.shape[0], array.shape[1]),
            dtype=NumberType.from_numpy(array.dtype),
        )

    def unpack(self) -> np.ndarray:
        """Return a new, writeable, native-endian array from this model."""
        dtype = np.dtype(self.dtype.to_numpy())
        expected = self.shape[0] * self.shape[1] * dtype.itemsize
        if len(self.data) != expected:
            raise SerializationReadError(
                f"Array of shape {self.shape} and type {self.dtype} needs {expected} bytes; "
                f"got {len(self.data)}."
            )
        flat = np.frombuffer(self.data, dtype=dtype.newbyteorder("<"))
        return flat.reshape(self.shape).astype(dtype)
