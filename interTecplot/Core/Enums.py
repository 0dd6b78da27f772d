"""Integer codes shared by the binary and ASCII Tecplot formats.

The numeric values match the codes written in ``.plt`` files so that a raw
``int32`` read from the stream can be passed straight to the enum
constructor.
"""

from __future__ import annotations

from enum import Enum, IntEnum

import numpy as np


class ZoneType(IntEnum):
    """Zone topology code."""

    ORDERED = 0
    FELINESEG = 1
    FETRIANGLE = 2
    FEQUADRILATERAL = 3
    FETETRAHEDRON = 4
    FEBRICK = 5
    FEPOLYGON = 6
    FEPOLYHEDRON = 7

    @property
    def is_fe(self) -> bool:
        """Return True for every finite-element topology."""
        return self is not ZoneType.ORDERED

    @property
    def is_polygonal(self) -> bool:
        return self in (ZoneType.FEPOLYGON, ZoneType.FEPOLYHEDRON)

    @property
    def nodes_per_element(self) -> int:
        """Incident nodes of one element; 0 for ordered and polygonal zones."""
        return nodesPerElement.get(self, 0)


nodesPerElement = {
    ZoneType.FELINESEG: 2,
    ZoneType.FETRIANGLE: 3,
    ZoneType.FEQUADRILATERAL: 4,
    ZoneType.FETETRAHEDRON: 4,
    ZoneType.FEBRICK: 8,
}


class TecDataType(IntEnum):
    """Element type of one variable as declared by the file."""

    F32 = 1
    F64 = 2
    I32 = 3
    I16 = 4
    I8 = 5
    I1 = 6


class ValueLocation(IntEnum):
    """Where a variable lives.

    The binary format stores ``0`` for nodal and ``1`` for cell-centered;
    the enum value is ``1 - raw``.
    """

    CELLCENTERED = 0
    NODAL = 1

    @classmethod
    def from_raw(cls, raw: int) -> "ValueLocation":
        return cls(1 - raw)


class FileType(IntEnum):
    FULL = 0
    GRID = 1
    SOLUTION = 2


class FaceNeighborMode(IntEnum):
    LOCALONETOONE = 0
    LOCALONETOMANY = 1
    GLOBALONETOONE = 2
    GLOBALONETOMANY = 3


class DataPacking(Enum):
    """ASCII data layout: one run per variable or one row per node."""

    POINT = "POINT"
    BLOCK = "BLOCK"


class DataKind(Enum):
    """Concrete element type held by a :class:`~interTecplot.Core.TecData.TecData`."""

    F32 = "float32"
    F64 = "float64"
    I64 = "int64"
    I32 = "int32"
    I16 = "int16"
    I8 = "int8"
    U64 = "uint64"
    U32 = "uint32"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)

    @classmethod
    def from_dtype(cls, dtype: np.dtype | type | str) -> "DataKind":
        """Map a NumPy dtype to its kind.

        Raises
        ------
        TypeError
            If the dtype has no matching kind.
        """
        name = np.dtype(dtype).name
        try:
            return cls(name)
        except ValueError as e:
            raise TypeError(f"no TecData kind for dtype {name!r}") from e


# file element type -> container kind; I8/I1 map only where a decoder reads them
dataTypeKind = {
    TecDataType.F32: DataKind.F32,
    TecDataType.F64: DataKind.F64,
    TecDataType.I32: DataKind.I32,
    TecDataType.I16: DataKind.I16,
    TecDataType.I8: DataKind.I8,
}
