"""Typed numeric container shared by all decoders.

A :class:`TecData` holds one contiguous 1D NumPy array of a single element
type together with a :class:`DataKind` tag. It is either *owned* (the
container made its own copy) or *borrowed* (a read-only view aliasing
memory that belongs to someone else, such as a decoder's owned array).

Borrowing never reinterprets bytes: a view always has the same dtype as the
array it aliases. Conversions (:meth:`TecData.as_f32`, :meth:`TecData.as_f64`,
:meth:`TecData.as_i32`) return fresh arrays and leave the container alone.

>>> d = TecData.owned([1.0, 2.0], DataKind.F64)
>>> v = d.snapshot()          # borrowed, shares memory with d
>>> v.as_f32()
array([1., 2.], dtype=float32)
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from ..errors import UnsupportedConversionError
from .Enums import DataKind


class TecData:
    """One tagged numeric array.

    Attributes
    ----------
    kind
        Element type tag. Always agrees with ``values.dtype``.
    is_borrowed
        True when the array is a view into memory owned elsewhere.
    """

    __slots__ = ("_values", "_kind", "_borrowed")

    def __init__(self, values: np.ndarray, kind: DataKind, borrowed: bool):
        if values.ndim != 1:
            raise ValueError("TecData holds 1D arrays only")
        if values.dtype != kind.dtype:
            raise TypeError(
                f"array dtype {values.dtype.name} does not match kind {kind.name}"
            )
        self._values = values
        self._kind = kind
        self._borrowed = borrowed

    # ------------- construction -------------

    @classmethod
    def owned(
        cls, values: Iterable | np.ndarray, kind: DataKind | None = None
    ) -> TecData:
        """Copy ``values`` into a new owned container.

        ``kind`` defaults to the kind of ``values``' dtype.
        """
        if kind is None:
            a = np.array(values, order="C", copy=True).reshape(-1)
            kind = DataKind.from_dtype(a.dtype)
        else:
            a = np.array(values, dtype=kind.dtype, order="C", copy=True).reshape(-1)
        return cls(a, kind, borrowed=False)

    @classmethod
    def borrowed(cls, values: np.ndarray) -> TecData:
        """Wrap caller-owned memory without copying.

        The container holds a read-only view; the caller keeps ownership of
        ``values`` and must keep it alive.
        """
        kind = DataKind.from_dtype(values.dtype)
        view = values.reshape(-1).view()
        view.flags.writeable = False
        return cls(view, kind, borrowed=True)

    def snapshot(self) -> TecData:
        """Return a borrowed view of the same memory.

        Works for owned and borrowed containers alike; no data is copied.
        """
        view = self._values.view()
        view.flags.writeable = False
        return TecData(view, self._kind, borrowed=True)

    # ------------- queries -------------

    @property
    def kind(self) -> DataKind:
        return self._kind

    @property
    def is_borrowed(self) -> bool:
        return self._borrowed

    @property
    def values(self) -> np.ndarray:
        """The backing array (lossless, same type)."""
        return self._values

    def length(self) -> int:
        return int(self._values.shape[0])

    def __len__(self) -> int:
        return self.length()

    def as_array(self, kind: DataKind) -> np.ndarray:
        """Return the backing array, insisting that it has element type ``kind``.

        Raises
        ------
        TypeError
            If the container holds a different kind. This is a caller bug.
        """
        if kind is not self._kind:
            raise TypeError(f"TecData holds {self._kind.name}, not {kind.name}")
        return self._values

    # ------------- conversions -------------

    def as_f32(self) -> np.ndarray:
        """Copy to ``float32``; defined for F32 and F64 data."""
        if self._kind not in (DataKind.F32, DataKind.F64):
            raise UnsupportedConversionError(self._kind.name, "F32")
        return self._values.astype(np.float32, copy=True)

    def as_f64(self) -> np.ndarray:
        """Copy to ``float64``; defined for F32 and F64 data."""
        if self._kind not in (DataKind.F32, DataKind.F64):
            raise UnsupportedConversionError(self._kind.name, "F64")
        return self._values.astype(np.float64, copy=True)

    def as_i32(self) -> np.ndarray:
        """Copy ``int32`` data; no other kind converts to integers."""
        if self._kind is not DataKind.I32:
            raise UnsupportedConversionError(self._kind.name, "I32")
        return self._values.copy()

    # ------------- dunder -------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TecData):
            return NotImplemented
        if self._kind is not other._kind:
            return False
        floating = self._kind in (DataKind.F32, DataKind.F64)
        return bool(
            np.array_equal(self._values, other._values, equal_nan=floating)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        mode = "borrowed" if self._borrowed else "owned"
        return f"TecData(kind={self._kind.name}, len={len(self)}, {mode})"

    __str__ = __repr__
