# ---------------------------------------------------------------------
# Binary reader
# ---------------------------------------------------------------------
from __future__ import annotations

import mmap
import os
import struct
from pathlib import Path

import numpy as np

from ..errors import TecIOError, UnexpectedEOFError

_I32 = struct.Struct("<i")
_U32 = struct.Struct("<I")
_F32 = struct.Struct("<f")
_F64 = struct.Struct("<d")


class BinaryReader:
    """Little-endian cursor over a Tecplot ``.plt`` byte stream.

    Design
    ------
    - The source is either an in-memory buffer or a memory-mapped file.
    - Integer cursor ``pos`` replaces file seeks.
    - Every typed read checks the remaining length first and raises
      :class:`~interTecplot.errors.UnexpectedEOFError` on a short read.
    - Arrays are copied out of the buffer so decoded data stays valid after
      :meth:`close`.
    """

    __slots__ = ("_f", "_mm", "_buf", "size", "pos")

    def __init__(self, data: bytes | bytearray | memoryview):
        self._f = None
        self._mm: mmap.mmap | None = None
        buf = memoryview(data)
        if buf.format != "B" or buf.ndim != 1:
            buf = buf.cast("B")
        self._buf = buf
        self.size = self._buf.nbytes
        self.pos = 0

    @classmethod
    def from_file(cls, filename: str | os.PathLike, use_mmap: bool = True) -> BinaryReader:
        """Open ``filename`` for reading.

        With ``use_mmap`` the file is mapped read-only; otherwise it is read
        into memory in one go.
        """
        path = Path(filename)
        try:
            if not use_mmap:
                return cls(path.read_bytes())
            f = open(path, "rb")
            try:
                if os.fstat(f.fileno()).st_size == 0:
                    f.close()
                    return cls(b"")
                mm = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
            except BaseException:
                f.close()
                raise
        except OSError as e:
            raise TecIOError(f"cannot read {path}: {e}") from e
        reader = cls(mm)
        reader._f = f
        reader._mm = mm
        return reader

    def __repr__(self) -> str:
        return f"BinaryReader(size={self.size}, pos={self.pos})"

    __str__ = __repr__

    def __enter__(self) -> BinaryReader:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------- low-level cursor ops -------------

    def _ensure(self, n: int) -> None:
        if n < 0 or self.pos + n > self.size:
            raise UnexpectedEOFError(
                f"need {n} bytes, {self.size - self.pos} left", self.pos
            )

    def tell(self) -> int:
        return self.pos

    def remaining(self) -> int:
        return self.size - self.pos

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> None:
        if whence == os.SEEK_SET:
            np_ = offset
        elif whence == os.SEEK_CUR:
            np_ = self.pos + offset
        elif whence == os.SEEK_END:
            np_ = self.size + offset
        else:
            raise ValueError("invalid whence")
        if np_ < 0 or np_ > self.size:
            raise ValueError("invalid seek")
        self.pos = np_

    def skip(self, n: int) -> None:
        self._ensure(n)
        self.pos += n

    # ------------- typed reads -------------

    def read(self, n: int) -> bytes:
        """Return ``n`` bytes and advance."""
        self._ensure(n)
        out = self._buf[self.pos : self.pos + n].tobytes()
        self.pos += n
        return out

    def _unpack(self, st: struct.Struct):
        self._ensure(st.size)
        val = st.unpack_from(self._buf, self.pos)[0]
        self.pos += st.size
        return val

    def _peek(self, st: struct.Struct):
        self._ensure(st.size)
        return st.unpack_from(self._buf, self.pos)[0]

    def read_i32(self) -> int:
        return int(self._unpack(_I32))

    def read_u32(self) -> int:
        return int(self._unpack(_U32))

    def read_f32(self) -> float:
        return float(self._unpack(_F32))

    def read_f64(self) -> float:
        return float(self._unpack(_F64))

    def peek_i32(self) -> int:
        """Peek next i32 without advancing."""
        return int(self._peek(_I32))

    def peek_f32(self) -> float:
        """Peek next f32 without advancing."""
        return float(self._peek(_F32))

    def read_array(self, dtype: np.dtype | str, count: int) -> np.ndarray:
        """Read ``count`` little-endian items of ``dtype`` into a new array."""
        dt = np.dtype(dtype).newbyteorder("<")
        n = dt.itemsize * count
        self._ensure(n)
        view = np.frombuffer(self._buf, dtype=dt, count=count, offset=self.pos)
        self.pos += n
        # native byte order, owned copy
        return view.astype(dt.newbyteorder("="), copy=True)

    # ------------- lifecycle -------------

    def close(self) -> None:
        self._buf.release()
        if self._mm is not None:
            try:
                self._mm.close()
            finally:
                if self._f is not None:
                    self._f.close()
            self._mm = None
            self._f = None
