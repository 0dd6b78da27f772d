from __future__ import annotations

import struct

import numpy as np
import pytest

from interTecplot.Log import Log


def plt_string(text: str) -> bytes:
    units = [struct.pack("<i", ord(c)) for c in text]
    return b"".join(units) + struct.pack("<i", 0)


def i32(*values: int) -> bytes:
    return struct.pack(f"<{len(values)}i", *values)


def f32(value: float) -> bytes:
    return struct.pack("<f", value)


def f64(*values: float) -> bytes:
    return struct.pack(f"<{len(values)}d", *values)


_TYPE_CODES = {np.dtype(np.float32): 1, np.dtype(np.float64): 2, np.dtype(np.int32): 3}


class PltBuilder:
    """Assemble a ``.plt`` image record by record."""

    def __init__(self, title="Test", var_names=("X", "Y"), version=b"112", file_type=0):
        self.title = title
        self.var_names = list(var_names)
        self.version = version
        self.file_type = file_type
        self.byte_order = 1
        self.headers: list[bytes] = []
        self.data: list[bytes] = []
        self.end_of_header = True

    def zone(
        self,
        name="Zone",
        zone_type=0,
        ijk=(1, 1, 1),
        nodes=0,
        cells=0,
        locations=None,
        strand_id=-1,
        solution_time=0.0,
        parent=-1,
        face_neighbors=0,
        aux=(),
    ) -> PltBuilder:
        rec = f32(299.0) + plt_string(name) + i32(parent, strand_id)
        rec += f64(solution_time) + i32(-1, zone_type)
        if locations is None:
            rec += i32(0)
        else:
            # raw codes: 0 nodal, 1 cell-centered
            rec += i32(1, *locations)
        rec += i32(0, face_neighbors)
        if zone_type == 0:
            rec += i32(*ijk)
        else:
            rec += i32(nodes, cells, 0, 0, 0)
        for key, value in aux:
            rec += i32(1) + plt_string(key) + i32(0) + plt_string(value)
        rec += i32(0)
        self.headers.append(rec)
        return self

    def dataset_aux(self, name: str, value: str) -> PltBuilder:
        self.headers.append(f32(799.0) + plt_string(name) + i32(0) + plt_string(value))
        return self

    def var_aux(self, var: int, name: str, value: str) -> PltBuilder:
        self.headers.append(
            f32(899.0) + i32(var) + plt_string(name) + i32(0) + plt_string(value)
        )
        return self

    def raw_header(self, chunk: bytes) -> PltBuilder:
        self.headers.append(chunk)
        return self

    def data_block(
        self,
        arrays,
        connectivity=None,
        types=None,
        passive=0,
        shared=0,
        share_zone=-1,
        tag=299.0,
    ) -> PltBuilder:
        arrays = [np.asarray(a) for a in arrays]
        if types is None:
            types = [_TYPE_CODES[a.dtype] for a in arrays]
        rec = f32(tag) + i32(*types) + i32(passive, shared, share_zone)
        for a in arrays:
            lo, hi = (float(a.min()), float(a.max())) if a.size else (0.0, 0.0)
            rec += f64(lo, hi)
        for a in arrays:
            rec += a.astype(a.dtype.newbyteorder("<")).tobytes()
        if connectivity is not None:
            rec += np.asarray(connectivity, dtype="<i4").tobytes()
        self.data.append(rec)
        return self

    def build(self) -> bytes:
        out = b"#!TDV" + self.version + i32(self.byte_order, self.file_type)
        out += plt_string(self.title) + i32(len(self.var_names))
        out += b"".join(plt_string(n) for n in self.var_names)
        out += b"".join(self.headers)
        if self.end_of_header:
            out += f32(357.0)
        out += b"".join(self.data)
        return out


@pytest.fixture
def make_plt():
    return PltBuilder


@pytest.fixture(autouse=True)
def quiet_log():
    log = Log(level="WARNING")
    yield
    log.close()
