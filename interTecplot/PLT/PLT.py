"""Tecplot binary ``.plt`` reader.

Overview
========
A ``.plt`` file is a flat, little-endian record stream with no length
prefixes. The reader walks it once, front to back:

1) Preamble
   - 5-byte magic ``#!TDV`` and a 3-digit ASCII version (must exceed
     :data:`MIN_VERSION`).
   - ``int32`` sentinel ``1`` (byte-order check), ``int32`` file type.
   - Dataset title and variable names. Strings are runs of ``int32`` code
     units ending in ``0``; only the low byte of each unit is kept.

2) Header blocks
   Each block starts with a ``float32`` marker:

   ======  ==========================================
   299.0   zone header
   799.0   dataset auxiliary ``name = value``
   899.0   variable auxiliary ``var, name = value``
   357.0   end of header (stops the loop)
   ======  ==========================================

   Geometry, text, custom-label and user records are recognized and
   rejected as not supported. Any other marker is an unknown block.

3) Data section
   One block per zone, in header order, each starting with ``299.0``:
   element type per variable, passive/shared flags, connectivity sharing,
   ``(min, max)`` per variable, the variable arrays, and for FE zones the
   ``int32`` connectivity.

Cell-centered data on ordered zones
-----------------------------------
The file stores cell-centered arrays of ordered zones with node-count
length: one ghost layer per axis. The reader keeps the first
``max(n - 1, 1)`` entries on each axis, walking ``k``, then ``j``, then ``i``
(fastest), i.e. source index ``i + j * i_max + k * i_max * j_max``.

Usage
=====
>>> plt = PltFormat.open("heated_fin.plt")
>>> plt.dataset.var_names
('X', 'Y', 'T')
>>> T = plt.data_blocks[0].get_data(2).as_f64()

Any malformed or unsupported construct raises a
:class:`~interTecplot.errors.ParseError` subclass; there is no partial
result.
"""

from __future__ import annotations

import os
from typing import List

import numpy as np

from ..Core.Enums import (
    DataKind,
    FileType,
    TecDataType,
    ValueLocation,
    ZoneType,
    dataTypeKind,
)
from ..Core.TecData import TecData
from ..Core.Zones import DataBlock, Dataset, OrderedZone, Zone, ZoneHeader
from ..errors import (
    ByteOrderError,
    EncodingError,
    EndOfHeaderError,
    HeaderVersionMissingError,
    InvalidValueError,
    NotSupportedFeatureError,
    StructureError,
    UnexpectedEOFError,
    UnknownBlockError,
    VersionMismatchError,
    WrongDataTagError,
    WrongHeaderTagError,
    WrongMagicError,
)
from ..Log import Log
from ..options import DecodeOptions
from .BinaryReader import BinaryReader

MAGIC = b"#!TDV"
MIN_VERSION = 110

ZONE_MARKER = 299.0
GEOMETRY_MARKER = 399.0
TEXT_MARKER = 499.0
CUSTOM_LABEL_MARKER = 599.0
USER_RECORD_MARKER = 699.0
DATASET_AUX_MARKER = 799.0
VAR_AUX_MARKER = 899.0
EOH_MARKER = 357.0

_UNSUPPORTED_BLOCKS = {
    GEOMETRY_MARKER: "geometry records",
    TEXT_MARKER: "text records",
    CUSTOM_LABEL_MARKER: "custom label records",
    USER_RECORD_MARKER: "user records",
}

# float payloads are the only element types decoded from the data section
_PAYLOAD_TYPES = (TecDataType.F32, TecDataType.F64)


def gather_cell_values(stored: np.ndarray, zone: OrderedZone) -> np.ndarray:
    """Select cell values from a node-sized array of an ordered zone.

    ``stored`` has ``i_max * j_max * k_max`` entries in file order. The result
    has ``zone.cell_count()`` entries, cell-major.
    """
    ni = max(zone.i_max - 1, 1)
    nj = max(zone.j_max - 1, 1)
    nk = max(zone.k_max - 1, 1)
    grid = stored.reshape(zone.k_max, zone.j_max, zone.i_max)
    return np.ascontiguousarray(grid[:nk, :nj, :ni]).reshape(-1)


class _PltDecoder:
    """One-shot state for decoding a single buffer."""

    def __init__(self, reader: BinaryReader, options: DecodeOptions, logger):
        self._reader = reader
        self._options = options
        self._log = logger
        self.num_vars = 0

    # ------------- primitives -------------

    def _read_string(self) -> str:
        """Read a 0-terminated run of int32 code units."""
        start = self._reader.tell()
        raw = bytearray()
        while True:
            unit = self._reader.read_u32()
            if unit == 0:
                break
            # non-ASCII code points do not survive; this is the file format
            raw.append(unit & 0xFF)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError("string is not valid UTF-8", start) from e

    def _read_aux_pair(self) -> tuple[str, str]:
        name = self._read_string()
        _ = self._reader.read_i32()  # value format, 0 = string
        value = self._read_string()
        return name, value

    def _expect_marker(self, marker: float, error: type[StructureError]) -> None:
        pos = self._reader.tell()
        tag = self._reader.read_f32()
        if tag != marker:
            raise error(f"expected marker {marker}, found {tag}", pos)

    # ------------- preamble -------------

    def read_preamble(self) -> tuple[int, FileType, str, list[str]]:
        r = self._reader
        if r.remaining() < len(MAGIC) or r.read(len(MAGIC)) != MAGIC:
            raise WrongMagicError("not a Tecplot binary file", 0)
        pos = r.tell()
        try:
            digits = r.read(3)
        except UnexpectedEOFError as e:
            raise HeaderVersionMissingError("version missing", pos) from e
        if not digits.isdigit():
            raise HeaderVersionMissingError(f"bad version field {digits!r}", pos)
        version = int(digits)
        if version <= MIN_VERSION:
            raise VersionMismatchError(MIN_VERSION, version, pos)

        pos = r.tell()
        if r.read_i32() != 1:
            raise ByteOrderError("byte-order sentinel is not 1", pos)

        pos = r.tell()
        code = r.read_i32()
        try:
            file_type = FileType(code)
        except ValueError as e:
            raise StructureError(f"unknown file type {code}", pos) from e

        title = self._read_string()
        pos = r.tell()
        num_vars = r.read_i32()
        if num_vars < 0:
            raise StructureError(f"negative variable count {num_vars}", pos)
        self.num_vars = num_vars
        var_names = [self._read_string() for _ in range(num_vars)]
        return version, file_type, title, var_names

    # ------------- header section -------------

    def read_header_blocks(self):
        """Read header blocks up to and including the end-of-header marker.

        Returns ``(zone_headers, dataset_aux, var_aux)``.
        """
        r = self._reader
        zones: List[ZoneHeader] = []
        dataset_aux: dict[str, str] = {}
        var_aux: list[tuple[int, str, str]] = []
        while True:
            pos = r.tell()
            try:
                tag = r.peek_f32()
            except UnexpectedEOFError as e:
                raise EndOfHeaderError("file ends inside the header", pos) from e
            if tag == EOH_MARKER:
                break
            if tag == ZONE_MARKER:
                zh = self._read_zone_header()
                self._log.debug(
                    f"zone header '{zh.name}' ({zh.zone_type.name}) at offset {pos}"
                )
                zones.append(zh)
            elif tag == DATASET_AUX_MARKER:
                r.skip(4)
                name, value = self._read_aux_pair()
                dataset_aux[name] = value
            elif tag == VAR_AUX_MARKER:
                r.skip(4)
                vpos = r.tell()
                var_index = r.read_i32()
                if not 0 <= var_index < self.num_vars:
                    raise InvalidValueError(
                        f"variable aux data for variable {var_index} of {self.num_vars}",
                        vpos,
                    )
                name, value = self._read_aux_pair()
                var_aux.append((var_index, name, value))
            elif tag in _UNSUPPORTED_BLOCKS:
                raise NotSupportedFeatureError(_UNSUPPORTED_BLOCKS[tag], pos)
            else:
                raise UnknownBlockError(tag, pos)

        self._expect_marker(EOH_MARKER, EndOfHeaderError)
        return zones, dataset_aux, var_aux

    def _read_zone_header(self) -> ZoneHeader:
        r = self._reader
        self._expect_marker(ZONE_MARKER, WrongHeaderTagError)
        name = self._read_string()

        pos = r.tell()
        if r.read_i32() != -1:
            raise NotSupportedFeatureError("parent zones", pos)
        strand_id = r.read_i32()
        solution_time = r.read_f64()
        pos = r.tell()
        if r.read_i32() != -1:
            raise WrongHeaderTagError("zone color sentinel is not -1", pos)

        pos = r.tell()
        code = r.read_i32()
        try:
            zone_type = ZoneType(code)
        except ValueError as e:
            raise StructureError(f"unknown zone type {code}", pos) from e
        if zone_type.is_polygonal:
            raise NotSupportedFeatureError(f"{zone_type.name} zones", pos)

        if r.read_i32() != 0:
            locations = []
            for _ in range(self.num_vars):
                pos = r.tell()
                raw = r.read_i32()
                if raw not in (0, 1):
                    raise StructureError(f"bad value location {raw}", pos)
                locations.append(ValueLocation.from_raw(raw))
        else:
            locations = [ValueLocation.NODAL] * self.num_vars

        _ = r.read_i32()  # raw local face neighbors supplied
        pos = r.tell()
        if r.read_i32() != 0:
            # Extension point: miscellaneous face neighbor connections carry a
            # FaceNeighborMode, then (FE only) a "completely specified" flag.
            raise NotSupportedFeatureError("face neighbor connections", pos)

        zh = ZoneHeader(
            name=name,
            zone_type=zone_type,
            strand_id=strand_id,
            solution_time=solution_time,
            var_locations=locations,
        )
        pos = r.tell()
        if zone_type is ZoneType.ORDERED:
            zh.i_max, zh.j_max, zh.k_max = r.read_i32(), r.read_i32(), r.read_i32()
            if min(zh.i_max, zh.j_max, zh.k_max) < 1:
                raise InvalidValueError(
                    f"zone '{name}' extents ({zh.i_max}, {zh.j_max}, {zh.k_max})", pos
                )
        else:
            zh.nodes, zh.cells = r.read_i32(), r.read_i32()
            if zh.nodes < 0 or zh.cells < 0:
                raise InvalidValueError(
                    f"zone '{name}' has {zh.nodes} nodes, {zh.cells} elements", pos
                )
            # i/j/k cell dimensions, kept for layout only
            r.skip(12)

        while r.read_i32() != 0:
            key, value = self._read_aux_pair()
            zh.aux_data[key] = value
        return zh

    # ------------- data section -------------

    def read_data_block(self, zone_id: int, zh: ZoneHeader) -> tuple[Zone, DataBlock]:
        """Read one zone's data and return the finished zone with its block."""
        r = self._reader
        start = r.tell()
        try:
            tag = r.read_f32()
        except UnexpectedEOFError as e:
            raise UnexpectedEOFError(f"data block of zone {zone_id} missing", start) from e
        if tag != ZONE_MARKER:
            raise WrongDataTagError(f"expected marker {ZONE_MARKER}, found {tag}", start)

        var_types: list[TecDataType] = []
        for _ in range(self.num_vars):
            pos = r.tell()
            code = r.read_i32()
            try:
                var_types.append(TecDataType(code))
            except ValueError as e:
                raise StructureError(f"unknown data type {code}", pos) from e

        pos = r.tell()
        if r.read_i32() != 0:
            raise NotSupportedFeatureError("passive variables", pos)
        pos = r.tell()
        if r.read_i32() != 0:
            raise NotSupportedFeatureError("shared variables", pos)
        pos = r.tell()
        share_zone = r.read_i32()
        if share_zone != -1:
            raise NotSupportedFeatureError(
                f"connectivity shared with zone {share_zone}", pos
            )

        mm = r.read_array(np.float64, 2 * self.num_vars).reshape(-1, 2)
        min_max = tuple((float(lo), float(hi)) for lo, hi in mm)

        zone = zh.build(zone_id, var_types)

        data: list[tuple[int, TecData]] = []
        for v, dtype in enumerate(var_types):
            pos = r.tell()
            if dtype not in _PAYLOAD_TYPES:
                raise NotSupportedFeatureError(f"{dtype.name} variable data", pos)
            kind = dataTypeKind[dtype]
            loc = zone.var_locations[v]
            if isinstance(zone, OrderedZone) and loc is ValueLocation.CELLCENTERED:
                stored = r.read_array(kind.dtype, zone.node_count())
                arr = gather_cell_values(stored, zone)
            else:
                arr = r.read_array(kind.dtype, zone.value_count(v))
            data.append((v, TecData(arr, kind, borrowed=False)))

        connectivity = None
        if zone.is_fe:
            pos = r.tell()
            if self._options.connectivity_width != 32:
                raise NotSupportedFeatureError(
                    f"{self._options.connectivity_width}-bit connectivity", pos
                )
            conn = r.read_array(np.int32, zone.num_connections())
            connectivity = TecData(conn, DataKind.I32, borrowed=False)

        block = DataBlock(data=tuple(data), connectivity=connectivity, min_max=min_max)
        block.validate(zone)
        self._log.debug(
            f"zone {zone_id} data: {len(data)} variables, "
            f"{0 if connectivity is None else len(connectivity)} connections, "
            f"{r.tell() - start} bytes"
        )
        return zone, block


class PltFormat:
    """Decoded binary dataset.

    Attributes
    ----------
    version
        Format version from the preamble (e.g. ``112``).
    dataset
        Title, variable names, file type, and auxiliary data.
    zones
        Zones in file order with 1-based ``id``.
    data_blocks
        One :class:`DataBlock` per zone, same order as ``zones``.
    """

    def __init__(
        self,
        version: int,
        dataset: Dataset,
        zones: list[Zone],
        data_blocks: list[DataBlock],
    ):
        self.version = version
        self.dataset = dataset
        self.zones = zones
        self.data_blocks = data_blocks

    def __repr__(self) -> str:
        return (
            f"PltFormat(v={self.version}, title={self.dataset.title!r}, "
            f"vars={self.dataset.num_variables}, zones={len(self.zones)})"
        )

    __str__ = __repr__

    @classmethod
    def open(
        cls, filename: str | os.PathLike, options: DecodeOptions | None = None
    ) -> PltFormat:
        """Decode the file at ``filename``."""
        opts = options or DecodeOptions()
        with BinaryReader.from_file(filename, use_mmap=opts.use_mmap) as reader:
            return cls._decode(reader, opts, options is not None)

    @classmethod
    def from_bytes(
        cls, data: bytes | bytearray | memoryview, options: DecodeOptions | None = None
    ) -> PltFormat:
        """Decode an in-memory ``.plt`` image."""
        opts = options or DecodeOptions()
        with BinaryReader(data) as reader:
            return cls._decode(reader, opts, options is not None)

    @classmethod
    def _decode(
        cls, reader: BinaryReader, options: DecodeOptions, configure: bool
    ) -> PltFormat:
        log = (Log(**options.log_kwargs()) if configure else Log()).logger
        dec = _PltDecoder(reader, options, log)
        version, file_type, title, var_names = dec.read_preamble()
        headers, dataset_aux, var_aux = dec.read_header_blocks()

        try:
            dataset = Dataset(
                title=title,
                var_names=tuple(var_names),
                num_zones=len(headers),
                file_type=file_type,
                aux_data=dataset_aux,
                var_aux_data=tuple(var_aux),
            )
        except ValueError as e:
            raise InvalidValueError(str(e)) from e

        zones: list[Zone] = []
        blocks: list[DataBlock] = []
        for i, zh in enumerate(headers):
            zone, block = dec.read_data_block(i + 1, zh)
            zones.append(zone)
            blocks.append(block)

        if reader.remaining():
            log.warning(
                f"{reader.remaining()} trailing bytes after the last data block ignored"
            )
        log.info(
            f"decoded plt v{version} '{title}': "
            f"{dataset.num_variables} variables, {len(zones)} zones"
        )
        return cls(version, dataset, zones, blocks)

    def as_tuple(self) -> tuple[Dataset, list[Zone], list[DataBlock]]:
        return self.dataset, self.zones, self.data_blocks


def decode_plt(
    source: str | os.PathLike | bytes | bytearray | memoryview,
    options: DecodeOptions | None = None,
) -> tuple[Dataset, list[Zone], list[DataBlock]]:
    """Decode a binary dataset from a path or an in-memory buffer."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return PltFormat.from_bytes(source, options).as_tuple()
    return PltFormat.open(source, options).as_tuple()
