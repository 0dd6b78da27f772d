"""Tecplot ASCII ``.dat`` reader.

Layout
======
A ``.dat`` file is free-form text:

.. code-block:: text

    TITLE = "Heated fin"
    VARIABLES = "X", "Y", "T"
    ZONE T="fin", I=3, J=2, DATAPACKING=BLOCK, VARLOCATION=([3]=CELLCENTERED)
    0 1 2 0 1 2
    0 0 0 1 1 1
    20.5 21.0

- The file header is a list of ``KEY = VALUE`` assignments up to the first
  ``ZONE`` keyword (``TITLE``, ``VARIABLES``, ``FILETYPE``, plus
  ``DATASETAUXDATA name = "value"`` and ``VARAUXDATA n name = "value"``).
- Each zone record is ``ZONE`` followed by assignments, then the data body:
  with ``DATAPACKING=BLOCK`` one run of values per variable, with ``POINT``
  one row of values per node. FE zones end with the connectivity, as
  written in the file (1-based node numbers).
- Separators are whitespace, newlines and commas; ``#`` starts a comment
  that runs to the end of the line.

Keywords are case-sensitive. Enumerated values (``ZONETYPE``,
``DATAPACKING``, ``FILETYPE``, ``DT`` tokens, locations) are not.

Usage
=====
>>> dat = DatFormat.open("heated_fin.dat")
>>> dat.zones[0].var_locations
(<ValueLocation.NODAL: 1>, <ValueLocation.NODAL: 1>, <ValueLocation.CELLCENTERED: 0>)
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import numpy as np

from ..Core.Enums import (
    DataKind,
    DataPacking,
    FileType,
    TecDataType,
    ValueLocation,
    ZoneType,
    dataTypeKind,
)
from ..Core.TecData import TecData
from ..Core.Zones import ClassicFEZone, DataBlock, Dataset, OrderedZone, Zone
from ..errors import (
    EncodingError,
    GrammarError,
    InvalidValueError,
    NotSupportedFeatureError,
    NumberFormatError,
    TecIOError,
    VarLocationRangeError,
)
from ..Log import Log
from ..options import DecodeOptions
from .Scanner import Scanner

DEFAULT_TITLE = "Dataset"
DEFAULT_ZONE_NAME = "Unnamed zone"

_HEADER_KEYS = ("TITLE", "VARIABLES", "FILETYPE")

_ZONE_KEYS = {
    "T": "name",
    "ZONETYPE": "zone_type",
    "I": "i_max",
    "J": "j_max",
    "K": "k_max",
    "N": "nodes",
    "NODES": "nodes",
    "Nodes": "nodes",
    "E": "cells",
    "ELEMENTS": "cells",
    "Elements": "cells",
    "STRANDID": "strand_id",
    "SOLUTIONTIME": "solution_time",
    "DATAPACKING": "packing",
    "DT": "var_types",
    "VARLOCATION": "var_locations",
}

_UNSUPPORTED_KEYS = frozenset(
    {
        "FACES",
        "TOTALNUMFACENODES",
        "NUMCONNECTEDBOUNDARYFACES",
        "TOTALNUMBOUNDARYCONNECTIONS",
        "FACENEIGHBORCONNECTIONS",
        "VARSHARELIST",
        "NV",
        "CONNECTIVITYSHAREZONE",
        "PARENTZONE",
        "PASSIVEVARLIST",
    }
)

# records that may appear between zones
_UNSUPPORTED_RECORDS = frozenset({"TEXT", "GEOMETRY"})

_ZONE_TYPES = {
    "ORDERED": ZoneType.ORDERED,
    "FELINESEG": ZoneType.FELINESEG,
    "FETRIANGLE": ZoneType.FETRIANGLE,
    "FEQUADRILATERAL": ZoneType.FEQUADRILATERAL,
    "FETETRAHEDRON": ZoneType.FETETRAHEDRON,
    "FEBRICK": ZoneType.FEBRICK,
    "FEPOLYGON": ZoneType.FEPOLYGON,
    "FEPOLYHEDRON": ZoneType.FEPOLYHEDRON,
    "FEPOLYHEDRAL": ZoneType.FEPOLYHEDRON,
}

_DATA_TYPES = {
    "SINGLE": TecDataType.F32,
    "DOUBLE": TecDataType.F64,
    "LONGINT": TecDataType.I32,
    "SHORTINT": TecDataType.I16,
}

_UNSUPPORTED_DATA_TYPES = frozenset({"BYTE", "BIT"})

_LOCATIONS = {
    "NODAL": ValueLocation.NODAL,
    "CELLCENTERED": ValueLocation.CELLCENTERED,
}

_INT_TOKEN_RE = re.compile(r"[+-]?\d+")
_FLOAT_TOKEN_RE = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf|infinity|nan)", re.IGNORECASE
)


def parse_values(tokens: list[str], kind: DataKind, offset: int | None = None) -> np.ndarray:
    """Convert decimal tokens to a 1D array of ``kind``.

    Integer kinds reject fractional tokens and values outside the type's
    range.

    Raises
    ------
    NumberFormatError
        If a token does not parse as ``kind``.
    """
    dtype = kind.dtype
    integral = np.issubdtype(dtype, np.integer)
    pattern = _INT_TOKEN_RE if integral else _FLOAT_TOKEN_RE
    for tok in tokens:
        if pattern.fullmatch(tok) is None:
            raise NumberFormatError(tok, kind.name, offset)
    try:
        if integral:
            wide = np.array(tokens, dtype=np.int64)
        else:
            wide = np.array(tokens, dtype=np.float64)
    except (ValueError, OverflowError) as e:
        bad = _first_bad_token(tokens, integral)
        raise NumberFormatError(bad, kind.name, offset) from e
    if integral and wide.size:
        info = np.iinfo(dtype)
        out_of_range = (wide < info.min) | (wide > info.max)
        if out_of_range.any():
            bad = tokens[int(np.argmax(out_of_range))]
            raise NumberFormatError(bad, kind.name, offset)
    return wide.astype(dtype, copy=False).reshape(-1)


def _first_bad_token(tokens: list[str], integral: bool) -> str:
    convert = int if integral else float
    for tok in tokens:
        try:
            convert(tok)
        except ValueError:
            return tok
    return tokens[0] if tokens else ""


def resolve_var_locations(
    clauses: list[tuple[list[str], ValueLocation]], num_vars: int, offset: int | None = None
) -> list[ValueLocation]:
    """Expand ``VARLOCATION`` clauses into one location per variable.

    Each clause holds 1-based indices (``"3"``) or inclusive ranges
    (``"2-4"``). Unlisted variables are nodal.

    Raises
    ------
    VarLocationRangeError
        If an index or range falls outside ``1..num_vars``.
    NumberFormatError
        If an index is not an integer.
    """
    locations = [ValueLocation.NODAL] * num_vars
    for specs, loc in clauses:
        for spec in specs:
            lo_s, sep, hi_s = spec.partition("-")
            bounds = (lo_s, hi_s) if sep else (lo_s,)
            if any(_INT_TOKEN_RE.fullmatch(b) is None for b in bounds):
                raise NumberFormatError(spec, "variable index", offset)
            lo = int(lo_s)
            hi = int(hi_s) if sep else lo
            if not 1 <= lo <= hi <= num_vars:
                raise VarLocationRangeError(
                    f"VARLOCATION entry [{spec}] outside variables 1..{num_vars}", offset
                )
            for v in range(lo - 1, hi):
                locations[v] = loc
    return locations


class _DatDecoder:
    """One-shot state for decoding a single text."""

    def __init__(self, text: str, logger):
        if text.startswith("\ufeff"):
            text = text[1:]
        self._sc = Scanner(text)
        self._log = logger
        self.var_names: list[str] = []

    # ------------- values -------------

    def _string_value(self) -> str:
        self._sc.skip(commas=False)
        if self._sc.peek_char() == '"':
            return self._sc.quoted()
        return self._sc.bare()

    def _int_value(self) -> int:
        self._sc.skip(commas=False)
        pos = self._sc.pos
        tok = self._sc.bare()
        if _INT_TOKEN_RE.fullmatch(tok) is None:
            raise NumberFormatError(tok, "integer", pos)
        return int(tok)

    def _choice(self, table: dict, what: str):
        self._sc.skip(commas=False)
        pos = self._sc.pos
        tok = self._sc.bare()
        try:
            return table[tok.upper()]
        except KeyError as e:
            raise InvalidValueError(f"unknown {what} {tok!r}", pos) from e

    def _assign(
        self, store: dict[str, Any], field: str, value: Any, where: str, keyword: str
    ) -> None:
        if field in store:
            self._log.warning(f"{where}: keyword {keyword} given twice, keeping the last value")
        store[field] = value

    # ------------- file header -------------

    def read_header(self) -> Dataset:
        sc = self._sc
        fields: dict[str, Any] = {}
        aux: dict[str, str] = {}
        var_aux: list[tuple[int, str, str]] = []
        var_aux_pos: list[int] = []
        while not sc.at_end():
            word = sc.peek_ident()
            if word == "ZONE":
                break
            if word in _UNSUPPORTED_RECORDS:
                raise NotSupportedFeatureError(f"{word} records", sc.pos)
            if word == "DATASETAUXDATA":
                sc.ident()
                name, value = self._aux_pair()
                aux[name] = value
                continue
            if word == "VARAUXDATA":
                sc.ident()
                var_aux_pos.append(sc.pos)
                var = self._int_value()
                name, value = self._aux_pair()
                var_aux.append((var - 1, name, value))
                continue

            key = sc.peek_assignment()
            if key is None:
                raise self._grammar("expected a header keyword or ZONE")
            if key not in _HEADER_KEYS:
                if key in _ZONE_KEYS or key in _UNSUPPORTED_KEYS:
                    raise self._grammar(f"zone keyword {key} before ZONE")
                raise self._grammar(f"unknown keyword {key}")
            sc.ident()
            sc.expect("=")
            if key == "TITLE":
                value = self._string_value()
            elif key == "VARIABLES":
                value = self._variable_list()
            else:
                value = self._choice(
                    {"FULL": FileType.FULL, "GRID": FileType.GRID, "SOLUTION": FileType.SOLUTION},
                    "file type",
                )
            self._assign(fields, key, value, "file header", key)

        self.var_names = fields.get("VARIABLES", [])
        for (var, name, _), pos in zip(var_aux, var_aux_pos):
            if not 0 <= var < len(self.var_names):
                raise InvalidValueError(
                    f"VARAUXDATA {name!r} for variable {var + 1} of {len(self.var_names)}",
                    pos,
                )
        try:
            return Dataset(
                title=fields.get("TITLE", DEFAULT_TITLE),
                var_names=tuple(self.var_names),
                num_zones=0,
                file_type=fields.get("FILETYPE", FileType.FULL),
                aux_data=aux,
                var_aux_data=tuple(var_aux),
            )
        except ValueError as e:
            raise InvalidValueError(str(e)) from e

    def _aux_pair(self) -> tuple[str, str]:
        sc = self._sc
        name = sc.bare()
        sc.expect("=")
        return name, self._string_value()

    def _variable_list(self) -> list[str]:
        sc = self._sc
        names: list[str] = []
        while True:
            sc.skip()
            if sc.peek_char() == '"':
                names.append(sc.quoted())
                continue
            word = sc.peek_ident()
            if word is None or sc.peek_assignment() is not None:
                break
            if word == "ZONE" or word in _UNSUPPORTED_RECORDS:
                break
            if word in ("DATASETAUXDATA", "VARAUXDATA"):
                break
            names.append(sc.ident())
        if not names:
            raise self._grammar("VARIABLES needs at least one name")
        return names

    # ------------- zone records -------------

    def read_zone(self, zone_id: int) -> tuple[Zone, DataBlock]:
        sc = self._sc
        start = sc.pos
        sc.ident()  # ZONE
        where = f"zone {zone_id}"
        fields: dict[str, Any] = {}
        aux: dict[str, str] = {}
        while True:
            sc.skip()
            if sc.peek_ident() == "AUXDATA":
                sc.ident()
                name, value = self._aux_pair()
                aux[name] = value
                continue
            key = sc.peek_assignment()
            if key is None:
                break
            pos = sc.pos
            if key in _UNSUPPORTED_KEYS:
                raise NotSupportedFeatureError(f"{key} keyword", pos)
            if key not in _ZONE_KEYS:
                raise self._grammar(f"unknown zone keyword {key}")
            sc.ident()
            sc.expect("=")
            self._assign(fields, _ZONE_KEYS[key], self._zone_value(key), where, key)

        zone = self._make_zone(zone_id, fields, aux, start)
        self._log.debug(
            f"zone {zone_id} '{zone.name}': {zone.zone_type.name}, "
            f"{zone.node_count()} nodes, {zone.cell_count()} cells, "
            f"{fields.get('packing', DataPacking.BLOCK).name}"
        )
        block = self._read_body(zone, fields.get("packing", DataPacking.BLOCK))
        try:
            block.validate(zone)
        except ValueError as e:
            raise InvalidValueError(str(e), start) from e
        return zone, block

    def _zone_value(self, key: str) -> Any:
        sc = self._sc
        if key == "T":
            return self._string_value()
        if key == "ZONETYPE":
            return self._choice(_ZONE_TYPES, "zone type")
        if key == "SOLUTIONTIME":
            return sc.number()
        if key == "DATAPACKING":
            return self._choice({"POINT": DataPacking.POINT, "BLOCK": DataPacking.BLOCK}, "data packing")
        if key == "DT":
            return self._type_list()
        if key == "VARLOCATION":
            return self._location_list()
        return self._int_value()

    def _type_list(self) -> list[TecDataType]:
        sc = self._sc
        sc.expect("(")
        types: list[TecDataType] = []
        while True:
            sc.skip()
            if sc.accept(")"):
                break
            pos = sc.pos
            tok = sc.bare().upper()
            if tok in _UNSUPPORTED_DATA_TYPES:
                raise NotSupportedFeatureError(f"{tok} variable data", pos)
            if tok not in _DATA_TYPES:
                raise InvalidValueError(f"unknown data type {tok!r}", pos)
            types.append(_DATA_TYPES[tok])
        return types

    def _location_list(self) -> tuple[int, list[tuple[list[str], ValueLocation]]]:
        sc = self._sc
        sc.skip(commas=False)
        pos = sc.pos
        sc.expect("(")
        clauses: list[tuple[list[str], ValueLocation]] = []
        while True:
            sc.skip()
            if sc.accept(")"):
                break
            sc.expect("[")
            specs: list[str] = []
            while True:
                sc.skip()
                if sc.accept("]"):
                    break
                specs.append(sc.bare())
            sc.expect("=")
            clauses.append((specs, self._choice(_LOCATIONS, "value location")))
        return pos, clauses

    def _make_zone(self, zone_id: int, fields: dict[str, Any], aux: dict[str, str], pos: int) -> Zone:
        num_vars = len(self.var_names)
        zone_type = fields.get("zone_type", ZoneType.ORDERED)
        if zone_type.is_polygonal:
            raise NotSupportedFeatureError(f"{zone_type.name} zones", pos)

        var_types = fields.get("var_types", [TecDataType.F64] * num_vars)
        if len(var_types) != num_vars:
            raise InvalidValueError(
                f"DT lists {len(var_types)} types for {num_vars} variables", pos
            )
        if "var_locations" in fields:
            loc_pos, clauses = fields["var_locations"]
            locations = resolve_var_locations(clauses, num_vars, loc_pos)
        else:
            locations = [ValueLocation.NODAL] * num_vars

        common = dict(
            id=zone_id,
            name=fields.get("name", DEFAULT_ZONE_NAME),
            solution_time=float(fields.get("solution_time", 0.0)),
            strand_id=fields.get("strand_id", 0),
            var_locations=tuple(locations),
            var_types=tuple(var_types),
            aux_data=aux,
        )
        try:
            if zone_type is ZoneType.ORDERED:
                return OrderedZone(
                    i_max=fields.get("i_max", 1),
                    j_max=fields.get("j_max", 1),
                    k_max=fields.get("k_max", 1),
                    **common,
                )
            if "nodes" not in fields or "cells" not in fields:
                raise GrammarError(
                    f"{zone_type.name} zone {zone_id} needs N and E", pos
                )
            return ClassicFEZone(
                fe_type=zone_type, nodes=fields["nodes"], cells=fields["cells"], **common
            )
        except ValueError as e:
            raise InvalidValueError(f"zone {zone_id}: {e}", pos) from e

    def _read_body(self, zone: Zone, packing: DataPacking) -> DataBlock:
        sc = self._sc
        num_vars = len(self.var_names)
        kinds = [dataTypeKind[t] for t in zone.var_types]
        data: list[tuple[int, TecData]] = []

        if packing is DataPacking.BLOCK:
            for v in range(num_vars):
                pos = sc.pos
                tokens = sc.data_tokens(zone.value_count(v))
                arr = parse_values(tokens, kinds[v], pos)
                data.append((v, TecData(arr, kinds[v], borrowed=False)))
        else:
            pos = sc.pos
            if ValueLocation.CELLCENTERED in zone.var_locations:
                raise InvalidValueError(
                    f"zone {zone.id}: POINT packing with cell-centered variables", pos
                )
            tokens = sc.data_tokens(zone.node_count() * num_vars)
            for v in range(num_vars):
                arr = parse_values(tokens[v::num_vars], kinds[v], pos)
                data.append((v, TecData(arr, kinds[v], borrowed=False)))

        connectivity = None
        if isinstance(zone, ClassicFEZone):
            pos = sc.pos
            tokens = sc.data_tokens(zone.num_connections())
            conn = parse_values(tokens, DataKind.I32, pos)
            connectivity = TecData(conn, DataKind.I32, borrowed=False)
        return DataBlock(data=tuple(data), connectivity=connectivity, min_max=None)

    # ------------- whole file -------------

    def read_zones(self) -> tuple[list[Zone], list[DataBlock]]:
        sc = self._sc
        zones: list[Zone] = []
        blocks: list[DataBlock] = []
        while not sc.at_end():
            word = sc.peek_ident()
            if word in _UNSUPPORTED_RECORDS:
                raise NotSupportedFeatureError(f"{word} records", sc.pos)
            if word != "ZONE":
                raise self._grammar("expected ZONE")
            zone, block = self.read_zone(len(zones) + 1)
            zones.append(zone)
            blocks.append(block)
        return zones, blocks

    def _grammar(self, message: str) -> GrammarError:
        line, col = self._sc.line_col()
        return GrammarError(f"{message} at line {line}, column {col}", self._sc.pos)


class DatFormat:
    """Decoded ASCII dataset.

    Attributes
    ----------
    dataset
        Title, variable names, file type, and auxiliary data.
    zones
        Zones in file order with 1-based ``id``.
    data_blocks
        One :class:`DataBlock` per zone; ``min_max`` is always ``None``.
    """

    def __init__(self, dataset: Dataset, zones: list[Zone], data_blocks: list[DataBlock]):
        self.dataset = dataset
        self.zones = zones
        self.data_blocks = data_blocks

    def __repr__(self) -> str:
        return (
            f"DatFormat(title={self.dataset.title!r}, "
            f"vars={self.dataset.num_variables}, zones={len(self.zones)})"
        )

    __str__ = __repr__

    @classmethod
    def open(cls, filename: str | os.PathLike, options: DecodeOptions | None = None) -> DatFormat:
        """Decode the file at ``filename``."""
        path = Path(filename)
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise TecIOError(f"cannot read {path}: {e}") from e
        return cls.from_bytes(raw, options)

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview, options: DecodeOptions | None = None) -> DatFormat:
        """Decode file contents using ``options.encoding``."""
        opts = options or DecodeOptions()
        try:
            text = bytes(data).decode(opts.encoding)
        except UnicodeDecodeError as e:
            raise EncodingError(f"text is not valid {opts.encoding}", e.start) from e
        except LookupError as e:
            raise EncodingError(f"unknown encoding {opts.encoding!r}") from e
        return cls.from_text(text, options)

    @classmethod
    def from_text(cls, text: str, options: DecodeOptions | None = None) -> DatFormat:
        """Decode already-decoded file text."""
        opts = options or DecodeOptions()
        log = (Log(**opts.log_kwargs()) if options is not None else Log()).logger
        dec = _DatDecoder(text, log)
        header = dec.read_header()
        zones, blocks = dec.read_zones()
        dataset = Dataset(
            title=header.title,
            var_names=header.var_names,
            num_zones=len(zones),
            file_type=header.file_type,
            aux_data=header.aux_data,
            var_aux_data=header.var_aux_data,
        )
        log.info(
            f"decoded dat '{dataset.title}': "
            f"{dataset.num_variables} variables, {len(zones)} zones"
        )
        return cls(dataset, zones, blocks)

    def as_tuple(self) -> tuple[Dataset, list[Zone], list[DataBlock]]:
        return self.dataset, self.zones, self.data_blocks


def decode_dat(
    source: str | os.PathLike | bytes | bytearray | memoryview,
    options: DecodeOptions | None = None,
) -> tuple[Dataset, list[Zone], list[DataBlock]]:
    """Decode an ASCII dataset from a path or from raw file contents."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return DatFormat.from_bytes(source, options).as_tuple()
    return DatFormat.open(source, options).as_tuple()
