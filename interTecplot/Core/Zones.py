"""Dataset, zone, and data-block records produced by the decoders.

A decode yields one :class:`Dataset`, one zone per mesh region, and one
:class:`DataBlock` per zone in the same order. All three are frozen once the
decoder returns.

Zones
-----
``Zone`` is the closed union of :class:`OrderedZone` (structured ``i, j, k``
grid) and :class:`ClassicFEZone` (unstructured mesh of one element type).
Polygon and polyhedron zones are recognized by :class:`ZoneType` but are
rejected by the decoders, so they never appear here.

The binary format only tells the element type of each variable in the data
section, after the zone header. :class:`ZoneHeader` collects the header
fields and :meth:`ZoneHeader.build` produces the final zone once those types
are known.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from .Enums import FileType, TecDataType, ValueLocation, ZoneType
from .TecData import TecData


@dataclass(frozen=True, slots=True, kw_only=True)
class Dataset:
    """Dataset-level header.

    Attributes
    ----------
    title
        Dataset title.
    var_names
        Unique variable names in file order.
    num_zones
        Number of zones in the file.
    file_type
        Full, grid-only, or solution-only file.
    aux_data
        Dataset auxiliary ``name -> value`` pairs.
    var_aux_data
        Variable auxiliary triples ``(var_index, name, value)`` with 0-based
        variable indices.
    """

    title: str
    var_names: tuple[str, ...]
    num_zones: int
    file_type: FileType = FileType.FULL
    aux_data: dict[str, str] = field(default_factory=dict)
    var_aux_data: tuple[tuple[int, str, str], ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for name in self.var_names:
            if name in seen:
                raise ValueError(f"duplicate variable name {name!r}")
            seen.add(name)

    @property
    def num_variables(self) -> int:
        return len(self.var_names)


@dataclass(frozen=True, slots=True, kw_only=True)
class _ZoneBase:
    id: int
    name: str
    solution_time: float = 0.0
    strand_id: int = 0
    var_locations: tuple[ValueLocation, ...] = ()
    var_types: tuple[TecDataType, ...] | None = None
    aux_data: dict[str, str] = field(default_factory=dict)

    @property
    def zone_type(self) -> ZoneType:
        raise NotImplementedError

    @property
    def is_fe(self) -> bool:
        return self.zone_type.is_fe

    def node_count(self) -> int:
        raise NotImplementedError

    def cell_count(self) -> int:
        raise NotImplementedError

    def value_count(self, var_index: int) -> int:
        """Array length of a variable given its location (0-based index)."""
        if self.var_locations[var_index] is ValueLocation.NODAL:
            return self.node_count()
        return self.cell_count()


@dataclass(frozen=True, slots=True, kw_only=True)
class OrderedZone(_ZoneBase):
    """Structured grid with ``i_max * j_max * k_max`` nodes."""

    i_max: int = 1
    j_max: int = 1
    k_max: int = 1

    def __post_init__(self) -> None:
        if min(self.i_max, self.j_max, self.k_max) < 1:
            raise ValueError(
                f"ordered zone extents must be >= 1, got "
                f"({self.i_max}, {self.j_max}, {self.k_max})"
            )

    @property
    def zone_type(self) -> ZoneType:
        return ZoneType.ORDERED

    @property
    def shape(self) -> tuple[int, int, int]:
        return (self.i_max, self.j_max, self.k_max)

    def node_count(self) -> int:
        return self.i_max * self.j_max * self.k_max

    def cell_count(self) -> int:
        # an axis with extent 1 contributes a factor of 1
        return (
            max(self.i_max - 1, 1) * max(self.j_max - 1, 1) * max(self.k_max - 1, 1)
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ClassicFEZone(_ZoneBase):
    """Unstructured mesh of one homogeneous element type."""

    fe_type: ZoneType = ZoneType.FETRIANGLE
    nodes: int = 0
    cells: int = 0

    def __post_init__(self) -> None:
        if not self.fe_type.is_fe or self.fe_type.is_polygonal:
            raise ValueError(f"{self.fe_type.name} is not a classic FE zone type")
        if self.nodes < 0 or self.cells < 0:
            raise ValueError("node and element counts must be non-negative")

    @property
    def zone_type(self) -> ZoneType:
        return self.fe_type

    def node_count(self) -> int:
        return self.nodes

    def cell_count(self) -> int:
        return self.cells

    def num_connections(self) -> int:
        """Connectivity length: ``cells * nodes_per_element``."""
        return self.cells * self.fe_type.nodes_per_element


Zone = Union[OrderedZone, ClassicFEZone]


@dataclass(slots=True)
class ZoneHeader:
    """Zone fields read from a binary header block, before data types are known."""

    name: str
    zone_type: ZoneType
    strand_id: int
    solution_time: float
    var_locations: list[ValueLocation]
    i_max: int = 1
    j_max: int = 1
    k_max: int = 1
    nodes: int = 0
    cells: int = 0
    aux_data: dict[str, str] = field(default_factory=dict)

    def build(self, zone_id: int, var_types: list[TecDataType]) -> Zone:
        """Return the immutable zone with its element types filled in."""
        common = dict(
            id=zone_id,
            name=self.name,
            solution_time=self.solution_time,
            strand_id=self.strand_id,
            var_locations=tuple(self.var_locations),
            var_types=tuple(var_types),
            aux_data=dict(self.aux_data),
        )
        if self.zone_type is ZoneType.ORDERED:
            return OrderedZone(
                i_max=self.i_max, j_max=self.j_max, k_max=self.k_max, **common
            )
        return ClassicFEZone(
            fe_type=self.zone_type, nodes=self.nodes, cells=self.cells, **common
        )


@dataclass(frozen=True, slots=True)
class DataBlock:
    """Decoded arrays of one zone.

    Attributes
    ----------
    data
        ``(var_index, array)`` pairs in variable order; indices are 0-based.
    connectivity
        Flat element-to-node map for FE zones, ``None`` for ordered zones.
    min_max
        Per-variable ``(min, max)`` from the binary stream; ``None`` for
        ASCII files, which carry no such record.
    """

    data: tuple[tuple[int, TecData], ...]
    connectivity: TecData | None = None
    min_max: tuple[tuple[float, float], ...] | None = None

    def __post_init__(self) -> None:
        # decoded arrays are frozen along with the block
        for _, arr in self.data:
            arr.values.flags.writeable = False
        if self.connectivity is not None:
            self.connectivity.values.flags.writeable = False

    def _check_index(self, var_index: int) -> None:
        if not 0 <= var_index < len(self.data):
            raise IndexError(f"variable index {var_index} out of range 0..{len(self.data) - 1}")

    def get_data(self, var_index: int) -> TecData:
        """Borrowed view of one variable (0-based index)."""
        self._check_index(var_index)
        return self.data[var_index][1].snapshot()

    def get_min_max(self, var_index: int) -> tuple[float, float] | None:
        self._check_index(var_index)
        if self.min_max is None:
            return None
        return self.min_max[var_index]

    def get_connectivity(self) -> TecData | None:
        if self.connectivity is None:
            return None
        return self.connectivity.snapshot()

    def validate(self, zone: Zone) -> None:
        """Check array lengths against the zone.

        Raises
        ------
        ValueError
            If a variable or the connectivity has the wrong length.
        """
        for var_index, arr in self.data:
            want = zone.value_count(var_index)
            if len(arr) != want:
                raise ValueError(
                    f"zone {zone.id} variable {var_index}: {len(arr)} values, expected {want}"
                )
        if isinstance(zone, ClassicFEZone):
            if self.connectivity is None:
                raise ValueError(f"zone {zone.id}: FE zone without connectivity")
            if len(self.connectivity) != zone.num_connections():
                raise ValueError(
                    f"zone {zone.id}: connectivity has {len(self.connectivity)} "
                    f"entries, expected {zone.num_connections()}"
                )
        elif self.connectivity is not None:
            raise ValueError(f"zone {zone.id}: ordered zone with connectivity")


__all__ = [
    "ClassicFEZone",
    "DataBlock",
    "Dataset",
    "OrderedZone",
    "Zone",
    "ZoneHeader",
]
