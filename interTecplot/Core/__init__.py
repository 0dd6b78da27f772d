"""Data model shared by the decoders."""

from .Enums import (
    DataKind,
    DataPacking,
    FaceNeighborMode,
    FileType,
    TecDataType,
    ValueLocation,
    ZoneType,
)
from .TecData import TecData
from .Zones import ClassicFEZone, DataBlock, Dataset, OrderedZone, Zone, ZoneHeader

__all__ = [
    "ClassicFEZone",
    "DataBlock",
    "DataKind",
    "DataPacking",
    "Dataset",
    "FaceNeighborMode",
    "FileType",
    "OrderedZone",
    "TecData",
    "TecDataType",
    "ValueLocation",
    "Zone",
    "ZoneHeader",
    "ZoneType",
]
