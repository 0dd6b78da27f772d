"""Readers for Tecplot binary (``.plt``) and ASCII (``.dat``) datasets."""

from .Core import (
    ClassicFEZone,
    DataBlock,
    DataKind,
    DataPacking,
    Dataset,
    FileType,
    OrderedZone,
    TecData,
    TecDataType,
    ValueLocation,
    Zone,
    ZoneType,
)
from .DAT import DatFormat, decode_dat
from .errors import *  # noqa: F401,F403
from .errors import __all__ as _errors_all
from .Log import Log
from .options import DecodeOptions
from .PLT import PltFormat, decode_plt
from .Reader import TecReader

__version__ = "0.1.0"

__all__ = [
    "ClassicFEZone",
    "DataBlock",
    "DataKind",
    "DataPacking",
    "Dataset",
    "DatFormat",
    "DecodeOptions",
    "FileType",
    "Log",
    "OrderedZone",
    "PltFormat",
    "TecData",
    "TecDataType",
    "TecReader",
    "ValueLocation",
    "Zone",
    "ZoneType",
    "decode_dat",
    "decode_plt",
    *_errors_all,
]
