"""Binary ``.plt`` decoder."""

from .BinaryReader import BinaryReader
from .PLT import MIN_VERSION, PltFormat, decode_plt, gather_cell_values

__all__ = ["BinaryReader", "MIN_VERSION", "PltFormat", "decode_plt", "gather_cell_values"]
