"""ASCII ``.dat`` decoder."""

from .DAT import DatFormat, decode_dat, parse_values, resolve_var_locations
from .Scanner import Scanner

__all__ = ["DatFormat", "Scanner", "decode_dat", "parse_values", "resolve_var_locations"]
