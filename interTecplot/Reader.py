"""Suffix-dispatching front end over the binary and ASCII decoders.

>>> rd = TecReader.open("heated_fin.plt")
>>> rd.dataset().var_names
('X', 'Y', 'T')
>>> rd.get_data(1, 3).as_f64()          # zone 1, variable 3 (1-based)
>>> rd.get_ijk_data(1, 1).shape          # nodal X on an ordered zone
(3, 2, 1)

Every accessor takes 1-based zone and variable indices, the numbering the
file formats use, and subtracts one internally.
"""

from __future__ import annotations

import os
from pathlib import Path

import numpy as np

from .Core.Enums import ValueLocation
from .Core.TecData import TecData
from .Core.Zones import DataBlock, Dataset, OrderedZone, Zone
from .DAT.DAT import DatFormat
from .errors import NotSupportedFeatureError, WrongFileExtensionError
from .options import DecodeOptions
from .PLT.PLT import PltFormat


class TecReader:
    """Uniform zone/data/connectivity queries over one decoded file."""

    def __init__(
        self,
        dataset: Dataset,
        zones: list[Zone],
        data_blocks: list[DataBlock],
        source: str | os.PathLike | None = None,
    ):
        self._dataset = dataset
        self._zones = list(zones)
        self._blocks = list(data_blocks)
        self.source = source

    def __repr__(self) -> str:
        return (
            f"TecReader(source={self.source!r}, "
            f"vars={self._dataset.num_variables}, zones={len(self._zones)})"
        )

    @classmethod
    def open(
        cls, filename: str | os.PathLike, options: DecodeOptions | None = None
    ) -> TecReader:
        """Decode ``filename`` with the decoder matching its suffix.

        Raises
        ------
        WrongFileExtensionError
            If the suffix is not ``.plt``, ``.dat`` or ``.szplt``.
        NotSupportedFeatureError
            For ``.szplt`` files, which need the vendor library.
        """
        suffix = Path(filename).suffix.lower().lstrip(".")
        if suffix == "plt":
            fmt = PltFormat.open(filename, options)
        elif suffix == "dat":
            fmt = DatFormat.open(filename, options)
        elif suffix == "szplt":
            raise NotSupportedFeatureError("szplt files (vendor library required)")
        else:
            raise WrongFileExtensionError(suffix)
        dataset, zones, blocks = fmt.as_tuple()
        return cls(dataset, zones, blocks, source=filename)

    # ------------- queries -------------

    def dataset(self) -> Dataset:
        return self._dataset

    def zones(self) -> list[Zone]:
        return list(self._zones)

    def zone(self, zone: int) -> Zone:
        return self._zones[self._zone_index(zone)]

    def get_data(self, zone: int, var: int) -> TecData:
        """Borrowed view of variable ``var`` in zone ``zone`` (both 1-based)."""
        z = self._zone_index(zone)
        return self._blocks[z].get_data(self._var_index(var))

    def get_var_min_max(self, zone: int, var: int) -> tuple[float, float] | None:
        """Stored ``(min, max)`` of a variable; ``None`` for ASCII files."""
        z = self._zone_index(zone)
        return self._blocks[z].get_min_max(self._var_index(var))

    def get_connectivity(self, zone: int) -> TecData | None:
        """Flat connectivity of an FE zone; ``None`` for ordered zones."""
        return self._blocks[self._zone_index(zone)].get_connectivity()

    def get_ijk_data(self, zone: int, var: int) -> np.ndarray:
        """Nodal variable of an ordered zone shaped ``(i_max, j_max, k_max)``.

        The file stores ``i`` fastest, so the flat array is reshaped in
        Fortran order. The result is a read-only view.

        Raises
        ------
        ValueError
            If the zone is not ordered or the variable is cell-centered.
        """
        z = self._zone_index(zone)
        v = self._var_index(var)
        zn = self._zones[z]
        if not isinstance(zn, OrderedZone):
            raise ValueError(f"zone {zone} is {zn.zone_type.name}, not ORDERED")
        if zn.var_locations[v] is not ValueLocation.NODAL:
            raise ValueError(f"variable {var} of zone {zone} is not nodal")
        values = self._blocks[z].get_data(v).values
        return values.reshape(zn.shape, order="F")

    # ------------- index checks -------------

    def _zone_index(self, zone: int) -> int:
        if not 1 <= zone <= len(self._zones):
            raise IndexError(f"zone {zone} out of range 1..{len(self._zones)}")
        return zone - 1

    def _var_index(self, var: int) -> int:
        n = self._dataset.num_variables
        if not 1 <= var <= n:
            raise IndexError(f"variable {var} out of range 1..{n}")
        return var - 1


__all__ = ["TecReader"]
