"""Configuration for the decoders."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(slots=True)
class DecodeOptions:
    """Decoder settings.

    Attributes:
        use_mmap (bool): Memory-map binary files opened from a path instead of
            reading them into memory. Mapping avoids one full copy of the
            file; turn it off for storage that does not support ``mmap``.
        encoding (str): Text encoding of ASCII ``.dat`` files.
        connectivity_width (int): Integer width in bits of binary
            connectivity arrays. Only ``32`` is decoded; ``64`` is rejected
            as not supported.
        log_file (str | Path | None): Optional file that receives a copy of
            the decoder log.
        log_level (str): Console log level.
        debug_mode (bool): Force ``DEBUG`` level on every sink.
    """

    use_mmap: bool = True
    encoding: str = "utf-8"
    connectivity_width: int = 32
    log_file: str | Path | None = None
    log_level: str = "INFO"
    debug_mode: bool = False

    def __post_init__(self) -> None:
        if self.connectivity_width not in (32, 64):
            raise ValueError(
                f"connectivity_width must be 32 or 64, got {self.connectivity_width}"
            )
        if not self.encoding:
            raise ValueError("encoding must not be empty")

    @classmethod
    def from_env(cls) -> "DecodeOptions":
        """Build options from ``INTERTECPLOT_*`` environment variables.

        ``INTERTECPLOT_LOG_LEVEL`` and ``INTERTECPLOT_LOG_FILE`` set the log
        level and file; a non-empty ``INTERTECPLOT_NO_MMAP`` other than
        ``"0"`` disables memory mapping.
        """
        opts = cls()
        level = os.environ.get("INTERTECPLOT_LOG_LEVEL")
        if level:
            opts.log_level = level.upper()
        log_file = os.environ.get("INTERTECPLOT_LOG_FILE")
        if log_file:
            opts.log_file = Path(log_file).expanduser()
        no_mmap = os.environ.get("INTERTECPLOT_NO_MMAP", "")
        if no_mmap and no_mmap != "0":
            opts.use_mmap = False
        return opts

    def log_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for :class:`interTecplot.Log.Log`."""
        return {
            "log_file": self.log_file,
            "level": self.log_level,
            "debug_mode": self.debug_mode,
        }


__all__ = ["DecodeOptions"]
