"""Shared loguru logger for interTecplot.

Decoders log through loguru under the ``interTecplot`` name, which is
disabled on import so a host application sees nothing unless it opts in:

>>> from loguru import logger
>>> logger.enable("interTecplot")          # route records to the host's sinks

Passing options (``Log(level="DEBUG")`` or a ``DecodeOptions`` with logging
fields) enables the package and installs interTecplot's own console sink and
optional file sink. Only sinks installed here are ever removed; sinks added
by the host application are left alone.
"""

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from loguru import logger as _logger

if TYPE_CHECKING:
    from loguru import Logger  # only for type checking

PACKAGE = "interTecplot"

_logger.disable(PACKAGE)


def _from_package(record) -> bool:
    return record["name"].startswith(PACKAGE)


class Log:
    """One logger handle shared by every decoder."""

    _instance: Optional["Log"] = None
    _sink_ids: list[int]

    def __new__(cls: type["Log"], *args: Any, **kwargs: Any) -> "Log":
        """Return the singleton; reconfigure it only when options are passed."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._sink_ids = []
        if args or kwargs:
            cls._instance._configure(*args, **kwargs)
        return cls._instance

    def _configure(
        self,
        log_file: str | Path | None = None,
        level: str = "INFO",
        rotation: str = "10 MB",
        retention: str = "10 days",
        debug_mode: bool = False,
    ) -> None:
        """Replace interTecplot's own sinks and enable its records."""
        for sink_id in self._sink_ids:
            _logger.remove(sink_id)
        self._sink_ids = []
        sink_level = "DEBUG" if debug_mode else level

        self._sink_ids.append(
            _logger.add(
                sys.stderr,
                level=sink_level,
                filter=_from_package,
                format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                "<level>{message}</level>",
            )
        )
        if log_file is not None:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._sink_ids.append(
                _logger.add(
                    path,
                    level=sink_level,
                    filter=_from_package,
                    rotation=rotation,
                    retention=retention,
                    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
                    "{name}:{function}:{line} - {message}",
                    mode="a",
                )
            )
        _logger.enable(PACKAGE)

    def close(self) -> None:
        """Remove interTecplot's sinks and silence the package again."""
        for sink_id in self._sink_ids:
            _logger.remove(sink_id)
        self._sink_ids = []
        _logger.disable(PACKAGE)

    @property
    def logger(self) -> "Logger":
        """Return the loguru logger."""
        return _logger
