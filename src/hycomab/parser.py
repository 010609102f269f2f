"""
Parsing of the ``.b`` metadata file of an AB archive.

A ``.b`` file is plain text made of three sections:

1. free-text header lines describing the run,
2. one dimension line, ``i/jdm = <idm> <jdm>``,
3. one data line per record of the ``.a`` file, e.g.
   ``airtmp:  dtime1,range =  36160.0  1.0  -3.4E+01  3.2E+01``,
   followed by a trailing line that does not describe a record.

This module turns that text into a :class:`BFileMetadata` holding the header
lines, the grid extents, the variable name and the per-record
time/span/min/max series.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import IO, ClassVar

import numpy as np
import pandas as pd

from hycomab.errors import ABFormatError

logger = logging.getLogger(__name__)

DIMENSION_PREFIX = "i/jdm ="
MAX_HEADER_LINES = 10
MAX_LINE_LENGTH = 80

# HYCOM forcing fields, from force2nc.f
# name -> (long_name, standard_name, units)
VARIABLE_ATTRIBUTES = MappingProxyType(
    {
        "radflx": (" surf. rad. flux ", "surface_net_downward_radiation_flux", "w/m2"),
        "shwflx": (" surf. shw. flux  ", "surface_net_downward_shortwave_flux", "w/m2"),
        "vapmix": (" vapor mix. ratio ", "specific_humidity", "kg/kg"),
        "airtmp": (" air temperature  ", "air_temperature", "degC"),
        "surtmp": (" sea surf. temp.  ", "sea_surface_temperature", "degC"),
        "seatmp": (" sea surf. temp.  ", "sea_surface_temperature", "degC"),
        "precip": (" precipitation    ", "lwe_precipitation_rate", "m/s"),
        "wndspd": (" 10m wind speed   ", "wind_speed", "m/s"),
        "tauewd": (" Ewd wind stress  ", "eastward_wind_stress", "N/m^2"),
        "taunwd": (" Nwd wind stress  ", "northward_wind_stress", "N/m^2"),
    }
)


def lookup_variable_attributes(name: str) -> dict[str, str]:
    """
    Get the descriptive attributes of a known HYCOM field.

    Parameters
    ----------
    name : str
        Variable name as found in the ``.b`` file (e.g. ``"airtmp"``).

    Returns
    -------
    dict[str, str]
        ``long_name``, ``standard_name`` and ``units``. Empty if the name
        is not a known field.
    """
    try:
        long_name, standard_name, units = VARIABLE_ATTRIBUTES[name]
    except KeyError:
        return {}
    return {"long_name": long_name, "standard_name": standard_name, "units": units}


def is_blank(line: str) -> bool:
    return not line.strip()


def _decode(line: str | bytes) -> str:
    if isinstance(line, bytes):
        return line.decode("ascii", errors="replace")
    return line


@dataclass(frozen=True, eq=False)
class BFileMetadata:
    """
    Contents of a ``.b`` file.

    Parameters
    ----------
    header_lines : tuple[str, ...]
        Trimmed header lines preceding the dimension line, at most
        ``MAX_HEADER_LINES`` of them by default.
    i_len : int
        Number of grid points along i (``idm``).
    j_len : int
        Number of grid points along j (``jdm``).
    variable_name : str
        Name of the field stored in the ``.a`` file.
    series : pd.DataFrame
        One row per record with float32 columns ``time``, ``span``,
        ``min`` and ``max``.
    """

    header_lines: tuple[str, ...]
    i_len: int
    j_len: int
    variable_name: str
    series: pd.DataFrame = field(repr=False)

    SERIES_COLUMNS: ClassVar[tuple[str, ...]] = ("time", "span", "min", "max")
    # Token positions of the series values on a data line
    SERIES_TOKENS: ClassVar[tuple[int, ...]] = (3, 4, 5, 6)

    @property
    def time_len(self) -> int:
        return len(self.series)

    @property
    def time(self) -> np.ndarray:
        return self.series["time"].to_numpy(dtype=np.float32)

    @property
    def span(self) -> np.ndarray:
        return self.series["span"].to_numpy(dtype=np.float32)

    @property
    def min(self) -> np.ndarray:
        return self.series["min"].to_numpy(dtype=np.float32)

    @property
    def max(self) -> np.ndarray:
        return self.series["max"].to_numpy(dtype=np.float32)

    @classmethod
    def from_lines(
        cls, lines: Iterable[str | bytes], max_header_lines: int = MAX_HEADER_LINES
    ) -> "BFileMetadata":
        """
        Parse the lines of a ``.b`` file.

        The lines are scanned twice. The first pass collects the header,
        finds the dimension line and counts the data lines. The second pass
        reads the variable name and the series values from the data lines.

        Parameters
        ----------
        lines : iterable of str or bytes
            Lines of the ``.b`` file, with or without line endings.
        max_header_lines : int, optional
            Number of header lines to keep. Further header lines are parsed
            but dropped.

        Returns
        -------
        BFileMetadata

        Raises
        ------
        ABFormatError
            If the dimension line is missing or malformed, if there are not
            enough data lines, or if a data line cannot be parsed.
        """
        lines = [_decode(line) for line in lines]

        # --- First pass: header, dimensions and data line positions ---
        header_lines = []
        i_len = j_len = None
        data_lines = []  # (lineno, text)
        in_header = True
        for lineno, line in enumerate(lines, start=1):
            if is_blank(line):
                continue

            if in_header and line.startswith(DIMENSION_PREFIX):
                i_len, j_len = cls._parse_dimensions(line, lineno)
                in_header = False
                logger.debug("i_len %d j_len %d", i_len, j_len)
                continue

            if in_header:
                if len(header_lines) < max_header_lines:
                    header_lines.append(line.strip())
                else:
                    logger.debug("dropping header line %d: %r", lineno, line)
            else:
                data_lines.append((lineno, line))

        if in_header:
            raise ABFormatError(f"no dimension line starting with {DIMENSION_PREFIX!r}")

        # The last data line is a trailer, not a record
        time_len = len(data_lines) - 1
        if time_len < 1:
            raise ABFormatError(
                f"expected at least 2 data lines after the dimension line, "
                f"got {len(data_lines)}"
            )
        records = data_lines[:time_len]
        logger.debug(
            "%d header lines, %d records, trailer at line %d",
            len(header_lines),
            time_len,
            data_lines[-1][0],
        )

        # --- Second pass: variable name and series ---
        variable_name = None
        values = np.empty((time_len, len(cls.SERIES_TOKENS)), dtype=np.float32)
        for t, (lineno, line) in enumerate(records):
            tokens = line.split()
            if variable_name is None:
                variable_name = cls._parse_name(tokens[0], line, lineno)
            if len(tokens) <= max(cls.SERIES_TOKENS):
                raise ABFormatError(
                    f"data line needs at least {max(cls.SERIES_TOKENS) + 1} fields, "
                    f"got {len(tokens)}",
                    lineno,
                    line.rstrip("\r\n"),
                )
            for k, pos in enumerate(cls.SERIES_TOKENS):
                try:
                    values[t, k] = np.float32(float(tokens[pos]))
                except ValueError as err:
                    raise ABFormatError(
                        f"invalid float {tokens[pos]!r}", lineno, line.rstrip("\r\n")
                    ) from err

        series = pd.DataFrame(values, columns=list(cls.SERIES_COLUMNS))

        return cls(
            header_lines=tuple(header_lines),
            i_len=i_len,
            j_len=j_len,
            variable_name=variable_name,
            series=series,
        )

    @staticmethod
    def _parse_dimensions(line: str, lineno: int) -> tuple[int, int]:
        # i/jdm = <idm> <jdm>
        tokens = line.split()
        if len(tokens) < 4:
            raise ABFormatError("dimension line needs i and j extents", lineno, line.strip())
        try:
            i_len, j_len = int(tokens[2]), int(tokens[3])
        except ValueError as err:
            raise ABFormatError("invalid grid extent", lineno, line.strip()) from err
        if i_len < 1 or j_len < 1:
            raise ABFormatError("grid extents must be positive", lineno, line.strip())
        return i_len, j_len

    @staticmethod
    def _parse_name(token: str, line: str, lineno: int) -> str:
        name, colon, _ = token.partition(":")
        if not colon:
            raise ABFormatError("variable name must end with ':'", lineno, line.strip())
        return name


def parse_b_file(
    stream: IO[str] | IO[bytes], max_header_lines: int = MAX_HEADER_LINES
) -> BFileMetadata:
    """
    Parse an open ``.b`` file.

    Parameters
    ----------
    stream : file-like
        Text or binary stream positioned at the start of the ``.b`` file.
    max_header_lines : int, optional
        Number of header lines to keep.

    Returns
    -------
    BFileMetadata
    """
    return BFileMetadata.from_lines(stream.readlines(), max_header_lines=max_header_lines)
