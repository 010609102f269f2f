"""
HYCOM AB file reader.

This module provides the ABFile class for opening an AB archive, the pair of
a ``.b`` text metadata file and a ``.a`` big-endian binary data file written
by HYCOM and its forcing tools, and reading it as numpy arrays or as an
xarray Dataset.
"""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import IO

import numpy as np
import xarray as xr
from numpy.typing import DTypeLike

from hycomab import reader
from hycomab.coordinate import convert, read_coordinate
from hycomab.descriptor import (
    MAX_NAME_LENGTH,
    SERIES_NAMES,
    TIME_NAME,
    DatasetDescriptor,
    Variable,
    build_descriptor,
)
from hycomab.errors import ABIOError, InvalidArgumentError
from hycomab.parser import MAX_HEADER_LINES, MAX_LINE_LENGTH, parse_b_file

logger = logging.getLogger(__name__)

FORMAT = "AB"
# User-defined format slot the reader registers under
FORMAT_CODE = "UF0"
READ_ONLY_MODES = frozenset({"r", "rb"})


def a_path_for(path: Path | str) -> Path:
    """
    Get the ``.a`` path matching a ``.b`` path.

    Raises
    ------
    InvalidArgumentError
        If ``path`` does not end in ``.b``.
    """
    path = str(path)
    if not path.endswith(".b"):
        raise InvalidArgumentError(f"AB path must end in '.b': {path!r}")
    return Path(path[:-1] + "a")


def open_ab(filename: Path | str, mode: str = "r", **kwargs) -> "ABFile":
    """
    Open an AB archive.

    Parameters
    ----------
    filename : Path or str
        Path to the ``.b`` file. The ``.a`` file must sit next to it.
    mode : str, optional
        Open mode. Only read modes are supported.
    **kwargs
        Parsing limits passed to `ABFile.open()`.

    Returns
    -------
    ABFile
    """
    return ABFile.open(filename, mode=mode, **kwargs)


def open_dataset(filename: Path | str, **kwargs) -> xr.Dataset:
    """
    Open an AB archive as an xarray Dataset.

    Parameters
    ----------
    filename : Path or str
        Path to the ``.b`` file.
    **kwargs
        isel-like keyword arguments applied to the loaded Dataset.

    Returns
    -------
    xr.Dataset
        The AB data as an xarray Dataset.
    """
    with ABFile.open(filename) as ab:
        ds = ab.load()
    if kwargs:
        ds = ds.isel(**kwargs)
    if TIME_NAME in kwargs:
        for da in ds.data_vars.values():
            da.attrs = select_records(da.attrs, kwargs[TIME_NAME])
    return ds


def select_records(attrs: dict, indexer) -> dict:
    """
    Apply a ``day`` indexer to the per-record attributes.

    The ``day``, ``span``, ``min`` and ``max`` attributes hold one value per
    record; this keeps them aligned with a Dataset sliced along ``day``.

    Parameters
    ----------
    attrs : dict
        Attributes of the data variable.
    indexer : int, slice or array-like
        Positional selection along ``day``.

    Returns
    -------
    dict
        A copy of ``attrs`` with the per-record arrays selected.
    """
    attrs = dict(attrs)
    for name in SERIES_NAMES:
        if name in attrs:
            attrs[name] = np.atleast_1d(np.asarray(attrs[name])[indexer])
    return attrs


class ABFile:
    """
    An open HYCOM AB archive.

    Owns the open ``.a`` and ``.b`` streams and the dataset descriptor built
    from the ``.b`` file. Both streams are released together by `close()`.
    Not safe for concurrent use; open one ABFile per thread instead.
    """

    def __init__(
        self,
        path: Path,
        a_file: IO[bytes],
        b_file: IO[str],
        descriptor: DatasetDescriptor,
        mode: str = "r",
    ):
        self.path = path
        self.a_path = a_path_for(path)
        self.mode = mode
        self.descriptor = descriptor
        self._a_file = a_file
        self._b_file = b_file
        self._closed = False

    @classmethod
    def open(
        cls,
        filename: Path | str,
        mode: str = "r",
        max_header_lines: int = MAX_HEADER_LINES,
        max_line_length: int = MAX_LINE_LENGTH,
        max_name_length: int = MAX_NAME_LENGTH,
    ) -> "ABFile":
        """
        Open an AB archive from its ``.b`` path.

        Parameters
        ----------
        filename : Path or str
            Path to the ``.b`` file.
        mode : str, optional
            Open mode, ``"r"`` or ``"rb"``.
        max_header_lines : int, optional
            Number of ``.b`` header lines kept as global attributes.
        max_line_length : int, optional
            Longest accepted header line.
        max_name_length : int, optional
            Longest accepted variable or attribute name.

        Returns
        -------
        ABFile

        Raises
        ------
        InvalidArgumentError
            If ``mode`` is not a read mode or the path does not end in ``.b``.
        ABIOError
            If either file cannot be opened.
        ABFormatError
            If the ``.b`` file cannot be parsed.
        NameTooLongError
            If a header line or name exceeds its limit.
        """
        if mode not in READ_ONLY_MODES:
            raise InvalidArgumentError(f"AB files are read-only, got mode {mode!r}")

        path = Path(filename)
        a_path = a_path_for(filename)
        logger.debug("a_path %s", a_path)

        try:
            a_file = a_path.open("rb")
        except OSError as err:
            raise ABIOError(f"cannot open {a_path}") from err

        try:
            try:
                b_file = path.open("r", encoding="ascii", errors="replace")
            except OSError as err:
                raise ABIOError(f"cannot open {path}") from err

            try:
                metadata = parse_b_file(b_file, max_header_lines=max_header_lines)
                descriptor = build_descriptor(
                    metadata,
                    max_line_length=max_line_length,
                    max_name_length=max_name_length,
                )
            except Exception:
                b_file.close()
                raise
        except Exception:
            a_file.close()
            raise

        logger.info(
            "opened %s: %s%s", path, metadata.variable_name, descriptor.grid_extent
        )
        logger.debug("%s", descriptor.describe())
        return cls(path, a_file, b_file, descriptor, mode=mode)

    def __repr__(self):
        state = "closed" if self._closed else "open"
        return f"ABFile(path={str(self.path)!r}, variable={self.variable.name!r}, {state})"

    def __enter__(self) -> "ABFile":
        return self

    def __exit__(self, *exc_info):
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def format(self) -> str:
        return FORMAT_CODE

    def inq_format(self) -> str:
        """Get the format code of the file."""
        self._check_open()
        return FORMAT_CODE

    def inq_format_extended(self) -> tuple[str, str]:
        """Get the format code and the mode the file was opened with."""
        self._check_open()
        return FORMAT_CODE, self.mode

    @property
    def dims(self) -> dict[str, int]:
        return {d.name: d.length for d in self.descriptor.dimensions}

    @property
    def attrs(self) -> dict:
        return dict(self.descriptor.attrs)

    @property
    def variables(self) -> dict[str, Variable]:
        return self.descriptor.variables

    @property
    def variable(self) -> Variable:
        """The data variable."""
        return self.descriptor.variable

    def close(self) -> None:
        """
        Close both streams. Calling close on a closed file does nothing.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._a_file.close()
        finally:
            self._b_file.close()
        logger.info("closed %s", self.path)

    def _check_open(self) -> None:
        if self._closed:
            raise InvalidArgumentError(f"I/O operation on closed AB file {self.path}")

    def read_region(
        self,
        variable: str,
        start: Sequence[int] | None = None,
        count: Sequence[int] | None = None,
        dtype: DTypeLike = np.float32,
    ) -> np.ndarray:
        """
        Read a hyper-rectangular region of a variable.

        Parameters
        ----------
        variable : str
            Name of the data variable, or ``"day"`` for the time coordinate.
        start : sequence of int, optional
            First index per axis. Defaults to the origin.
        count : sequence of int, optional
            Number of elements per axis. Defaults to the rest of the variable.
        dtype : dtype-like, optional
            Type of the returned values. Values out of range for it are
            converted anyway and flagged with a RangeWarning.

        Returns
        -------
        np.ndarray
            Array of shape ``count``.

        Raises
        ------
        InvalidArgumentError
            If the variable is unknown or the file is closed.
        RegionError
            If the region lies outside the variable.
        ABIOError
            If reading the ``.a`` file fails. The file stays usable.
        """
        self._check_open()
        try:
            var = self.descriptor[variable]
        except KeyError:
            raise InvalidArgumentError(f"no variable named {variable!r}") from None

        if start is None:
            start = (0,) * var.ndim
        if count is None:
            count = tuple(n - s for n, s in zip(var.shape, start))
        start, count = reader.check_region(var.shape, start, count)

        if var.name == TIME_NAME:
            return read_coordinate(self.descriptor, start[0], count[0], dtype=dtype)

        data = reader.read_region(self._a_file, self.descriptor, start, count)
        return convert(data, dtype).reshape(count)

    def load(
        self,
        start: Sequence[int] | None = None,
        count: Sequence[int] | None = None,
    ) -> xr.Dataset:
        """
        Load the archive, or a region of it, into an xarray Dataset.

        Parameters
        ----------
        start, count : sequence of int, optional
            ``(day, j, i)`` region to read. Defaults to everything.

        Returns
        -------
        xr.Dataset
            Dataset with the ``day`` coordinate, the data variable and its
            attributes, and the global attributes.
        """
        var = self.variable
        data = self.read_region(var.name, start, count)
        t0 = 0 if start is None else start[0]
        day = read_coordinate(self.descriptor, t0, data.shape[0])

        da = xr.DataArray(
            data=data,
            dims=var.dim_names,
            coords={TIME_NAME: day},
            name=var.name,
            attrs=select_records(var.attrs, slice(t0, t0 + data.shape[0])),
        )
        da.encoding["_FillValue"] = var.fill_value

        return da.to_dataset(promote_attrs=False).assign_attrs(self.attrs)
