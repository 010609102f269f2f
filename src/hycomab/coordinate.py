"""
Access to the ``day`` coordinate and type conversion of read data.

The ``day`` coordinate has no data in the ``.a`` file. Its values are the
per-record times from the ``.b`` file, kept in the ``day`` attribute of the
data variable, and are served from memory.
"""

import warnings

import numpy as np
from numpy.typing import DTypeLike

from hycomab.descriptor import TIME_NAME, DatasetDescriptor
from hycomab.errors import RangeWarning
from hycomab.reader import check_region


def convert(values: np.ndarray, dtype: DTypeLike = np.float32) -> np.ndarray:
    """
    Convert float32 values to ``dtype``.

    Values that do not fit the target type are converted anyway; a
    :class:`~hycomab.errors.RangeWarning` is issued when that happens.

    Parameters
    ----------
    values : np.ndarray
        float32 values.
    dtype : dtype-like, optional
        Target type.

    Returns
    -------
    np.ndarray
        A new array of type ``dtype``.
    """
    dtype = np.dtype(dtype)
    if dtype == values.dtype:
        return values.copy()

    finite = np.isfinite(values)
    if dtype.kind in "iu":
        info = np.iinfo(dtype)
        # Compare in float64; info.max rounds up to 2**bits in float32
        wide = values.astype(np.float64)
        out_of_range = ~finite | (wide < info.min) | (wide >= float(info.max) + 1)
    elif dtype.kind == "f":
        info = np.finfo(dtype)
        out_of_range = finite & (np.abs(values.astype(np.float64)) > info.max)
    else:
        out_of_range = np.zeros(values.shape, dtype=bool)

    with np.errstate(invalid="ignore", over="ignore"):
        converted = values.astype(dtype)

    if out_of_range.any():
        warnings.warn(
            f"{int(out_of_range.sum())} value(s) out of range for {dtype}",
            RangeWarning,
            stacklevel=3,
        )
    return converted


def read_coordinate(
    descriptor: DatasetDescriptor,
    start: int,
    count: int,
    dtype: DTypeLike = np.float32,
) -> np.ndarray:
    """
    Read a slice of the ``day`` coordinate.

    Parameters
    ----------
    descriptor : DatasetDescriptor
        Dataset descriptor.
    start : int
        First record index.
    count : int
        Number of values.
    dtype : dtype-like, optional
        Type of the returned values. Defaults to float32, the stored type.

    Returns
    -------
    np.ndarray
        ``count`` values.

    Raises
    ------
    RegionError
        If ``start + count`` exceeds the number of records.
    """
    time = descriptor.variable.attrs[TIME_NAME]
    (start,), (count,) = check_region(time.shape, (start,), (count,))
    return convert(time[start : start + count], dtype)
