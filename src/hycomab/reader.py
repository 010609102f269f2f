"""
Reading of the ``.a`` binary file of an AB archive.

The ``.a`` file holds ``idm*jdm`` big-endian 32-bit IEEE floats per record,
in Fortran (i fastest) order, followed by padding to a multiple of 4096
32-bit words. Records follow each other with no header or marker.
"""

import logging
import operator
from collections.abc import Sequence
from typing import IO, TYPE_CHECKING

import numpy as np

from hycomab.errors import ABIOError, RegionError

if TYPE_CHECKING:
    from hycomab.descriptor import DatasetDescriptor

logger = logging.getLogger(__name__)

RECORD_MULTIPLE = 4096
FLOAT_SIZE = 4


def round_up(num: int, multiple: int) -> int:
    """
    Round ``num`` up to the next multiple of ``multiple``.

    A ``multiple`` of zero leaves ``num`` unchanged.
    """
    if multiple == 0:
        return num
    remainder = num % multiple
    if remainder == 0:
        return num
    return num + multiple - remainder


def record_elements(j_len: int, i_len: int, multiple: int = RECORD_MULTIPLE) -> int:
    """Number of 32-bit words in one record, padding included."""
    return round_up(j_len * i_len, multiple)


def byte_offset(
    t: int, j: int, i: int, j_len: int, i_len: int, multiple: int = RECORD_MULTIPLE
) -> int:
    """
    Byte position of element ``(t, j, i)`` in the ``.a`` file.

    Parameters
    ----------
    t, j, i : int
        0-based record, row and column indices.
    j_len, i_len : int
        Grid extents.
    multiple : int, optional
        Record padding multiple, in 32-bit words.

    Returns
    -------
    int
    """
    rec_len = record_elements(j_len, i_len, multiple) * FLOAT_SIZE
    return t * rec_len + (j * i_len + i) * FLOAT_SIZE


def reverse_float(data: bytes) -> bytes:
    """
    Reverse the byte order of a single 4-byte float.

    The bytes are not interpreted, so NaN and Inf patterns pass through.
    """
    if len(data) != FLOAT_SIZE:
        raise ValueError(f"expected {FLOAT_SIZE} bytes, got {len(data)}")
    return data[::-1]


def reverse_floats(data: bytes | bytearray) -> np.ndarray:
    """
    Convert a buffer of big-endian 32-bit floats to native-order float32.

    The conversion goes through unsigned integers so that every bit pattern,
    NaN payloads included, is kept as is.

    Parameters
    ----------
    data : bytes or bytearray
        Raw big-endian buffer. Its length must be a multiple of 4.

    Returns
    -------
    np.ndarray
        1-D float32 array in native byte order.
    """
    if len(data) % FLOAT_SIZE:
        raise ValueError(f"buffer length {len(data)} is not a multiple of {FLOAT_SIZE}")
    words = np.frombuffer(data, dtype=">u4").astype(np.uint32)
    return words.view(np.float32)


def check_region(
    extent: Sequence[int], start: Sequence[int], count: Sequence[int]
) -> tuple[tuple[int, ...], tuple[int, ...]]:
    """
    Validate a hyper-rectangular region against a variable extent.

    Parameters
    ----------
    extent : sequence of int
        Variable shape.
    start, count : sequence of int
        Per-axis first index and number of elements.

    Returns
    -------
    tuple
        ``(start, count)`` as tuples of ints.

    Raises
    ------
    RegionError
        If a value is not an integer, the lengths do not match the number of
        axes, a value is negative, or ``start + count`` exceeds the extent
        on any axis.
    """
    try:
        start = tuple(operator.index(s) for s in start)
        count = tuple(operator.index(c) for c in count)
    except TypeError as err:
        raise RegionError(
            f"start and count must be integers, got {start!r} and {count!r}"
        ) from err
    ndim = len(extent)
    if len(start) != ndim or len(count) != ndim:
        raise RegionError(
            f"start and count need {ndim} values, got {len(start)} and {len(count)}"
        )
    for axis, (s, c, n) in enumerate(zip(start, count, extent)):
        if s < 0 or c < 0:
            raise RegionError(f"negative start or count on axis {axis}: {s}, {c}")
        if s + c > n:
            raise RegionError(
                f"start {s} + count {c} exceeds extent {n} on axis {axis}"
            )
    return start, count


def read_region(
    stream: IO[bytes],
    descriptor: "DatasetDescriptor",
    start: Sequence[int],
    count: Sequence[int],
) -> np.ndarray:
    """
    Read a sub-array of the data variable from the ``.a`` file.

    One contiguous run of ``count[2]`` floats is read per requested
    ``(t, j)`` pair. Nothing is cached between calls.

    Parameters
    ----------
    stream : binary file-like
        Open ``.a`` file. Must support ``seek`` and ``read``.
    descriptor : DatasetDescriptor
        Descriptor of the dataset the stream belongs to.
    start, count : sequence of int
        ``(t, j, i)`` first index and number of elements.

    Returns
    -------
    np.ndarray
        Flat float32 array of ``count[0]*count[1]*count[2]`` values in native
        byte order, ordered t, then j, then i.

    Raises
    ------
    RegionError
        If the region is outside the grid.
    ABIOError
        If a seek fails or the file ends before the requested data.
    """
    _, j_len, i_len = extent = descriptor.grid_extent
    start, count = check_region(extent, start, count)

    out = np.empty(count[0] * count[1] * count[2], dtype=np.float32)
    if out.size == 0:
        return out

    nbytes = count[2] * FLOAT_SIZE
    pos = 0
    for t in range(start[0], start[0] + count[0]):
        for j in range(start[1], start[1] + count[1]):
            offset = byte_offset(t, j, start[2], j_len, i_len)
            logger.debug("t %d j %d offset %d", t, j, offset)
            try:
                stream.seek(offset)
                data = stream.read(nbytes)
            except OSError as err:
                raise ABIOError(f"failed to read {nbytes} bytes at offset {offset}") from err
            if len(data) != nbytes:
                raise ABIOError(
                    f"short read at offset {offset}: expected {nbytes} bytes, "
                    f"got {len(data)}"
                )
            out[pos : pos + count[2]] = reverse_floats(data)
            pos += count[2]

    return out
