"""
hycomab: Python package for reading HYCOM AB archives.

This package provides tools to read the paired ``.b`` text metadata and
``.a`` big-endian binary data files written by the HYCOM ocean model and
its forcing tools, as numpy arrays or xarray Datasets.
"""

import logging

__version__ = "2025.10.0"
__author__ = "James Mineau"
__email__ = "jameskmineau@gmail.com"

from .abfile import ABFile, open_ab, open_dataset
from .errors import (
    ABError,
    ABFormatError,
    ABIOError,
    InvalidArgumentError,
    NameTooLongError,
    RangeWarning,
    RegionError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())


def set_log_level(level: int | str) -> None:
    """
    Set the level of the hycomab logger.

    Handlers are left to the application.
    """
    logging.getLogger(__name__).setLevel(level)


__all__ = [
    "ABFile",
    "open_ab",
    "open_dataset",
    "set_log_level",
    "ABError",
    "ABFormatError",
    "ABIOError",
    "InvalidArgumentError",
    "NameTooLongError",
    "RangeWarning",
    "RegionError",
]
