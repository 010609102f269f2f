"""
In-memory description of an AB dataset.

The descriptor is what the rest of the package works from once the ``.b``
file has been parsed: three dimensions ``(day, j, i)``, the global
attributes, the ``day`` coordinate variable and the data variable.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar

import numpy as np

from hycomab.errors import ABFormatError, NameTooLongError
from hycomab.parser import MAX_LINE_LENGTH, BFileMetadata, lookup_variable_attributes
from hycomab.reader import record_elements

TIME_NAME = "day"
J_NAME = "j"
I_NAME = "i"
SPAN_NAME = "span"
MIN_NAME = "min"
MAX_NAME = "max"
SERIES_NAMES = (TIME_NAME, SPAN_NAME, MIN_NAME, MAX_NAME)

CONVENTIONS = "CF-1.0"
MAX_NAME_LENGTH = 256
FILL_VALUE = np.float32(2.0**100)


def _freeze(attrs: dict[str, Any]) -> Mapping[str, Any]:
    for value in attrs.values():
        if isinstance(value, np.ndarray):
            value.flags.writeable = False
    return MappingProxyType(attrs)


@dataclass(frozen=True)
class Dimension:
    name: str
    length: int


@dataclass(frozen=True)
class Variable:
    """
    A variable of an AB dataset. Values are always 32-bit floats.

    Parameters
    ----------
    name : str
        Variable name.
    dims : tuple[Dimension, ...]
        Dimensions of the variable, slowest varying first.
    attrs : Mapping[str, Any]
        Read-only attribute mapping.
    fill_value : np.float32, optional
        Value marking cells that were never written.
    """

    name: str
    dims: tuple[Dimension, ...]
    attrs: Mapping[str, Any] = field(default_factory=dict, repr=False)
    fill_value: np.float32 | None = None

    dtype: ClassVar[np.dtype] = np.dtype(np.float32)

    @property
    def dim_names(self) -> tuple[str, ...]:
        return tuple(d.name for d in self.dims)

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(d.length for d in self.dims)

    @property
    def ndim(self) -> int:
        return len(self.dims)


@dataclass(frozen=True)
class DatasetDescriptor:
    """
    Immutable description of an open AB dataset.

    Parameters
    ----------
    dimensions : tuple[Dimension, ...]
        ``(day, j, i)`` dimensions.
    attrs : Mapping[str, Any]
        Global attributes: one ``att_<n>`` per header line, then
        ``Conventions``.
    coordinate : Variable
        The 1-D ``day`` coordinate. Its values live in the ``day``
        attribute of the data variable; it has no data in the ``.a`` file.
    variable : Variable
        The 3-D data variable stored in the ``.a`` file.
    metadata : BFileMetadata
        Parsed ``.b`` file the descriptor was built from.
    """

    dimensions: tuple[Dimension, ...]
    attrs: Mapping[str, Any] = field(repr=False)
    coordinate: Variable
    variable: Variable
    metadata: BFileMetadata = field(repr=False)

    @property
    def grid_extent(self) -> tuple[int, int, int]:
        "(time_len, j_len, i_len)"
        return tuple(d.length for d in self.dimensions)

    @property
    def time_len(self) -> int:
        return self.dimensions[0].length

    @property
    def j_len(self) -> int:
        return self.dimensions[1].length

    @property
    def i_len(self) -> int:
        return self.dimensions[2].length

    @property
    def record_elements(self) -> int:
        """Number of 32-bit words per record of the ``.a`` file, padding included."""
        return record_elements(self.j_len, self.i_len)

    @property
    def variables(self) -> dict[str, Variable]:
        return {self.coordinate.name: self.coordinate, self.variable.name: self.variable}

    @property
    def time(self) -> np.ndarray:
        return self.variable.attrs[TIME_NAME]

    def __getitem__(self, name: str) -> Variable:
        return self.variables[name]

    def __contains__(self, name: object) -> bool:
        return name in self.variables

    def describe(self) -> str:
        """
        Summarize dimensions, attributes and variables, one per line.
        """
        lines = ["dimensions:"]
        lines += [f"  {d.name} = {d.length}" for d in self.dimensions]
        lines.append("variables:")
        for var in self.variables.values():
            lines.append(f"  {var.dtype} {var.name}({', '.join(var.dim_names)})")
            lines += [f"    {var.name}:{k} {_describe_value(v)}" for k, v in var.attrs.items()]
            if var.fill_value is not None:
                lines.append(f"    {var.name}:_FillValue = {var.fill_value!r}")
        lines.append("global attributes:")
        lines += [f"  :{k} {_describe_value(v)}" for k, v in self.attrs.items()]
        return "\n".join(lines)


def _describe_value(value: Any) -> str:
    if isinstance(value, np.ndarray):
        return f"{value.dtype}[{len(value)}]"
    return f"= {value!r}"


def _check_name(name: str, max_name_length: int) -> None:
    if len(name) > max_name_length:
        raise NameTooLongError(
            f"name {name[:32]!r}... is {len(name)} characters, limit is {max_name_length}"
        )


def build_descriptor(
    metadata: BFileMetadata,
    max_line_length: int = MAX_LINE_LENGTH,
    max_name_length: int = MAX_NAME_LENGTH,
) -> DatasetDescriptor:
    """
    Build the dataset descriptor from parsed ``.b`` metadata.

    Parameters
    ----------
    metadata : BFileMetadata
        Output of :func:`hycomab.parser.parse_b_file`.
    max_line_length : int, optional
        Longest header line accepted as a global attribute.
    max_name_length : int, optional
        Longest variable or attribute name accepted.

    Returns
    -------
    DatasetDescriptor

    Raises
    ------
    NameTooLongError
        If a header line or a name exceeds its limit.
    ABFormatError
        If the variable name is empty.
    """
    # Global attributes
    attrs = {}
    for n, line in enumerate(metadata.header_lines):
        if len(line) > max_line_length:
            raise NameTooLongError(
                f"header line {n} is {len(line)} characters, limit is {max_line_length}"
            )
        attrs[f"att_{n}"] = line
    attrs["Conventions"] = CONVENTIONS

    # Dimensions
    dims = (
        Dimension(TIME_NAME, metadata.time_len),
        Dimension(J_NAME, metadata.j_len),
        Dimension(I_NAME, metadata.i_len),
    )

    # Coordinate variable, backed by the day attribute of the data variable
    coordinate = Variable(name=TIME_NAME, dims=dims[:1], attrs=_freeze({}))

    # Data variable
    name = metadata.variable_name
    if not name:
        raise ABFormatError("empty variable name in .b file")
    if name == TIME_NAME:
        raise ABFormatError(f"variable name {name!r} clashes with the time coordinate")
    _check_name(name, max_name_length)

    series = (metadata.time, metadata.span, metadata.min, metadata.max)
    var_attrs = {
        att_name: np.array(values, dtype=np.float32)
        for att_name, values in zip(SERIES_NAMES, series)
    }
    var_attrs.update(lookup_variable_attributes(name))
    for att_name in var_attrs:
        _check_name(att_name, max_name_length)

    variable = Variable(name=name, dims=dims, attrs=_freeze(var_attrs), fill_value=FILL_VALUE)

    return DatasetDescriptor(
        dimensions=dims,
        attrs=_freeze(attrs),
        coordinate=coordinate,
        variable=variable,
        metadata=metadata,
    )
