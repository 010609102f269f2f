"""
Exceptions and warnings raised by hycomab.

Each class also derives from the closest builtin so that callers catching
``ValueError`` or ``OSError`` keep working.
"""


class ABError(Exception):
    "Base class for all hycomab errors."


class InvalidArgumentError(ABError, ValueError):
    """
    Bad argument to an AB operation.

    Raised for a path that does not end in ``.b``, a write open mode,
    an unknown variable name or an operation on a closed file.
    """


class RegionError(InvalidArgumentError, IndexError):
    """Requested start/count lies outside the variable extent."""


class ABIOError(ABError, OSError):
    """Opening, seeking or reading one of the AB streams failed."""


class ABFormatError(ABError, ValueError):
    """
    The ``.b`` file does not follow the AB layout.

    Parameters
    ----------
    message : str
        Description of the problem.
    lineno : int, optional
        1-based line number of the offending line in the ``.b`` file.
    line : str, optional
        Text of the offending line.
    """

    def __init__(self, message: str, lineno: int | None = None, line: str | None = None):
        self.lineno = lineno
        self.line = line
        if lineno is not None:
            message = f"{message} (line {lineno}: {line!r})"
        super().__init__(message)


class NameTooLongError(ABError, ValueError):
    """A header line or attribute name exceeds the supported length."""


class RangeWarning(RuntimeWarning):
    """
    Values could not be represented in the requested type.

    The converted data is still returned; this only flags the problem.
    """
