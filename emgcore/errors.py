"""A single error type that wraps the failures of the utility modules."""

from __future__ import annotations

from enum import Enum

from emgcore.bounds import BoundsError
from emgcore.conversion import ConversionError
from emgcore.integrity import IntegrityError
from emgcore.timing import TimeError
from emgcore.validation import ValidationError


class ErrorKind(Enum):
    """Which family of utility failure a :class:`UtilError` wraps."""

    TIME = "Time error"
    VALIDATION = "Validation error"
    BOUNDS = "Bounds error"
    CONVERSION = "Conversion error"
    INTEGRITY = "Integrity error"

    @property
    def label(self) -> str:
        return self.value


_KIND_BY_TYPE: tuple[tuple[type[Exception], ErrorKind], ...] = (
    (TimeError, ErrorKind.TIME),
    (ValidationError, ErrorKind.VALIDATION),
    (BoundsError, ErrorKind.BOUNDS),
    (ConversionError, ErrorKind.CONVERSION),
    (IntegrityError, ErrorKind.INTEGRITY),
)


class UtilError(Exception):
    """Any utility failure, tagged with its kind and keeping the original error."""

    def __init__(self, kind: ErrorKind, error: Exception) -> None:
        self.kind = kind
        self.error = error
        super().__init__(str(self))
        self.__cause__ = error

    @property
    def source(self) -> Exception:
        """The wrapped error."""
        return self.error

    def __str__(self) -> str:
        return f"{self.kind.label}: {self.error}"

    def __repr__(self) -> str:
        return f"UtilError(kind={self.kind!r}, error={self.error!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UtilError):
            return NotImplemented
        return self.kind is other.kind and self.error == other.error

    def __hash__(self) -> int:
        return hash((self.kind, self.error))


def wrap_error(error: Exception) -> UtilError:
    """Wrap a utility error in a :class:`UtilError` of the matching kind."""
    if isinstance(error, UtilError):
        return error
    for error_type, kind in _KIND_BY_TYPE:
        if isinstance(error, error_type):
            return UtilError(kind, error)
    raise TypeError(f"cannot wrap {type(error).__name__} as a utility error")