"""
Result type - uniform success/failure outcome for repository calls
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import BackendError

T = TypeVar("T")


class ResultError(Exception):
    """Raised when reading the wrong side of a Result"""


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a backend operation.

    Repositories never raise across their boundary; callers branch on
    ``is_success()`` instead of catching exceptions.
    """
    _success: bool
    _value: Optional[T] = None
    _error: Optional[BackendError] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(True, value, None)

    @classmethod
    def fail(cls, error: BackendError) -> "Result[T]":
        return cls(False, None, error)

    def is_success(self) -> bool:
        return self._success

    def is_failure(self) -> bool:
        return not self._success

    @property
    def value(self) -> T:
        if not self._success:
            raise ResultError("Cannot get value from failed result")
        return self._value

    @property
    def error(self) -> BackendError:
        if self._success:
            raise ResultError("Cannot get error from successful result")
        return self._error

    def value_or(self, default: T) -> T:
        if self._success and self._value is not None:
            return self._value
        return default
