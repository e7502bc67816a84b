"""Domain errors and the Result wrapper returned by list mutations."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Categories of failure surfaced to the UI boundary."""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    TRANSPORT = "transport"
    MALFORMED_INPUT = "malformed_input"


class WatchOrderError(Exception):
    """Base class for all domain failures."""

    kind: ErrorKind = ErrorKind.TRANSPORT
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(WatchOrderError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class UnauthorizedError(WatchOrderError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = 403


class TransportError(WatchOrderError):
    """Network or server failure while talking to the list API."""

    kind = ErrorKind.TRANSPORT
    status_code = 502


class MalformedInputError(WatchOrderError):
    kind = ErrorKind.MALFORMED_INPUT
    status_code = 422


class DuplicateListError(MalformedInputError):
    status_code = 409

    def __init__(self, message: str = "A list with this name already exists."):
        super().__init__(message)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a client operation: either a value or a domain error."""

    value: T | None = None
    error: WatchOrderError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: WatchOrderError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T | None:
        """Return the value, raising the held error if the operation failed."""
        if self.error is not None:
            raise self.error
        return self.value
