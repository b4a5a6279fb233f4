"""Endpoint types, transfer errors and completions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class EndpointType(IntEnum):
    """Endpoint type."""

    CONTROL = 0
    ISOCHRONOUS = 1
    BULK = 2
    INTERRUPT = 3


class ErrorKind(Enum):
    """Reason a transfer failed; the value is its description."""

    CANCELLED = "transfer was cancelled"
    STALL = "endpoint STALL condition"
    DISCONNECTED = "device disconnected"
    FAULT = "hardware fault or protocol violation"
    UNKNOWN = "unknown error"


_OS_ERRORS: dict[ErrorKind, type[OSError]] = {
    ErrorKind.CANCELLED: InterruptedError,
    ErrorKind.STALL: ConnectionResetError,
    ErrorKind.DISCONNECTED: ConnectionAbortedError,
    ErrorKind.FAULT: OSError,
    ErrorKind.UNKNOWN: OSError,
}


class TransferError(Exception):
    """A transfer did not complete successfully."""

    def __init__(self, kind: ErrorKind) -> None:
        self.kind = ErrorKind(kind)
        super().__init__(self.kind.value)

    def __str__(self) -> str:
        return self.kind.value

    def __repr__(self) -> str:
        return f"TransferError({self.kind.name})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TransferError):
            return self.kind is other.kind
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.kind)

    def to_os_error(self) -> OSError:
        """Convert to the matching built-in OSError, chained to this error."""
        error = _OS_ERRORS[self.kind](str(self))
        error.__cause__ = self
        return error


@dataclass
class Completion(Generic[T]):
    """Data and status returned when a transfer completes.

    A failed or cancelled transfer may still carry partial data, so the
    status is kept next to the data; ``status`` is None on success.
    """

    data: T
    status: Optional[TransferError] = None

    def into_result(self) -> T:
        """Return the data, or raise the error if the transfer failed."""
        if self.status is not None:
            raise self.status
        return self.data