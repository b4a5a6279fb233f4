"""Buffers passed to and returned from transfers."""

from __future__ import annotations


def _take_allocation(data: bytes | bytearray | None) -> bytearray:
    """Return ``data`` emptied, re-using it if it is a bytearray."""
    if isinstance(data, bytearray):
        data.clear()
        return data
    return bytearray()


class RequestBuffer:
    """A buffer for requesting an IN transfer.

    It records the number of bytes requested and carries an empty buffer
    that receives the data read from the endpoint.
    """

    __slots__ = ("buffer", "requested")

    def __init__(self, length: int) -> None:
        if length < 0:
            raise ValueError(f"requested length must not be negative, got {length}")
        self.buffer = bytearray()
        self.requested = length

    @classmethod
    def reuse(cls, data: bytearray, length: int) -> RequestBuffer:
        """Create a request buffer re-using the storage of ``data``."""
        request = cls(length)
        request.buffer = _take_allocation(data)
        return request

    def __repr__(self) -> str:
        return f"RequestBuffer(requested={self.requested}, ...)"


class ResponseBuffer:
    """Returned buffer and actual length for a completed OUT transfer."""

    __slots__ = ("_buffer", "actual_length")

    def __init__(self, data: bytes | bytearray, actual_length: int) -> None:
        if actual_length < 0:
            raise ValueError(
                f"transferred length must not be negative, got {actual_length}"
            )
        self._buffer = data if isinstance(data, bytearray) else bytearray(data)
        self.actual_length = actual_length

    def reuse(self) -> bytearray:
        """Return the buffer emptied, to re-use in another transfer."""
        return _take_allocation(self._buffer)

    def __repr__(self) -> str:
        return f"ResponseBuffer(transferred={self.actual_length}, ...)"