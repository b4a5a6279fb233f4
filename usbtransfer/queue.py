"""A stream of transfers on one endpoint."""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Optional, Protocol

from .completion import Completion, EndpointType
from .internal import TransferHandle


class TransferFactory(Protocol):
    """Anything that creates transfers for an endpoint."""

    def make_transfer(self, endpoint: int, endpoint_type: EndpointType) -> TransferHandle:
        ...


class Queue:
    """Manages a stream of transfers on an endpoint.

    Transfers are submitted with :meth:`submit` and returned in order by
    :meth:`next_complete`. The transfer of the last completion is kept for
    re-use by the next :meth:`submit`. Closing the queue cancels all pending
    transfers, last submitted first.

    For an IN endpoint submit a :class:`~usbtransfer.buffer.RequestBuffer`;
    for an OUT endpoint submit the bytes to send.
    """

    def __init__(
        self, interface: TransferFactory, endpoint: int, endpoint_type: EndpointType
    ) -> None:
        if not 0 <= endpoint <= 0xFF:
            raise ValueError(f"endpoint address must be between 0 and 255, got {endpoint}")
        self._interface = interface
        self.endpoint = endpoint
        self.endpoint_type = EndpointType(endpoint_type)
        self._pending: Deque[TransferHandle] = deque()
        self._cached: Optional[TransferHandle] = None
        self._closed = False

    def submit(self, data: Any) -> None:
        """Submit a new transfer on the endpoint."""
        if self._closed:
            raise RuntimeError("cannot submit to a closed queue")
        transfer = self._cached
        self._cached = None
        if transfer is None:
            transfer = self._interface.make_transfer(self.endpoint, self.endpoint_type)
        transfer.submit(data)
        self._pending.append(transfer)

    async def next_complete(self) -> Completion:
        """Wait for the oldest pending transfer to complete and return it.

        Safe to cancel: the transfer stays in the queue until it has been
        returned. Raises RuntimeError if no transfers are pending.
        """
        if not self._pending:
            raise RuntimeError(
                "queue should have pending transfers when calling next_complete"
            )
        completion = await self._pending[0].wait()
        finished = self._pending.popleft()
        if self._cached is not None:
            self._cached.close()
        self._cached = finished
        return completion

    def pending(self) -> int:
        """Number of submitted transfers not yet returned by next_complete."""
        return len(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def cancel_all(self) -> None:
        """Request cancellation of all pending transfers, newest first.

        Cancelled transfers are still returned by :meth:`next_complete`.
        """
        for transfer in reversed(self._pending):
            transfer.cancel()

    def close(self) -> None:
        """Cancel all pending transfers, newest first, and release them."""
        self._closed = True
        while self._pending:
            self._pending.pop().close()
        if self._cached is not None:
            self._cached.close()
            self._cached = None

    def __enter__(self) -> "Queue":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Queue(endpoint=0x{self.endpoint:02x}, "
            f"type={self.endpoint_type.name}, pending={len(self._pending)})"
        )