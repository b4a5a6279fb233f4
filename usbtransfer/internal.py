"""Transfer handles, completion notification and awaitable transfers."""

from __future__ import annotations

import asyncio
import threading
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, Callable, Generator, Generic, Optional, TypeVar

from .completion import Completion

T = TypeVar("T")

Waker = Callable[[], None]


class PlatformTransfer(ABC):
    """Platform-specific part of a transfer.

    An implementation hands the request to the operating system in
    :meth:`submit` and arranges for :func:`notify_completion` to be called
    with the handle once the transfer has completed.
    """

    @abstractmethod
    def cancel(self) -> None:
        """Request cancellation of a transfer that may or may not be pending."""

    @abstractmethod
    def submit(self, data: Any, handle: "TransferHandle") -> None:
        """Fill the transfer from ``data`` and submit it.

        Only called while the transfer is idle.
        """

    @abstractmethod
    def take_completed(self) -> Completion:
        """Return the completion of a transfer that has completed."""


class TransferState(IntEnum):
    """Life-cycle state of a transfer."""

    IDLE = 0
    """Not submitted; the buffer is not valid."""
    PENDING = 1
    """Submitted and not yet handled; someone waits for it."""
    ABANDONED = 2
    """Submitted, but nobody waits for it any more."""
    COMPLETED = 3
    """Completion handled; the result may be taken."""


def _make_waker(loop: asyncio.AbstractEventLoop, future: asyncio.Future) -> Waker:
    def resolve() -> None:
        if not future.done():
            future.set_result(None)

    def wake() -> None:
        try:
            loop.call_soon_threadsafe(resolve)
        except RuntimeError:
            # The loop has been closed; nobody is waiting any more.
            pass

    return wake


class TransferHandle:
    """Handle to a transfer; closing it cancels a pending transfer."""

    def __init__(self, platform_data: PlatformTransfer) -> None:
        self._platform_data = platform_data
        self._state = TransferState.IDLE
        self._waker: Optional[Waker] = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def platform_data(self) -> PlatformTransfer:
        """The platform-specific transfer this handle owns."""
        return self._platform_data

    @property
    def state(self) -> TransferState:
        """The current state of the transfer."""
        with self._lock:
            return self._state

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return self._closed

    def submit(self, data: Any) -> None:
        """Submit ``data``; the transfer must be idle."""
        with self._lock:
            if self._closed:
                raise RuntimeError("cannot submit a closed transfer")
            if self._state is not TransferState.IDLE:
                raise RuntimeError(
                    f"transfer should be idle when submitted, not {self._state.name}"
                )
            self._state = TransferState.PENDING
        self._platform_data.submit(data, self)

    def cancel(self) -> None:
        """Request cancellation of the transfer."""
        self._platform_data.cancel()

    def _register_waker(self, waker: Optional[Waker]) -> None:
        with self._lock:
            self._waker = waker

    def poll_completion(self) -> Optional[Completion]:
        """Return the completion if the transfer has completed, else None."""
        with self._lock:
            if self._closed:
                raise RuntimeError("cannot poll a closed transfer")
            state = self._state
            if state is TransferState.PENDING:
                return None
            if state is not TransferState.COMPLETED:
                raise RuntimeError(f"polling transfer in unexpected state {state.name}")
            self._state = TransferState.IDLE
        return self._platform_data.take_completed()

    async def wait(self) -> Completion:
        """Wait until the transfer completes and return its completion.

        Cancelling the wait leaves the transfer pending.
        """
        loop = asyncio.get_running_loop()
        while True:
            future = loop.create_future()
            self._register_waker(_make_waker(loop, future))
            completion = self.poll_completion()
            if completion is not None:
                self._register_waker(None)
                return completion
            await future

    def close(self) -> None:
        """Abandon the transfer, cancelling it if it is still pending."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            previous = self._state
            self._state = TransferState.ABANDONED
            self._waker = None
        if previous is TransferState.PENDING:
            self.cancel()

    def __enter__(self) -> "TransferHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"TransferHandle(state={self._state.name})"


def notify_completion(handle: TransferHandle) -> None:
    """Mark a submitted transfer as completed and wake whoever waits for it.

    May be called from any thread.
    """
    with handle._lock:
        waker = handle._waker
        handle._waker = None
        previous = handle._state
        handle._state = TransferState.COMPLETED
        if previous not in (TransferState.PENDING, TransferState.ABANDONED):
            handle._state = previous
            raise RuntimeError(f"completing transfer in unexpected state {previous.name}")
    if previous is TransferState.PENDING and waker is not None:
        waker()


class TransferFuture(Generic[T]):
    """Awaitable for the completion of a single transfer.

    Closing it cancels the transfer and discards any partial data.
    """

    def __init__(self, transfer: TransferHandle) -> None:
        self._transfer = transfer

    @property
    def transfer(self) -> TransferHandle:
        """The handle of the awaited transfer."""
        return self._transfer

    def __await__(self) -> Generator[Any, None, Completion[T]]:
        return self._transfer.wait().__await__()

    def close(self) -> None:
        """Cancel the transfer if it is still pending."""
        self._transfer.close()

    def __enter__(self) -> "TransferFuture[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()