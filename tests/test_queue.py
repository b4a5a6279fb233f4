import asyncio

import pytest

from usbtransfer.buffer import RequestBuffer
from usbtransfer.completion import Completion, EndpointType, ErrorKind, TransferError
from usbtransfer.internal import (
    PlatformTransfer,
    TransferHandle,
    TransferState,
    notify_completion,
)
from usbtransfer.queue import Queue


class FakeTransfer(PlatformTransfer):
    def __init__(self, cancel_log):
        self.submitted = []
        self.cancel_log = cancel_log
        self.handle = None
        self._result = None

    def submit(self, data, handle):
        self.submitted.append(data)
        self.handle = handle

    def cancel(self):
        self.cancel_log.append(self)

    def complete(self, data, status=None):
        self._result = Completion(data, status)
        notify_completion(self.handle)

    def take_completed(self):
        result, self._result = self._result, None
        return result


class FakeInterface:
    def __init__(self):
        self.created = []
        self.requests = []
        self.cancel_log = []

    def make_transfer(self, endpoint, endpoint_type):
        self.requests.append((endpoint, endpoint_type))
        platform = FakeTransfer(self.cancel_log)
        self.created.append(platform)
        return TransferHandle(platform)


def make_queue(endpoint=0x81, endpoint_type=EndpointType.BULK):
    interface = FakeInterface()
    return interface, Queue(interface, endpoint, endpoint_type)


def test_submit_creates_transfer_for_endpoint():
    interface, queue = make_queue()
    queue.submit(RequestBuffer(8))
    assert interface.requests == [(0x81, EndpointType.BULK)]
    assert queue.pending() == 1


def test_pending_counts_submissions():
    interface, queue = make_queue()
    for _ in range(3):
        queue.submit(RequestBuffer(4))
    assert queue.pending() == 3
    assert len(queue) == 3
    assert len(interface.created) == 3


@pytest.mark.asyncio
async def test_completions_return_in_submission_order():
    interface, queue = make_queue()
    queue.submit(RequestBuffer(4))
    queue.submit(RequestBuffer(4))
    first, second = interface.created
    second.complete(bytearray(b"two"))
    first.complete(bytearray(b"one"))
    a = await queue.next_complete()
    b = await queue.next_complete()
    assert (a.data, b.data) == (bytearray(b"one"), bytearray(b"two"))
    assert queue.pending() == 0


@pytest.mark.asyncio
async def test_completed_transfer_is_reused():
    interface, queue = make_queue(endpoint=0x02)
    queue.submit(b"abc")
    interface.created[0].complete(b"abc")
    await queue.next_complete()
    queue.submit(b"def")
    assert len(interface.created) == 1
    assert interface.created[0].submitted == [b"abc", b"def"]


@pytest.mark.asyncio
async def test_next_complete_waits_for_completion():
    interface, queue = make_queue()
    queue.submit(RequestBuffer(4))
    loop = asyncio.get_running_loop()
    loop.call_later(0.01, interface.created[0].complete, bytearray(b"late"))
    completion = await asyncio.wait_for(queue.next_complete(), timeout=5)
    assert completion.data == bytearray(b"late")


@pytest.mark.asyncio
async def test_next_complete_is_cancel_safe():
    interface, queue = make_queue()
    queue.submit(RequestBuffer(4))
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(queue.next_complete(), timeout=0.01)
    assert queue.pending() == 1
    assert interface.cancel_log == []
    interface.created[0].complete(bytearray(b"kept"))
    completion = await queue.next_complete()
    assert completion.data == bytearray(b"kept")


@pytest.mark.asyncio
async def test_next_complete_without_pending_raises():
    _, queue = make_queue()
    with pytest.raises(RuntimeError):
        await queue.next_complete()


@pytest.mark.asyncio
async def test_error_status_is_returned():
    interface, queue = make_queue()
    queue.submit(RequestBuffer(4))
    error = TransferError(ErrorKind.CANCELLED)
    interface.created[0].complete(bytearray(b"pa"), error)
    completion = await queue.next_complete()
    assert completion.status == error
    assert completion.data == bytearray(b"pa")


def test_cancel_all_cancels_newest_first_and_keeps_pending():
    interface, queue = make_queue()
    for _ in range(3):
        queue.submit(RequestBuffer(4))
    queue.cancel_all()
    assert interface.cancel_log == list(reversed(interface.created))
    assert queue.pending() == 3


@pytest.mark.asyncio
async def test_cancelled_transfers_still_returned():
    interface, queue = make_queue()
    queue.submit(RequestBuffer(4))
    queue.cancel_all()
    error = TransferError(ErrorKind.CANCELLED)
    interface.created[0].complete(bytearray(), error)
    completion = await queue.next_complete()
    assert completion.status == error


def test_close_cancels_all_newest_first():
    interface, queue = make_queue()
    for _ in range(3):
        queue.submit(RequestBuffer(4))
    queue.close()
    assert interface.cancel_log == list(reversed(interface.created))
    assert queue.pending() == 0
    states = [p.handle.state for p in interface.created]
    assert states == [TransferState.ABANDONED] * 3


def test_context_manager_closes_queue():
    interface, queue = make_queue()
    with queue:
        queue.submit(RequestBuffer(4))
    assert interface.cancel_log == interface.created
    with pytest.raises(RuntimeError):
        queue.submit(RequestBuffer(4))


def test_invalid_endpoint_rejected():
    interface = FakeInterface()
    with pytest.raises(ValueError):
        Queue(interface, 0x100, EndpointType.BULK)