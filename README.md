# usbtransfer

Building blocks for USB transfers, independent of any particular operating
system backend. The package has no dependencies outside the standard library.

- `usbtransfer.control`: the `Direction`, `ControlType` and `Recipient`
  enums, and the `Control`, `ControlIn` and `ControlOut` dataclasses that
  describe a request on a control endpoint. `request_type()` builds the
  `bmRequestType` byte and `pack_setup()` builds the 8-byte SETUP packet.
  Field values out of range raise `ValueError`.
- `usbtransfer.buffer`: `RequestBuffer` records how many bytes an IN transfer
  asks for and carries an empty `bytearray` to receive them;
  `RequestBuffer.reuse(data, length)` re-uses an existing `bytearray`.
  `ResponseBuffer` reports in `actual_length` how many bytes an OUT transfer
  sent, and `reuse()` hands back its buffer emptied.
- `usbtransfer.completion`: `EndpointType`, `ErrorKind`, `TransferError` and
  `Completion`. A `Completion` carries the returned data together with its
  status (`None` on success); `into_result()` returns the data or raises the
  error. `TransferError.to_os_error()` converts to the matching built-in
  error: `InterruptedError` for `CANCELLED`, `ConnectionResetError` for
  `STALL`, `ConnectionAbortedError` for `DISCONNECTED`, and `OSError`
  otherwise.
- `usbtransfer.internal`: `PlatformTransfer` is the abstract class a backend
  implements (`submit`, `cancel`, `take_completed`). `TransferHandle` tracks
  one transfer through the `TransferState` values `IDLE`, `PENDING`,
  `ABANDONED` and `COMPLETED`; `notify_completion(handle)` marks it completed
  and may be called from any thread. `TransferFuture` lets you `await` a
  single transfer; closing it cancels the transfer.
- `usbtransfer.queue`: `Queue` keeps several transfers pending on one
  endpoint, returns their completions in submission order, and cancels them
  newest first.

## Installation

```
pip install usbtransfer
```

## Building a SETUP packet

```python
from usbtransfer.control import ControlIn, ControlType, Recipient

req = ControlIn(
    control_type=ControlType.STANDARD,
    recipient=Recipient.DEVICE,
    request=0x06,      # GET_DESCRIPTOR
    value=0x0100,      # device descriptor
    index=0,
    length=18,
)
packet = req.setup_packet()  # b"\x80\x06\x00\x01\x00\x00\x12\x00"
```

`ControlOut.setup_packet()` raises `ValueError` when its data is longer than
65535 bytes.

## Handling completions

```python
from usbtransfer.completion import Completion, ErrorKind, TransferError

done = Completion(data=b"\x01\x02")
data = done.into_result()        # b"\x01\x02"

failed = Completion(data=b"", status=TransferError(ErrorKind.STALL))
failed.into_result()             # raises TransferError: endpoint STALL condition
```

## Plugging in a backend

A backend subclasses `PlatformTransfer`, wraps each instance in a
`TransferHandle`, and calls `notify_completion(handle)` when the transfer
finishes. A `Queue` takes any object with a
`make_transfer(endpoint, endpoint_type)` method that returns a new
`TransferHandle`:

```python
from usbtransfer.completion import Completion, EndpointType
from usbtransfer.internal import PlatformTransfer, TransferHandle, notify_completion
from usbtransfer.queue import Queue


class Loopback(PlatformTransfer):
    def submit(self, data, handle):
        self._data = bytes(data)
        notify_completion(handle)

    def cancel(self):
        pass

    def take_completed(self):
        return Completion(data=self._data)


class Interface:
    def make_transfer(self, endpoint, endpoint_type):
        return TransferHandle(Loopback())


async def run():
    with Queue(Interface(), 0x02, EndpointType.BULK) as queue:
        while queue.pending() < 4:
            queue.submit(b"hello")
        completion = await queue.next_complete()
        return completion.into_result()
```

`next_complete()` is safe to cancel: the transfer stays in the queue until it
has been returned. It raises `RuntimeError` when nothing is pending.
`cancel_all()` requests cancellation of every pending transfer, which are
still returned by `next_complete()`; `close()` cancels and releases them.

## What this package does not do

It does not talk to USB hardware. There is no device enumeration, no
operating-system backend and no way to open a device or claim an interface;
the transfers a `Queue` or `TransferFuture` works with must come from a
`PlatformTransfer` implementation you provide.

## Running the tests

```
pip install -e ".[test]"
pytest
```